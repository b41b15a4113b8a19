"""
Integration tests for the front-desk API.

These tests exercise patients, insurance providers, appointments and the
day timeline through Django REST Framework's APIClient within the
APITestCase base class.

To run the tests:

```
pytest -q frontdesk/tests
```
"""
import datetime as dt
from unittest import mock

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from ..models import Appointment, AuditEvent, InsuranceProvider, Patient, User
from ..services.timeline import InvalidTimeFormat


class FrontDeskAPITests(APITestCase):
    def setUp(self) -> None:
        """Create operators, a provider, two patients and tomorrow's date."""
        self.admin_user = User.objects.create_user(
            username="admin1", email="admin@example.com", password="adminpass", role="admin",
        )
        self.staff_user = User.objects.create_user(
            username="staff1", email="staff@example.com", password="staffpass", role="staff",
        )
        self.provider = InsuranceProvider.objects.create(name="Blue Shield", code="BSH")
        self.patient1 = Patient.objects.create(
            first_name="Ada", last_name="Lovelace", date_of_birth=dt.date(1980, 12, 10),
            gender="female", contact_number="555-0101", email="ada@example.com",
            insurance_provider=self.provider,
        )
        self.patient2 = Patient.objects.create(
            first_name="Alan", last_name="Turing", date_of_birth=dt.date(1975, 6, 23),
            gender="male", contact_number="555-0102",
        )
        self.tomorrow = timezone.localdate() + dt.timedelta(days=1)

    def authenticate(self, user: User) -> APIClient:
        """Return an authenticated APIClient for the given user."""
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def book(self, patient, day, time, duration=30, **extra):
        return Appointment.objects.create(
            patient=patient, appointment_date=day, appointment_time=time, duration=duration,
            appointment_type=extra.pop("appointment_type", "New"), **extra,
        )

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------
    def test_anonymous_cannot_list_patients(self):
        response = APIClient().get("/api/patients")
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(response.json()["success"])

    def test_staff_can_list_and_search_patients(self):
        client = self.authenticate(self.staff_user)
        response = client.get("/api/patients", {"search": "lovel"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual([p["lastName"] for p in body["data"]], ["Lovelace"])
        self.assertEqual(body["pagination"], {"page": 1, "limit": 10, "total": 1, "totalPages": 1})
        self.assertEqual(body["data"][0]["insuranceProvider"]["code"], "BSH")

    def test_patient_list_filters_and_pagination(self):
        client = self.authenticate(self.staff_user)
        body = client.get("/api/patients", {"gender": "MALE"}).json()
        self.assertEqual([p["firstName"] for p in body["data"]], ["Alan"])
        body = client.get("/api/patients", {"insuranceProviderId": str(self.provider.id)}).json()
        self.assertEqual([p["firstName"] for p in body["data"]], ["Ada"])
        body = client.get("/api/patients", {"limit": 1, "page": 2}).json()
        self.assertEqual(len(body["data"]), 1)
        self.assertEqual(body["pagination"]["totalPages"], 2)

    def test_patient_list_rejects_oversized_limit(self):
        client = self.authenticate(self.staff_user)
        response = client.get("/api/patients", {"limit": 500})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.json()["success"])

    def test_create_patient_generates_mrn_and_strips_markup(self):
        client = self.authenticate(self.staff_user)
        response = client.post("/api/patients", {
            "firstName": "<b>Grace</b>",
            "lastName": "Hopper",
            "dateOfBirth": "1906-12-09",
            "gender": "Female",
            "contactNumber": "555-0199",
            "insuranceProviderId": str(self.provider.id),
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()["data"]
        self.assertEqual(data["firstName"], "Grace")
        self.assertEqual(data["gender"], "female")
        self.assertRegex(data["mrn"], r"^MRN-\d{4}-[0-9A-F]{8}$")
        self.assertTrue(AuditEvent.objects.filter(action="patient_create", object_id=data["id"]).exists())

    def test_create_patient_rejects_future_birth_date(self):
        client = self.authenticate(self.staff_user)
        response = client.post("/api/patients", {
            "firstName": "Future", "lastName": "Kid", "dateOfBirth": self.tomorrow.isoformat(),
            "gender": "other", "contactNumber": "1",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("dateOfBirth", response.json()["errors"])

    def test_patient_lookup_by_mrn_and_detail(self):
        client = self.authenticate(self.staff_user)
        response = client.get(f"/api/patients/mrn/{self.patient1.mrn}")
        self.assertEqual(response.json()["data"]["id"], str(self.patient1.id))
        response = client.get("/api/patients/mrn/MRN-0000-DEADBEEF")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["message"], "Patient not found")

    def test_update_patient_requires_a_field(self):
        client = self.authenticate(self.staff_user)
        response = client.patch(f"/api/patients/{self.patient2.id}", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["message"], "At least one field must be provided for update")

        response = client.put(f"/api/patients/{self.patient2.id}", {"contactNumber": "555-9999"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.patient2.refresh_from_db()
        self.assertEqual(self.patient2.contact_number, "555-9999")

    def test_delete_patient_cascades_appointments(self):
        self.book(self.patient2, self.tomorrow, "09:00")
        client = self.authenticate(self.staff_user)
        response = client.delete(f"/api/patients/{self.patient2.id}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Patient.objects.filter(id=self.patient2.id).exists())
        self.assertFalse(Appointment.objects.filter(patient_id=self.patient2.id).exists())

    def test_patient_appointments_newest_first(self):
        self.book(self.patient1, self.tomorrow, "09:00")
        self.book(self.patient1, self.tomorrow + dt.timedelta(days=3), "08:00")
        client = self.authenticate(self.staff_user)
        data = client.get(f"/api/patients/{self.patient1.id}/appointments").json()["data"]
        self.assertEqual([a["appointmentTime"] for a in data], ["08:00", "09:00"])

    # ------------------------------------------------------------------
    # Insurance providers
    # ------------------------------------------------------------------
    def test_staff_cannot_create_insurance_provider(self):
        client = self.authenticate(self.staff_user)
        response = client.post("/api/insurance-providers", {"name": "Aetna"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_provider_with_uppercased_code(self):
        client = self.authenticate(self.admin_user)
        response = client.post("/api/insurance-providers", {"name": "Aetna", "code": "aet"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["data"]["code"], "AET")

        response = client.post("/api/insurance-providers", {"name": "Other", "code": "bsh"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_provider_list_counts_patients_and_filters(self):
        InsuranceProvider.objects.create(name="Retired Co", code="RET", is_active=False)
        client = self.authenticate(self.staff_user)
        body = client.get("/api/insurance-providers").json()
        self.assertEqual([p["name"] for p in body["data"]], ["Blue Shield", "Retired Co"])
        self.assertEqual(body["data"][0]["patientCount"], 1)
        body = client.get("/api/insurance-providers", {"isActive": "false"}).json()
        self.assertEqual([p["code"] for p in body["data"]], ["RET"])
        active = client.get("/api/insurance-providers/active").json()["data"]
        self.assertEqual([p["code"] for p in active], ["BSH"])

    def test_deleting_provider_keeps_patients(self):
        client = self.authenticate(self.admin_user)
        response = client.delete(f"/api/insurance-providers/{self.provider.id}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.patient1.refresh_from_db()
        self.assertIsNone(self.patient1.insurance_provider)

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------
    def test_create_appointment(self):
        client = self.authenticate(self.staff_user)
        with mock.patch("frontdesk.services.appointments.broadcast_timeline_changed") as broadcast:
            with self.captureOnCommitCallbacks(execute=True):
                response = client.post("/api/appointments", {
                    "patientId": str(self.patient1.id),
                    "appointmentDate": self.tomorrow.isoformat(),
                    "appointmentTime": "09:30",
                    "appointmentType": "Follow-up",
                    "visitReason": "Check <script>x</script>bp",
                }, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()["data"]
        self.assertEqual(data["duration"], 30)
        self.assertEqual(data["status"], "Scheduled")
        self.assertEqual(data["patient"]["mrn"], self.patient1.mrn)
        self.assertNotIn("<script>", data["visitReason"])
        broadcast.assert_called_once()
        days, appointment_id, action = broadcast.call_args.args
        self.assertEqual(days, [self.tomorrow])
        self.assertEqual(str(appointment_id), data["id"])
        self.assertEqual(action, "created")

    def test_create_appointment_validation(self):
        client = self.authenticate(self.staff_user)
        base = {
            "patientId": str(self.patient1.id),
            "appointmentDate": self.tomorrow.isoformat(),
            "appointmentTime": "09:30",
            "appointmentType": "New",
        }
        cases = [
            ({"appointmentDate": (timezone.localdate() - dt.timedelta(days=1)).isoformat()}, "appointmentDate"),
            ({"appointmentTime": "9:30"}, "appointmentTime"),
            ({"appointmentTime": "24:00"}, "appointmentTime"),
            ({"duration": 10}, "duration"),
            ({"duration": 481}, "duration"),
            ({"appointmentType": "Walk-in"}, "appointmentType"),
        ]
        for override, field in cases:
            response = client.post("/api/appointments", {**base, **override}, format="json")
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, override)
            self.assertIn(field, response.json()["errors"])

    def test_list_appointments_filters(self):
        self.book(self.patient1, self.tomorrow, "10:00", department="Cardiology")
        self.book(self.patient2, self.tomorrow, "09:00", status="Cancelled", department="Pediatrics")
        self.book(self.patient2, self.tomorrow + dt.timedelta(days=1), "08:00")
        client = self.authenticate(self.staff_user)

        body = client.get("/api/appointments", {"date": self.tomorrow.isoformat()}).json()
        self.assertEqual([a["appointmentTime"] for a in body["data"]], ["09:00", "10:00"])
        body = client.get("/api/appointments", {"status": "Cancelled"}).json()
        self.assertEqual(len(body["data"]), 1)
        body = client.get("/api/appointments", {"department": "cardio"}).json()
        self.assertEqual(body["data"][0]["patient"]["firstName"], "Ada")
        body = client.get("/api/appointments", {"search": "turing"}).json()
        self.assertEqual(body["pagination"]["total"], 2)
        body = client.get("/api/appointments", {"patientId": str(self.patient1.id)}).json()
        self.assertEqual(body["pagination"]["total"], 1)

    def test_today_appointments(self):
        today = timezone.localdate()
        self.book(self.patient1, today, "15:00")
        self.book(self.patient2, today, "08:15")
        self.book(self.patient2, self.tomorrow, "08:00")
        client = self.authenticate(self.staff_user)
        data = client.get("/api/appointments/today").json()["data"]
        self.assertEqual([a["appointmentTime"] for a in data], ["08:15", "15:00"])

    def test_update_status(self):
        appt = self.book(self.patient1, self.tomorrow, "09:00")
        client = self.authenticate(self.staff_user)
        response = client.patch(f"/api/appointments/{appt.id}/status", {"status": "Checked-In"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        appt.refresh_from_db()
        self.assertEqual(appt.status, "Checked-In")
        response = client.patch(f"/api/appointments/{appt.id}/status", {"status": "Lost"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_moving_appointment_notifies_both_days(self):
        appt = self.book(self.patient1, self.tomorrow, "09:00")
        later = self.tomorrow + dt.timedelta(days=2)
        client = self.authenticate(self.staff_user)
        with mock.patch("frontdesk.services.appointments.broadcast_timeline_changed") as broadcast:
            with self.captureOnCommitCallbacks(execute=True):
                response = client.patch(f"/api/appointments/{appt.id}", {
                    "appointmentDate": later.isoformat(), "duration": 45,
                }, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        days, _, action = broadcast.call_args.args
        self.assertEqual(set(days), {self.tomorrow, later})
        self.assertEqual(action, "updated")

    def test_appointment_detail_and_delete(self):
        appt = self.book(self.patient1, self.tomorrow, "09:00")
        client = self.authenticate(self.staff_user)
        data = client.get(f"/api/appointments/{appt.id}").json()["data"]
        self.assertEqual(data["patient"]["insuranceProvider"]["name"], "Blue Shield")
        response = client.delete(f"/api/appointments/{appt.id}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = client.get(f"/api/appointments/{appt.id}")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {"success": False, "message": "Appointment not found", "errors": None})

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------
    def test_timeline_lays_out_overlapping_appointments(self):
        day = dt.date(2024, 3, 4)
        a = self.book(self.patient1, day, "09:00", 60)
        b = self.book(self.patient2, day, "09:50", 60)
        c = self.book(self.patient1, day, "10:40", 60)
        d = self.book(self.patient2, day, "13:00", 30)
        self.book(self.patient2, day + dt.timedelta(days=1), "09:00", 60)

        client = self.authenticate(self.staff_user)
        response = client.get("/api/appointments/timeline", {"date": day.isoformat()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["date"], "2024-03-04")
        self.assertEqual(body["count"], 4)
        self.assertIsNone(body["nowOffset"])
        self.assertEqual(len(body["hours"]), 24)

        blocks = {blk["id"]: blk for blk in body["data"]}
        self.assertEqual([blk["id"] for blk in body["data"]], [str(a.id), str(b.id), str(c.id), str(d.id)])
        self.assertEqual({blocks[str(x.id)]["totalColumns"] for x in (a, b, c)}, {2})
        self.assertEqual(blocks[str(a.id)]["column"], 0)
        self.assertEqual(blocks[str(b.id)]["column"], 1)
        self.assertEqual(blocks[str(c.id)]["column"], 0)
        self.assertEqual((blocks[str(d.id)]["column"], blocks[str(d.id)]["totalColumns"]), (0, 1))
        self.assertEqual(blocks[str(a.id)]["top"], 540)
        self.assertEqual(blocks[str(d.id)]["height"], 30)
        self.assertEqual(blocks[str(b.id)]["label"], "Alan Turing")
        self.assertEqual(blocks[str(b.id)]["style"]["left"], "calc(50% + 4px)")

    def test_timeline_defaults_to_today(self):
        client = self.authenticate(self.staff_user)
        body = client.get("/api/appointments/timeline").json()
        self.assertEqual(body["date"], timezone.localdate().isoformat())
        self.assertEqual(body["data"], [])

    def test_timeline_rejects_bad_date(self):
        client = self.authenticate(self.staff_user)
        response = client.get("/api/appointments/timeline", {"date": "2024-13-40"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_timeline_slot_maps_click_to_hour(self):
        client = self.authenticate(self.staff_user)
        response = client.get("/api/appointments/timeline/slot", {"y": "615", "date": "2024-03-04"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["data"], {"date": "2024-03-04", "appointmentTime": "10:00"})

    def test_timeline_error_maps_to_bad_request(self):
        client = self.authenticate(self.staff_user)
        with mock.patch(
            "frontdesk.views.timeline.day_timeline",
            side_effect=InvalidTimeFormat("bad time"),
        ):
            response = client.get("/api/appointments/timeline", {"date": "2024-03-04"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["errors"], {"code": "InvalidTimeFormat"})

    def test_health(self):
        response = APIClient().get("/healthz")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["db"])
