"""
Management command to populate the database with demo data.

Creates insurance providers, patients and a week of appointments starting
today.  Each day includes a few overlapping bookings so the timeline shows
side-by-side columns.
"""
import datetime as dt
import random

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from frontdesk.models import Appointment, InsuranceProvider, Patient

PROVIDERS = [
    ('Blue Shield', 'BSH', '800-555-0101'),
    ('Aetna Health', 'AET', '800-555-0102'),
    ('United Care', 'UNC', '800-555-0103'),
    ('Medicare', 'MCR', '800-555-0104'),
]

FIRST_NAMES = ['James', 'Mary', 'Robert', 'Patricia', 'John', 'Jennifer', 'Michael', 'Linda', 'David', 'Susan']
LAST_NAMES = ['Smith', 'Johnson', 'Williams', 'Brown', 'Jones', 'Garcia', 'Miller', 'Davis', 'Wilson', 'Moore']
DEPARTMENTS = ['Cardiology', 'General Medicine', 'Pediatrics', 'Orthopedics']
DOCTORS = ['Dr. Adams', 'Dr. Baker', 'Dr. Clark', 'Dr. Evans']
REASONS = ['Annual checkup', 'Follow-up visit', 'Chest pain', 'Knee pain', 'Vaccination', 'Lab review']

# (time, duration) per day; the first three overlap each other
DAY_PLAN = [
    ('09:00', 60), ('09:30', 30), ('09:45', 45),
    ('11:00', 30), ('11:30', 30),
    ('14:00', 90), ('14:30', 30), ('15:00', 60),
    ('16:30', 15),
]


class Command(BaseCommand):
    help = 'Populate database with demo providers, patients and appointments'

    def add_arguments(self, parser):
        parser.add_argument('--patients', type=int, default=20)
        parser.add_argument('--days', type=int, default=7)
        parser.add_argument('--seed', type=int, default=None)

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        self.stdout.write('Creating demo data...')

        providers = self.create_providers()
        patients = self.create_patients(rng, providers, options['patients'])
        count = self.create_appointments(rng, patients, options['days'])

        self.stdout.write(self.style.SUCCESS(
            f'Done: {len(providers)} providers, {len(patients)} patients, {count} appointments'
        ))

    def create_providers(self):
        providers = []
        for name, code, phone in PROVIDERS:
            provider, _ = InsuranceProvider.objects.get_or_create(
                code=code, defaults={'name': name, 'phone': phone, 'is_active': True},
            )
            providers.append(provider)
        return providers

    def create_patients(self, rng, providers, n):
        patients = []
        today = timezone.localdate()
        for _ in range(n):
            first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)
            insured = rng.random() < 0.8
            patients.append(Patient.objects.create(
                first_name=first,
                last_name=last,
                date_of_birth=today - dt.timedelta(days=rng.randint(365 * 2, 365 * 85)),
                gender=rng.choice(['male', 'female', 'other']),
                contact_number=f'555-{rng.randint(1000, 9999)}',
                email=f'{first}.{last}{rng.randint(1, 999)}@example.com'.lower(),
                insurance_provider=rng.choice(providers) if insured else None,
                policy_number=f'POL{rng.randint(100000, 999999)}' if insured else '',
            ))
        return patients

    def create_appointments(self, rng, patients, days):
        if not patients:
            return 0
        count = 0
        today = timezone.localdate()
        for offset in range(days):
            day = today + dt.timedelta(days=offset)
            for time, duration in DAY_PLAN:
                Appointment.objects.create(
                    patient=rng.choice(patients),
                    appointment_date=day,
                    appointment_time=time,
                    duration=duration,
                    appointment_type=rng.choice(['New', 'Follow-up', 'Televisit']),
                    visit_reason=rng.choice(REASONS),
                    department=rng.choice(DEPARTMENTS),
                    provider=rng.choice(DOCTORS),
                    status='Scheduled' if offset else rng.choice(['Scheduled', 'Checked-In', 'Completed']),
                )
                count += 1
        return count
