"""
URL mappings for the front-desk API.

Trailing slashes are deliberately omitted to match the browser client.
"""
from django.urls import path, include

from .auth_views import login_view, me_view, jwt_refresh_view, jwt_logout_view
from .views import health
from .views.patients import patients, patient_by_mrn, patient_detail, patient_appointments
from .views.insurance_providers import (
    insurance_providers,
    active_insurance_providers,
    insurance_provider_detail,
)
from .views.appointments import (
    appointments,
    today_appointments,
    appointment_detail,
    appointment_status,
)
from .views.timeline import timeline, timeline_slot


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    path('api/auth/me', me_view, name='me_view'),
    # Patients
    path('api/patients', patients, name='patients'),
    path('api/patients/mrn/<str:mrn>', patient_by_mrn, name='patient_by_mrn'),
    path('api/patients/<uuid:pk>', patient_detail, name='patient_detail'),
    path('api/patients/<uuid:pk>/appointments', patient_appointments, name='patient_appointments'),
    # Insurance providers
    path('api/insurance-providers', insurance_providers, name='insurance_providers'),
    path('api/insurance-providers/active', active_insurance_providers, name='active_insurance_providers'),
    path('api/insurance-providers/<uuid:pk>', insurance_provider_detail, name='insurance_provider_detail'),
    # Appointments (fixed paths before <uuid:pk>)
    path('api/appointments', appointments, name='appointments'),
    path('api/appointments/today', today_appointments, name='today_appointments'),
    path('api/appointments/timeline', timeline, name='timeline'),
    path('api/appointments/timeline/slot', timeline_slot, name='timeline_slot'),
    path('api/appointments/<uuid:pk>', appointment_detail, name='appointment_detail'),
    path('api/appointments/<uuid:pk>/status', appointment_status, name='appointment_status'),
]
