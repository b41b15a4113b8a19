"""
Django admin registrations for the front-desk models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User, InsuranceProvider, Patient, Appointment, AuditEvent


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'role', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    fieldsets = BaseUserAdmin.fieldsets + (('Front desk', {'fields': ('role',)}),)


@admin.register(InsuranceProvider)
class InsuranceProviderAdmin(admin.ModelAdmin):
    list_display = ('name', 'code', 'phone', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('name', 'code')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('mrn', 'last_name', 'first_name', 'date_of_birth', 'gender', 'insurance_provider')
    list_filter = ('gender', 'insurance_provider')
    search_fields = ('mrn', 'first_name', 'last_name', 'email')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('appointment_date', 'appointment_time', 'duration', 'patient', 'appointment_type', 'status')
    list_filter = ('status', 'appointment_type', 'appointment_date')
    search_fields = ('patient__mrn', 'patient__last_name', 'visit_reason', 'provider')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'object_type', 'object_id', 'user')
    list_filter = ('action', 'object_type')
