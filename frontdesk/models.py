"""
Database models for the front-desk backend.

Three records make up the front desk: insurance providers, patients
(optionally covered by a provider) and appointments booked for patients.
Field names follow Django conventions; the API layer renders them in the
camelCase shape the browser client expects.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone

TIME_VALIDATOR = RegexValidator(
    regex=r"^([01]\d|2[0-3]):([0-5]\d)$",
    message="Appointment time must be in HH:MM format",
)


def generate_mrn() -> str:
    """Medical record number: ``MRN-<year>-<8 hex>``."""
    return f"MRN-{timezone.now().year}-{uuid.uuid4().hex[:8].upper()}"


class User(AbstractUser):
    """Front-desk operator.

    ``admin`` users manage reference data such as insurance providers;
    ``staff`` users handle patients and appointments.
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('staff', 'Front desk staff'),
    ]
    email = models.EmailField(unique=True, blank=True, null=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='staff')

    def save(self, *args, **kwargs):
        # 空邮箱存为 NULL，避免唯一约束冲突
        if not self.email:
            self.email = None
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class InsuranceProvider(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=20, unique=True, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=500, blank=True)
    website = models.URLField(blank=True)
    # 停用的保险公司不再出现在下拉框中，但保留历史患者关联
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} ({self.code})" if self.code else self.name


class Patient(models.Model):
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    mrn = models.CharField(max_length=32, unique=True, default=generate_mrn, editable=False)
    first_name = models.CharField(max_length=100)
    middle_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    contact_number = models.CharField(max_length=20)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=500, blank=True)
    insurance_provider = models.ForeignKey(
        InsuranceProvider, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients'
    )
    policy_number = models.CharField(max_length=100, blank=True)
    copay = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    deductible = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    primary_care_physician = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='patient_name_idx'),
        ]

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.middle_name, self.last_name) if p)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.mrn})"


class Appointment(models.Model):
    TYPE_CHOICES = [
        ('New', 'New'),
        ('Follow-up', 'Follow-up'),
        ('Televisit', 'Televisit'),
    ]
    STATUS_CHOICES = [
        ('Scheduled', 'Scheduled'),
        ('Checked-In', 'Checked-In'),
        ('In Progress', 'In Progress'),
        ('Completed', 'Completed'),
        ('Cancelled', 'Cancelled'),
        ('No-Show', 'No-Show'),
        ('Rescheduled', 'Rescheduled'),
    ]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    appointment_date = models.DateField()
    # 24 小时制 "HH:MM"，时间轴布局直接按字符串解析
    appointment_time = models.CharField(max_length=5, validators=[TIME_VALIDATOR])
    duration = models.PositiveIntegerField(
        default=30, validators=[MinValueValidator(15), MaxValueValidator(480)]
    )
    appointment_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    visit_reason = models.CharField(max_length=500, blank=True)
    department = models.CharField(max_length=100, blank=True)
    provider = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Scheduled', db_index=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['appointment_date', 'appointment_time'], name='appt_date_time_idx'),
            models.Index(fields=['patient', 'appointment_date'], name='appt_patient_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.appointment_date} {self.appointment_time} {self.patient_id} ({self.status})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action}:{self.object_type}/{self.object_id}"
