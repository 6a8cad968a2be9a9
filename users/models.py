"""
Users — Models

Custom User model with UUID PK and email-based auth. Every staff user
belongs to exactly one facility; the facility, not the individual, is what
redistribution and dispensation authorization is checked against.

@file users/models.py
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel
from users.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """
    Facility staff member.

    ``facility`` is nullable only for platform administrators; such users
    can browse the admin but cannot act on inventory or redistributions.
    """

    class RoleChoices(models.TextChoices):
        STAFF = 'STAFF', _('Staff')
        PHARMACIST = 'PHARMACIST', _('Pharmacist')
        SUPERVISOR = 'SUPERVISOR', _('Supervisor')
        ADMIN = 'ADMIN', _('Admin')

    email = models.EmailField(_('email'), unique=True)
    name = models.CharField(_('name'), max_length=200)
    phone = models.CharField(_('phone'), max_length=20, blank=True)

    facility = models.ForeignKey(
        'facilities.Facility',
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='users',
        verbose_name=_('facility'),
    )
    role = models.CharField(
        _('role'), max_length=12,
        choices=RoleChoices.choices, default=RoleChoices.STAFF,
        db_index=True,
    )

    is_staff = models.BooleanField(_('staff status'), default=False)
    is_active = models.BooleanField(_('active'), default=True)
    date_joined = models.DateTimeField(_('date joined'), default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['facility', 'is_active']),
        ]

    def __str__(self):
        return self.name or self.email

    def get_full_name(self):
        return self.name or self.email

    def get_short_name(self):
        return self.name.split(' ')[0] if self.name else self.email

    def belongs_to(self, facility_id) -> bool:
        """True when the user acts on behalf of the given facility."""
        return self.facility_id is not None and str(self.facility_id) == str(facility_id)
