"""
Facilities — Models

A healthcare facility holding its own pharmaceutical stock. Facilities are
the unit of ownership for inventory and the unit of authorization for
redistribution: staff act on behalf of the facility they belong to.

@file facilities/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class Facility(BaseModel):
    """A hospital, clinic or pharmacy that stocks and exchanges drugs."""

    name = models.CharField(
        _('name'), max_length=255,
        help_text=_('Official name of the facility'),
    )
    address = models.CharField(_('address'), max_length=500, blank=True)
    contact_email = models.EmailField(_('contact email'), blank=True)
    contact_phone = models.CharField(_('contact phone'), max_length=20, blank=True)
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    class Meta:
        verbose_name = _('facility')
        verbose_name_plural = _('facilities')
        ordering = ['name']

    def __str__(self):
        return self.name
