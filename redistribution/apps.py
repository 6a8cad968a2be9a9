"""
Redistribution — Application Configuration
"""

from django.apps import AppConfig


class RedistributionConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'redistribution'
    verbose_name = 'Inter-facility Redistribution'
