"""
RxBridge — Celery Application

Background delivery of notifications. Configuration is read from Django
settings (CELERY_* keys); tasks are discovered in each installed app.

@file config/celery.py
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('rxbridge')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.conf.update(
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=60,
)
app.autodiscover_tasks()
