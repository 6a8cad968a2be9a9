"""
Notifications — Celery Tasks

Delivery of notifications published after a committed stock or
redistribution change.

@file notifications/tasks.py
"""

from celery import shared_task


@shared_task(name='notifications.deliver')
def deliver_notification(payload: dict):
    """Persist one notification unless an identical one is inside the de-duplication window."""
    from .services import NotificationDispatcher

    notification = NotificationDispatcher.deliver(payload)
    return {'notification_id': str(notification.pk) if notification else None}
