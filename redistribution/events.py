"""
Redistribution — Notification Events

Builds the NotificationEvent for each redistribution outcome. Who receives
what:

  CREATED   → destination facility (broadcast)
  APPROVED  → source facility, addressed to the requesting user
  DECLINED  → source facility, addressed to the requesting user
  COMPLETED → destination facility (broadcast)

@file redistribution/events.py
"""

from notifications.models import Notification
from notifications.services import NotificationEvent

from .models import RedistributionRequest

Types = Notification.TypeChoices
Priorities = Notification.PriorityChoices


def _resolver_name(redistribution: RedistributionRequest) -> str:
    resolver = redistribution.received_by or redistribution.declined_by
    return resolver.name if resolver is not None else 'N/A'


def redistribution_event(redistribution: RedistributionRequest, notification_type: str) -> NotificationEvent:
    lot = redistribution.drug
    source = redistribution.from_facility
    destination = redistribution.to_facility
    quantity = redistribution.quantity

    if notification_type == Types.REDISTRIBUTION_CREATED:
        title = 'New Redistribution Request'
        message = f'New request for {quantity} units of {lot.drug_name} from {source.name}.'
        priority = Priorities.MEDIUM
        facility_id, user_id = destination.pk, None
    elif notification_type == Types.REDISTRIBUTION_APPROVED:
        title = 'Redistribution Request Approved'
        message = (
            f'Your request for {quantity} units of {lot.drug_name} from {source.name} '
            f'to {destination.name} has been APPROVED by {_resolver_name(redistribution)}.'
        )
        priority = Priorities.HIGH
        facility_id, user_id = source.pk, redistribution.requested_by_id
    elif notification_type == Types.REDISTRIBUTION_DECLINED:
        title = 'Redistribution Request Declined'
        message = (
            f'Your request for {quantity} units of {lot.drug_name} from {source.name} '
            f'to {destination.name} has been DECLINED by {_resolver_name(redistribution)}.'
        )
        priority = Priorities.HIGH
        facility_id, user_id = source.pk, redistribution.requested_by_id
    elif notification_type == Types.REDISTRIBUTION_COMPLETED:
        title = 'Redistribution Completed'
        message = f'{quantity} units of {lot.drug_name} successfully received from {source.name}.'
        priority = Priorities.MEDIUM
        facility_id, user_id = destination.pk, None
    else:
        raise ValueError(f'Not a redistribution notification type: {notification_type}')

    return NotificationEvent(
        type=notification_type,
        facility_id=str(facility_id),
        title=title,
        message=message,
        priority=priority,
        lot_id=str(lot.pk),
        drug_name=lot.drug_name,
        batch_number=lot.batch_number,
        expiry_date=redistribution.expiry_date.isoformat() if redistribution.expiry_date else None,
        redistribution_id=str(redistribution.pk),
        user_id=str(user_id) if user_id else None,
        metadata={
            'redistribution_quantity': quantity,
            'status': redistribution.status,
        },
    )
