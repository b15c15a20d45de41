# carwash/notifications.py
"""Client notifications, scheduled by the routes as background tasks after a
commit. Delivery (WhatsApp, SMS, ...) lives outside this service; these hooks
only record what is sent.
"""

import logging

from .core import to_iso

logger = logging.getLogger(__name__)


def notify_new_appointment(appointment_id: int, client_name: str, service_name: str, starts_at) -> None:
    logger.info(
        f"Notify {client_name}: {service_name} booked for {to_iso(starts_at)} "
        f"(appointment {appointment_id})"
    )


def notify_status_change(appointment_id: int, client_name: str, status: str) -> None:
    logger.info(f"Notify {client_name}: appointment {appointment_id} is now {status}")


def notify_cancellation(appointment_id: int, client_name: str, starts_at) -> None:
    logger.info(
        f"Notify {client_name}: appointment {appointment_id} for {to_iso(starts_at)} was cancelled"
    )
