from app.notifications.base import DeliveryResult, Notifier
from app.notifications.email import EmailNotifier, get_notifier

__all__ = ["DeliveryResult", "EmailNotifier", "Notifier", "get_notifier"]
