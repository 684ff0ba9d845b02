"""Signals for the notification system."""

from django.dispatch import Signal

# Signal for requesting notification dispatch
# Expected kwargs:
#   - notification_type: NotificationType enum value
#   - user: CampusUser instance
#   - context: dict matching the notification type's context schema
notification_requested = Signal()
