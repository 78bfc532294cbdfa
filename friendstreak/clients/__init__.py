from .schedule import ScheduleClient, StaticScheduleClient, HttpScheduleClient
from .notifications import NotificationEvent, Notifier, NullNotifier, HttpNotifier, KafkaNotifier, deliver
from .profiles import ProfileClient, PlaceholderProfileClient, HttpProfileClient, placeholder_name

__all__ = [
    'ScheduleClient',
    'StaticScheduleClient',
    'HttpScheduleClient',
    'NotificationEvent',
    'Notifier',
    'NullNotifier',
    'HttpNotifier',
    'KafkaNotifier',
    'deliver',
    'ProfileClient',
    'PlaceholderProfileClient',
    'HttpProfileClient',
    'placeholder_name',
]
