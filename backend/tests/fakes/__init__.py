from tests.fakes.fake_notifications import FakeNotificationBridge, RecordedNotification

__all__ = ["FakeNotificationBridge", "RecordedNotification"]
