import logging
import threading

from clock import utcnow
from notifications import DownloadNotification, NotificationDispatcher


def _notification(file_id="abc"):
    return DownloadNotification(
        owner_id=1, file_id=file_id, file_name="a.txt", downloaded_by="x@example.com",
        ip_address="", downloaded_at=utcnow(),
    )


class _RecordingSender:
    def __init__(self):
        self.sent = []
        self.done = threading.Event()

    def send(self, notification):
        self.sent.append(notification.file_id)
        self.done.set()


class _BlockingSender:
    def __init__(self):
        self.release = threading.Event()

    def send(self, notification):
        self.release.wait(timeout=5)


class _FailingSender:
    def send(self, notification):
        raise ConnectionError("smtp down")


def test_delivers_in_background():
    sender = _RecordingSender()
    dispatcher = NotificationDispatcher(sender, workers=1, queue_size=2)
    assert dispatcher.notify(_notification())
    assert sender.done.wait(timeout=5)
    dispatcher.shutdown()
    assert sender.sent == ["abc"]


def test_full_queue_drops_and_logs(caplog):
    sender = _BlockingSender()
    dispatcher = NotificationDispatcher(sender, workers=1, queue_size=1)
    with caplog.at_level(logging.WARNING, logger="parcel.notifications"):
        accepted = [dispatcher.notify(_notification(str(i))) for i in range(4)]
    sender.release.set()
    dispatcher.shutdown()

    assert accepted == [True, True, False, False]
    assert "event=notification_dropped reason=queue_full" in caplog.text


def test_sender_failure_is_logged_not_raised(caplog):
    dispatcher = NotificationDispatcher(_FailingSender(), workers=1, queue_size=1)
    with caplog.at_level(logging.ERROR, logger="parcel.notifications"):
        assert dispatcher.notify(_notification())
        dispatcher.shutdown(wait=True)
    assert "event=notification_failed" in caplog.text


def test_notify_after_shutdown_is_dropped():
    dispatcher = NotificationDispatcher(_RecordingSender(), workers=1, queue_size=1)
    dispatcher.shutdown()
    assert not dispatcher.notify(_notification())
