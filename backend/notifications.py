"""Owner notifications for downloads.

Delivery runs on a small thread pool. A semaphore caps pending work at
``workers + queue_size``; anything beyond that is dropped and logged.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger("parcel.notifications")


@dataclass(frozen=True)
class DownloadNotification:
    owner_id: int
    file_id: str
    file_name: str
    downloaded_by: str
    ip_address: str
    downloaded_at: datetime
    file_url: str = ""


class LogNotificationSender:
    """Writes notifications to the log; mail transport plugs in here."""

    def send(self, notification: DownloadNotification) -> None:
        logger.info(
            "event=owner_notified owner_id=%s file_id=%s by=%s",
            notification.owner_id,
            notification.file_id,
            notification.downloaded_by,
        )


class NotificationDispatcher:
    def __init__(self, sender=None, workers: int = 2, queue_size: int = 100):
        self._sender = sender or LogNotificationSender()
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="parcel-notify")
        self._slots = threading.BoundedSemaphore(workers + queue_size)

    def notify(self, notification: DownloadNotification) -> bool:
        """Queue a notification. Returns False when it was dropped."""
        if not self._slots.acquire(blocking=False):
            logger.warning(
                "event=notification_dropped reason=queue_full file_id=%s", notification.file_id
            )
            return False
        try:
            self._pool.submit(self._deliver, notification)
        except RuntimeError:
            self._slots.release()
            logger.warning(
                "event=notification_dropped reason=shutdown file_id=%s", notification.file_id
            )
            return False
        return True

    def _deliver(self, notification: DownloadNotification) -> None:
        try:
            self._sender.send(notification)
        except Exception:
            logger.exception(
                "event=notification_failed owner_id=%s file_id=%s",
                notification.owner_id,
                notification.file_id,
            )
        finally:
            self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)
