"""Quota ledger — the only place a download is counted."""

import logging

from api.download.dto.download import UpdatedCounters
from api.files.repositories.files_repository import FilesRepository
from errors import AlreadyExhausted, NotFound

logger = logging.getLogger("parcel.quota")


class QuotaLedger:
    def __init__(self, files: FilesRepository):
        self._files = files

    def record_download(self, file_id: str) -> UpdatedCounters:
        """Consume one download.

        Concurrent callers racing for the last unit are serialized by the
        store; exactly one of them gets the counters, the rest get
        AlreadyExhausted.
        """
        counters = self._files.consume_download(file_id)
        if counters is None:
            file = self._files.get(file_id)
            if file is None:
                raise NotFound("File not found")
            logger.info("event=quota_exhausted file_id=%s", file_id)
            raise AlreadyExhausted()
        remaining, count, unlimited = counters
        return UpdatedCounters(
            file_id=file_id,
            downloads_remaining=remaining,
            download_count=count,
            unlimited_downloads=unlimited,
        )
