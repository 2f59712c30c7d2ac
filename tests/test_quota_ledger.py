import threading

import pytest

from clock import utcnow
from conftest import store_file
from errors import AlreadyExhausted, Gone, NotFound


def test_quota_counts_down_then_exhausts(services, settings):
    store_file(services, settings, downloads_remaining=2)
    file_id = "f" * 32

    first = services.ledger.record_download(file_id)
    assert (first.downloads_remaining, first.download_count) == (1, 1)
    second = services.ledger.record_download(file_id)
    assert (second.downloads_remaining, second.download_count) == (0, 2)

    with pytest.raises(AlreadyExhausted):
        services.ledger.record_download(file_id)

    record = services.files_repository.get(file_id)
    assert record.downloads_remaining == 0
    assert record.download_count == 2


def test_already_exhausted_is_gone():
    assert issubclass(AlreadyExhausted, Gone)
    assert AlreadyExhausted.status_code == 410


def test_unlimited_downloads_only_count(services, settings):
    store_file(services, settings, downloads_remaining=0, unlimited_downloads=True)
    for expected in (1, 2, 3):
        counters = services.ledger.record_download("f" * 32)
        assert counters.download_count == expected
        assert counters.downloads_remaining == 0
        assert counters.unlimited_downloads


def test_unknown_file_is_not_found(services):
    with pytest.raises(NotFound):
        services.ledger.record_download("missing")


def test_deleted_file_is_not_found(services, settings):
    store_file(services, settings)
    services.files_repository.soft_delete("f" * 32, 1, utcnow())
    with pytest.raises(NotFound):
        services.ledger.record_download("f" * 32)


def test_concurrent_downloads_on_last_unit(services, settings):
    store_file(services, settings, downloads_remaining=1)
    workers = 8
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            services.ledger.record_download("f" * 32)
            outcome = "ok"
        except AlreadyExhausted:
            outcome = "exhausted"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("exhausted") == workers - 1
    record = services.files_repository.get("f" * 32)
    assert record.downloads_remaining == 0
    assert record.download_count == 1
