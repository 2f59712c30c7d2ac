from datetime import datetime, timedelta

from api.download.services.gate_chain import (
    FileSessionCredential,
    GlobalSessionCredential,
    PasswordVerifiedCredential,
)
from security import CookieSigner

NOW = datetime(2026, 3, 1, 9, 30)
signer = CookieSigner("unit-secret")


def _jar(cookie):
    return {cookie.name: cookie.value}


def test_password_credential_is_bound_to_its_file():
    credential = PasswordVerifiedCredential(signer)
    cookie = credential.issue("file-a", NOW)

    assert cookie.name == "password_verified_file-a"
    assert cookie.path == "/d/file-a"
    assert cookie.max_age == 24 * 3600
    assert credential.is_valid(_jar(cookie), "file-a", NOW)
    # Same value replayed under another file's name
    assert not credential.is_valid({"password_verified_file-b": cookie.value}, "file-b", NOW)


def test_password_credential_expires_absolutely():
    credential = PasswordVerifiedCredential(signer)
    cookie = credential.issue("file-a", NOW)
    assert credential.is_valid(_jar(cookie), "file-a", NOW + timedelta(hours=23, minutes=59))
    assert not credential.is_valid(_jar(cookie), "file-a", NOW + timedelta(hours=24))


def test_unsigned_values_are_rejected():
    credential = PasswordVerifiedCredential(signer)
    assert not credential.is_valid({"password_verified_file-a": "true"}, "file-a", NOW)

    session = FileSessionCredential(signer, timedelta(hours=24))
    assert session.read({"download_session_file-a": "victim@example.com"}, "file-a", NOW) is None


def test_file_session_round_trip_and_scope():
    session = FileSessionCredential(signer, timedelta(hours=2))
    cookie = session.issue("file-a", "ana+tag@example.com", NOW)

    assert cookie.path == "/d/file-a"
    assert session.read(_jar(cookie), "file-a", NOW) == "ana+tag@example.com"
    assert session.read({"download_session_file-b": cookie.value}, "file-b", NOW) is None
    assert session.read(_jar(cookie), "file-a", NOW + timedelta(hours=3)) is None


def test_tampered_session_is_rejected():
    session = FileSessionCredential(signer, timedelta(hours=2))
    cookie = session.issue("file-a", "ana@example.com", NOW)
    encoded, expires, signature = cookie.value.split(".")
    forged = f"{encoded}.{int(expires) + 86400}.{signature}"
    assert session.read({cookie.name: forged}, "file-a", NOW) is None


def test_global_session_is_site_wide():
    session = GlobalSessionCredential(signer, timedelta(hours=24))
    cookie = session.issue(42, NOW)

    assert cookie.name == "download_session"
    assert cookie.path == "/"
    assert session.read(_jar(cookie), NOW) == 42
    # A per-file session value is not accepted as a global one
    file_cookie = FileSessionCredential(signer, timedelta(hours=24)).issue("file-a", "42", NOW)
    assert session.read({"download_session": file_cookie.value}, NOW) is None


def test_other_secret_cannot_verify():
    cookie = PasswordVerifiedCredential(CookieSigner("other")).issue("file-a", NOW)
    assert not PasswordVerifiedCredential(signer).is_valid(_jar(cookie), "file-a", NOW)
