"""Secrets at rest and signed cookie values."""

import base64
import hashlib
import hmac
import secrets

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from werkzeug.security import check_password_hash, generate_password_hash

_KDF_SALT = b"parcel-file-password"


class FilePasswordCipher:
    """Reversible encryption for per-file passwords.

    File passwords are shown back to their owner, so they are encrypted with
    Fernet rather than hashed.
    """

    def __init__(self, secret_key: str):
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=_KDF_SALT,
            iterations=100000,
        )
        derived_key = base64.urlsafe_b64encode(kdf.derive(secret_key.encode("utf-8")))
        self._cipher = Fernet(derived_key)

    def encrypt(self, password: str) -> str | None:
        if not password:
            return None
        return self._cipher.encrypt(password.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str | None) -> str | None:
        if not token:
            return None
        try:
            return self._cipher.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            return None

    def matches(self, token: str | None, candidate: str) -> bool:
        stored = self.decrypt(token)
        if stored is None or not candidate:
            return False
        return secrets.compare_digest(stored.encode("utf-8"), candidate.encode("utf-8"))


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


class CookieSigner:
    """HMAC-signed cookie values: ``<b64 value>.<expires>.<signature>``."""

    def __init__(self, secret_key: str):
        self._key = secret_key.encode("utf-8")

    def _signature(self, scope: str, encoded: str, expires: int) -> str:
        message = f"{scope}|{encoded}|{expires}".encode("utf-8")
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()

    def sign(self, scope: str, value: str, expires: int) -> str:
        encoded = base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii").rstrip("=")
        return f"{encoded}.{expires}.{self._signature(scope, encoded, expires)}"

    def unsign(self, scope: str, signed: str | None, now: int) -> str | None:
        if not signed:
            return None
        try:
            encoded, expires_raw, signature = signed.split(".")
            expires = int(expires_raw)
        except ValueError:
            return None
        if not secrets.compare_digest(signature, self._signature(scope, encoded, expires)):
            return None
        if now >= expires:
            return None
        padded = encoded + "=" * (-len(encoded) % 4)
        try:
            return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            return None
