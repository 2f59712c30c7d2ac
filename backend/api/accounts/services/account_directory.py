"""Download account directory.

Accounts here exist only to satisfy a file's "require authentication" gate;
they are unrelated to system users. Accounts are never hard-deleted so that
download logs keep pointing at a stable id.
"""

import logging

from api.accounts.dto.account import AccountRecord
from api.accounts.repositories.accounts_repository import AccountsRepository
from clock import utcnow
from errors import Conflict, InvalidCredentials, NotFound
from security import hash_password, verify_password

logger = logging.getLogger("parcel.accounts")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class DownloadAccountDirectory:
    def __init__(self, repository: AccountsRepository):
        self._repository = repository

    def create_account(self, name: str, email: str, password: str) -> AccountRecord:
        email = normalize_email(email)
        if self._repository.get_by_email(email):
            raise Conflict("An account with this email already exists")
        account = self._repository.create(name.strip(), email, hash_password(password))
        if account is None:
            # Lost a race with a concurrent signup for the same email
            raise Conflict("An account with this email already exists")
        logger.info("event=download_account_created account_id=%s", account.id)
        return account

    def authenticate(self, email: str, password: str) -> AccountRecord:
        account = self._repository.get_by_email(normalize_email(email))
        if account is None or not account.is_active:
            raise InvalidCredentials()
        if not verify_password(account.password_hash, password):
            raise InvalidCredentials()
        return account

    def get(self, account_id: int) -> AccountRecord:
        account = self._repository.get(account_id)
        if account is None:
            raise NotFound("Account not found")
        return account

    def get_by_email(self, email: str) -> AccountRecord | None:
        return self._repository.get_by_email(normalize_email(email))

    def get_active_by_email(self, email: str) -> AccountRecord | None:
        account = self.get_by_email(email)
        if account is None or not account.is_active:
            return None
        return account

    def touch(self, account_id: int) -> None:
        self._repository.touch(account_id, utcnow())

    def change_password(self, account_id: int, current_password: str, new_password: str) -> None:
        account = self.get(account_id)
        if not account.is_active or not verify_password(account.password_hash, current_password):
            raise InvalidCredentials("Current password is incorrect")
        self._repository.set_password_hash(account_id, hash_password(new_password))

    def anonymize(self, account_id: int, deleted_by: str = "user") -> None:
        placeholder_email = f"deleted-{account_id}@deleted.invalid"
        if not self._repository.anonymize(
            account_id,
            placeholder_name="Deleted account",
            placeholder_email=placeholder_email,
            deleted_by=deleted_by,
            now=utcnow(),
        ):
            raise NotFound("Account not found")
        logger.info("event=download_account_anonymized account_id=%s by=%s", account_id, deleted_by)
