"""Gate chain executor.

A retrieval request walks START -> PASSWORD_PENDING -> AUTH_PENDING ->
GRANTED. Any gate that is not configured for the file is skipped. A gate
that needs input stops the walk with PROMPT_CREDENTIALS and the page to
render; nothing is counted until the walk reaches GRANTED.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from api.accounts.dto.account import AccountRecord
from api.accounts.services.account_directory import DownloadAccountDirectory
from api.audit.dto.audit import (
    ACTION_ACCOUNT_CREATED,
    ACTION_ACCOUNT_LOGIN,
    ACTION_FILE_DOWNLOAD_DENIED,
    ENTITY_DOWNLOAD_ACCOUNT,
    ENTITY_FILE,
    AuditEntry,
)
from api.audit.services.audit_emitter import AuditEmitter
from api.download.dto.download import (
    Cookie,
    DenyReason,
    DownloadSubmission,
    GateDecision,
    GateState,
    UpdatedCounters,
)
from api.download.services.access_policy import Availability, evaluate
from api.download.services.quota_ledger import QuotaLedger
from api.files.dto.file import FileRecord
from api.files.repositories.files_repository import FilesRepository
from clock import utcnow
from errors import Conflict, InvalidCredentials, NotFound
from security import CookieSigner, FilePasswordCipher

logger = logging.getLogger("parcel.download")

PASSWORD_PROMPT = "password.html"
AUTH_PROMPT = "download_auth.html"
REDIRECT_PAGE = "download_redirect.html"


def _epoch(dt: datetime) -> int:
    return int((dt - datetime(1970, 1, 1)).total_seconds())


class PasswordVerifiedCredential:
    """Proof that the caller typed the file password. Bound to one file."""

    scope = "password_verified"
    lifetime = timedelta(hours=24)

    def __init__(self, signer: CookieSigner):
        self._signer = signer

    @staticmethod
    def cookie_name(file_id: str) -> str:
        return f"password_verified_{file_id}"

    def issue(self, file_id: str, now: datetime) -> Cookie:
        expires = _epoch(now + self.lifetime)
        return Cookie(
            name=self.cookie_name(file_id),
            value=self._signer.sign(f"{self.scope}:{file_id}", "true", expires),
            path=f"/d/{file_id}",
            max_age=int(self.lifetime.total_seconds()),
        )

    def is_valid(self, cookies: Mapping[str, str], file_id: str, now: datetime) -> bool:
        value = self._signer.unsign(
            f"{self.scope}:{file_id}", cookies.get(self.cookie_name(file_id)), _epoch(now)
        )
        return value == "true"


class FileSessionCredential:
    """Download account session for a single file, carrying the account email."""

    scope = "download_session"

    def __init__(self, signer: CookieSigner, lifetime: timedelta):
        self._signer = signer
        self.lifetime = lifetime

    @staticmethod
    def cookie_name(file_id: str) -> str:
        return f"download_session_{file_id}"

    def issue(self, file_id: str, email: str, now: datetime) -> Cookie:
        expires = _epoch(now + self.lifetime)
        return Cookie(
            name=self.cookie_name(file_id),
            value=self._signer.sign(f"{self.scope}:{file_id}", email, expires),
            path=f"/d/{file_id}",
            max_age=int(self.lifetime.total_seconds()),
        )

    def read(self, cookies: Mapping[str, str], file_id: str, now: datetime) -> str | None:
        return self._signer.unsign(
            f"{self.scope}:{file_id}", cookies.get(self.cookie_name(file_id)), _epoch(now)
        )


class GlobalSessionCredential:
    """Site-wide download account session used by the account dashboard."""

    scope = "download_session:global"
    cookie_name = "download_session"

    def __init__(self, signer: CookieSigner, lifetime: timedelta):
        self._signer = signer
        self.lifetime = lifetime

    def issue(self, account_id: int, now: datetime) -> Cookie:
        expires = _epoch(now + self.lifetime)
        return Cookie(
            name=self.cookie_name,
            value=self._signer.sign(self.scope, str(account_id), expires),
            path="/",
            max_age=int(self.lifetime.total_seconds()),
        )

    def read(self, cookies: Mapping[str, str], now: datetime) -> int | None:
        value = self._signer.unsign(self.scope, cookies.get(self.cookie_name), _epoch(now))
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None


@dataclass
class AccessRequest:
    file_id: str
    cookies: Mapping[str, str]
    submission: DownloadSubmission
    is_post: bool = False
    ip_address: str = ""
    user_agent: str = ""


class GateChainExecutor:
    def __init__(
        self,
        files: FilesRepository,
        accounts: DownloadAccountDirectory,
        ledger: QuotaLedger,
        audit: AuditEmitter,
        cipher: FilePasswordCipher,
        password_credential: PasswordVerifiedCredential,
        file_session: FileSessionCredential,
        global_session: GlobalSessionCredential,
    ):
        self._files = files
        self._accounts = accounts
        self._ledger = ledger
        self._audit = audit
        self._cipher = cipher
        self._password_credential = password_credential
        self._file_session = file_session
        self._global_session = global_session

    def _deny(self, req: AccessRequest, reason: DenyReason, file: FileRecord | None = None,
              actor_email: str = "") -> None:
        logger.info("event=download_denied file_id=%s reason=%s", req.file_id, reason.value)
        self._audit.record(
            AuditEntry(
                action=ACTION_FILE_DOWNLOAD_DENIED,
                entity_type=ENTITY_FILE,
                entity_id=req.file_id,
                actor_email=actor_email,
                details={"reason": reason.value, "file_name": file.name if file else ""},
                ip_address=req.ip_address,
                user_agent=req.user_agent,
                success=False,
                error_msg=reason.value,
            )
        )

    def _prompt(self, file: FileRecord, template: str, error: str | None = None,
                reason: DenyReason | None = None, cookies: list[Cookie] | None = None) -> GateDecision:
        return GateDecision(
            state=GateState.PROMPT_CREDENTIALS,
            file=file,
            prompt=template,
            error=error,
            reason=reason,
            cookies=cookies or [],
        )

    def load(self, req: AccessRequest, now: datetime) -> tuple[FileRecord, Availability]:
        file = self._files.get(req.file_id)
        if file is None:
            self._deny(req, DenyReason.NOT_FOUND)
            raise NotFound("File not found")
        return file, evaluate(file, now)

    def run(self, req: AccessRequest, now: datetime | None = None) -> GateDecision:
        """Walk the chain for one request.

        Raises NotFound for unknown files. Terminal expiry comes back as
        DENIED; recoverable failures come back as PROMPT_CREDENTIALS with the
        error to show inline.
        """
        now = now or utcnow()

        # START
        file, availability = self.load(req, now)
        if not availability.is_active:
            reason = DenyReason(availability.value)
            self._deny(req, reason, file)
            return GateDecision(state=GateState.DENIED, file=file, reason=reason)

        if req.submission.direct and file.require_auth:
            account = self._session_account(req, file, now)
            if account is not None:
                return self._grant(req, file, account)

        cookies: list[Cookie] = []

        # PASSWORD_PENDING
        if file.password_encrypted and not self._password_credential.is_valid(
            req.cookies, file.id, now
        ):
            if not req.is_post:
                return self._prompt(file, PASSWORD_PROMPT)
            if not req.submission.has_password:
                self._deny(req, DenyReason.MISSING_FIELDS, file)
                return self._prompt(
                    file, PASSWORD_PROMPT, error="Password required",
                    reason=DenyReason.MISSING_FIELDS,
                )
            if not self._cipher.matches(file.password_encrypted, req.submission.file_password):
                self._deny(req, DenyReason.INVALID_PASSWORD, file)
                return self._prompt(
                    file, PASSWORD_PROMPT, error="Incorrect password",
                    reason=DenyReason.INVALID_PASSWORD,
                )
            cookies.append(self._password_credential.issue(file.id, now))
            # The password form never carries account fields
            if file.require_auth:
                return self._prompt(file, AUTH_PROMPT, cookies=cookies)

        # AUTH_PENDING
        account = None
        if file.require_auth:
            account = self._session_account(req, file, now)
            if account is None:
                if not req.is_post:
                    return self._prompt(file, AUTH_PROMPT, cookies=cookies)
                return self._authenticate(req, file, now, cookies)

        # GRANTED
        decision = self._grant(req, file, account)
        decision.cookies = cookies + decision.cookies
        return decision

    def _session_account(self, req: AccessRequest, file: FileRecord, now: datetime) -> AccountRecord | None:
        email = self._file_session.read(req.cookies, file.id, now)
        if not email:
            return None
        return self._accounts.get_active_by_email(email)

    def _authenticate(self, req: AccessRequest, file: FileRecord, now: datetime,
                      cookies: list[Cookie]) -> GateDecision:
        sub = req.submission
        if not sub.email or not sub.password:
            self._deny(req, DenyReason.MISSING_FIELDS, file, actor_email=sub.email)
            return self._prompt(
                file, AUTH_PROMPT, error="Email and password required",
                reason=DenyReason.MISSING_FIELDS, cookies=cookies,
            )

        new_account = False
        if self._accounts.get_by_email(sub.email) is None:
            if not sub.name.strip():
                self._deny(req, DenyReason.MISSING_FIELDS, file, actor_email=sub.email)
                return self._prompt(
                    file, AUTH_PROMPT, error="Name is required for new accounts",
                    reason=DenyReason.MISSING_FIELDS, cookies=cookies,
                )
            try:
                account = self._accounts.create_account(sub.name, sub.email, sub.password)
            except Conflict as exc:
                self._deny(req, DenyReason.ACCOUNT_EXISTS, file, actor_email=sub.email)
                return self._prompt(
                    file, AUTH_PROMPT, error=exc.message,
                    reason=DenyReason.ACCOUNT_EXISTS, cookies=cookies,
                )
            new_account = True
            action = ACTION_ACCOUNT_CREATED
        else:
            try:
                account = self._accounts.authenticate(sub.email, sub.password)
            except InvalidCredentials:
                self._deny(req, DenyReason.INVALID_CREDENTIALS, file, actor_email=sub.email)
                return self._prompt(
                    file, AUTH_PROMPT, error="Invalid credentials",
                    reason=DenyReason.INVALID_CREDENTIALS, cookies=cookies,
                )
            action = ACTION_ACCOUNT_LOGIN

        self._audit.record(
            AuditEntry(
                action=action,
                entity_type=ENTITY_DOWNLOAD_ACCOUNT,
                entity_id=str(account.id),
                actor_email=account.email,
                details={"file_id": file.id},
                ip_address=req.ip_address,
                user_agent=req.user_agent,
            )
        )

        cookies.append(self._file_session.issue(file.id, account.email, now))
        if new_account:
            cookies.append(self._global_session.issue(account.id, now))
            # The redirect page fetches ?direct=1, which streams the file
            return GateDecision(
                state=GateState.AUTH_PENDING,
                file=file,
                prompt=REDIRECT_PAGE,
                account_id=account.id,
                account_email=account.email,
                new_account=True,
                cookies=cookies,
            )

        decision = self._grant(req, file, account)
        decision.cookies = cookies
        return decision

    def _grant(self, req: AccessRequest, file: FileRecord, account: AccountRecord | None) -> GateDecision:
        if not Path(file.filepath).is_file():
            logger.error("event=file_missing_on_disk file_id=%s path=%s", file.id, file.filepath)
            self._deny(req, DenyReason.NOT_FOUND, file)
            raise NotFound("File not found on disk")
        return GateDecision(
            state=GateState.GRANTED,
            file=file,
            account_id=account.id if account else None,
            account_email=account.email if account else "",
        )

    def consume(self, decision: GateDecision) -> UpdatedCounters:
        """Count a granted download. Call once, right before streaming."""
        return self._ledger.record_download(decision.file.id)
