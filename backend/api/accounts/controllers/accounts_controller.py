"""Download account controller — dashboard and self-service for recipients."""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from api.accounts.dto.account import AccountRecord, AccountResponse
from api.audit.dto.audit import (
    ACTION_ACCOUNT_DELETED,
    ACTION_ACCOUNT_PASSWORD_CHANGED,
    ENTITY_DOWNLOAD_ACCOUNT,
)
from api.download.services.gate_chain import GlobalSessionCredential
from clock import utcnow
from container import Services, get_services
from errors import InvalidCredentials, NotFound, Unauthorized
from templating import templates

router = APIRouter(tags=["Download accounts"])


def require_download_account(
    request: Request,
    services: Services = Depends(get_services),
) -> AccountRecord:
    """Resolve the account behind the site-wide download_session cookie."""
    account_id = services.global_session.read(request.cookies, utcnow())
    if account_id is None:
        raise Unauthorized("Download account session required")
    try:
        account = services.accounts.get(account_id)
    except NotFound:
        raise Unauthorized("Download account session required")
    if not account.is_active:
        raise Unauthorized("Download account session required")
    return account


def _dashboard(request: Request, services: Services, account: AccountRecord,
               message: str | None = None):
    downloads = services.download_logs.list_by_account(account.id)
    return templates.TemplateResponse(
        request,
        "download_dashboard.html",
        {
            "account": AccountResponse(**account.model_dump()),
            "downloads": downloads,
            "message": message,
        },
    )


@router.get("/download/dashboard")
def dashboard(
    request: Request,
    account: AccountRecord = Depends(require_download_account),
    services: Services = Depends(get_services),
):
    return _dashboard(request, services, account)


@router.get("/download/logout")
def logout():
    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie(GlobalSessionCredential.cookie_name, path="/")
    return response


@router.post("/download/change-password")
def change_password(
    request: Request,
    current_password: str = Form(...),
    new_password: str = Form(...),
    account: AccountRecord = Depends(require_download_account),
    services: Services = Depends(get_services),
):
    try:
        services.accounts.change_password(account.id, current_password, new_password)
    except InvalidCredentials as exc:
        services.audit.emit(
            ACTION_ACCOUNT_PASSWORD_CHANGED, ENTITY_DOWNLOAD_ACCOUNT, account.id,
            request=request, actor_email=account.email, success=False, error_msg=exc.message,
        )
        return _dashboard(request, services, account, message=exc.message)
    services.audit.emit(
        ACTION_ACCOUNT_PASSWORD_CHANGED, ENTITY_DOWNLOAD_ACCOUNT, account.id,
        request=request, actor_email=account.email,
    )
    return _dashboard(request, services, account, message="Password changed")


@router.post("/download-account/delete")
def delete_account(
    request: Request,
    account: AccountRecord = Depends(require_download_account),
    services: Services = Depends(get_services),
):
    """Self-service deletion: the account is anonymized, its download history stays."""
    services.accounts.anonymize(account.id, deleted_by="user")
    services.audit.emit(
        ACTION_ACCOUNT_DELETED, ENTITY_DOWNLOAD_ACCOUNT, account.id,
        request=request, details={"deleted_by": "user"},
    )
    response = templates.TemplateResponse(request, "account_deleted.html", {})
    response.delete_cookie(GlobalSessionCredential.cookie_name, path="/")
    return response
