"""Download controller — retrieval links and splash pages."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, Response, StreamingResponse

from api.audit.services.audit_emitter import client_ip
from api.download.dto.download import DownloadSubmission, GateDecision, GateState
from api.download.services.gate_chain import AccessRequest
from container import Services, get_services
from errors import Gone
from templating import templates

router = APIRouter(tags=["Download"])


def _content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = "".join(c for c in fallback if c.isprintable() and c not in "\"\\")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _apply_cookies(response: Response, decision: GateDecision) -> Response:
    for cookie in decision.cookies:
        response.set_cookie(
            cookie.name,
            cookie.value,
            max_age=cookie.max_age,
            path=cookie.path,
            httponly=True,
            samesite="lax" if cookie.path == "/" else "strict",
        )
    return response


def _expired_page(request: Request, decision: GateDecision, reason: str) -> Response:
    return templates.TemplateResponse(
        request,
        "splash_expired.html",
        {"file": decision.file, "reason": reason},
        status_code=410,
    )


def _respond(request: Request, services: Services, req: AccessRequest) -> Response:
    decision = services.downloads.authorize(req)

    if decision.state is GateState.DENIED:
        return _expired_page(request, decision, decision.reason.value)

    if decision.prompt:
        response = templates.TemplateResponse(
            request,
            decision.prompt,
            {"file": decision.file, "error": decision.error},
        )
        return _apply_cookies(response, decision)

    try:
        body = services.downloads.deliver(decision, req)
    except Gone:
        return _expired_page(request, decision, "expired_by_quota")

    file = decision.file
    response = StreamingResponse(
        body,
        media_type=file.content_type or "application/octet-stream",
        headers={
            "Content-Disposition": _content_disposition(file.name),
            "Content-Length": str(file.size),
        },
    )
    return _apply_cookies(response, decision)


def _access_request(request: Request, file_id: str, submission: DownloadSubmission,
                    is_post: bool) -> AccessRequest:
    return AccessRequest(
        file_id=file_id,
        cookies=request.cookies,
        submission=submission,
        is_post=is_post,
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent", ""),
    )


@router.get("/d/{file_id}")
def download_file(
    request: Request,
    file_id: str,
    direct: str = "",
    services: Services = Depends(get_services),
):
    """Stream a file, or show the password or sign-in page it needs first."""
    submission = DownloadSubmission(direct=direct == "1")
    return _respond(request, services, _access_request(request, file_id, submission, False))


@router.post("/d/{file_id}")
def submit_download_form(
    request: Request,
    file_id: str,
    file_password: str = Form(""),
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    services: Services = Depends(get_services),
):
    submission = DownloadSubmission(
        file_password=file_password, name=name, email=email, password=password
    )
    return _respond(request, services, _access_request(request, file_id, submission, True))


@router.get("/s/{file_id}", response_class=HTMLResponse)
def splash_page(
    request: Request,
    file_id: str,
    services: Services = Depends(get_services),
):
    file, availability = services.downloads.splash(file_id)
    if not availability.is_active:
        return templates.TemplateResponse(
            request,
            "splash_expired.html",
            {"file": file, "reason": availability.value},
            status_code=410,
        )
    return templates.TemplateResponse(request, "splash.html", {"file": file})
