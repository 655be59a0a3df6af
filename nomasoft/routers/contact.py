from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from nomasoft.content import service_options
from nomasoft.i18n import resolve_locale
from nomasoft.schemas.contact import MAX_FILE_SIZE, MAX_MESSAGE_LENGTH
from nomasoft.security import CONTACT_CONFIG_LIMIT, CONTACT_SUBMIT_LIMIT, limiter
from nomasoft.services.captcha import CaptchaVerifier, get_captcha_verifier
from nomasoft.services.contact import ContactService
from nomasoft.services.mailer import Mailer, get_mailer
from nomasoft.services.sheet_logger import SheetLogger, get_sheet_logger

router = APIRouter(prefix="/api/contact", tags=["contact"])


def get_contact_service(
    captcha: CaptchaVerifier = Depends(get_captcha_verifier),
    mailer: Mailer = Depends(get_mailer),
    sheet_logger: SheetLogger = Depends(get_sheet_logger),
) -> ContactService:
    return ContactService(captcha, mailer, sheet_logger)


@router.post("", summary="Submit the contact form")
@limiter.limit(CONTACT_SUBMIT_LIMIT)
async def submit_contact(
    request: Request,
    background_tasks: BackgroundTasks,
    service: ContactService = Depends(get_contact_service),
) -> JSONResponse:
    form = await request.form()
    result = await service.submit(form, background_tasks)
    return JSONResponse(result.body, status_code=result.status_code)


@router.get("/config", summary="Client configuration for the contact form")
@limiter.limit(CONTACT_CONFIG_LIMIT)
def contact_config(
    request: Request,
    locale: str | None = None,
    captcha: CaptchaVerifier = Depends(get_captcha_verifier),
) -> dict:
    """Public widget settings and the localized service selector."""
    resolved = resolve_locale(locale)
    client_captcha = captcha.client_config()
    return {
        "locale": resolved,
        "captcha": client_captcha.model_dump(mode="json", by_alias=True)
        if client_captcha
        else None,
        "services": service_options(resolved),
        "maxMessageLength": MAX_MESSAGE_LENGTH,
        "maxFileSize": MAX_FILE_SIZE,
    }
