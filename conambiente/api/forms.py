import logging
import smtplib
from typing import Optional, Sequence

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from conambiente.api.deps import get_mailer, get_settings
from conambiente.api.errors import ConsentRequired, MailDeliveryError, MissingAttachment, ValidationError
from conambiente.api.payload import as_bool, missing_fields, read_payload
from conambiente.api.uploads import CV_FIELD, accept_upload
from conambiente.notifier.form_mail import MailContent, render_contact, render_job_application, render_pqr
from conambiente.notifier.mailer import Attachment, Mailer
from conambiente.utils.settings import Settings
from conambiente.utils.tz_utils import local_now_str

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["formularios"])


async def deliver(mailer: Mailer, to: Optional[str], content: MailContent, error_message: str,
                  attachments: Sequence[Attachment] = ()) -> None:
    """Un solo intento, sin reintentos ni cola."""
    try:
        await run_in_threadpool(
            mailer.send,
            to=to,
            subject=content.subject,
            html=content.html,
            text=content.text,
            attachments=attachments,
            from_name=content.from_name,
        )
    except (smtplib.SMTPException, OSError):
        logger.exception("%s (destino=%s)", error_message, to)
        raise MailDeliveryError(error_message)


@router.post("/contacto")
async def contact(
    request: Request,
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
):
    data, _ = await read_payload(request)
    if missing_fields(data, ("nombre", "email", "mensaje")):
        raise ValidationError("Faltan campos obligatorios (nombre, email, mensaje)")

    content = render_contact(data, local_now_str(settings.timezone))
    await deliver(mailer, settings.mail_to_contact, content, "Error al enviar el mensaje.")
    return {"ok": True, "message": "Mensaje enviado correctamente."}


@router.post("/pqr")
async def pqr(
    request: Request,
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
):
    data, _ = await read_payload(request)
    if missing_fields(data, ("nombreCompleto", "email", "mensaje", "tipo")):
        raise ValidationError("Faltan campos obligatorios (nombreCompleto, email, tipo, mensaje)")

    accepted = as_bool(data.get("aceptaTratamientoDatos"))
    if not accepted:
        raise ConsentRequired()

    content = render_pqr(data, accepted, local_now_str(settings.timezone))
    await deliver(mailer, settings.mail_to_pqr, content, "Error al enviar la PQR.")
    return {"ok": True, "message": "PQR enviada correctamente."}


@router.post("/trabaja-nosotros")
async def job_application(
    request: Request,
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
):
    data, cv = await read_payload(request, file_field=CV_FIELD)
    stored = await accept_upload(CV_FIELD, cv, settings.uploads_dir) if cv else None

    if missing_fields(data, ("nombreCompleto", "email", "cargo", "profesion")):
        raise ValidationError("Faltan campos obligatorios (nombreCompleto, email, cargo, profesion)")
    if stored is None:
        raise MissingAttachment()

    content = render_job_application(data, local_now_str(settings.timezone))
    attachment = Attachment(stored.original_name, stored.path, stored.content_type)
    await deliver(mailer, settings.mail_to_work, content, "Error al enviar la postulación.", [attachment])
    return {"ok": True, "message": "Postulación enviada correctamente."}
