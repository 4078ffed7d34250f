"""Plantillas de los correos de formularios públicos (contacto, PQR, trabaja con nosotros)."""

import html
from typing import Any, Dict, NamedTuple, Optional

NOT_PROVIDED = "No proporcionado"
NO_SUBJECT = "Sin asunto"


class MailContent(NamedTuple):
    subject: str
    text: str
    html: str
    from_name: str


def _esc(value: Any) -> str:
    return html.escape(str(value))


def _paragraphs(value: Any) -> str:
    return _esc(value).replace("\n", "<br>")


def _or(value: Optional[str], fallback: str) -> str:
    return value if value else fallback


def render_contact(data: Dict[str, Any], received_at: str) -> MailContent:
    telefono = _or(data.get("telefono"), NOT_PROVIDED)
    asunto = _or(data.get("asunto"), NO_SUBJECT)
    text = (
        "Nuevo mensaje desde el formulario de contacto:\n\n"
        f"Nombre: {data['nombre']}\n"
        f"Email: {data['email']}\n"
        f"Teléfono: {telefono}\n"
        f"Recibido: {received_at}\n\n"
        f"Mensaje:\n{data['mensaje']}\n"
    )
    body = (
        "<h3>Nuevo mensaje desde el formulario de contacto</h3>"
        f"<p><strong>Nombre:</strong> {_esc(data['nombre'])}</p>"
        f"<p><strong>Email:</strong> {_esc(data['email'])}</p>"
        f"<p><strong>Teléfono:</strong> {_esc(telefono)}</p>"
        f"<p><strong>Asunto:</strong> {_esc(asunto)}</p>"
        "<p><strong>Mensaje:</strong></p>"
        f"<p>{_paragraphs(data['mensaje'])}</p>"
        f"<p style='font-size:12px;color:#666;'>Recibido: {_esc(received_at)}</p>"
    )
    return MailContent(f"Contacto web: {asunto}", text, body, "Web Conambiente")


def render_pqr(data: Dict[str, Any], accepted: bool, received_at: str) -> MailContent:
    tipo = data["tipo"]
    telefono = _or(data.get("telefono"), NOT_PROVIDED)
    asunto = _or(data.get("asunto"), NO_SUBJECT)
    consent = "ACEPTÓ" if accepted else "NO ACEPTÓ"
    text = (
        "Nueva PQR desde el sitio web:\n\n"
        f"Tipo: {tipo}\n"
        f"Nombre: {data['nombreCompleto']}\n"
        f"Email: {data['email']}\n"
        f"Teléfono: {telefono}\n\n"
        f"Asunto: {asunto}\n\n"
        f"Mensaje:\n{data['mensaje']}\n\n"
        f"El usuario {consent} el tratamiento de datos.\n"
        f"Recibido: {received_at}\n"
    )
    body = (
        f"<h3>Nueva {_esc(tipo)} desde el formulario PQR</h3>"
        f"<p><strong>Tipo:</strong> {_esc(tipo)}</p>"
        f"<p><strong>Nombre:</strong> {_esc(data['nombreCompleto'])}</p>"
        f"<p><strong>Email:</strong> {_esc(data['email'])}</p>"
        f"<p><strong>Teléfono:</strong> {_esc(telefono)}</p>"
        f"<p><strong>Asunto:</strong> {_esc(asunto)}</p>"
        "<p><strong>Mensaje:</strong></p>"
        f"<p>{_paragraphs(data['mensaje'])}</p>"
        "<hr>"
        f"<p>El usuario <strong>{consent}</strong> el tratamiento de datos.</p>"
        f"<p style='font-size:12px;color:#666;'>Recibido: {_esc(received_at)}</p>"
    )
    return MailContent(f"Nueva {tipo} recibida desde PQR: {asunto}", text, body, "PQR Web Conambiente")


def render_job_application(data: Dict[str, Any], received_at: str) -> MailContent:
    telefono = _or(data.get("telefono"), NOT_PROVIDED)
    mensaje = _or(data.get("mensaje"), "Sin mensaje adicional")
    text = (
        'Nuevo registro en "Trabaja con nosotros":\n\n'
        f"Nombre completo: {data['nombreCompleto']}\n"
        f"Email: {data['email']}\n"
        f"Teléfono: {telefono}\n"
        f"Cargo al que postula: {data['cargo']}\n"
        f"Profesión: {data['profesion']}\n\n"
        f"Mensaje adicional:\n{mensaje}\n\n"
        "Se adjunta la hoja de vida en este correo.\n"
        f"Recibido: {received_at}\n"
    )
    body = (
        '<h3>Nuevo registro en "Trabaja con nosotros"</h3>'
        f"<p><strong>Nombre completo:</strong> {_esc(data['nombreCompleto'])}</p>"
        f"<p><strong>Email:</strong> {_esc(data['email'])}</p>"
        f"<p><strong>Teléfono:</strong> {_esc(telefono)}</p>"
        f"<p><strong>Cargo al que postula:</strong> {_esc(data['cargo'])}</p>"
        f"<p><strong>Profesión:</strong> {_esc(data['profesion'])}</p>"
        "<p><strong>Mensaje adicional:</strong></p>"
        f"<p>{_paragraphs(mensaje)}</p>"
        "<hr>"
        "<p>Se adjunta la hoja de vida en este correo.</p>"
        f"<p style='font-size:12px;color:#666;'>Recibido: {_esc(received_at)}</p>"
    )
    subject = f"Nuevo candidato: {data['nombreCompleto']} - Cargo: {data['cargo']}"
    return MailContent(subject, text, body, "Trabaja con nosotros - Conambiente")
