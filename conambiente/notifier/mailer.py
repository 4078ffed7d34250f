# mailer.py
"""
Mailer: envío de correo por SMTP (texto + HTML, adjuntos opcionales).

- Una instancia por proceso, creada al arrancar con la configuración SMTP.
- Cada envío abre su propia sesión SMTP con timeout explícito, de modo que
  ningún request queda esperando indefinidamente al servidor de correo.
- Los errores (smtplib.SMTPException / OSError) se propagan al llamador.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Iterable, List, NamedTuple, Optional, Sequence, Union

from conambiente.utils.settings import Settings

logger = logging.getLogger(__name__)


class Attachment(NamedTuple):
    filename: str
    path: str
    content_type: str = "application/octet-stream"


class Mailer:
    """Encapsula la configuración SMTP y el armado de mensajes."""

    def __init__(
        self,
        host: str,
        port: int,
        user: Optional[str],
        password: Optional[str],
        secure: bool = True,
        tls_verify: bool = True,
        timeout: float = 20.0,
        default_from_name: str = "Conambiente",
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.secure = secure
        self.tls_verify = tls_verify
        self.timeout = timeout
        self.default_from_name = default_from_name

    # ---------- Fábrica basada en Settings ----------
    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.mail_user,
            password=settings.mail_pass,
            secure=settings.smtp_secure,
            tls_verify=settings.smtp_tls_verify,
            timeout=settings.mail_timeout_seconds,
            default_from_name=settings.mail_from_name,
        )

    # ---------- Helpers internos ----------
    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.tls_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _connect(self) -> smtplib.SMTP:
        if self.secure:
            smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=self._ssl_context())
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            if not self.secure:
                smtp.starttls(context=self._ssl_context())
            if self.user and self.password:
                smtp.login(self.user, self.password)
        except Exception:
            smtp.close()
            raise
        return smtp

    def build_message(
        self,
        to: Union[str, Sequence[str]],
        subject: str,
        html: str,
        text: Optional[str] = None,
        attachments: Iterable[Attachment] = (),
        from_name: Optional[str] = None,
    ) -> EmailMessage:
        recipients: List[str] = [to] if isinstance(to, str) else list(to)
        msg = EmailMessage()
        msg["From"] = formataddr((from_name or self.default_from_name, self.user or ""))
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        if text:
            msg.set_content(text)
            msg.add_alternative(html, subtype="html")
        else:
            msg.set_content(html, subtype="html")

        for att in attachments:
            maintype, _, subtype = att.content_type.partition("/")
            with open(att.path, "rb") as fh:
                msg.add_attachment(fh.read(), maintype=maintype, subtype=subtype or "octet-stream",
                                   filename=att.filename)
        return msg

    # ---------- Envíos ----------
    def send(
        self,
        to: Union[str, Sequence[str]],
        subject: str,
        html: str,
        text: Optional[str] = None,
        attachments: Iterable[Attachment] = (),
        from_name: Optional[str] = None,
    ) -> None:
        """Envía un único mensaje. Bloqueante: llamar desde un hilo fuera del event loop."""
        if not to:
            raise smtplib.SMTPRecipientsRefused({})
        msg = self.build_message(to, subject, html, text=text, attachments=attachments, from_name=from_name)
        with self._connect() as smtp:
            smtp.send_message(msg)
        logger.debug("Correo enviado a %s: %s", msg["To"], subject)

    def verify(self) -> bool:
        """Equivalente a un 'ping' al servidor SMTP; no lanza, solo informa."""
        try:
            with self._connect() as smtp:
                smtp.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error configurando el correo: %s", e)
            return False
        logger.info("Servidor de correo listo para enviar mensajes")
        return True
