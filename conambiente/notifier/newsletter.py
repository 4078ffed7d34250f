# newsletter.py
"""
Newsletter: aviso por correo a los suscriptores activos cuando se publica una noticia.

- Clase Newsletter encapsula configuración y proveedores (get_active_subscribers, mailer).
- Un correo por suscriptor, mismo contenido; solo cambia el destinatario.
- Un fallo con un suscriptor no interrumpe el envío a los demás.
- Métodos públicos principales:
    - render_email_html(news)
    - broadcast(news)   -> dict con status/count/failed
    - broadcast_safely(news)  (para el scheduler: nunca lanza)

Ejemplo:
    from conambiente.notifier.newsletter import Newsletter
    from conambiente.storage.repository import get_active_subscribers

    newsletter = Newsletter.from_settings(settings, mailer, get_active_subscribers)
    scheduler.add_job(newsletter.broadcast_safely, args=[news])
"""

from __future__ import annotations

import html
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from conambiente.notifier.mailer import Mailer
from conambiente.utils.settings import Settings

logger = logging.getLogger(__name__)

# Tipado liviano del proveedor
GetSubscribersFn = Callable[[], Iterable[Any]]


class Newsletter:
    """Arma y envía el boletín de una noticia nueva."""

    def __init__(
        self,
        mailer: Mailer,
        get_active_subscribers: GetSubscribersFn,
        public_base_url: str,
        from_name: str = "Conambiente",
    ) -> None:
        """
        Parameters
        ----------
        mailer : Mailer
            Transporte SMTP compartido del proceso.
        get_active_subscribers : callable
            Devuelve los suscriptores con activo=True (objetos o dicts con `email`).
        public_base_url : str
            Dominio público; se antepone a las rutas relativas de imagen (/uploads/...).
        """
        self.mailer = mailer
        self._get_active_subscribers = get_active_subscribers
        self.public_base_url = public_base_url.rstrip("/")
        self.from_name = from_name

    @classmethod
    def from_settings(cls, settings: Settings, mailer: Mailer,
                      get_active_subscribers: GetSubscribersFn) -> "Newsletter":
        return cls(
            mailer=mailer,
            get_active_subscribers=get_active_subscribers,
            public_base_url=settings.public_base_url,
            from_name=settings.mail_from_name,
        )

    # ---------- Helpers internos ----------
    @staticmethod
    def _get(item: Any, name: str, default: Any = None) -> Any:
        """Accede al campo tanto para dict como para objeto."""
        if isinstance(item, dict):
            return item.get(name, default)
        return getattr(item, name, default)

    def absolute_image_url(self, image_url: Optional[str]) -> str:
        if not image_url:
            return ""
        if image_url.startswith(("http://", "https://")):
            return image_url
        return f"{self.public_base_url}{image_url}"

    # ---------- Renderización ----------
    def subject_for(self, news: Any) -> str:
        return f"Nueva noticia: {self._get(news, 'titulo')}"

    def render_email_html(self, news: Any) -> str:
        titulo = html.escape(self._get(news, "titulo") or "")
        resumen = html.escape(self._get(news, "resumen") or "")
        fecha = html.escape(self._get(news, "fecha") or "")
        image = self.absolute_image_url(self._get(news, "imagenUrl"))

        parts: List[str] = [
            f"<h2>{titulo}</h2>",
            f"<p>{resumen}</p>",
            f"<p><strong>Fecha:</strong> {fecha}</p>",
        ]
        if image:
            parts.append(f'<img src="{html.escape(image)}" style="max-width:600px;width:100%;"/>')
        parts.append(
            "<p>Puedes ver más detalles en el sitio web.</p>"
            "<hr>"
            "<p style=\"font-size:12px;color:#666;\">"
            "Si no deseas recibir más correos, puedes solicitar la desuscripción."
            "</p>"
        )
        return "".join(parts)

    # ---------- Envío ----------
    def broadcast(self, news: Any) -> Dict[str, Any]:
        """
        Envía la noticia a cada suscriptor activo, en secuencia.
        Retorna diccionario con status, enviados y fallidos.
        """
        recipients = [self._get(s, "email") for s in self._get_active_subscribers()]
        recipients = [r for r in recipients if r]
        if not recipients:
            return {"status": "no_subscribers", "count": 0, "failed": 0}

        subject = self.subject_for(news)
        body = self.render_email_html(news)
        sent, failed = 0, 0
        for email in recipients:
            try:
                self.mailer.send(to=email, subject=subject, html=body, from_name=self.from_name)
                sent += 1
            except Exception:
                failed += 1
                logger.exception("Boletín: fallo enviando a %s", email)

        logger.info("Boletín '%s': %d enviados, %d fallidos", self._get(news, "titulo"), sent, failed)
        return {"status": "sent", "count": sent, "failed": failed}

    def broadcast_safely(self, news: Any) -> Optional[Dict[str, Any]]:
        """Punto de entrada del job en segundo plano: registra el error y nunca lo propaga."""
        try:
            return self.broadcast(news)
        except Exception:
            logger.exception("Boletín: error obteniendo suscriptores para '%s'", self._get(news, "titulo"))
            return None
