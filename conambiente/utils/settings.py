# settings.py
"""
Configuración del backend leída del entorno (.env opcional vía python-dotenv).

Ejemplo:
    from conambiente.utils.settings import Settings

    settings = Settings.from_env()
    settings.check_required()  # aborta el arranque si falta algo crítico
"""

from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel, Field

_FALSY = {"", "0", "false", "no", "off"}


def env_flag(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSY


def split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [s.strip() for s in raw.split(",") if s.strip()]


class Settings(BaseModel):
    port: int = 3000

    # Seguridad
    jwt_secret: Optional[str] = None
    token_ttl_hours: int = 2
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    # Mongo
    mongo_uri: Optional[str] = None
    mongo_db: str = "conambiente"
    mongo_timeout_ms: int = 5000

    # Correo
    mail_user: Optional[str] = None
    mail_pass: Optional[str] = None
    mail_from_name: str = "Conambiente"
    smtp_host: str = "mail.conambiente.com"
    smtp_port: int = 465
    smtp_secure: bool = True
    smtp_tls_verify: bool = True
    mail_timeout_seconds: float = 20.0

    # Destinatarios por formulario
    mail_to_contact: Optional[str] = None
    mail_to_pqr: Optional[str] = None
    mail_to_work: Optional[str] = None

    public_base_url: str = "http://localhost:3000"
    allowed_origins: List[str] = Field(default_factory=list)
    uploads_dir: str = Field(default_factory=lambda: os.path.join(os.getcwd(), "uploads"))
    log_level: str = "INFO"
    timezone: str = "America/Bogota"

    # ---------- Fábrica basada en .env ----------
    @classmethod
    def from_env(cls, load_env: bool = True, dotenv_override: bool = True) -> "Settings":
        """Crea Settings a partir de las variables de entorno (y del .env si existe)."""
        if load_env:
            from dotenv import load_dotenv

            load_dotenv(override=dotenv_override)

        env = os.environ
        port = int(env.get("PORT") or 3000)
        mail_user = env.get("MAIL_USER")
        values = dict(
            port=port,
            jwt_secret=env.get("JWT_SECRET"),
            token_ttl_hours=int(env.get("TOKEN_TTL_HOURS") or 2),
            admin_email=env.get("ADMIN_EMAIL"),
            admin_password=env.get("ADMIN_PASSWORD"),
            mongo_uri=env.get("MONGO_URI"),
            mongo_db=env.get("MONGO_DB") or "conambiente",
            mongo_timeout_ms=int(env.get("MONGO_TIMEOUT_MS") or 5000),
            mail_user=mail_user,
            mail_pass=env.get("MAIL_PASS"),
            mail_from_name=env.get("MAIL_FROM_NAME") or "Conambiente",
            smtp_host=env.get("SMTP_HOST") or "mail.conambiente.com",
            smtp_port=int(env.get("SMTP_PORT") or 465),
            smtp_secure=env_flag(env.get("SMTP_SECURE"), True),
            smtp_tls_verify=env_flag(env.get("SMTP_TLS_VERIFY"), True),
            mail_timeout_seconds=float(env.get("MAIL_TIMEOUT_SECONDS") or 20),
            mail_to_contact=env.get("MAIL_TO_CONTACT_WITH_US") or mail_user,
            mail_to_pqr=env.get("MAIL_TO_PQR") or mail_user,
            mail_to_work=env.get("MAIL_TO_WORK_WITH_US") or mail_user,
            public_base_url=env.get("PUBLIC_BASE_URL") or f"http://localhost:{port}",
            allowed_origins=split_origins(env.get("ALLOWED_ORIGINS")),
            log_level=env.get("LOG_LEVEL") or "INFO",
            timezone=env.get("TIMEZONE") or "America/Bogota",
        )
        if env.get("UPLOADS_DIR"):
            values["uploads_dir"] = env["UPLOADS_DIR"]
        return cls(**values)

    def missing_required(self) -> List[str]:
        missing = []
        for name in ("admin_email", "admin_password", "jwt_secret", "mongo_uri"):
            if not getattr(self, name):
                missing.append(name.upper())
        return missing

    def check_required(self) -> None:
        """Sin credenciales de admin, secreto o Mongo el servicio no arranca."""
        missing = self.missing_required()
        if missing:
            raise RuntimeError(f"Faltan variables de entorno obligatorias: {', '.join(missing)}")

    @property
    def mail_configured(self) -> bool:
        return bool(self.mail_user and self.mail_pass)
