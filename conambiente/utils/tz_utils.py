from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from typing import Optional

DEFAULT_TIMEZONE = "America/Bogota"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Mongo devuelve datetimes sin tzinfo; se asumen en UTC."""
    if dt is None:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def utc_to_local(dt_utc: datetime, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Convierte datetime UTC a la zona horaria local."""
    return ensure_utc(dt_utc).astimezone(ZoneInfo(tz_name))


def local_now_str(tz_name: str = DEFAULT_TIMEZONE) -> str:
    return utc_to_local(utc_now(), tz_name).strftime("%Y-%m-%d %H:%M")


def utc_now_ms() -> datetime:
    """UTC truncado a milisegundos, la precisión con la que Mongo guarda fechas."""
    now = utc_now()
    return now.replace(microsecond=now.microsecond // 1000 * 1000)
