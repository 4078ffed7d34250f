import logging

from fastapi import APIRouter, Request

from conambiente.api.errors import ValidationError, call_store
from conambiente.api.payload import read_payload
from conambiente.storage import repository as repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/boletin", tags=["boletin"])


def normalize_email(value) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


async def _email_from(request: Request) -> str:
    data, _ = await read_payload(request)
    email = normalize_email(data.get("email"))
    if not email:
        raise ValidationError("Email requerido")
    return email


@router.post("/suscribir")
async def subscribe(request: Request):
    email = await _email_from(request)
    error = "Error suscribiendo email"

    existing = await call_store(error, repo.find_subscriber, email)
    if existing is None:
        created = await call_store(error, repo.add_subscriber, email)
        if created is not None:
            logger.info("Nuevo suscriptor %s", created.id)
            return {"ok": True, "message": "Suscripción exitosa."}
        # otro request lo creó entre la búsqueda y la inserción
        return {"ok": True, "message": "Ya estabas suscrito."}

    if not existing.activo:
        await call_store(error, repo.set_subscriber_active, existing.id, True)
        logger.info("Suscriptor reactivado %s", existing.id)
    return {"ok": True, "message": "Ya estabas suscrito."}


@router.post("/desuscribir")
async def unsubscribe(request: Request):
    email = await _email_from(request)
    error = "Error desuscribiendo email"

    existing = await call_store(error, repo.find_subscriber, email)
    if existing is None:
        return {"ok": True, "message": "No estabas suscrito."}

    # baja lógica: el registro se conserva inactivo
    await call_store(error, repo.set_subscriber_active, existing.id, False)
    logger.info("Suscriptor dado de baja %s", existing.id)
    return {"ok": True, "message": "Te has desuscrito correctamente."}
