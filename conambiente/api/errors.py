import logging
from typing import Any, Callable, Dict, TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiError(Exception):
    """Error de negocio que se traduce a un status HTTP + JSON {"message": ...}."""

    status_code = 500
    default_message = "Error interno del servidor"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def body(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = "Faltan campos obligatorios"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "No autorizado"


class InvalidCredentials(Unauthorized):
    default_message = "Credenciales inválidas"


class MissingToken(Unauthorized):
    default_message = "No autorizado: falta token"


class InvalidToken(Unauthorized):
    default_message = "Token inválido o expirado"


class NotFound(ApiError):
    status_code = 404
    default_message = "Recurso no encontrado"


class ConsentRequired(ApiError):
    status_code = 400
    default_message = "Debes aceptar el tratamiento de datos."


class MissingAttachment(ApiError):
    status_code = 400
    default_message = "Debes adjuntar tu hoja de vida (CV)."


class UnsupportedMediaType(ApiError):
    status_code = 415
    default_message = "Formato de archivo no permitido"


class PayloadTooLarge(ApiError):
    status_code = 413
    default_message = "El archivo supera el tamaño máximo permitido (10 MB)"


class MailDeliveryError(ApiError):
    status_code = 500
    default_message = "Error al enviar el correo."

    def body(self) -> Dict[str, Any]:
        return {"ok": False, "message": self.message}


class InternalError(ApiError):
    status_code = 500


async def call_store(message: str, fn: Callable[..., T], *args: Any) -> T:
    """Ejecuta una operación de Mongo fuera del event loop; sus fallos salen como InternalError."""
    try:
        return await run_in_threadpool(fn, *args)
    except PyMongoError:
        logger.exception(message)
        raise InternalError(message)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(exc.body(), status_code=exc.status_code)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Error no controlado en %s %s", request.method, request.url.path)
    return JSONResponse({"message": InternalError.default_message}, status_code=500)
