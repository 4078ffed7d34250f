"""
Lectura del cuerpo de los requests: JSON, urlencoded o multipart.

Solo las claves presentes en el cuerpo cuentan como "enviadas"; con eso se
distingue un campo omitido de uno enviado vacío en las actualizaciones parciales.
"""

import json
from typing import Any, Dict, Iterable, Optional, Tuple, Type

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError
from starlette.datastructures import UploadFile

from conambiente.api.errors import ValidationError

_FALSY = {"", "0", "false", "no", "off"}


async def read_payload(request: Request, file_field: Optional[str] = None
                       ) -> Tuple[Dict[str, Any], Optional[UploadFile]]:
    """Devuelve (campos presentes, archivo del campo `file_field` si vino)."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("El cuerpo JSON no es válido")
        if not isinstance(body, dict):
            raise ValidationError("El cuerpo JSON debe ser un objeto")
        return body, None

    if not (content_type.startswith("multipart/form-data")
            or content_type.startswith("application/x-www-form-urlencoded")):
        return {}, None

    form = await request.form()
    data: Dict[str, Any] = {}
    upload: Optional[UploadFile] = None
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key == file_field and upload is None and value.filename:
                upload = value
            continue
        data[key] = value
    return data, upload


def missing_fields(data: Dict[str, Any], required: Iterable[str]) -> bool:
    return any(not data.get(name) for name in required)


def merge_present(current: Dict[str, Any], data: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Campo enviado reemplaza (aunque sea "" o null); campo omitido conserva el valor previo."""
    return {name: (data[name] if name in data else current.get(name)) for name in fields}


def checked_fields(model: Type[BaseModel], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Valida los campos contra `model` antes de escribirlos; un tipo inválido responde 400."""
    try:
        return model.model_validate(fields).model_dump()
    except ModelValidationError as exc:
        names = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        raise ValidationError(f"Campos inválidos: {', '.join(names)}")


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSY
    return bool(value)


def _as_float(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError("Coordenadas inválidas")


def parse_coordinates(data: Dict[str, Any]) -> Optional[Dict[str, Optional[float]]]:
    """
    Acepta `coordenadas` como objeto JSON, como string JSON en un campo de
    formulario, o los campos `coordenadas[lat]` / `coordenadas[lng]`.
    Devuelve None si no vino ninguna de esas formas.
    """
    if "coordenadas" in data:
        raw = data["coordenadas"]
        if isinstance(raw, str):
            if not raw.strip():
                return {"lat": None, "lng": None}
            try:
                raw = json.loads(raw)
            except ValueError:
                raise ValidationError("Coordenadas inválidas")
        if raw is None:
            return {"lat": None, "lng": None}
        if not isinstance(raw, dict):
            raise ValidationError("Coordenadas inválidas")
        return {"lat": _as_float(raw.get("lat")), "lng": _as_float(raw.get("lng"))}

    if "coordenadas[lat]" in data or "coordenadas[lng]" in data:
        return {
            "lat": _as_float(data.get("coordenadas[lat]")),
            "lng": _as_float(data.get("coordenadas[lng]")),
        }
    return None
