from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from conambiente.utils.tz_utils import ensure_utc

DEFAULT_PROJECT_STATUS = "En ejecución"


def as_text(value: Any) -> Any:
    """Números y booleanos se guardan como texto; objetos y listas no se tocan (el modelo los rechaza)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return value


class Document(BaseModel):
    """Base de las entidades: `_id` de Mongo se expone como `id`."""

    id: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]):
        data = {k: v for k, v in doc.items() if k != "_id"}
        data["id"] = str(doc["_id"])
        data["createdAt"] = ensure_utc(doc.get("createdAt"))
        data["updatedAt"] = ensure_utc(doc.get("updatedAt"))
        return cls.model_validate(data)


# ---------- Campos editables (lo que se escribe en Mongo) ----------
class NewsFields(BaseModel):
    titulo: str
    resumen: str
    contenido: str
    fecha: str  # texto libre, tal como lo escribe el editor
    imagenUrl: str = ""
    categoria: str = ""

    @field_validator("titulo", "resumen", "contenido", "fecha", "imagenUrl", "categoria", mode="before")
    @classmethod
    def _scalars_as_text(cls, value):
        return as_text(value)


class Coordinates(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class ProjectFields(BaseModel):
    nombre: str
    descripcion: str
    departamento: str
    municipio: str = ""
    estado: str = DEFAULT_PROJECT_STATUS
    fechaInicio: Optional[str] = None
    fechaFin: Optional[str] = None
    coordenadas: Coordinates = Field(default_factory=Coordinates)
    imagenUrl: str = ""

    @field_validator("nombre", "descripcion", "departamento", "municipio", "estado",
                     "fechaInicio", "fechaFin", "imagenUrl", mode="before")
    @classmethod
    def _scalars_as_text(cls, value):
        return as_text(value)

    @field_validator("coordenadas", mode="before")
    @classmethod
    def _empty_coordinates(cls, value):
        return {} if value is None else value


# ---------- Entidades ----------
class News(Document, NewsFields):
    pass


class Project(Document, ProjectFields):
    pass


class Subscriber(Document):
    email: str
    activo: bool = True
