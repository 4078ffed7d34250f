import logging
from typing import List
from urllib.parse import unquote

from fastapi import APIRouter, Depends, Request, Response

from conambiente.api.auth import require_admin
from conambiente.api.deps import get_settings
from conambiente.api.errors import NotFound, ValidationError, call_store
from conambiente.api.payload import checked_fields, merge_present, missing_fields, parse_coordinates, read_payload
from conambiente.api.uploads import accept_upload
from conambiente.storage import repository as repo
from conambiente.storage.models import DEFAULT_PROJECT_STATUS, Project, ProjectFields
from conambiente.utils.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proyectos", tags=["proyectos"])

REQUIRED = ("nombre", "descripcion", "departamento")
TEXT_FIELDS = ("nombre", "descripcion", "departamento", "municipio", "estado", "imagenUrl")
NULLABLE_FIELDS = ("fechaInicio", "fechaFin")
NOT_FOUND = "Proyecto no encontrado"


@router.get("", response_model=List[Project])
async def list_projects():
    return await call_store("Error obteniendo proyectos", repo.list_projects)


@router.get("/departamento/{departamento:path}", response_model=List[Project])
async def list_by_department(departamento: str):
    # la ruta ya llega decodificada una vez; unquote cubre nombres doblemente codificados
    name = unquote(departamento)
    return await call_store("Error filtrando proyectos", repo.list_projects_by_department, name)


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: str):
    project = await call_store("Error obteniendo proyecto", repo.get_project, project_id)
    if project is None:
        raise NotFound(NOT_FOUND)
    return project


@router.post("", response_model=Project, status_code=201)
async def create_project(
    request: Request,
    _admin: dict = Depends(require_admin),
    settings: Settings = Depends(get_settings),
):
    data, image = await read_payload(request, file_field="imagen")
    stored = await accept_upload("imagen", image, settings.uploads_dir) if image else None

    if missing_fields(data, REQUIRED):
        raise ValidationError("Faltan campos obligatorios")

    fields = checked_fields(ProjectFields, {
        "nombre": data["nombre"],
        "descripcion": data["descripcion"],
        "departamento": data["departamento"],
        "municipio": data.get("municipio") or "",
        "estado": data.get("estado") or DEFAULT_PROJECT_STATUS,
        "fechaInicio": data.get("fechaInicio") or None,
        "fechaFin": data.get("fechaFin") or None,
        "coordenadas": parse_coordinates(data) or {"lat": None, "lng": None},
        "imagenUrl": stored.url if stored else (data.get("imagenUrl") or ""),
    })
    project = await call_store("Error creando proyecto", repo.create_project, fields)
    logger.info("Proyecto creado %s", project.id)
    return project


@router.put("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    request: Request,
    _admin: dict = Depends(require_admin),
    settings: Settings = Depends(get_settings),
):
    data, image = await read_payload(request, file_field="imagen")

    current = await call_store("Error actualizando proyecto", repo.get_project, project_id)
    if current is None:
        raise NotFound(NOT_FOUND)

    stored = await accept_upload("imagen", image, settings.uploads_dir) if image else None
    previous = current.model_dump()
    fields = merge_present(previous, data, TEXT_FIELDS + NULLABLE_FIELDS)
    for name in TEXT_FIELDS:
        if fields[name] is None:
            fields[name] = ""
    coordinates = parse_coordinates(data)
    fields["coordenadas"] = coordinates if coordinates is not None else previous["coordenadas"]
    if stored:
        fields["imagenUrl"] = stored.url
    fields = checked_fields(ProjectFields, fields)

    project = await call_store("Error actualizando proyecto", repo.update_project, project_id, fields)
    if project is None:
        raise NotFound(NOT_FOUND)
    logger.info("Proyecto actualizado OK %s", project.id)
    return project


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: str, _admin: dict = Depends(require_admin)):
    deleted = await call_store("Error eliminando proyecto", repo.delete_project, project_id)
    if not deleted:
        raise NotFound(NOT_FOUND)
    logger.info("Proyecto eliminado OK %s", project_id)
    return Response(status_code=204)
