import logging
from typing import List

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import APIRouter, Depends, Request, Response

from conambiente.api.auth import require_admin
from conambiente.api.deps import get_newsletter, get_scheduler, get_settings
from conambiente.api.errors import NotFound, ValidationError, call_store
from conambiente.api.payload import checked_fields, merge_present, missing_fields, read_payload
from conambiente.api.uploads import accept_upload
from conambiente.notifier.newsletter import Newsletter
from conambiente.storage import repository as repo
from conambiente.storage.models import News, NewsFields
from conambiente.utils.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/noticias", tags=["noticias"])

REQUIRED = ("titulo", "resumen", "contenido", "fecha")
EDITABLE = ("titulo", "resumen", "contenido", "fecha", "categoria", "imagenUrl")
NOT_FOUND = "Noticia no encontrada"


def schedule_newsletter(scheduler: BackgroundScheduler, newsletter: Newsletter, news: News) -> None:
    """Dispara el boletín en segundo plano; la respuesta HTTP no lo espera."""
    try:
        scheduler.add_job(newsletter.broadcast_safely, args=[news], name=f"boletin:{news.id}")
    except Exception:
        logger.exception("No se pudo programar el boletín de la noticia %s", news.id)


@router.get("", response_model=List[News])
async def list_news():
    return await call_store("Error obteniendo noticias", repo.list_news)


@router.get("/{news_id}", response_model=News)
async def get_news(news_id: str):
    news = await call_store("Error obteniendo noticia", repo.get_news, news_id)
    if news is None:
        raise NotFound(NOT_FOUND)
    return news


@router.post("", response_model=News, status_code=201)
async def create_news(
    request: Request,
    _admin: dict = Depends(require_admin),
    settings: Settings = Depends(get_settings),
    scheduler: BackgroundScheduler = Depends(get_scheduler),
    newsletter: Newsletter = Depends(get_newsletter),
):
    data, image = await read_payload(request, file_field="imagen")
    stored = await accept_upload("imagen", image, settings.uploads_dir) if image else None

    if missing_fields(data, REQUIRED):
        raise ValidationError("Faltan campos obligatorios")

    fields = checked_fields(NewsFields, {
        "titulo": data["titulo"],
        "resumen": data["resumen"],
        "contenido": data["contenido"],
        "fecha": data["fecha"],
        "imagenUrl": stored.url if stored else (data.get("imagenUrl") or ""),
        "categoria": data.get("categoria") or "",
    })
    news = await call_store("Error creando noticia", repo.create_news, fields)
    logger.info("Noticia creada %s", news.id)

    schedule_newsletter(scheduler, newsletter, news)
    return news


@router.put("/{news_id}", response_model=News)
async def update_news(
    news_id: str,
    request: Request,
    _admin: dict = Depends(require_admin),
    settings: Settings = Depends(get_settings),
):
    logger.info("PUT /api/noticias/%s", news_id)
    data, image = await read_payload(request, file_field="imagen")

    current = await call_store("Error actualizando noticia", repo.get_news, news_id)
    if current is None:
        logger.info("Noticia no encontrada con id %s", news_id)
        raise NotFound(NOT_FOUND)

    stored = await accept_upload("imagen", image, settings.uploads_dir) if image else None
    fields = merge_present(current.model_dump(), data, EDITABLE)
    for name in EDITABLE:
        if fields[name] is None:  # null explícito en texto se guarda vacío
            fields[name] = ""
    if stored:
        fields["imagenUrl"] = stored.url
    fields = checked_fields(NewsFields, fields)

    news = await call_store("Error actualizando noticia", repo.update_news, news_id, fields)
    if news is None:
        # eliminada entre la lectura y la escritura
        raise NotFound(NOT_FOUND)
    logger.info("Noticia actualizada OK %s", news.id)
    return news


@router.delete("/{news_id}", status_code=204)
async def delete_news(news_id: str, _admin: dict = Depends(require_admin)):
    logger.info("DELETE /api/noticias/%s", news_id)
    deleted = await call_store("Error eliminando noticia", repo.delete_news, news_id)
    if not deleted:
        logger.info("Noticia no encontrada para eliminar %s", news_id)
        raise NotFound(NOT_FOUND)
    logger.info("Noticia eliminada OK %s", news_id)
    return Response(status_code=204)
