import logging
import os
import random
import time
from typing import NamedTuple

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from conambiente.api.errors import PayloadTooLarge, UnsupportedMediaType

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB (alcanza para un CV)
_CHUNK = 64 * 1024

CV_FIELD = "cv"

ALLOWED_IMAGE_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
})

ALLOWED_CV_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})


class StoredUpload(NamedTuple):
    filename: str        # nombre generado en disco
    original_name: str   # nombre con el que llegó
    path: str            # ruta absoluta en el servidor
    content_type: str

    @property
    def url(self) -> str:
        return f"/uploads/{self.filename}"


def check_media_type(field_name: str, content_type: str) -> None:
    # el campo cv (trabaja con nosotros) tiene su propia lista; el resto son imágenes
    if field_name == CV_FIELD:
        if content_type not in ALLOWED_CV_TYPES:
            raise UnsupportedMediaType("Formato de CV no permitido (solo PDF o Word)")
    elif content_type not in ALLOWED_IMAGE_TYPES:
        raise UnsupportedMediaType("Formato de imagen no permitido")


def generate_filename(original_name: str) -> str:
    ext = os.path.splitext(original_name or "")[1]
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


async def accept_upload(field_name: str, upload: UploadFile, directory: str,
                        max_bytes: int = MAX_UPLOAD_BYTES) -> StoredUpload:
    """
    Valida el tipo MIME según el campo y guarda el archivo en `directory`.
    Si un paso posterior falla el archivo queda en disco (no hay limpieza).
    """
    content_type = (upload.content_type or "").lower()
    check_media_type(field_name, content_type)

    os.makedirs(directory, exist_ok=True)
    filename = generate_filename(upload.filename)
    path = os.path.join(directory, filename)

    # escritura a disco en el threadpool
    written = 0
    out = await run_in_threadpool(open, path, "wb")
    try:
        while True:
            chunk = await upload.read(_CHUNK)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                break
            await run_in_threadpool(out.write, chunk)
    finally:
        await run_in_threadpool(out.close)

    if written > max_bytes:
        # el archivo parcial sí se descarta
        await run_in_threadpool(os.remove, path)
        raise PayloadTooLarge()

    logger.info("Archivo recibido en '%s': %s (%d bytes)", field_name, filename, written)
    return StoredUpload(filename, upload.filename or filename, path, content_type)
