import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from conambiente.api import auth, deps, forms, news, newsletter, projects
from conambiente.api.errors import ApiError, api_error_handler, unexpected_error_handler
from conambiente.storage import repository as repo

logger = logging.getLogger("conambiente")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(name)-28s %(levelname)-8s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # el scheduler informa cada job; solo interesan sus errores
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def connect_database() -> None:
    settings = deps.settings
    repo.connect(settings.mongo_uri, settings.mongo_db, settings.mongo_timeout_ms)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = deps.settings
    # Sin admin, secreto o Mongo no se arranca a medias
    settings.check_required()
    os.makedirs(settings.uploads_dir, exist_ok=True)

    try:
        connect_database()
    except Exception:
        logger.exception("Error conectando MongoDB")
        raise

    if not settings.mail_configured:
        logger.warning("MAIL_USER o MAIL_PASS no están configurados. El envío de correos fallará.")
    else:
        deps.mailer.verify()

    deps.scheduler.start()
    logger.info("Backend escuchando en el puerto %s", settings.port)

    yield

    deps.scheduler.shutdown(wait=False)
    repo.close()


setup_logging(deps.settings.log_level)

#%% APP

app = FastAPI(title="Conambiente API", lifespan=lifespan)

# Middleware
origins = deps.settings.allowed_origins or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=512)

app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(Exception, unexpected_error_handler)

app.include_router(auth.router)
app.include_router(news.router)
app.include_router(projects.router)
app.include_router(newsletter.router)
app.include_router(forms.router)

# Archivos subidos (imágenes, CV)
app.mount("/uploads", StaticFiles(directory=deps.settings.uploads_dir, check_dir=False), name="uploads")


@app.get("/", response_class=PlainTextResponse)
def root():
    return "API de Conambiente funcionando"


@app.get("/health")
def health():
    return {"status": "ok", "ts": int(time.time())}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("conambiente.api.main:app", host="0.0.0.0", port=deps.settings.port)
