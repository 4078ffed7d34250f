"""
Recursos del proceso (configuración, transporte de correo, boletín, scheduler).

Se crean una sola vez al importar y los routers los reciben vía Depends;
los getters leen el atributo del módulo en cada llamada para poder
reemplazarlos en tests.
"""

from apscheduler.schedulers.background import BackgroundScheduler

from conambiente.notifier import Mailer, Newsletter
from conambiente.storage.repository import get_active_subscribers
from conambiente.utils.settings import Settings

settings = Settings.from_env()
mailer = Mailer.from_settings(settings)
newsletter = Newsletter.from_settings(settings, mailer, get_active_subscribers)

# Scheduler para trabajos desacoplados del request (boletín)
scheduler = BackgroundScheduler(
    job_defaults={
        "coalesce": False,
        "max_instances": 1,
        "misfire_grace_time": None,  # un boletín atrasado se envía igual
    }
)


def get_settings() -> Settings:
    return settings


def get_mailer() -> Mailer:
    return mailer


def get_newsletter() -> Newsletter:
    return newsletter


def get_scheduler() -> BackgroundScheduler:
    return scheduler
