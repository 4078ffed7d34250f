from .mailer import Attachment, Mailer
from .newsletter import Newsletter

__all__ = ["Attachment", "Mailer", "Newsletter"]
