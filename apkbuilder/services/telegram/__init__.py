# Telegram services - notifier chat delivery
from .client import NotifierClient

__all__ = ["NotifierClient"]
