# Services module - external API integrations
from .notifications import BuildNotifier
from .telegram import NotifierClient

__all__ = ["BuildNotifier", "NotifierClient"]
