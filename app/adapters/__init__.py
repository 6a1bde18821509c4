"""Platform adapters for Meta messaging integrations."""

from app.adapters.base import BasePlatformAdapter
from app.adapters.instagram import InstagramAdapter
from app.adapters.whatsapp import WhatsAppAdapter

__all__ = ["BasePlatformAdapter", "InstagramAdapter", "WhatsAppAdapter"]
