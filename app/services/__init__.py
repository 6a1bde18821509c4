from app.services.config_service import ConfigService
from app.services.conversation_service import ConversationService
from app.services.event_log_service import EventLogService

__all__ = [
    "ConfigService",
    "ConversationService",
    "EventLogService",
]
