from santa_draw.store.models import ConnectionIdentity, Delivery, ParticipantView, SessionRecord
from santa_draw.store.registry import MAX_NAME_LENGTH, IdentityRegistry, ValidationError

__all__ = [
    "ConnectionIdentity",
    "Delivery",
    "ParticipantView",
    "SessionRecord",
    "MAX_NAME_LENGTH",
    "IdentityRegistry",
    "ValidationError",
]
