"""Publishing services."""

from .models import PublishReceipt, PublishRequest, ReleaseNote, TrackAssignment
from .publish_request import resolve_key_material, resolve_request
from .publish_session import PublishSession
from .publishing_service import PublishingService

__all__ = [
    "PublishReceipt",
    "PublishRequest",
    "PublishSession",
    "PublishingService",
    "ReleaseNote",
    "TrackAssignment",
    "resolve_key_material",
    "resolve_request",
]
