"""String enumerations shared with the host runtime."""

from __future__ import annotations

from enum import StrEnum


class ResourceType(StrEnum):
    """Request types delivered by the host. Only MAIN_FRAME is gated."""
    MAIN_FRAME = "main_frame"
    SUB_FRAME = "sub_frame"
    SCRIPT = "script"
    IMAGE = "image"
    XMLHTTPREQUEST = "xmlhttprequest"
    OTHER = "other"


class MessageType(StrEnum):
    """Commands accepted from the UI collaborator."""
    CLEAN_ALL_TABS = "cleanAllTabs"
