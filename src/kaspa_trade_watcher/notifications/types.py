"""Notification message types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Protocol

Audience = Literal["market", "levels", "admin"]
"""Routing target: market thread, level-change thread, or the operator chat."""

DEFAULT_AUDIENCE: Audience = "market"


@dataclass(frozen=True)
class NotificationMessage:
    """One outgoing event (listing, sale, trade, level change, operator report).

    `payload` holds the structured fields the styler and channels read
    (`audience`, `token_id`, `media_slot`, `media`, `image_url`, button...).
    """

    event_type: str
    message: str
    title: str | None = None
    payload: dict[str, Any] | None = None

    @property
    def audience(self) -> Audience:
        value = (self.payload or {}).get("audience")
        if value in ("market", "levels", "admin"):
            return value
        return DEFAULT_AUDIENCE

    @property
    def is_admin(self) -> bool:
        return self.audience == "admin"

    def field(self, key: str, default: Optional[Any] = None) -> Any:
        """Payload value for `key`, or `default` when absent."""
        return (self.payload or {}).get(key, default)


class NotificationStyler(Protocol):
    """Render a message into chat-ready text."""

    def render(self, message: NotificationMessage, *, parse_html: bool = False) -> str:
        """Return the text for the message (HTML when parse_html, else plain)."""
        ...
