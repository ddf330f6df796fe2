from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Message:
    message_id: int
    created_at: float
    reply_to: int | None
    text: str
