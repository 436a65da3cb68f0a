"""Persisted form of a conversation in the session store."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ConversationRecord(BaseModel):
    """Snapshot of one conversation as written to the session backend."""

    conversation_id: str
    flow_id: str
    current_state: str
    previous_state: Optional[str] = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    version: int = 0
