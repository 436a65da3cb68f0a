"""Session-scoped conversation registry backed by an ISessionBackend."""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from convoflow.conversation.conversation import Conversation
from convoflow.core.exceptions import (
    ConcurrentConversationError,
    DuplicateConversationError,
    UnknownStateError,
)
from convoflow.core.protocols import ISessionBackend
from convoflow.flow.catalog import FlowCatalog
from convoflow.flow.engine import FlowEngine
from convoflow.models.conversation import ConversationRecord

logger = structlog.get_logger(__name__)


class ConversationRegistry:
    """Conversations of one session, keyed by conversation id.

    Writes use compare-and-set against the record this registry last read or
    wrote, so a request that resumed a stale copy cannot overwrite a newer one.
    """

    def __init__(
        self,
        backend: ISessionBackend,
        catalog: FlowCatalog,
        session_id: str,
        ttl: int = 3600,
    ) -> None:
        self._backend = backend
        self._catalog = catalog
        self._session_id = session_id
        self._ttl = ttl
        self._seen: dict[str, str] = {}

    @property
    def session_id(self) -> str:
        return self._session_id

    def _key(self, conversation_id: str) -> str:
        return f"conversation:{self._session_id}:{conversation_id}"

    def find_by_id(self, conversation_id: str) -> Conversation | None:
        raw = self._backend.get(self._key(conversation_id))
        if raw is None:
            return None

        try:
            record = ConversationRecord.model_validate_json(raw)
            graph = self._catalog.find(record.flow_id)
            if graph is None:
                logger.warning("registry.unknown_flow", conversation_id=conversation_id, flow_id=record.flow_id)
                return None
            engine = FlowEngine.resume(graph, record.current_state, record.previous_state)
        except (ValidationError, UnknownStateError) as exc:
            logger.warning("registry.unreadable_record", conversation_id=conversation_id, error=str(exc))
            return None

        self._seen[conversation_id] = raw
        return Conversation(
            record.conversation_id,
            record.flow_id,
            engine,
            attributes=record.attributes,
            version=record.version,
        )

    def add(self, conversation: Conversation) -> None:
        """Register a new conversation. Its id must not be in use."""
        if not self._write(conversation, expected=None):
            raise DuplicateConversationError(conversation.conversation_id)

    def save(self, conversation: Conversation) -> None:
        """Persist cursor and attributes of a conversation already registered."""
        expected = self._seen.get(conversation.conversation_id)
        if expected is None or not self._write(conversation, expected=expected):
            raise ConcurrentConversationError(conversation.conversation_id)

    def remove(self, conversation: Conversation) -> None:
        """Delete a conversation, provided nobody changed it since it was read."""
        expected = self._seen.pop(conversation.conversation_id, None)
        if expected is None or not self._backend.compare_and_delete(
            self._key(conversation.conversation_id), expected
        ):
            raise ConcurrentConversationError(conversation.conversation_id)

    def _write(self, conversation: Conversation, expected: str | None) -> bool:
        record = conversation.to_record()
        record.version += 1
        raw = record.model_dump_json()
        if not self._backend.compare_and_set(self._key(conversation.conversation_id), expected, raw, self._ttl):
            return False
        conversation.version = record.version
        self._seen[conversation.conversation_id] = raw
        return True
