"""convoflow exception hierarchy."""

from __future__ import annotations

from collections.abc import Iterable


class ConvoFlowError(Exception):
    """Base exception for all convoflow errors."""


class FlowError(ConvoFlowError):
    """Error in flow definition or state machine execution."""


class InvalidFlowGraphError(FlowError):
    """Flow graph declaration is inconsistent."""


class AlreadyStartedError(FlowError):
    """start() was called on a flow engine that is already running."""

    def __init__(self, current_state: str) -> None:
        self.current_state = current_state
        super().__init__(f"Flow engine already started (current state {current_state!r})")


class NoSuchTransitionError(FlowError):
    """No transition for the event from the current state."""

    def __init__(self, current_state: str | None, event_id: str) -> None:
        self.current_state = current_state
        self.event_id = event_id
        super().__init__(
            f"No transition for event {event_id!r} from state {current_state!r}"
        )


class UnknownStateError(FlowError):
    """State id is not declared in the flow graph."""


class FlowNotFoundError(FlowError):
    """Flow id is not registered in the catalog."""


class ConversationError(ConvoFlowError):
    """Error while binding a request to a conversation."""


class MetadataNotFoundError(ConversationError):
    """Handler metadata is missing or an init routine cannot be invoked."""


class HandlerRegistrationError(ConversationError):
    """Handler type was registered twice or with an unusable declaration."""


class AccessDeniedError(ConversationError):
    """Action is not reachable from the conversation's current state."""

    def __init__(self, action: str, allowed_states: Iterable[str], actual_state: str | None) -> None:
        self.action = action
        self.allowed_states = sorted(allowed_states)
        self.actual_state = actual_state
        super().__init__(
            f"Action {action!r} can be accessed when the current state is one of "
            f"[{', '.join(self.allowed_states)}], the actual state is {actual_state!r}"
        )


class ConversationNotFoundError(ConversationError):
    """Supplied conversation id is unknown and unknown ids are rejected."""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id!r} not found")


class DuplicateConversationError(ConversationError):
    """Conversation id is already registered in the session."""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id!r} is already registered")


class ConcurrentConversationError(ConversationError):
    """Conversation was modified by another request since it was loaded."""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id!r} was modified concurrently")


class SessionStoreError(ConvoFlowError):
    """Session backend operation failed."""
