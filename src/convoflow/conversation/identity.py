"""Conversation id generation."""

from __future__ import annotations

import hashlib
import secrets

from convoflow.core.protocols import IRandomSource


class SystemRandomSource:
    """IRandomSource backed by the OS CSPRNG."""

    def next_bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)


def generate_conversation_id(random_source: IRandomSource, entropy_bytes: int = 24) -> str:
    """Hash ``entropy_bytes`` random bytes into a 40-char hex id."""
    return hashlib.sha1(random_source.next_bytes(entropy_bytes)).hexdigest()
