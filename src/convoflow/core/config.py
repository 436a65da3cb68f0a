"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class ConversationConfig(BaseSettings):
    """Conversation binding configuration."""

    model_config = {"env_prefix": "CONVOFLOW_CONVERSATION_"}

    parameter_name: str = "conversation_id"
    id_entropy_bytes: int = 24
    reject_unknown_ids: bool = False  # True: unknown id is an error, not a new conversation
    ttl_seconds: int = 3600


class RedisConfig(BaseSettings):
    """Redis session backend configuration."""

    model_config = {"env_prefix": "CONVOFLOW_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    key_prefix: str = "convoflow"


class SessionConfig(BaseSettings):
    """HTTP session cookie configuration."""

    model_config = {"env_prefix": "CONVOFLOW_SESSION_"}

    secret_key: str = "change-me-in-production"
    cookie_name: str = "convoflow_session"
    max_age: int = 14 * 24 * 60 * 60


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "CONVOFLOW_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    session_backend: Literal["memory", "redis"] = "memory"

    conversation: ConversationConfig = ConversationConfig()
    redis: RedisConfig = RedisConfig()
    session: SessionConfig = SessionConfig()
