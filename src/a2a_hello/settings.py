from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


@dataclass(frozen=True)
class Settings:
    """Simple settings container sourced from environment variables."""

    # Agent card
    agent_name: str
    agent_description: str
    agent_version: str
    # Public JSON-RPC URL advertised in the agent card. When unset the
    # request's base URL is used.
    agent_url: Optional[str]

    # Responder
    reply_text: str

    # tasks/list pagination
    default_page_size: int

    # HTTP
    cors_origins: Tuple[str, ...]
    host: str
    port: int


def _parse_origins(raw: str) -> Tuple[str, ...]:
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


def validate_settings(settings: Settings) -> None:
    """Validate settings and raise ValueError for invalid configurations."""
    errors = []

    if not settings.agent_name.strip():
        errors.append("A2A_AGENT_NAME must not be empty")

    if not settings.agent_version.strip():
        errors.append("A2A_AGENT_VERSION must not be empty")

    if settings.agent_url is not None and not settings.agent_url.startswith(("http://", "https://")):
        errors.append("A2A_AGENT_URL must be an http(s) URL")

    if settings.default_page_size <= 0:
        errors.append("A2A_DEFAULT_PAGE_SIZE must be positive")

    if not 0 < settings.port < 65536:
        errors.append("A2A_PORT must be between 1 and 65535")

    if not settings.cors_origins:
        errors.append("A2A_CORS_ORIGINS must list at least one origin")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(
            f"  - {error}" for error in errors
        )
        raise ValueError(error_msg)


@lru_cache()
def get_settings() -> Settings:
    """Return cached and validated settings."""
    try:
        default_page_size = int(os.getenv("A2A_DEFAULT_PAGE_SIZE", "10"))
        port = int(os.getenv("A2A_PORT", "8000"))
    except ValueError as exc:
        raise ValueError(f"Configuration validation failed: {exc}") from exc

    settings = Settings(
        agent_name=os.getenv("A2A_AGENT_NAME", "Hello World Agent"),
        agent_description=os.getenv("A2A_AGENT_DESCRIPTION", "Just a hello world agent"),
        agent_version=os.getenv("A2A_AGENT_VERSION", "1.0.0"),
        agent_url=os.getenv("A2A_AGENT_URL") or None,
        reply_text=os.getenv("A2A_REPLY_TEXT", "Hello World"),
        default_page_size=default_page_size,
        cors_origins=_parse_origins(os.getenv("A2A_CORS_ORIGINS", "*")),
        host=os.getenv("A2A_HOST", "localhost"),
        port=port,
    )

    validate_settings(settings)

    return settings


def create_example_env_file() -> str:
    """Generate an example .env file documenting every setting."""
    return """# Hello World A2A agent configuration
A2A_AGENT_NAME="Hello World Agent"
A2A_AGENT_DESCRIPTION="Just a hello world agent"
A2A_AGENT_VERSION=1.0.0
# Public URL advertised in the agent card (defaults to the request base URL)
A2A_AGENT_URL=https://agent.example.com
# Fixed reply produced by the hello world responder
A2A_REPLY_TEXT="Hello World"

# tasks/list page size when no limit is given
A2A_DEFAULT_PAGE_SIZE=10

# HTTP
A2A_CORS_ORIGINS=*
A2A_HOST=localhost
A2A_PORT=8000

# Logging
LOG_LEVEL=INFO
LOG_FILE=
"""
