"""
A2A Agent Card Generation

Builds the discovery document served at ``/.well-known/agent-card.json``.
"""

from __future__ import annotations

import logging
from typing import Optional

from .a2a import __protocol_version__
from .a2a.models import AgentCapabilities, AgentCard, AgentSkill
from .settings import Settings

logger = logging.getLogger(__name__)


def _generate_skills() -> list[AgentSkill]:
    return [
        AgentSkill(
            id="hello_world",
            name="Returns hello world",
            description="just returns hello world",
            tags=["hello world"],
            examples=["hi", "hello world"],
        )
    ]


def build_agent_card(settings: Settings, base_url: Optional[str] = None) -> AgentCard:
    """
    Generate the AgentCard for this server.

    Args:
        settings: Application settings providing name, description and version
        base_url: URL the request arrived on, used when no public URL is configured

    Returns:
        AgentCard advertising streaming support and the hello world skill
    """
    url = settings.agent_url or (base_url or f"http://{settings.host}:{settings.port}").rstrip("/")

    card = AgentCard(
        protocolVersion=__protocol_version__,
        name=settings.agent_name,
        description=settings.agent_description,
        url=url,
        preferredTransport="JSONRPC",
        version=settings.agent_version,
        # message/stream is always served, keep this flag in sync with main.py
        capabilities=AgentCapabilities(streaming=True),
        defaultInputModes=["text"],
        defaultOutputModes=["text"],
        skills=_generate_skills(),
        supportsAuthenticatedExtendedCard=False,
    )

    logger.debug("Generated AgentCard", extra={"agent_name": card.name, "url": card.url})
    return card
