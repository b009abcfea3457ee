"""
Responder capabilities.

A responder turns an inbound message into the text of the agent's reply. The
execution engine only depends on the ``Responder`` interface, so alternate
implementations (LLM calls, tool use) plug in without touching it.
"""

from __future__ import annotations

import abc
import logging

from .a2a.models import Message

logger = logging.getLogger(__name__)


class Responder(abc.ABC):
    """Pluggable unit producing the agent's reply for one inbound message."""

    @abc.abstractmethod
    async def invoke(self, message: Message) -> str:
        """Return the reply text for ``message``.

        Implementations signal failure by raising, preferably
        ``ResponderError``; the engine reports it as a ``failed`` task status.
        """


class HelloWorldResponder(Responder):
    """Simple agent that always returns the same greeting."""

    def __init__(self, reply_text: str = "Hello World") -> None:
        self.reply_text = reply_text

    async def invoke(self, message: Message) -> str:
        logger.debug("Hello world responder invoked", extra={"message_id": message.messageId})
        return self.reply_text
