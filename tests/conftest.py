import pytest

from a2a_hello.a2a.models import Message, TextPart
from a2a_hello.settings import Settings


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the process environment."""
    return Settings(
        agent_name="Hello World Agent",
        agent_description="Just a hello world agent",
        agent_version="1.0.0",
        agent_url=None,
        reply_text="Hello World",
        default_page_size=10,
        cors_origins=("*",),
        host="localhost",
        port=8000,
    )


@pytest.fixture
def user_message() -> Message:
    return Message(
        messageId="m1",
        role="user",
        parts=[TextPart(text="Hello!")],
    )
