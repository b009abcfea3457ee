from dataclasses import replace

from a2a_hello.a2a.models import serialize_a2a
from a2a_hello.agent_card import build_agent_card


class TestAgentCard:
    """Test agent card generation."""

    def test_card_fields(self, settings):
        card = build_agent_card(settings, base_url="http://localhost:8000/")

        assert card.name == "Hello World Agent"
        assert card.url == "http://localhost:8000"
        assert card.protocolVersion == "0.3.0"
        assert card.capabilities.streaming is True
        assert card.skills[0].id == "hello_world"
        assert card.skills[0].tags == ["hello world"]

    def test_configured_url_wins(self, settings):
        card = build_agent_card(replace(settings, agent_url="https://agent.example.com"), base_url="http://testserver/")

        assert card.url == "https://agent.example.com"

    def test_fallback_to_host_and_port(self, settings):
        card = build_agent_card(replace(settings, host="0.0.0.0", port=9999))

        assert card.url == "http://0.0.0.0:9999"

    def test_serialization_omits_unset_fields(self, settings):
        payload = serialize_a2a(build_agent_card(settings))

        assert "pushNotifications" not in payload["capabilities"]
        assert payload["defaultInputModes"] == ["text"]
