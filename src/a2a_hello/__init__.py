"""
Hello World A2A Agent

Minimal A2A v0.3.0 protocol server: an agent card for discovery and a
JSON-RPC 2.0 endpoint for sending messages, streaming task progress over
Server-Sent Events and managing the resulting tasks.
"""

from .main import create_app

__all__ = ["create_app"]
