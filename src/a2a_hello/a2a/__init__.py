"""
A2A (Agent-to-Agent) Protocol Types

Pydantic models for the subset of the A2A protocol served by this agent:
messages, tasks, lifecycle events, the agent card and the JSON-RPC 2.0
envelope.
"""

__version__ = "0.1.0"
__protocol_version__ = "0.3.0"
