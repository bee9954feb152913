"""API routes."""

from broker_remover.api.routes import brokers, data, requests

__all__ = ["brokers", "data", "requests"]
