"""Outbound HTTP clients."""

from app.clients.graph_api import (
    GraphApiClient,
    GraphApiError,
    GraphResponse,
    MissingCredentialError,
)

__all__ = [
    "GraphApiClient",
    "GraphApiError",
    "GraphResponse",
    "MissingCredentialError",
]
