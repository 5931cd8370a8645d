"""
API Layer - Platform client implementations
GitHub (source control) and Render (static hosting)
"""

# Base Client
from sitepipe.api.base_client import BasePlatformClient

# Client Implementations
from sitepipe.api.github_client import GitHubClient
from sitepipe.api.render_client import RenderClient

# Client Factory
from sitepipe.api.provider_factory import get_repository_client, get_site_client

# Exceptions (shared across clients)
from sitepipe.api.exceptions import (
    APIError,
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NetworkError,
    NotFoundError,
    QuotaExceededError,
    RateLimitError,
    ServerError
)

__all__ = [
    # Base
    "BasePlatformClient",

    # Clients
    "GitHubClient",
    "RenderClient",

    # Factory
    "get_repository_client",
    "get_site_client",

    # Exceptions
    "APIError",
    "AuthenticationError",
    "BadRequestError",
    "ConflictError",
    "NetworkError",
    "NotFoundError",
    "QuotaExceededError",
    "RateLimitError",
    "ServerError"
]
