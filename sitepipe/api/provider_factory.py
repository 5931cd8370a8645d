"""
Platform Client Factory
Creates platform clients from a user's decrypted credentials
"""

from typing import Optional

from sitepipe.api.github_client import GitHubClient
from sitepipe.api.render_client import RenderClient
from sitepipe.models import PlatformCredentials
from sitepipe.utils.config import get_settings, Settings


def get_repository_client(
    credentials: PlatformCredentials,
    config: Optional[Settings] = None
) -> GitHubClient:
    """
    Create the source-control client for a user.

    Args:
        credentials: Decrypted platform credentials
        config: Optional Settings instance. Uses default if None.

    Returns:
        GitHubClient bound to the user's token and deploy owner

    Raises:
        ValueError: If GitHub credentials are incomplete
    """
    if config is None:
        config = get_settings()

    if not credentials.has_github:
        raise ValueError("GitHub token and owner are required")

    return GitHubClient(
        token=credentials.github_token.get_secret_value(),
        owner=credentials.github_owner,
        base_url=config.github_api_base_url,
        timeout=config.request_timeout
    )


def get_site_client(
    credentials: PlatformCredentials,
    config: Optional[Settings] = None
) -> RenderClient:
    """
    Create the static-hosting client for a user.

    Args:
        credentials: Decrypted platform credentials
        config: Optional Settings instance. Uses default if None.

    Returns:
        RenderClient bound to the user's API key

    Raises:
        ValueError: If the Render API key is missing
    """
    if config is None:
        config = get_settings()

    if not credentials.has_render:
        raise ValueError("Render API key is required")

    return RenderClient(
        api_key=credentials.render_api_key.get_secret_value(),
        base_url=config.render_api_base_url,
        timeout=config.request_timeout
    )
