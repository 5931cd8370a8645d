"""
Repository Provisioner
Creates and deletes source-control repositories holding generated site content
"""

from typing import Callable, Optional

from sitepipe.api.github_client import GitHubClient
from sitepipe.api.provider_factory import get_repository_client
from sitepipe.api.exceptions import (
    APIError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    RateLimitError
)
from sitepipe.models import PlatformCredentials, RepositoryInfo
from sitepipe.services.exceptions import RepoCreationError, RepoDeletionError
from sitepipe.utils.config import get_settings, Settings
from sitepipe.utils.logger import get_logger

logger = get_logger(__name__)


ClientFactory = Callable[[PlatformCredentials, Settings], GitHubClient]


class RepositoryProvisioner:
    """
    Provisions repositories whose content sits at the path the static host
    publishes from (``public/index.html`` by default).
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        self.config = config or get_settings()
        self._client_factory = client_factory or get_repository_client

    def _client(self, credentials: PlatformCredentials) -> GitHubClient:
        return self._client_factory(credentials, self.config)

    def create(
        self,
        name: str,
        content: str,
        credentials: PlatformCredentials
    ) -> RepositoryInfo:
        """
        Create a repository and commit the generated content to it.

        If the repository is created but the commit fails, the empty
        repository is removed again before the error is raised.

        Args:
            name: Globally unique repository name
            content: HTML document to publish
            credentials: Caller's decrypted platform credentials

        Returns:
            RepositoryInfo with the repository and content URLs

        Raises:
            RepoCreationError: On name collision, auth failure, quota
                exhaustion, timeout or any other platform failure
        """
        client = self._client(credentials)

        try:
            repo = client.create_repository(
                name,
                description="Static site published by sitepipe"
            )
        except ConflictError as e:
            raise RepoCreationError(
                f"Repository name '{name}' is already taken",
                upstream_status=e.status_code
            ) from e
        except AuthenticationError as e:
            raise RepoCreationError(
                f"GitHub rejected the credentials: {e.message}",
                upstream_status=e.status_code
            ) from e
        except (QuotaExceededError, RateLimitError) as e:
            raise RepoCreationError(
                f"GitHub quota exhausted: {e.message}",
                upstream_status=e.status_code
            ) from e
        except APIError as e:
            raise RepoCreationError(
                f"Failed to create repository: {e.message}",
                upstream_status=e.status_code
            ) from e

        try:
            committed = client.put_file(
                name,
                self.config.content_path,
                content,
                message="Publish generated site"
            )
        except APIError as e:
            logger.error(f"❌ Content commit failed for {name}, removing empty repository")
            self._discard(client, name)
            raise RepoCreationError(
                f"Failed to commit content: {e.message}",
                upstream_status=e.status_code
            ) from e

        repo_url = repo.get("html_url") or f"https://github.com/{client.owner}/{name}"
        public_content_url = (committed.get("content") or {}).get("html_url")

        logger.info(f"✅ Repository ready: {repo_url}")

        return RepositoryInfo(
            name=name,
            repo_url=repo_url,
            public_content_url=public_content_url
        )

    def delete(self, name: str, credentials: PlatformCredentials) -> None:
        """
        Delete a repository. A repository that no longer exists counts as
        deleted.

        Raises:
            RepoDeletionError: If the platform refuses the deletion
        """
        client = self._client(credentials)

        try:
            client.delete_repository(name)
        except NotFoundError:
            logger.info(f"Repository {name} already absent")
        except APIError as e:
            raise RepoDeletionError(
                f"Failed to delete repository '{name}': {e.message}",
                upstream_status=e.status_code
            ) from e

    def _discard(self, client: GitHubClient, name: str) -> None:
        try:
            client.delete_repository(name)
        except NotFoundError:
            pass
        except APIError as e:
            logger.error(f"Orphaned empty repository {client.owner}/{name}: {e}")
