"""
GitHub REST API Client
Handles repository creation, content commits and deletion on GitHub
"""

import base64
from typing import Any, Dict, Optional
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from sitepipe.api.base_client import BasePlatformClient
from sitepipe.utils.logger import get_logger
from sitepipe.api.exceptions import (
    APIError,
    ConflictError,
    NetworkError,
    RateLimitError,
    ServerError
)


logger = get_logger(__name__)


class GitHubClient(BasePlatformClient):
    """
    GitHub API client for deploy repositories.
    Repositories are created under ``owner``, which may be the token's own
    account or an organisation the token can create repositories in.
    """

    platform_name = "GitHub"

    def __init__(
        self,
        token: str,
        owner: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0
    ):
        """
        Initialize GitHub API client.

        Args:
            token: Personal access token with repo scope
            owner: User or organisation login that owns deploy repositories
            base_url: API base URL (GitHub Enterprise installs differ)
            timeout: Per-request timeout in seconds
        """
        super().__init__(base_url, timeout)
        self._token = token
        self.owner = owner
        self._login: Optional[str] = None

        logger.debug(f"GitHub client initialized for owner: {owner}")

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28"
        }

    @property
    def headers(self) -> Dict[str, str]:
        return {
            **super().headers,
            "Accept": "application/vnd.github+json"
        }

    def _error_for_status(self, status_code: int, error_data: Dict[str, Any]) -> APIError:
        message = error_data.get("message") or "Unknown error"
        details = " ".join(
            str(err.get("message", "")) for err in error_data.get("errors", [])
            if isinstance(err, dict)
        )

        # GitHub reports primary and secondary rate limits as 403
        if status_code == 403 and "rate limit" in message.lower():
            return RateLimitError(message, status_code=403, response_data=error_data)

        if status_code == 422 and "already exists" in f"{message} {details}".lower():
            return ConflictError(
                f"Repository already exists: {details or message}",
                status_code=422,
                response_data=error_data
            )

        return super()._error_for_status(status_code, error_data)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((NetworkError, ServerError)),
        reraise=True
    )
    def get_authenticated_login(self) -> str:
        """
        Get the login of the account the token belongs to.

        Returns:
            Login name (cached after the first call)
        """
        if self._login is None:
            response = self._make_request("GET", "/user")
            self._login = response.get("login", "")
        return self._login

    def create_repository(
        self,
        name: str,
        description: str = "",
        private: bool = False
    ) -> Dict[str, Any]:
        """
        Create an empty repository under the configured owner.

        Not retried: a retry after an ambiguous failure could observe the
        repository created by the first attempt as a name collision.

        Args:
            name: Repository name
            description: Repository description
            private: Create as a private repository

        Returns:
            Repository object as returned by GitHub

        Raises:
            ConflictError: If the name is already taken
            AuthenticationError: If the token is rejected
        """
        logger.info(f"Creating GitHub repository: {self.owner}/{name}")

        payload = {
            "name": name,
            "description": description,
            "private": private,
            "auto_init": False,
            "has_issues": False,
            "has_wiki": False,
            "has_projects": False
        }

        if self.get_authenticated_login().lower() == self.owner.lower():
            endpoint = "/user/repos"
        else:
            endpoint = f"/orgs/{self.owner}/repos"

        response = self._make_request("POST", endpoint, json_data=payload)

        logger.info(f"Repository created: {response.get('html_url')}")

        return response

    def put_file(
        self,
        repo: str,
        path: str,
        content: str,
        message: str
    ) -> Dict[str, Any]:
        """
        Commit a file to a repository through the contents API.

        Args:
            repo: Repository name under the configured owner
            path: File path inside the repository
            content: File content (UTF-8 text)
            message: Commit message

        Returns:
            Contents API response ({"content": ..., "commit": ...})
        """
        logger.info(f"Committing {path} to {self.owner}/{repo}")

        endpoint = f"/repos/{self.owner}/{repo}/contents/{path}"
        payload = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii")
        }

        return self._make_request("PUT", endpoint, json_data=payload)

    def delete_repository(self, name: str) -> None:
        """
        Delete a repository under the configured owner.

        Args:
            name: Repository name

        Raises:
            NotFoundError: If the repository does not exist
        """
        logger.info(f"Deleting GitHub repository: {self.owner}/{name}")

        self._make_request("DELETE", f"/repos/{self.owner}/{name}")
