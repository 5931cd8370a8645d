"""
Exceptions raised by the GitHub and Render clients.

Each class corresponds to one family of HTTP outcomes; the mapping lives in
``BasePlatformClient._error_for_status`` with GitHub refinements in
``GitHubClient._error_for_status``. Provisioners translate these into the
service-level errors in ``sitepipe.services.exceptions``.
"""


class APIError(Exception):
    """
    Base for every platform failure.

    Carries the upstream HTTP status (None when no response arrived) and the
    parsed error body, which always has a ``message`` key.
    """

    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(self.message)

    def __str__(self):
        if self.status_code:
            return f"{type(self).__name__} (HTTP {self.status_code}): {self.message}"
        return f"{type(self).__name__}: {self.message}"


class AuthenticationError(APIError):
    """
    401 from either platform (bad or revoked token), or a 403 from GitHub
    that is not a rate limit (token lacks repo scope or org permission).
    """


class NotFoundError(APIError):
    """
    404: repository or service is absent. Deletes treat this as success.
    Also raised locally when a Render key can see no owner.
    """


class ConflictError(APIError):
    """
    Name collision: Render answers 409, GitHub answers 422 with an
    "already exists" validation error on the repository name.
    """


class QuotaExceededError(APIError):
    """402 from Render when the workspace's plan cannot hold another service."""


class RateLimitError(APIError):
    """429 from either platform, or GitHub's 403 "API rate limit exceeded"."""


class BadRequestError(APIError):
    """400, or a 422 that is not a name collision: the payload was rejected."""


class NetworkError(APIError):
    """No usable response: timeout, refused connection or other transport failure."""


class ServerError(APIError):
    """5xx. Retried by the clients' idempotent reads; never by creates or deletes."""
