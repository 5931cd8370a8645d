"""
Service-level exceptions for the deployment pipeline.
Each carries the machine-readable error code and HTTP status the
outer surfaces report.
"""

from typing import Optional


class OrchestratorError(Exception):
    """Base exception for deployment pipeline errors"""

    error_code = "deployment_failed"
    http_status = 500

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        self.message = message
        self.upstream_status = upstream_status
        super().__init__(message)

    def to_response(self) -> dict:
        return {"error": self.error_code, "message": self.message}


class ValidationError(OrchestratorError):
    """Input is unusable; nothing was called or persisted"""

    error_code = "validation_failed"
    http_status = 400


class ConfigurationError(OrchestratorError):
    """Platform credentials are missing for the caller"""

    error_code = "deployment_config_missing"
    http_status = 400


class RateLimitError(OrchestratorError):
    """Caller exceeded the deployment rate limit"""

    error_code = "rate_limited"
    http_status = 429

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class RepoCreationError(OrchestratorError):
    error_code = "repo_creation_failed"


class RepoDeletionError(OrchestratorError):
    error_code = "repo_deletion_failed"


class SiteCreationError(OrchestratorError):
    error_code = "site_creation_failed"


class SiteDeletionError(OrchestratorError):
    error_code = "site_deletion_failed"


class SiteStatusError(OrchestratorError):
    """Raised when the hosting platform cannot report a site's status"""

    error_code = "site_status_failed"


class RedeployError(OrchestratorError):
    error_code = "redeploy_failed"


class DeploymentNotFoundError(OrchestratorError):
    error_code = "deployment_not_found"
    http_status = 404


class InvalidStatusTransitionError(OrchestratorError):
    """Raised when a terminal deployment would change status"""

    error_code = "invalid_status_transition"
    http_status = 409
