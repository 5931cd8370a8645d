"""
Business logic and service layer
"""

from sitepipe.services.exceptions import (
    OrchestratorError,
    ValidationError,
    ConfigurationError,
    RateLimitError,
    RepoCreationError,
    RepoDeletionError,
    SiteCreationError,
    SiteDeletionError,
    SiteStatusError,
    RedeployError,
    DeploymentNotFoundError,
    InvalidStatusTransitionError,
)
from sitepipe.services.rate_limiter import SlidingWindowRateLimiter
from sitepipe.services.repository_provisioner import RepositoryProvisioner
from sitepipe.services.site_provisioner import SiteProvisioner, map_deploy_status
from sitepipe.services.saga import Saga, SagaStep, StepStatus
from sitepipe.services.credential_store import CredentialStore, CredentialStoreError
from sitepipe.services.deployment_store import (
    DeploymentStore,
    InMemoryDeploymentStore,
    JsonFileDeploymentStore,
)
from sitepipe.services.deployment_orchestrator import DeploymentOrchestrator, PipelineState

__all__ = [
    # Errors
    "OrchestratorError",
    "ValidationError",
    "ConfigurationError",
    "RateLimitError",
    "RepoCreationError",
    "RepoDeletionError",
    "SiteCreationError",
    "SiteDeletionError",
    "SiteStatusError",
    "RedeployError",
    "DeploymentNotFoundError",
    "InvalidStatusTransitionError",
    # Admission
    "SlidingWindowRateLimiter",
    # Provisioners
    "RepositoryProvisioner",
    "SiteProvisioner",
    "map_deploy_status",
    # Saga
    "Saga",
    "SagaStep",
    "StepStatus",
    # Stores
    "CredentialStore",
    "CredentialStoreError",
    "DeploymentStore",
    "InMemoryDeploymentStore",
    "JsonFileDeploymentStore",
    # Pipeline orchestrator
    "DeploymentOrchestrator",
    "PipelineState",
]
