"""
Deployment Orchestrator
Sequences the repository and site provisioners into one pipeline that takes
generated content to a static site, compensating on partial failure and
persisting exactly one Deployment per attempt that reaches the platforms.
"""

import time
from enum import Enum
from typing import Callable, List, Optional

from sitepipe.models import (
    Deployment,
    DeploymentRequest,
    DeploymentResult,
    DeploymentStatus,
    DeploymentSummary,
    PlatformCredentials,
    RepositoryInfo,
)
from sitepipe.services.credential_store import CredentialStore, CredentialStoreError
from sitepipe.services.deployment_store import DeploymentStore, InMemoryDeploymentStore
from sitepipe.services.exceptions import (
    ConfigurationError,
    DeploymentNotFoundError,
    OrchestratorError,
    RateLimitError,
    RepoCreationError,
    SiteCreationError,
    ValidationError,
)
from sitepipe.services.rate_limiter import SlidingWindowRateLimiter
from sitepipe.services.repository_provisioner import RepositoryProvisioner
from sitepipe.services.saga import Saga
from sitepipe.services.site_provisioner import SiteProvisioner
from sitepipe.utils import validators
from sitepipe.utils.config import get_settings, Settings
from sitepipe.utils.logger import get_logger

logger = get_logger(__name__)


class PipelineState(str, Enum):
    REQUESTED = "requested"
    REPO_CREATED = "repo_created"
    SITE_CREATED = "site_created"
    REPO_CREATE_FAILED = "repo_create_failed"
    SITE_CREATE_FAILED_ROLLED_BACK = "site_create_failed_rolled_back"
    SITE_CREATE_FAILED_ROLLBACK_FAILED = "site_create_failed_rollback_failed"


class DeploymentOrchestrator:
    """
    End-to-end deployment pipeline.

    1. Validate content and normalize the service name (no external calls)
    2. Admit the caller through the rate limiter
    3. Load the caller's credentials for both platforms
    4. Compose a unique repository name
    5. Create the repository with the content
    6. Create the static site bound to it (repository deleted on failure)
    7. Record the outcome

    The building -> live/failed transition is observed later through
    ``refresh_status``.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        credential_store: Optional[CredentialStore] = None,
        deployment_store: Optional[DeploymentStore] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        repository_provisioner: Optional[RepositoryProvisioner] = None,
        site_provisioner: Optional[SiteProvisioner] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the orchestrator. Every collaborator defaults to the
        process-local implementation built from ``config``.
        """
        self.config = config or get_settings()
        self.credential_store = credential_store or CredentialStore(self.config)
        self.deployment_store = deployment_store or InMemoryDeploymentStore()
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            max_requests=self.config.rate_limit_max_requests,
            window_seconds=self.config.rate_limit_window_seconds,
        )
        self.repository_provisioner = repository_provisioner or RepositoryProvisioner(self.config)
        self.site_provisioner = site_provisioner or SiteProvisioner(self.config)
        self._clock = clock

    def deploy(self, owner_id: str, request: DeploymentRequest) -> DeploymentResult:
        """
        Run the full pipeline for one request.

        Once repository creation starts the pipeline always runs to a
        recorded outcome before returning or raising.

        Args:
            owner_id: Authenticated caller identity
            request: Content and service name to publish

        Returns:
            DeploymentResult with status BUILDING

        Raises:
            ValidationError: Bad content or service name (nothing recorded)
            RateLimitError: Caller is over the limit (nothing recorded)
            ConfigurationError: Credentials missing (nothing recorded)
            RepoCreationError: Repository step failed (failure recorded)
            SiteCreationError: Site step failed (failure recorded, repository
                rolled back)
        """
        try:
            content = validators.validate_content(request.content)
            service_name = validators.normalize_service_name(request.service_name)
        except validators.ValidationError as e:
            raise ValidationError(str(e)) from e

        if not self.rate_limiter.check_and_record(owner_id):
            retry_after = self.rate_limiter.retry_after(owner_id)
            raise RateLimitError(
                "Too many deployments. Please wait before deploying again.",
                retry_after=retry_after,
            )

        credentials = self._load_credentials(owner_id)

        repo_name = self._compose_repo_name(service_name)
        saga = Saga(name=f"deploy:{repo_name}")
        state = PipelineState.REQUESTED

        logger.info(f"🚀 Starting deployment of {service_name} for {owner_id}")
        self._log_state(repo_name, state)

        # ── Step 5: Repository ───────────────────────────────────────────
        try:
            repo = saga.execute(
                "create_repository",
                lambda: self.repository_provisioner.create(repo_name, content, credentials),
                compensation=lambda info: self.repository_provisioner.delete(info.name, credentials),
            )
        except Exception as exc:
            error = exc if isinstance(exc, RepoCreationError) else RepoCreationError(str(exc))
            state = PipelineState.REPO_CREATE_FAILED
            self._log_state(repo_name, state)
            self._record_failure(owner_id, request, service_name, content, error, repo_name=repo_name)
            if error is exc:
                raise
            raise error from exc

        state = PipelineState.REPO_CREATED
        self._log_state(repo_name, state)

        # ── Step 6: Static site ──────────────────────────────────────────
        try:
            site = saga.execute(
                "create_site",
                lambda: self.site_provisioner.create(service_name, repo.repo_url, credentials),
            )
        except Exception as exc:
            error = exc if isinstance(exc, SiteCreationError) else SiteCreationError(str(exc))
            orphan: Optional[RepositoryInfo] = None

            if saga.compensation_failed:
                state = PipelineState.SITE_CREATE_FAILED_ROLLBACK_FAILED
                orphan = repo
                logger.error(
                    f"ORPHANED REPOSITORY {repo.repo_url}: site creation failed and "
                    f"the repository could not be deleted"
                )
            else:
                state = PipelineState.SITE_CREATE_FAILED_ROLLED_BACK

            self._log_state(repo_name, state)
            self._record_failure(
                owner_id, request, service_name, content, error,
                repo_name=repo_name,
                repo_url=orphan.repo_url if orphan else None,
            )
            if error is exc:
                raise
            raise error from exc

        state = PipelineState.SITE_CREATED
        self._log_state(repo_name, state)

        # ── Step 7: Record ───────────────────────────────────────────────
        deployment = self.deployment_store.record(Deployment(
            owner_id=owner_id,
            page_id=request.page_id,
            service_name=service_name,
            status=DeploymentStatus.BUILDING,
            content_snapshot=content,
            repo_name=repo.name,
            repo_url=repo.repo_url,
            external_service_id=site.service_id,
            template_type=request.template_type,
            prompt=request.prompt,
        ))

        logger.info(f"🎉 Deployment {deployment.id} accepted, site is building")

        return DeploymentResult(
            deployment_id=deployment.id,
            service_name=service_name,
            status=DeploymentStatus.BUILDING,
            repo_url=repo.repo_url,
            external_service_id=site.service_id,
        )

    def list_deployments(self, owner_id: str, refresh: bool = False) -> List[DeploymentSummary]:
        """
        List an owner's deployments, newest first.

        No platform calls are made unless ``refresh`` is set, in which case
        every BUILDING deployment is refreshed first. A refresh that fails
        leaves that deployment as stored.
        """
        deployments = self.deployment_store.list_for_owner(owner_id)

        if refresh:
            refreshed = []
            for deployment in deployments:
                if deployment.status is DeploymentStatus.BUILDING:
                    try:
                        deployment = self.refresh_status(owner_id, deployment.id)
                    except OrchestratorError as e:
                        logger.warning(f"Could not refresh {deployment.id}: {e}")
                refreshed.append(deployment)
            deployments = refreshed

        return [DeploymentSummary.from_deployment(d) for d in deployments]

    def refresh_status(self, owner_id: str, deployment_id: str) -> Deployment:
        """
        Poll the hosting platform for a BUILDING deployment and apply the
        building -> live/failed transition. Terminal deployments are
        returned without any platform call.

        Raises:
            DeploymentNotFoundError: Unknown id or owned by someone else
            ConfigurationError: Caller's hosting credentials are missing
            SiteStatusError: The platform could not be read
        """
        deployment = self._get_owned(owner_id, deployment_id)

        if deployment.status.is_terminal or not deployment.external_service_id:
            return deployment

        credentials = self._load_credentials(owner_id, platforms=("render",))
        site_status = self.site_provisioner.get_status(deployment.external_service_id, credentials)

        if site_status.status is DeploymentStatus.BUILDING:
            if site_status.url and site_status.url != deployment.site_url:
                return self.deployment_store.update_status(
                    deployment.id, DeploymentStatus.BUILDING, site_url=site_status.url
                )
            return deployment

        error_message = None
        if site_status.status is DeploymentStatus.FAILED:
            error_message = validators.truncate_message(
                f"Hosting platform reported deploy status '{site_status.upstream_status}'",
                self.config.error_message_max_length,
            )

        logger.info(f"Deployment {deployment.id} is now {site_status.status.value}")

        return self.deployment_store.update_status(
            deployment.id,
            site_status.status,
            site_url=site_status.url,
            error_message=error_message,
        )

    def redeploy(self, owner_id: str, deployment_id: str) -> str:
        """
        Trigger a fresh deploy of a deployment's existing site.

        Returns:
            The hosting platform's new deploy id

        Raises:
            ValidationError: If the deployment has no site
            RateLimitError: Caller is over the limit
        """
        deployment = self._get_owned(owner_id, deployment_id)

        if not deployment.external_service_id:
            raise ValidationError("Only deployments with a hosted site can be redeployed")

        if not self.rate_limiter.check_and_record(owner_id):
            raise RateLimitError(
                "Too many deployments. Please wait before deploying again.",
                retry_after=self.rate_limiter.retry_after(owner_id),
            )

        credentials = self._load_credentials(owner_id, platforms=("render",))
        return self.site_provisioner.redeploy(deployment.external_service_id, credentials)

    def _get_owned(self, owner_id: str, deployment_id: str) -> Deployment:
        deployment = self.deployment_store.get(deployment_id)
        if deployment.owner_id != owner_id:
            raise DeploymentNotFoundError(f"Deployment {deployment_id} not found")
        return deployment

    def _load_credentials(
        self,
        owner_id: str,
        platforms: tuple = ("github", "render"),
    ) -> PlatformCredentials:
        try:
            credentials = self.credential_store.get(owner_id)
        except CredentialStoreError as e:
            raise ConfigurationError(str(e)) from e

        missing = [p for p in credentials.missing_platforms() if p in platforms]
        if missing:
            raise ConfigurationError(
                f"Deployment credentials missing for: {', '.join(missing)}"
            )

        return credentials

    def _compose_repo_name(self, service_name: str) -> str:
        millis = int(self._clock() * 1000)
        return f"{self.config.repo_name_prefix}-{service_name}-{millis}"

    def _record_failure(
        self,
        owner_id: str,
        request: DeploymentRequest,
        service_name: str,
        content: str,
        error: OrchestratorError,
        repo_name: Optional[str] = None,
        repo_url: Optional[str] = None,
    ) -> Deployment:
        return self.deployment_store.record(Deployment(
            owner_id=owner_id,
            page_id=request.page_id,
            service_name=service_name,
            status=DeploymentStatus.FAILED,
            content_snapshot=content,
            repo_name=repo_name,
            repo_url=repo_url,
            error_message=validators.truncate_message(
                error.message, self.config.error_message_max_length
            ),
            template_type=request.template_type,
            prompt=request.prompt,
        ))

    @staticmethod
    def _log_state(repo_name: str, state: PipelineState) -> None:
        logger.info(f"── {repo_name}: {state.value}")
