"""
Site Provisioner
Creates static-hosting services bound to a repository and translates the
host's deploy vocabulary into building / live / failed
"""

import hashlib
import threading
from typing import Callable, Dict, Optional

from sitepipe.api.render_client import RenderClient
from sitepipe.api.provider_factory import get_site_client
from sitepipe.api.exceptions import APIError, NotFoundError
from sitepipe.models import DeploymentStatus, PlatformCredentials, SiteInfo, SiteStatus
from sitepipe.services.exceptions import (
    RedeployError,
    SiteCreationError,
    SiteDeletionError,
    SiteStatusError
)
from sitepipe.utils.config import get_settings, Settings
from sitepipe.utils.logger import get_logger

logger = get_logger(__name__)


LIVE_STATUSES = frozenset({"live"})

FAILED_STATUSES = frozenset({
    "build_failed",
    "update_failed",
    "pre_deploy_failed",
})

BUILDING_STATUSES = frozenset({
    "created",
    "queued",
    "build_in_progress",
    "update_in_progress",
    "pre_deploy_in_progress",
})


def map_deploy_status(upstream_status: Optional[str]) -> DeploymentStatus:
    """
    Map a Render deploy status onto the pipeline's three-state model.

    Total over all inputs: unknown or missing values are non-terminal and
    map to BUILDING rather than raising. ``canceled`` and ``deactivated``
    fall through to BUILDING; a newer deploy of the service may still go live.
    """
    normalized = (upstream_status or "").strip().lower()

    if normalized in LIVE_STATUSES:
        return DeploymentStatus.LIVE
    if normalized in FAILED_STATUSES:
        return DeploymentStatus.FAILED
    if normalized in BUILDING_STATUSES:
        return DeploymentStatus.BUILDING

    return DeploymentStatus.BUILDING


def normalize_site_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"https://{url}"


ClientFactory = Callable[[PlatformCredentials, Settings], RenderClient]


class SiteProvisioner:
    """
    Provisions Render static sites. The account owner id needed for
    creation is cached per API key.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        self.config = config or get_settings()
        self._client_factory = client_factory or get_site_client
        self._owner_ids: Dict[str, str] = {}
        self._owner_lock = threading.Lock()

    def _client(self, credentials: PlatformCredentials) -> RenderClient:
        return self._client_factory(credentials, self.config)

    @staticmethod
    def _cache_key(credentials: PlatformCredentials) -> str:
        # Keyed by digest so raw keys are never held as dict keys
        secret = credentials.render_api_key.get_secret_value()
        return hashlib.sha256(secret.encode("utf-8")).hexdigest()

    def _resolve_owner_id(self, client: RenderClient, credentials: PlatformCredentials) -> str:
        key = self._cache_key(credentials)
        with self._owner_lock:
            cached = self._owner_ids.get(key)
        if cached:
            return cached

        owner_id = client.get_owner_id()
        with self._owner_lock:
            self._owner_ids[key] = owner_id
        return owner_id

    def create(
        self,
        name: str,
        repo_url: str,
        credentials: PlatformCredentials
    ) -> SiteInfo:
        """
        Create a static site bound to ``repo_url`` with auto-deploy enabled.

        Returns:
            SiteInfo with the new service id and status BUILDING

        Raises:
            SiteCreationError: Carrying the upstream status and message
        """
        client = self._client(credentials)

        try:
            owner_id = self._resolve_owner_id(client, credentials)
            service = client.create_static_site(
                name=name,
                owner_id=owner_id,
                repo_url=repo_url,
                branch=self.config.deploy_branch,
                publish_path=self.config.publish_path
            )
        except APIError as e:
            raise SiteCreationError(
                f"Failed to create static site: {e}",
                upstream_status=e.status_code
            ) from e

        logger.info(f"✅ Static site {service['id']} created for {repo_url}")

        return SiteInfo(
            service_id=service["id"],
            status=DeploymentStatus.BUILDING,
            dashboard_url=service.get("dashboardUrl")
        )

    def get_status(self, service_id: str, credentials: PlatformCredentials) -> SiteStatus:
        """
        Read a site's latest deploy and translate its status.

        Raises:
            SiteStatusError: If the service itself cannot be read
        """
        client = self._client(credentials)

        try:
            service = client.get_service(service_id)
        except APIError as e:
            raise SiteStatusError(
                f"Failed to read service {service_id}: {e}",
                upstream_status=e.status_code
            ) from e

        upstream_status = None
        try:
            latest = client.get_latest_deploy(service_id)
            if latest:
                upstream_status = latest.get("status")
        except APIError as e:
            # Missing deploy history leaves the site non-terminal
            logger.warning(f"Could not read deploys for {service_id}: {e}")

        details = service.get("serviceDetails") or {}

        return SiteStatus(
            status=map_deploy_status(upstream_status),
            url=normalize_site_url(details.get("url")),
            upstream_status=upstream_status
        )

    def redeploy(self, service_id: str, credentials: PlatformCredentials) -> str:
        """
        Trigger a fresh deploy of an existing site.

        Returns:
            The new deploy's id
        """
        client = self._client(credentials)

        try:
            deploy = client.trigger_deploy(service_id)
        except APIError as e:
            raise RedeployError(
                f"Failed to trigger deploy for {service_id}: {e}",
                upstream_status=e.status_code
            ) from e

        return deploy.get("id", "")

    def delete(self, service_id: str, credentials: PlatformCredentials) -> None:
        """
        Delete a site. A site that no longer exists counts as deleted.

        Raises:
            SiteDeletionError: If the platform refuses the deletion
        """
        client = self._client(credentials)

        try:
            client.delete_service(service_id)
        except NotFoundError:
            logger.info(f"Service {service_id} already absent")
        except APIError as e:
            raise SiteDeletionError(
                f"Failed to delete service {service_id}: {e}",
                upstream_status=e.status_code
            ) from e
