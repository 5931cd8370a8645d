"""
Shared fixtures. No test talks to GitHub or Render; platform clients and
provisioners are mocked.
"""

import pytest
from cryptography.fernet import Fernet
from unittest.mock import MagicMock

from sitepipe.models import PlatformCredentials, RepositoryInfo, SiteInfo
from sitepipe.services.credential_store import CredentialStore
from sitepipe.services.deployment_orchestrator import DeploymentOrchestrator
from sitepipe.services.deployment_store import InMemoryDeploymentStore
from sitepipe.services.rate_limiter import SlidingWindowRateLimiter
from sitepipe.services.repository_provisioner import RepositoryProvisioner
from sitepipe.services.site_provisioner import SiteProvisioner
from sitepipe.utils.config import Settings


OWNER = "user-123"
REPO_URL = "https://github.com/acme-sites/lp-my-landing-1700000000000"
SERVICE_ID = "srv-abc123"
FIXED_TIME = 1700000000.0


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        credential_encryption_key=Fernet.generate_key().decode("ascii"),
    )


@pytest.fixture
def credentials():
    return PlatformCredentials(
        github_token="ghp_test_token",
        github_owner="acme-sites",
        render_api_key="rnd_test_key",
    )


@pytest.fixture
def credential_store(settings):
    store = CredentialStore(settings)
    store.save(
        OWNER,
        github_token="ghp_test_token",
        github_owner="acme-sites",
        render_api_key="rnd_test_key",
    )
    return store


@pytest.fixture
def repo_provisioner():
    provisioner = MagicMock(spec=RepositoryProvisioner)
    provisioner.create.side_effect = lambda name, content, creds: RepositoryInfo(
        name=name,
        repo_url=f"https://github.com/acme-sites/{name}",
    )
    return provisioner


@pytest.fixture
def site_provisioner():
    provisioner = MagicMock(spec=SiteProvisioner)
    provisioner.create.return_value = SiteInfo(service_id=SERVICE_ID)
    return provisioner


@pytest.fixture
def deployment_store():
    return InMemoryDeploymentStore()


@pytest.fixture
def orchestrator(settings, credential_store, deployment_store, repo_provisioner, site_provisioner):
    return DeploymentOrchestrator(
        config=settings,
        credential_store=credential_store,
        deployment_store=deployment_store,
        rate_limiter=SlidingWindowRateLimiter(max_requests=5, window_seconds=600),
        repository_provisioner=repo_provisioner,
        site_provisioner=site_provisioner,
        clock=lambda: FIXED_TIME,
    )
