"""
Data models shared by the pipeline, the stores and the HTTP surface
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, SecretStr


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentStatus(str, Enum):
    """Lifecycle of a deployment; LIVE and FAILED are terminal."""

    BUILDING = "building"
    LIVE = "live"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not DeploymentStatus.BUILDING


class Deployment(BaseModel):
    """One deployment attempt, as persisted by a DeploymentStore."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    owner_id: str
    page_id: Optional[str] = None
    service_name: str
    status: DeploymentStatus
    content_snapshot: str
    repo_name: Optional[str] = None
    repo_url: Optional[str] = None
    external_service_id: Optional[str] = None
    site_url: Optional[str] = None
    error_message: Optional[str] = None
    template_type: Optional[str] = None
    prompt: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class DeploymentRequest(BaseModel):
    """Caller input for a new deployment."""

    content: str
    service_name: str
    page_id: Optional[str] = None
    template_type: Optional[str] = None
    prompt: Optional[str] = None


class DeploymentResult(BaseModel):
    """Returned to the caller when both platforms accepted the deployment."""

    deployment_id: str
    service_name: str
    status: DeploymentStatus = DeploymentStatus.BUILDING
    repo_url: str
    external_service_id: str


class DeploymentSummary(BaseModel):
    """Listing view of a deployment."""

    id: str
    service_name: str
    status: DeploymentStatus
    site_url: Optional[str] = None
    repo_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_deployment(cls, deployment: Deployment) -> "DeploymentSummary":
        return cls(
            id=deployment.id,
            service_name=deployment.service_name,
            status=deployment.status,
            site_url=deployment.site_url,
            repo_url=deployment.repo_url,
            error_message=deployment.error_message,
            created_at=deployment.created_at,
        )


class PlatformCredentials(BaseModel):
    """Decrypted per-user platform tokens. Secret values never render in reprs."""

    github_token: Optional[SecretStr] = None
    github_owner: Optional[str] = None
    render_api_key: Optional[SecretStr] = None

    @property
    def has_github(self) -> bool:
        return bool(
            self.github_token
            and self.github_token.get_secret_value()
            and self.github_owner
        )

    @property
    def has_render(self) -> bool:
        return bool(self.render_api_key and self.render_api_key.get_secret_value())

    def missing_platforms(self) -> List[str]:
        missing = []
        if not self.has_github:
            missing.append("github")
        if not self.has_render:
            missing.append("render")
        return missing


class RepositoryInfo(BaseModel):
    name: str
    repo_url: str
    public_content_url: Optional[str] = None


class SiteInfo(BaseModel):
    service_id: str
    status: DeploymentStatus = DeploymentStatus.BUILDING
    dashboard_url: Optional[str] = None


class SiteStatus(BaseModel):
    status: DeploymentStatus
    url: Optional[str] = None
    upstream_status: Optional[str] = None
