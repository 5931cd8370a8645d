"""
Deployment and credential endpoints.

Handlers are plain ``def`` functions so they run in the server's thread
pool: a client that disconnects does not abort a pipeline already talking
to the platforms.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel

from sitepipe.models import Deployment, DeploymentRequest, DeploymentResult, DeploymentSummary
from sitepipe.services.deployment_orchestrator import DeploymentOrchestrator

router = APIRouter(prefix="/v1", tags=["deployments"])


class CredentialsUpdate(BaseModel):
    github_token: Optional[str] = None
    github_owner: Optional[str] = None
    render_api_key: Optional[str] = None


def get_orchestrator(request: Request) -> DeploymentOrchestrator:
    return request.app.state.orchestrator


def get_owner_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    # Authentication happens upstream; the gateway forwards the identity
    if not x_user_id:
        raise HTTPException(
            status_code=401,
            detail={"error": "unauthorized", "message": "Missing X-User-Id header"},
        )
    return x_user_id


@router.post("/deployments", status_code=201, response_model=DeploymentResult)
def create_deployment(
    body: DeploymentRequest,
    owner_id: str = Depends(get_owner_id),
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> DeploymentResult:
    return orchestrator.deploy(owner_id, body)


@router.get("/deployments", response_model=Dict[str, List[DeploymentSummary]])
def list_deployments(
    refresh: bool = False,
    owner_id: str = Depends(get_owner_id),
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    return {"deployments": orchestrator.list_deployments(owner_id, refresh=refresh)}


@router.post("/deployments/{deployment_id}/refresh", response_model=DeploymentSummary)
def refresh_deployment(
    deployment_id: str,
    owner_id: str = Depends(get_owner_id),
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> DeploymentSummary:
    deployment: Deployment = orchestrator.refresh_status(owner_id, deployment_id)
    return DeploymentSummary.from_deployment(deployment)


@router.post("/deployments/{deployment_id}/redeploy", status_code=202)
def redeploy(
    deployment_id: str,
    owner_id: str = Depends(get_owner_id),
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> Dict[str, str]:
    deploy_id = orchestrator.redeploy(owner_id, deployment_id)
    return {"deployment_id": deployment_id, "deploy_id": deploy_id}


@router.put("/credentials", status_code=204)
def save_credentials(
    body: CredentialsUpdate,
    owner_id: str = Depends(get_owner_id),
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> None:
    orchestrator.credential_store.save(
        owner_id,
        github_token=body.github_token,
        github_owner=body.github_owner,
        render_api_key=body.render_api_key,
    )
