"""
Tests for the HTTP surface.
The app is served through FastAPI's TestClient against a pipeline whose
provisioners are mocked.
"""

import pytest
from fastapi.testclient import TestClient

from sitepipe.models import SiteStatus, DeploymentStatus
from sitepipe.services.exceptions import SiteCreationError
from sitepipe.web import create_app

from tests.conftest import OWNER, SERVICE_ID


HTML = "<html><body><h1>Launch</h1></body></html>"


@pytest.fixture
def client(orchestrator):
    return TestClient(create_app(orchestrator))


def _headers(user=OWNER):
    return {"X-User-Id": user}


def _deploy(client, user=OWNER, **overrides):
    body = {"content": HTML, "service_name": "My Landing"}
    body.update(overrides)
    return client.post("/v1/deployments", json=body, headers=_headers(user))


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestCreateDeployment:

    def test_accepted_deployment(self, client):
        response = _deploy(client)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "building"
        assert data["service_name"] == "my-landing"
        assert data["external_service_id"] == SERVICE_ID
        assert data["deployment_id"]

    def test_missing_identity_is_unauthorized(self, client):
        response = client.post("/v1/deployments", json={"content": HTML, "service_name": "site"})

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_blank_content_is_validation_failure(self, client):
        response = _deploy(client, content="   ")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_failed"

    def test_malformed_body_is_validation_failure(self, client):
        response = client.post("/v1/deployments", json={"content": HTML}, headers=_headers())

        assert response.status_code == 400
        assert response.json()["error"] == "validation_failed"
        assert "service_name" in response.json()["message"]

    def test_missing_credentials(self, client):
        response = _deploy(client, user="new-user")

        assert response.status_code == 400
        assert response.json()["error"] == "deployment_config_missing"

    def test_rate_limited_with_retry_after(self, client):
        for _ in range(5):
            assert _deploy(client).status_code == 201

        response = _deploy(client)

        assert response.status_code == 429
        assert response.json()["error"] == "rate_limited"
        assert int(response.headers["Retry-After"]) > 0

    def test_pipeline_failure_is_500_with_error_code(self, client, site_provisioner):
        site_provisioner.create.side_effect = SiteCreationError("Render said no", upstream_status=503)

        response = _deploy(client)

        assert response.status_code == 500
        assert response.json() == {"error": "site_creation_failed", "message": "Render said no"}


class TestListAndRefresh:

    def test_list_only_shows_callers_deployments(self, client):
        _deploy(client)

        mine = client.get("/v1/deployments", headers=_headers())
        theirs = client.get("/v1/deployments", headers=_headers("someone-else"))

        assert mine.status_code == 200
        assert len(mine.json()["deployments"]) == 1
        assert mine.json()["deployments"][0]["status"] == "building"
        assert theirs.json() == {"deployments": []}

    def test_refresh_to_live(self, client, site_provisioner):
        deployment_id = _deploy(client).json()["deployment_id"]
        site_provisioner.get_status.return_value = SiteStatus(
            status=DeploymentStatus.LIVE,
            url="https://my-landing.onrender.com",
            upstream_status="live",
        )

        response = client.post(f"/v1/deployments/{deployment_id}/refresh", headers=_headers())

        assert response.status_code == 200
        assert response.json()["status"] == "live"
        assert response.json()["site_url"] == "https://my-landing.onrender.com"

    def test_refresh_unknown_deployment(self, client):
        response = client.post("/v1/deployments/nope/refresh", headers=_headers())

        assert response.status_code == 404
        assert response.json()["error"] == "deployment_not_found"

    def test_refresh_someone_elses_deployment(self, client):
        deployment_id = _deploy(client).json()["deployment_id"]

        response = client.post(
            f"/v1/deployments/{deployment_id}/refresh", headers=_headers("someone-else")
        )

        assert response.status_code == 404


class TestRedeployAndCredentials:

    def test_redeploy(self, client, site_provisioner):
        deployment_id = _deploy(client).json()["deployment_id"]
        site_provisioner.redeploy.return_value = "dep-2"

        response = client.post(f"/v1/deployments/{deployment_id}/redeploy", headers=_headers())

        assert response.status_code == 202
        assert response.json() == {"deployment_id": deployment_id, "deploy_id": "dep-2"}

    def test_saved_credentials_enable_deploys(self, client):
        response = client.put(
            "/v1/credentials",
            json={"github_token": "ghp_new", "github_owner": "new-org", "render_api_key": "rnd_new"},
            headers=_headers("new-user"),
        )

        assert response.status_code == 204
        assert _deploy(client, user="new-user").status_code == 201
