"""
Render REST API Client
Handles static-site services and deploys on Render
"""

from typing import Any, Dict, List, Optional
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
    NetworkError,
    NotFoundError,
    ServerError
)


logger = get_logger(__name__)


class RenderClient(BasePlatformClient):
    """
    Render API client for static-site services.
    """

    platform_name = "Render"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.render.com/v1",
        timeout: float = 30.0
    ):
        """
        Initialize Render API client.

        Args:
            api_key: Render API key
            base_url: API base URL
            timeout: Per-request timeout in seconds
        """
        super().__init__(base_url, timeout)
        self._api_key = api_key

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((NetworkError, ServerError)),
        reraise=True
    )
    def get_owner_id(self) -> str:
        """
        Fetch the id of the first workspace/owner the API key can access.

        Returns:
            Owner id required for service creation

        Raises:
            NotFoundError: If the key has no owners
        """
        response = self._make_request("GET", "/owners", params={"limit": 1})

        if not response:
            raise NotFoundError("No Render owner found for this API key")

        owner = response[0].get("owner", {})
        owner_id = owner.get("id")
        if not owner_id:
            raise NotFoundError("Render owner response did not include an id")

        return owner_id

    def create_static_site(
        self,
        name: str,
        owner_id: str,
        repo_url: str,
        branch: str = "main",
        publish_path: str = "./public"
    ) -> Dict[str, Any]:
        """
        Create a static-site service bound to a repository.

        Args:
            name: Service name
            owner_id: Render owner id
            repo_url: Repository URL (https://github.com/<owner>/<repo>)
            branch: Branch to build from
            publish_path: Directory to publish

        Returns:
            Service object
        """
        logger.info(f"Creating Render static site: {name}")

        payload = {
            "type": "static_site",
            "name": name,
            "ownerId": owner_id,
            "repo": repo_url,
            "autoDeploy": "yes",
            "branch": branch,
            "serviceDetails": {
                "publishPath": publish_path
            }
        }

        response = self._make_request("POST", "/services", json_data=payload)

        service = response.get("service", response)
        if not service.get("id"):
            raise APIError("Render response did not include a service id", response_data=response)

        logger.info(f"Static site created: {service['id']}")

        return service

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((NetworkError, ServerError)),
        reraise=True
    )
    def get_service(self, service_id: str) -> Dict[str, Any]:
        """Get a service by id."""
        return self._make_request("GET", f"/services/{service_id}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((NetworkError, ServerError)),
        reraise=True
    )
    def list_deploys(self, service_id: str, limit: int = 1) -> List[Dict[str, Any]]:
        """
        List the most recent deploys of a service, newest first.

        Returns:
            List of deploy objects (unwrapped from the cursor envelope)
        """
        response = self._make_request(
            "GET",
            f"/services/{service_id}/deploys",
            params={"limit": limit}
        )

        if not isinstance(response, list):
            return []

        return [item.get("deploy", item) for item in response]

    def get_latest_deploy(self, service_id: str) -> Optional[Dict[str, Any]]:
        deploys = self.list_deploys(service_id, limit=1)
        return deploys[0] if deploys else None

    def trigger_deploy(self, service_id: str, clear_cache: bool = False) -> Dict[str, Any]:
        """
        Start a new deploy of an existing service.

        Returns:
            Deploy object
        """
        logger.info(f"Triggering deploy for service: {service_id}")

        payload = {"clearCache": "clear" if clear_cache else "do_not_clear"}

        return self._make_request("POST", f"/services/{service_id}/deploys", json_data=payload)

    def delete_service(self, service_id: str) -> None:
        """
        Delete a service.

        Raises:
            NotFoundError: If the service does not exist
        """
        logger.info(f"Deleting Render service: {service_id}")

        self._make_request("DELETE", f"/services/{service_id}")
