"""
Base Platform Client
Shared HTTP plumbing for the source-control and static-hosting clients
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from sitepipe.utils.logger import get_logger
from sitepipe.api.exceptions import (
    APIError,
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NetworkError,
    NotFoundError,
    QuotaExceededError,
    RateLimitError,
    ServerError
)


logger = get_logger(__name__)


class BasePlatformClient(ABC):
    """
    Abstract base class for platform API clients.
    Subclasses supply authentication headers and may refine the
    status-code to exception mapping for their platform.
    """

    platform_name = "platform"

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @abstractmethod
    def _auth_headers(self) -> Dict[str, str]:
        """
        Build the authorization headers for this platform.

        Returns:
            Header dictionary merged into every request
        """
        pass

    @property
    def headers(self) -> Dict[str, str]:
        return {
            **self._auth_headers(),
            "Content-Type": "application/json",
            "Accept": "application/json"
        }

    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None
    ) -> Any:
        """
        Make an HTTP request to the platform API with error handling.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint (e.g., '/services')
            params: Query parameters
            json_data: JSON body for POST/PUT requests

        Returns:
            Decoded JSON body ({} for empty responses)

        Raises:
            APIError subclasses based on the response status
        """
        url = f"{self.base_url}{endpoint}"

        logger.debug(f"{method} {url}")
        if params:
            logger.debug(f"Params: {params}")

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=self.headers,
                params=params,
                json=json_data,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            raise NetworkError(
                f"{self.platform_name} request timed out after {self.timeout} seconds"
            )
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Connection error: {str(e)}")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error: {str(e)}")

        if response.status_code in (200, 201, 202):
            return response.json() if response.content else {}

        if response.status_code == 204:
            return {}

        error_data = self._parse_error_response(response)
        raise self._error_for_status(response.status_code, error_data)

    def _error_for_status(self, status_code: int, error_data: Dict[str, Any]) -> APIError:
        """
        Translate an unsuccessful response into an APIError subclass.

        Args:
            status_code: HTTP status code
            error_data: Parsed error body

        Returns:
            The exception to raise
        """
        message = error_data.get("message") or "Unknown error"

        if status_code == 400:
            return BadRequestError(message, status_code=400, response_data=error_data)

        elif status_code == 401:
            return AuthenticationError(
                f"Authentication failed. Check your {self.platform_name} credentials.",
                status_code=401,
                response_data=error_data
            )

        elif status_code == 402:
            return QuotaExceededError(message, status_code=402, response_data=error_data)

        elif status_code == 403:
            return AuthenticationError(message, status_code=403, response_data=error_data)

        elif status_code == 404:
            return NotFoundError(message, status_code=404, response_data=error_data)

        elif status_code == 409:
            return ConflictError(message, status_code=409, response_data=error_data)

        elif status_code == 422:
            return BadRequestError(message, status_code=422, response_data=error_data)

        elif status_code == 429:
            return RateLimitError(
                f"{self.platform_name} API rate limit exceeded",
                status_code=429,
                response_data=error_data
            )

        elif 500 <= status_code < 600:
            return ServerError(
                f"{self.platform_name} server error: {message}",
                status_code=status_code,
                response_data=error_data
            )

        return APIError(
            f"Unexpected error: {message}",
            status_code=status_code,
            response_data=error_data
        )

    def _parse_error_response(self, response: requests.Response) -> Dict[str, Any]:
        """
        Parse error response from the platform API.

        Args:
            response: Response object

        Returns:
            Error data dictionary (always carries a "message" key)
        """
        try:
            error_data = response.json()
        except ValueError:
            return {
                "message": response.text or "Unknown error",
                "code": response.status_code
            }

        if not isinstance(error_data, dict):
            return {"message": str(error_data), "code": response.status_code}

        error_data.setdefault("message", response.text or "Unknown error")
        return error_data

    def get_platform_name(self) -> str:
        return self.platform_name
