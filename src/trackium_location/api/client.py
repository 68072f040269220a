"""
Base HTTP client for geolocation providers and the remote node.

Handles HTTP requests, session management, and error handling.
"""

import logging
from typing import Dict, Any, Optional

import requests  # type: ignore
from requests.adapters import HTTPAdapter  # type: ignore
from urllib3.util.retry import Retry  # type: ignore

from ..core import constants


class APIClient:
    """Base client for JSON-over-HTTP endpoints."""

    def __init__(
        self,
        base_url: str = "",
        timeout: float = constants.DEFAULT_API_TIMEOUT,
        max_retries: int = constants.DEFAULT_API_MAX_RETRIES,
        verify_ssl: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize API client.

        Args:
            base_url: Base URL for relative endpoints (absolute URLs bypass it)
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts per request
            verify_ssl: Whether to verify SSL certificates
            logger: Logger instance
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.verify_ssl = verify_ssl

        # Disable SSL warnings when verify_ssl is False
        if not verify_ssl:
            import urllib3
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        # Setup session with retry strategy
        self.session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            "Accept": "application/json"
        })

    def _build_url(self, endpoint: str) -> str:
        """Resolve an endpoint against the base URL."""
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _make_request(
        self,
        method: str,
        endpoint: str,
        check_status: bool = True,
        **kwargs
    ) -> requests.Response:
        """
        Make HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Endpoint relative to base URL, or an absolute URL
            check_status: Raise HTTPError on 4xx/5xx responses
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            requests.exceptions.RequestException: On request failure
        """
        url = self._build_url(endpoint)
        kwargs.setdefault('verify', self.verify_ssl)

        self.logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                timeout=self.timeout,
                **kwargs
            )
            if check_status:
                response.raise_for_status()
            return response

        except requests.exceptions.RequestException as e:
            self.logger.debug(f"Request failed: {method} {url} - {e}")
            raise

    def get(self, endpoint: str, params: Optional[Dict] = None) -> Any:
        """
        Make GET request.

        Args:
            endpoint: API endpoint
            params: Query parameters

        Returns:
            Decoded JSON response

        Raises:
            requests.exceptions.RequestException: On request failure
            ValueError: If the body is not valid JSON
        """
        response = self._make_request("GET", endpoint, params=params)
        return response.json()

    def post(self, endpoint: str, data: Dict[str, Any]) -> Any:
        """
        Make POST request with a JSON body.

        Args:
            endpoint: API endpoint
            data: Request body data

        Returns:
            Decoded JSON response
        """
        response = self._make_request("POST", endpoint, json=data)
        return response.json()

    def post_response(self, endpoint: str, data: Dict[str, Any]) -> requests.Response:
        """
        Make POST request with a JSON body without checking the status.

        Args:
            endpoint: API endpoint
            data: Request body data

        Returns:
            Response object, whatever its status code
        """
        return self._make_request("POST", endpoint, check_status=False, json=data)

    def post_text(self, endpoint: str, text: str) -> Any:
        """
        Make POST request with a plain-text body.

        Args:
            endpoint: API endpoint
            text: Request body

        Returns:
            Decoded JSON response
        """
        response = self._make_request(
            "POST",
            endpoint,
            data=text.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"}
        )
        return response.json()

    def close(self) -> None:
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
