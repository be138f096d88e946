"""Minimal Kubernetes API client used during bootstrap"""

from typing import Optional

import httpx


class APIError(Exception):
    """Base exception for API errors"""

    pass


class UnauthorizedError(APIError):
    """Unauthorized access"""

    pass


class Client:
    """Kubernetes API client.

    Certificate verification is off by default: while a node bootstraps, the
    cluster CA has not been distributed yet.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 2.0,
        verify: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verify = verify
        self.transport = transport

    def healthz(self, path: str = "/healthz") -> int:
        """Return the status code of the health endpoint"""
        return self._request("GET", path).status_code

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute HTTP request"""
        url = self.base_url + path

        try:
            with httpx.Client(timeout=self.timeout, verify=self.verify, transport=self.transport) as client:
                response = client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise APIError(f"{method} {url} failed: {e}") from e

        if response.status_code in (401, 403):
            raise UnauthorizedError(f"Unauthorized: {url}")

        return response
