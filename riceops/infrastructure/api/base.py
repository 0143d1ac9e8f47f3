"""
Back-office API client.

Thin async wrapper over httpx that adds the bearer token, unwraps the
``{success, data, message}`` response envelope and turns failures into
``GatewayError`` subclasses.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx

from riceops.app.config import DEFAULT_API_BASE_URL
from riceops.utils.logging import get_logger

logger = get_logger("infrastructure.api")

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
LOGIN_ENDPOINT = "/auth/loginUser"


# ============================================================================
# Exceptions
# ============================================================================


class GatewayError(Exception):
    """Base exception for back-office API failures.

    ``status_code`` is 0 for transport failures (no response received).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    @property
    def is_network_error(self) -> bool:
        return self.status_code == 0


class AuthenticationError(GatewayError):
    """Session missing, expired or rejected (HTTP 401)."""
    pass


class PermissionDeniedError(GatewayError):
    """Authenticated but not allowed (HTTP 403)."""
    pass


class NotFoundError(GatewayError):
    """Requested record does not exist (HTTP 404)."""
    pass


class PincodeLookupError(GatewayError):
    """Postal-code lookup failed or the code was malformed."""
    pass


def describe_error(error: BaseException) -> str:
    """User-facing message for any failure raised by the layer."""
    if isinstance(error, GatewayError):
        return error.message or "An error occurred"
    message = str(error)
    return message or "An unexpected error occurred"


# ============================================================================
# Client
# ============================================================================


class ApiClient:
    """Shared async client for the back-office API.

    Usage:
        client = ApiClient(base_url="http://localhost:3000/api", token=token)
        transporters = await client.get("/transporters")
        await client.aclose()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._on_unauthorized: Callable[[str], None] | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Default headers for API requests."""
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def set_token(self, token: str | None) -> None:
        """Replace the session token used for subsequent requests."""
        self.token = token

    def set_unauthorized_callback(self, callback: Callable[[str], None] | None) -> None:
        """Register a callback fired with the endpoint when a request gets a 401."""
        self._on_unauthorized = callback

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def _extract_error_message(self, response: httpx.Response) -> tuple[str, dict | None]:
        """Pull the server's message out of an error response."""
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError):
            text = (response.text or "").strip()
            return (text[:500] or f"HTTP {response.status_code}"), None

        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or "An error occurred"
            return str(message), body
        return f"HTTP {response.status_code}", None

    def _handle_error(self, endpoint: str, response: httpx.Response) -> None:
        """Raise the GatewayError matching an error response."""
        message, body = self._extract_error_message(response)
        status = response.status_code
        logger.error(f"API error: {endpoint} -> {status}: {message}")

        if status == 401:
            if endpoint != LOGIN_ENDPOINT and self._on_unauthorized is not None:
                self._on_unauthorized(endpoint)
            raise AuthenticationError(message, status_code=status, response=body)
        elif status == 403:
            raise PermissionDeniedError(message, status_code=status, response=body)
        elif status == 404:
            raise NotFoundError(message, status_code=status, response=body)
        else:
            raise GatewayError(message, status_code=status, response=body)

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: Any = None,
    ) -> Any:
        """Send a request and return the envelope's ``data`` member."""
        client = await self._get_client()
        try:
            response = await client.request(
                method,
                endpoint,
                params=params,
                json=data,
                headers=self.headers,
            )
        except httpx.HTTPError as exc:
            logger.error(f"Network failure on {method} {endpoint}: {exc}")
            raise GatewayError(NETWORK_ERROR_MESSAGE, status_code=0) from exc

        if response.status_code >= 400:
            self._handle_error(endpoint, response)

        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise GatewayError(
                f"Invalid response from server (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from exc

        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("POST", endpoint, data=data)

    async def put(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("PUT", endpoint, data=data)

    async def patch(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("PATCH", endpoint, data=data)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)

    # ========== Authentication ==========

    async def login(self, username: str, password: str) -> dict[str, Any]:
        """Sign in and keep the returned token for later requests.

        Returns:
            The login payload: ``{user, token, expires_in, permissions}``
        """
        result = await self.post(LOGIN_ENDPOINT, {"username": username, "password": password})
        self.set_token(result.get("token"))
        logger.info(f"Signed in as {result.get('user', {}).get('username', username)}")
        return result

    async def logout(self) -> None:
        try:
            await self.post("/auth/logout")
        finally:
            self.set_token(None)
