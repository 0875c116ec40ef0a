"""
Event API client for server communication.

Provides the HTTP client used by an event form session to read the
session user, fetch related chains and persist the finished event.
Handles authentication headers and maps HTTP failures onto the
ApiError hierarchy.
"""

import logging
from typing import Any, Optional

import httpx

from eventform import __version__
from eventform.models import Chain, EventValues, SessionUser

logger = logging.getLogger("eventform.api_client")


# ============================================================================
# Constants
# ============================================================================

API_BASE_PATH = "/v2"
DEFAULT_TIMEOUT = 30.0  # seconds
USER_AGENT = f"EventForm/{__version__}"


# ============================================================================
# Exceptions
# ============================================================================


class ApiError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConnectionError(ApiError):
    """Raised when connection to server fails."""

    pass


class AuthenticationError(ApiError):
    """Raised when authentication fails (invalid API key)."""

    pass


class NotFoundError(ApiError):
    """Raised when the requested record does not exist."""

    pass


def response_detail(response: httpx.Response, default: str) -> str:
    """
    Extract a human-readable error message from a response body.

    The server answers errors either with a JSON object carrying
    ``detail`` or ``error``, or with a plain text body.
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip() if response.text else ""
        return text or default

    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    elif isinstance(body, str) and body:
        return body
    return default


# ============================================================================
# EventApiClient Class
# ============================================================================


class EventApiClient:
    """
    HTTP client for the event server API.

    Attributes:
        server_url: Base URL of the server
        api_key: Optional API key for authenticated requests
    """

    def __init__(
        self,
        server_url: str,
        api_key: Optional[str] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the API client.

        Args:
            server_url: Base URL of the server
            api_key: Optional API key for authenticated requests
            timeout: Request timeout in seconds, None for no client timeout

        Raises:
            ValueError: If server_url is empty
        """
        if not server_url:
            raise ValueError("server_url is required")

        self._server_url = server_url.rstrip("/")
        self._api_key = api_key

        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            base_url=self._server_url,
            headers=headers,
            timeout=timeout,
        )

    @property
    def server_url(self) -> str:
        """Get the server URL."""
        return self._server_url

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, f"{API_BASE_PATH}{path}", **kwargs)
        except httpx.ConnectError as e:
            raise ConnectionError(f"Failed to connect to server: {e}")
        except httpx.TimeoutException as e:
            raise ConnectionError(f"Connection timed out: {e}")
        except httpx.HTTPError as e:
            raise ConnectionError(f"Request failed: {e}")

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if response.status_code < 400:
            return
        if response.status_code == 401:
            raise AuthenticationError("Invalid API key", status_code=401)
        if response.status_code == 404:
            raise NotFoundError(
                response_detail(response, f"{action}: not found"),
                status_code=404,
            )
        raise ApiError(
            response_detail(
                response, f"{action} failed with status {response.status_code}"
            ),
            status_code=response.status_code,
        )

    # -------------------------------------------------------------------------
    # Session user
    # -------------------------------------------------------------------------

    async def get_user(self, user_uid: str) -> SessionUser:
        """
        Get the user a form session acts on behalf of.

        Args:
            user_uid: UID of the user

        Returns:
            SessionUser with chain memberships

        Raises:
            AuthenticationError: If API key is invalid
            NotFoundError: If the user does not exist
            ConnectionError: If connection to server fails
        """
        response = await self._request("GET", "/user", params={"user_uid": user_uid})
        self._raise_for_status(response, "Get user")
        return SessionUser.from_dict(response.json())

    # -------------------------------------------------------------------------
    # Chains
    # -------------------------------------------------------------------------

    async def get_chain(self, chain_uid: str) -> Chain:
        """
        Fetch a single chain.

        Args:
            chain_uid: UID of the chain

        Returns:
            Chain record

        Raises:
            NotFoundError: If the chain does not exist
            ApiError: For any other non-success status
            ConnectionError: If connection to server fails
        """
        response = await self._request("GET", "/chain", params={"chain_uid": chain_uid})
        self._raise_for_status(response, f"Get chain {chain_uid}")
        return Chain.from_dict(response.json())

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    async def create_event(self, values: EventValues) -> dict[str, Any]:
        """
        Create a new event.

        Args:
            values: Complete form values

        Returns:
            Server response (contains the new event uid)
        """
        response = await self._request("POST", "/event", json=values.to_dict())
        self._raise_for_status(response, "Create event")
        logger.info(f"Created event '{values.name}'")
        return response.json() if response.content else {}

    async def update_event(self, event_uid: str, values: EventValues) -> dict[str, Any]:
        """
        Update an existing event with the full set of form values.

        Args:
            event_uid: UID of the event to update
            values: Complete form values
        """
        payload = values.to_dict()
        payload["uid"] = event_uid
        response = await self._request("PATCH", "/event", json=payload)
        self._raise_for_status(response, "Update event")
        logger.info(f"Updated event {event_uid}")
        return response.json() if response.content else {}

    async def get_event(self, event_uid: str) -> dict[str, Any]:
        """Fetch an event as raw JSON (used as initial values for editing)."""
        response = await self._request("GET", "/event", params={"event_uid": event_uid})
        self._raise_for_status(response, "Get event")
        return response.json()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "EventApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
