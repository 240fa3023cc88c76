"""
OpenSky API client for live state vectors and historical flights.

Documentation: https://openskynetwork.github.io/opensky-api/

Every request obtains a fresh OAuth2 token with the client-credentials
grant; tokens are not cached between calls.
"""

from datetime import datetime, timezone
from typing import Any

import httpx

from src.utils import logger
from src.utils.exceptions import (
    OpenSkyAPIError,
    AuthenticationError,
    RateLimitError,
    APIConnectionError,
    APITimeoutError,
)
from src.ingestion.config import settings
from src.ingestion.models import Flight

# Widest interval the /flights/all endpoint accepts
MAX_FLIGHTS_INTERVAL_SECONDS = 2 * 60 * 60


class OpenSkyClient:
    """
    Client for interacting with the OpenSky Network API.

    Covers the endpoints the snapshot refresh needs:
    - /states/all for the live state vectors of every tracked aircraft
    - /flights/all and /flights/aircraft for estimated routes

    Requires OAuth2 client credentials.
    """

    def __init__(
        self,
        base_url: str | None = None,
        auth_url: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        timeout: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the OpenSky client.

        Args:
            base_url: API base URL (defaults to settings)
            auth_url: OAuth2 token endpoint (defaults to settings)
            client_id: OAuth2 client ID
            client_secret: OAuth2 client secret
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = (base_url or settings.opensky.base_url).rstrip("/")
        self.auth_url = auth_url or settings.opensky.auth_url
        self.client_id = client_id or settings.opensky.client_id
        self.client_secret = client_secret or settings.opensky.client_secret
        self.timeout = timeout or settings.opensky.timeout_seconds
        self._transport = transport

        if not (self.client_id and self.client_secret):
            logger.warning("OpenSky client credentials not configured, requests will fail")
        else:
            logger.info("OpenSky client initialized with OAuth2 client credentials")

    def _http_client(self, timeout: float | None = None) -> httpx.Client:
        return httpx.Client(timeout=timeout or self.timeout, transport=self._transport)

    def _fetch_token(self) -> str:
        """
        Fetch an OAuth2 access token using client credentials.

        Raises:
            AuthenticationError: Credentials missing or rejected
        """
        if not (self.client_id and self.client_secret):
            raise AuthenticationError("OPENSKY_CLIENT_ID and OPENSKY_CLIENT_SECRET must be set")

        try:
            with self._http_client() as client:
                response = client.post(
                    self.auth_url,
                    data={
                        "grant_type": "client_credentials",
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.TimeoutException as e:
            raise APITimeoutError(f"OpenSky token request timed out: {e}", timeout=self.timeout)
        except httpx.HTTPError as e:
            raise APIConnectionError(f"Failed to reach OpenSky auth server: {e}")

        if response.status_code != 200:
            raise AuthenticationError(
                f"OpenSky auth failed: {response.status_code}",
                status_code=response.status_code,
            )

        token = response.json().get("access_token")
        if not token:
            raise AuthenticationError("OpenSky auth response missing access_token")

        return token

    def _make_request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        not_found_as_empty: bool = False,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """
        Make an authenticated GET request to the OpenSky API.

        Args:
            endpoint: API endpoint path
            params: Query parameters
            not_found_as_empty: Treat 404 as an empty list (flights endpoints)

        Returns:
            Parsed JSON response

        Raises:
            AuthenticationError: When no token can be obtained
            OpenSkyAPIError: On non-2xx responses
            RateLimitError: When rate limit exceeded
            APIConnectionError: On connection failures
            APITimeoutError: On request timeout
        """
        url = f"{self.base_url}{endpoint}"
        token = self._fetch_token()

        try:
            logger.debug(f"Making request to {url} with params: {params}")

            with self._http_client() as client:
                response = client.get(
                    url,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.TimeoutException as e:
            raise APITimeoutError(f"Request to OpenSky API timed out: {e}", timeout=self.timeout)
        except httpx.ConnectError as e:
            raise APIConnectionError(f"Failed to connect to OpenSky API: {e}")
        except httpx.HTTPError as e:
            raise OpenSkyAPIError(f"HTTP error occurred: {e}")

        if response.status_code == 404 and not_found_as_empty:
            logger.debug(f"No data for {endpoint} (404)")
            return []

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                message="OpenSky API rate limit exceeded",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"OpenSky rejected the access token: {response.status_code}",
                status_code=response.status_code,
            )

        if not response.is_success:
            raise OpenSkyAPIError(
                message=f"API request failed: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        data = response.json()
        logger.debug(f"Received response with {len(data) if isinstance(data, list) else 'object'} items")
        return data

    def get_states(self) -> dict[str, Any]:
        """
        Get current state vectors of all tracked aircraft.

        Returns:
            Response containing 'time' and 'states' (list of raw tuples or null)
        """
        logger.info("Fetching current state vectors from OpenSky API")
        return self._make_request("/states/all")

    def get_flights_by_time(self, begin: int, end: int) -> list[Flight]:
        """
        Get flights within a time interval.

        Args:
            begin: Start of time interval (Unix timestamp)
            end: End of time interval (Unix timestamp)

        Returns:
            Flights seen in the interval, empty when OpenSky has none (404)

        Note:
            Maximum time interval is 2 hours (7200 seconds)
        """
        if end - begin > MAX_FLIGHTS_INTERVAL_SECONDS:
            logger.warning("Time interval exceeds 2 hours, API may reject the request")

        logger.debug(
            f"Fetching flights from {datetime.fromtimestamp(begin, tz=timezone.utc)} "
            f"to {datetime.fromtimestamp(end, tz=timezone.utc)}"
        )
        data = self._make_request(
            "/flights/all",
            {"begin": begin, "end": end},
            not_found_as_empty=True,
        )
        return [Flight.model_validate(item) for item in data or []]

    def get_flights_by_aircraft(self, icao24: str, begin: int, end: int) -> list[Flight]:
        """
        Get flights for a specific aircraft.

        Args:
            icao24: ICAO24 transponder address
            begin: Start of time interval (Unix timestamp)
            end: End of time interval (Unix timestamp)

        Returns:
            Flights of the aircraft, empty when OpenSky has none (404)
        """
        params = {
            "icao24": icao24.lower(),
            "begin": begin,
            "end": end,
        }

        logger.info(f"Fetching flights for aircraft {icao24}")
        data = self._make_request("/flights/aircraft", params, not_found_as_empty=True)
        return [Flight.model_validate(item) for item in data or []]


def create_client() -> OpenSkyClient:
    """Create a new OpenSky client with default settings."""
    return OpenSkyClient()


__all__ = ["OpenSkyClient", "create_client", "MAX_FLIGHTS_INTERVAL_SECONDS"]
