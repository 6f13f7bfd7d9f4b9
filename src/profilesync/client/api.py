"""HTTP client for the remote profiles source.

This module provides:
- ProfileFetcher: Fetches a batch of profiles with bounded retry
- FetchError and its subclasses: Classified fetch failures
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from profilesync.client.schemas import RemoteProfilesResponse
from profilesync.client.sync.retry import retry_with_backoff
from profilesync.core.config import FetcherConfig

if TYPE_CHECKING:
    from profilesync.client.sync.types import CancelToken
    from profilesync.core.types import Profile

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Base exception for fetch errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class BadStatusError(FetchError):
    """Server answered with a status outside 200-299."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server responded with {status_code}.")
        self.status_code = status_code


class EmptyResponseError(FetchError):
    """Server answered without a usable body."""

    def __init__(self) -> None:
        super().__init__("No data received from server.")


class DecodingError(FetchError):
    """Body could not be parsed into the expected shape."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Failed to decode response: {cause}", cause)


class TransportError(FetchError):
    """Connection-level failure (DNS, refused, timeout, ...)."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Network error: {cause}", cause)


class ProfileFetcher:
    """HTTP client for the remote profiles endpoint.

    Stateless across calls apart from the pooled HTTP connection.
    """

    def __init__(
        self,
        config: FetcherConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Fetcher configuration (endpoint, timeout, retry policy).
            transport: Optional httpx transport (used by tests).
        """
        self._config = config or FetcherConfig()
        self._client = httpx.Client(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            transport=transport,
            headers={"Cache-Control": "no-cache"},
        )

    @property
    def config(self) -> FetcherConfig:
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> ProfileFetcher:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    # === Health check ===

    def health_check(self) -> bool:
        """Check if the remote host is reachable.

        Returns:
            True if the host answered at all.
        """
        try:
            self._client.head(self._config.health_url)
            return True
        except httpx.RequestError as e:
            logger.debug(f"Health check failed: {e}")
            return False

    # === Profiles ===

    def fetch(self, count: int, token: CancelToken | None = None) -> list[Profile]:
        """Fetch a batch of profiles, retrying on failure.

        Args:
            count: Number of profiles to request.
            token: Optional cancellation token, checked before every attempt.

        Returns:
            Profiles in the order returned by the server.

        Raises:
            ValueError: If count is not positive.
            FetchError: The last classified error once attempts are exhausted.
            SyncCancelled: If the token was cancelled.
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError(f"count must be a positive integer, got {count!r}")

        logger.info(f"Fetching {count} profiles from {self._config.endpoint}")
        profiles = retry_with_backoff(
            lambda: self._fetch_once(count),
            max_attempts=self._config.max_attempts,
            backoff_step=self._config.backoff_step,
            retryable_exceptions=(FetchError,),
            token=token,
        )
        logger.info(f"Fetched {len(profiles)} profiles")
        return profiles

    def _fetch_once(self, count: int) -> list[Profile]:
        """Issue one request and classify any failure."""
        try:
            response = self._client.get(
                self._config.endpoint, params={"results": str(count)}
            )
        except httpx.RequestError as e:
            raise TransportError(e) from e

        if not 200 <= response.status_code <= 299:
            raise BadStatusError(response.status_code)

        if not response.content.strip():
            raise EmptyResponseError()

        try:
            body = RemoteProfilesResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodingError(e) from e

        return [user.to_profile() for user in body.results]
