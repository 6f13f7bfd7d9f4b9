"""Shared configuration classes for profilesync.

This module defines configuration classes used by the fetcher, the
orchestrator and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit

DEFAULT_ENDPOINT = "https://randomuser.me/api/"


@dataclass
class FetcherConfig:
    """Configuration for fetching profiles from the remote source.

    Attributes:
        endpoint: Fixed URL of the profiles endpoint.
        batch_size: Number of profiles requested per sync cycle.
        timeout: Request timeout in seconds.
        max_attempts: Total attempts per fetch (first try included).
        backoff_step: Linear backoff unit; attempt n waits step * (n - 1).
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    endpoint: str = DEFAULT_ENDPOINT
    batch_size: int = 10
    timeout: float = 10.0
    max_attempts: int = 3
    backoff_step: float = 0.3
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize and validate."""
        self.endpoint = self.endpoint.strip()
        parts = urlsplit(self.endpoint)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"endpoint must be an absolute http(s) URL: {self.endpoint!r}")
        if self.batch_size < 1:
            raise ValueError("batch_size must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @property
    def health_url(self) -> str:
        """Get the URL probed for connectivity (scheme and host only).

        Returns:
            Base URL of the endpoint host.
        """
        parts = urlsplit(self.endpoint)
        return f"{parts.scheme}://{parts.netloc}/"

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS."""
        return self.endpoint.startswith("https://")


@dataclass
class SyncConfig:
    """Configuration for a SyncOrchestrator and its collaborators.

    Attributes:
        db_path: Path of the SQLite cache.
        fetcher: Remote fetch settings.
        connectivity_interval: Seconds between connectivity probes.
    """

    db_path: Path
    fetcher: FetcherConfig = field(default_factory=FetcherConfig)
    connectivity_interval: float = 5.0

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path)
