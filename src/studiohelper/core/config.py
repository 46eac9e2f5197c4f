"""Client configuration for studiohelper.

This module defines the settings a StudioHelper instance is built from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

API_PATH = "/studioapi/v2/"
CREDENTIALS_FILE = ".studio-credentials"
IGNORE_FILE = ".studio-ignore"
DEFAULT_CONCURRENT_UPLOADS = 1
MAX_CONCURRENT_UPLOADS = 5


@dataclass
class StudioConfig:
    """Configuration for connecting to a Studio instance.

    Attributes:
        studio_host: Studio host name (e.g., "xyz.studio.crasman.fi").
        proxy: Optional proxy URL used for every request.
        strict_ssl: Whether to verify TLS certificates (default True).
        credentials_file: File holding the encrypted session token.
        ignore_file: Gitignore-style file filtering pushed files.
        concurrent_uploads: Files transferred at once during a batch (1..5).
        login_prompt_enabled: Prompt for login when the session expires.
    """

    studio_host: str
    proxy: str | None = None
    strict_ssl: bool = True
    credentials_file: str = CREDENTIALS_FILE
    ignore_file: str | None = IGNORE_FILE
    concurrent_uploads: int = DEFAULT_CONCURRENT_UPLOADS
    login_prompt_enabled: bool = True

    def __post_init__(self) -> None:
        """Normalize host and clamp the upload concurrency."""
        host = (self.studio_host or "").strip()
        for scheme in ("https://", "http://"):
            if host.startswith(scheme):
                host = host[len(scheme) :]
        host = host.rstrip("/")
        if not host:
            raise ValueError("studio_host must be set")
        self.studio_host = host

        clamped = max(1, min(int(self.concurrent_uploads), MAX_CONCURRENT_UPLOADS))
        if clamped != self.concurrent_uploads:
            logger.warning(
                f"concurrent_uploads={self.concurrent_uploads} out of range, using {clamped}"
            )
        self.concurrent_uploads = clamped

    @property
    def api_url(self) -> str:
        """Get the base URL of the Studio API.

        Returns:
            URL ending with a slash, e.g. "https://host/studioapi/v2/".
        """
        return f"https://{self.studio_host}{API_PATH}"
