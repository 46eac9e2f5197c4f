"""Tests for core configuration classes."""

from __future__ import annotations

import logging

import pytest

from studiohelper.core.config import (
    CREDENTIALS_FILE,
    IGNORE_FILE,
    MAX_CONCURRENT_UPLOADS,
    StudioConfig,
)


class TestStudioConfig:
    """Tests for StudioConfig class."""

    def test_init_defaults(self) -> None:
        """Should initialize with defaults for everything but the host."""
        config = StudioConfig(studio_host="xyz.studio.crasman.fi")
        assert config.studio_host == "xyz.studio.crasman.fi"
        assert config.proxy is None
        assert config.strict_ssl is True
        assert config.credentials_file == CREDENTIALS_FILE
        assert config.ignore_file == IGNORE_FILE
        assert config.concurrent_uploads == 1
        assert config.login_prompt_enabled is True

    def test_api_url(self) -> None:
        """Should build the v2 API URL over https."""
        config = StudioConfig(studio_host="xyz.studio.crasman.fi")
        assert config.api_url == "https://xyz.studio.crasman.fi/studioapi/v2/"

    @pytest.mark.parametrize(
        "host",
        ["https://xyz.studio.crasman.fi/", "http://xyz.studio.crasman.fi", " xyz.studio.crasman.fi/ "],
    )
    def test_host_normalized(self, host: str) -> None:
        """Should strip scheme, whitespace and trailing slash."""
        assert StudioConfig(studio_host=host).studio_host == "xyz.studio.crasman.fi"

    @pytest.mark.parametrize("host", ["", "   ", "https://"])
    def test_missing_host_raises(self, host: str) -> None:
        """Should refuse to build without a host."""
        with pytest.raises(ValueError, match="studio_host"):
            StudioConfig(studio_host=host)

    def test_concurrent_uploads_capped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Should clamp concurrent_uploads to the maximum and warn."""
        with caplog.at_level(logging.WARNING):
            config = StudioConfig(studio_host="host", concurrent_uploads=10)
        assert config.concurrent_uploads == MAX_CONCURRENT_UPLOADS
        assert "out of range" in caplog.text

    def test_concurrent_uploads_at_least_one(self) -> None:
        """Should raise concurrent_uploads below 1 to 1."""
        assert StudioConfig(studio_host="host", concurrent_uploads=0).concurrent_uploads == 1

    def test_concurrent_uploads_in_range_kept(self) -> None:
        """Should keep values within 1..5."""
        assert StudioConfig(studio_host="host", concurrent_uploads=3).concurrent_uploads == 3
