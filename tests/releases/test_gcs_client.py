"""
Unit tests for the GCS release backend.

Tests use the responses library to stand in for the bucket listing.
"""

import pytest
import responses

from reprotokit.core.exceptions import ReleaseDiscoveryError, ReleaseNotFoundError
from reprotokit.core.version import Constraint, Version
from reprotokit.releases.base import Release, ResolutionStatus
from reprotokit.releases.gcs import GCS_RELEASES_URL, GcsReleaseClient

RELEASES_URL = f"{GCS_RELEASES_URL}/releases"

LISTING = "0.3.1\n0.3.36\n\n0.3.9\n0.4.0\n"


@pytest.fixture
def client():
    return GcsReleaseClient()


class TestResolveLatest:
    """Test GcsReleaseClient.resolve_latest()."""

    @responses.activate
    def test_resolves_highest_match(self, client):
        """Test the listing is filtered and the ETag kept as token."""
        responses.add(
            responses.GET, RELEASES_URL, body=LISTING, status=200, headers={"ETag": '"abc"'}
        )

        result = client.resolve_latest(Constraint.parse("0.3"))

        assert result.status is ResolutionStatus.RESOLVED
        assert result.release == Release(Version.parse("0.3.36"), '"abc"')

    @responses.activate
    def test_conditional_request_header(self, client):
        """Test a known token is sent as If-None-Match."""
        responses.add(responses.GET, RELEASES_URL, status=304)
        known = Release(Version.parse("0.3.36"), '"abc"')

        result = client.resolve_latest(Constraint.parse("0.3"), known=known)

        assert responses.calls[0].request.headers["If-None-Match"] == '"abc"'
        assert result.status is ResolutionStatus.UNCHANGED
        assert result.release is known

    @responses.activate
    def test_no_header_without_token(self, client):
        """Test no conditional header without a known token."""
        responses.add(
            responses.GET, RELEASES_URL, body=LISTING, status=200, headers={"ETag": '"abc"'}
        )

        client.resolve_latest(Constraint.parse("0.3"), known=Release(Version.parse("0.3.1")))

        assert "If-None-Match" not in responses.calls[0].request.headers

    @responses.activate
    def test_not_modified_without_known(self, client):
        """Test a 304 without a cached release is a discovery error."""
        responses.add(responses.GET, RELEASES_URL, status=304)

        with pytest.raises(ReleaseDiscoveryError, match="not modified"):
            client.resolve_latest(Constraint.parse("0.3"))

    @responses.activate
    def test_missing_etag(self, client):
        """Test a listing without an ETag is a discovery error."""
        responses.add(responses.GET, RELEASES_URL, body=LISTING, status=200)

        with pytest.raises(ReleaseDiscoveryError, match="no ETag"):
            client.resolve_latest(Constraint.parse("0.3"))

    @responses.activate
    def test_no_match(self, client):
        """Test a listing without matches raises ReleaseNotFoundError."""
        responses.add(
            responses.GET, RELEASES_URL, body=LISTING, status=200, headers={"ETag": '"abc"'}
        )

        with pytest.raises(ReleaseNotFoundError) as exc_info:
            client.resolve_latest(Constraint.parse("0.9"))

        assert exc_info.value.constraint == "0.9"

    @responses.activate
    def test_server_error(self, client):
        """Test server errors raise ReleaseDiscoveryError."""
        responses.add(responses.GET, RELEASES_URL, status=503)

        with pytest.raises(ReleaseDiscoveryError):
            client.resolve_latest(Constraint.parse("0.3"))


class TestDownloadUrl:
    """Test GcsReleaseClient.download_url()."""

    def test_flat_layout(self, client):
        url = client.download_url(Version.parse("0.3.36"), "reproto-0.3.36-linux-x86_64.tar.gz")

        assert url == f"{GCS_RELEASES_URL}/reproto-0.3.36-linux-x86_64.tar.gz"

    def test_custom_base_trailing_slash(self):
        client = GcsReleaseClient("https://mirror.example.com/bucket/")

        assert client.releases_url == "https://mirror.example.com/bucket/releases"
