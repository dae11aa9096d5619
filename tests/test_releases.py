"""
Tests for release resolution, downloads and archive unpacking.
"""

import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from provisioner.adapters.mock import MockFetcher
from provisioner.core.errors import ArtifactFetchError, ExitStatus
from provisioner.core.services.releases import (
    GITHUB_LATEST,
    PANEL_REPO,
    download,
    extract_tarball,
    extract_zip,
    resolve_version,
)
from tests.conftest import panel_tarball, phpmyadmin_zip


class TestResolveVersion:
    def test_pinned_passes_through(self):
        fetcher = MockFetcher()
        assert resolve_version(fetcher, PANEL_REPO, "v1.11.11") == "v1.11.11"
        assert fetcher.requested == []

    def test_latest(self):
        fetcher = MockFetcher()
        fetcher.add_json(GITHUB_LATEST.format(repo=PANEL_REPO), {"tag_name": "v1.12.0"})
        assert resolve_version(fetcher, PANEL_REPO, "latest") == "v1.12.0"

    def test_latest_api_error(self):
        fetcher = MockFetcher()
        fetcher.add_error(GITHUB_LATEST.format(repo=PANEL_REPO), status=403)
        with pytest.raises(ArtifactFetchError, match="latest") as exc:
            resolve_version(fetcher, PANEL_REPO, "latest")
        assert exc.value.exit_code == 403
        assert exc.value.status == ExitStatus.ARTIFACT_FETCH

    def test_latest_bad_metadata(self):
        fetcher = MockFetcher()
        fetcher.add_json(GITHUB_LATEST.format(repo=PANEL_REPO), {"name": "no tag"})
        with pytest.raises(ArtifactFetchError, match="Unexpected release metadata"):
            resolve_version(fetcher, PANEL_REPO, "latest")


class TestDownload:
    def test_ok(self):
        fetcher = MockFetcher()
        fetcher.add("https://x/a.bin", b"data")
        assert download(fetcher, "https://x/a.bin") == b"data"

    def test_http_error(self):
        with pytest.raises(ArtifactFetchError, match="Download failed") as exc:
            download(MockFetcher(), "https://x/missing")
        assert exc.value.exit_code == 404

    def test_empty_body(self):
        fetcher = MockFetcher()
        fetcher.add("https://x/empty", b"")
        with pytest.raises(ArtifactFetchError, match="empty"):
            download(fetcher, "https://x/empty")


class TestExtractTarball:
    def test_unpacks(self, tmp_path: Path):
        count = extract_tarball(panel_tarball(), tmp_path / "panel")
        assert count == 4
        assert (tmp_path / "panel" / "artisan").is_file()
        assert (tmp_path / "panel" / "storage" / "logs" / ".gitignore").is_file()

    def test_corrupt(self, tmp_path: Path):
        with pytest.raises(ArtifactFetchError, match="Failed to unpack"):
            extract_tarball(b"not a tarball", tmp_path / "panel")

    def test_rejects_traversal(self, tmp_path: Path):
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tar:
            info = tarfile.TarInfo("../escape.txt")
            info.size = 1
            tar.addfile(info, io.BytesIO(b"x"))
        with pytest.raises(ArtifactFetchError):
            extract_tarball(buf.getvalue(), tmp_path / "panel")
        assert not (tmp_path / "escape.txt").exists()


class TestExtractZip:
    def test_strips_prefix(self, tmp_path: Path):
        count = extract_zip(phpmyadmin_zip("5.2.2"), tmp_path / "pma", "phpMyAdmin-5.2.2-all-languages/")
        assert count == 2
        assert (tmp_path / "pma" / "index.php").is_file()
        assert (tmp_path / "pma" / "libraries" / "classes" / "Config.php").is_file()

    def test_rejects_traversal(self, tmp_path: Path):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("../../escape.php", "<?php\n")
        with pytest.raises(ArtifactFetchError, match="escapes"):
            extract_zip(buf.getvalue(), tmp_path / "pma")
        assert not (tmp_path / "escape.php").exists()

    def test_corrupt(self, tmp_path: Path):
        with pytest.raises(ArtifactFetchError, match="Failed to unpack"):
            extract_zip(b"PK not really", tmp_path / "pma")
