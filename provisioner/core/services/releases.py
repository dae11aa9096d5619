"""
Release artifacts — version resolution, downloads and archive unpacking.

Versions are pinned in configuration; ``latest`` is resolved through
the GitHub releases API.  Every failure here (network, HTTP status,
corrupt or unexpected archive) is an ``ArtifactFetchError``, kept
apart from configuration failures.
"""

from __future__ import annotations

import io
import logging
import tarfile
import zipfile
from pathlib import Path

from provisioner.core.errors import ArtifactFetchError

logger = logging.getLogger(__name__)

GITHUB_LATEST = "https://api.github.com/repos/{repo}/releases/latest"

PANEL_REPO = "pterodactyl/panel"
WINGS_REPO = "pterodactyl/wings"

PANEL_ARCHIVE = "https://github.com/pterodactyl/panel/releases/download/{tag}/panel.tar.gz"
WINGS_BINARY_URL = "https://github.com/pterodactyl/wings/releases/download/{tag}/wings_linux_{arch}"


def resolve_version(fetcher, repo: str, version: str) -> str:
    """Return ``version`` unchanged, or the newest tag if it is ``latest``."""
    if version != "latest":
        return version

    result = fetcher.fetch_json(GITHUB_LATEST.format(repo=repo))
    if not result.ok:
        raise ArtifactFetchError(
            f"Could not resolve the latest {repo} release: {result.error}",
            exit_code=result.status,
        )
    try:
        tag = result.json()["tag_name"]
    except (ValueError, KeyError, TypeError) as e:
        raise ArtifactFetchError(f"Unexpected release metadata for {repo}: {e}") from e

    logger.info("Resolved latest %s release: %s", repo, tag)
    return tag


def download(fetcher, url: str) -> bytes:
    result = fetcher.fetch(url)
    if not result.ok:
        raise ArtifactFetchError(f"Download failed: {url}: {result.error}", exit_code=result.status)
    if not result.data:
        raise ArtifactFetchError(f"Download returned an empty body: {url}")
    logger.debug("Downloaded %d bytes from %s", len(result.data), url)
    return result.data


def extract_tarball(data: bytes, dest: Path) -> int:
    """Unpack a gzipped tarball into ``dest``.  Returns the member count."""
    dest.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            members = tar.getmembers()
            tar.extractall(dest, filter="data")
    except (tarfile.TarError, EOFError, OSError) as e:
        raise ArtifactFetchError(f"Failed to unpack archive into {dest}: {e}") from e
    return len(members)


def extract_zip(data: bytes, dest: Path, strip_prefix: str = "") -> int:
    """Unpack a zip into ``dest``, dropping ``strip_prefix`` from member names."""
    dest.mkdir(parents=True, exist_ok=True)
    count = 0
    root = dest.resolve()
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            for info in zf.infolist():
                name = info.filename
                if strip_prefix and name.startswith(strip_prefix):
                    name = name[len(strip_prefix):]
                if not name:
                    continue
                target = (dest / name).resolve()
                if not target.is_relative_to(root):
                    raise ArtifactFetchError(f"Archive member escapes target directory: {info.filename}")
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(zf.read(info))
                count += 1
    except (zipfile.BadZipFile, OSError) as e:
        raise ArtifactFetchError(f"Failed to unpack archive into {dest}: {e}") from e
    return count
