"""Version string shown by ``scsi-decode -V`` and the help footer."""

from __future__ import annotations

import importlib.metadata
import importlib.resources as resources
import logging
import os
import re
from pathlib import Path
from typing import Optional

__all__ = ["get_version"]

logger = logging.getLogger(__name__)

PACKAGE_NAME = "scsi-tool"
ENV_VERSION = "SCSI_TOOL_VERSION"
CACHE_FILE = Path(__file__).with_name("_cached_version.txt")

# src/scsi_tool/_version.py -> checkout root holding setup.py
_SETUP_PY = Path(__file__).resolve().parents[2] / "setup.py"
_SETUP_NAME_RE = re.compile(r"""\bname\s*=\s*['"]scsi-tool['"]""")
_SETUP_VERSION_RE = re.compile(r"""^\s*version\s*=\s*['"]([^'"]+)['"]""", re.MULTILINE)


def _installed_version(dist_name: str) -> Optional[str]:
    try:
        return importlib.metadata.version(dist_name)
    except importlib.metadata.PackageNotFoundError:
        logger.debug("%s is not installed", dist_name)
        return None


def _read_version_from_setup() -> Optional[str]:
    """Version from the setup.py of a source checkout, if this is one."""
    try:
        text = _SETUP_PY.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return None
    if not _SETUP_NAME_RE.search(text):
        return None
    match = _SETUP_VERSION_RE.search(text)
    return match.group(1).strip() if match else None


def _read_cached_version() -> Optional[str]:
    try:
        text = CACHE_FILE.read_text(encoding="utf-8").strip()
    except OSError:
        text = ""
    if text:
        return text
    try:
        bundled = resources.files("scsi_tool").joinpath("_cached_version.txt")
        return bundled.read_text(encoding="utf-8").strip() or None
    except (FileNotFoundError, OSError):
        return None


def _write_cached_version(version: str) -> None:
    version = version.strip()
    if not version:
        return
    try:
        CACHE_FILE.write_text(version + "\n", encoding="utf-8")
    except OSError as e:
        logger.debug("could not cache version %s: %s", version, e)


def get_version(dist_name: str = PACKAGE_NAME) -> str:
    """
    SCSI_TOOL_VERSION if set, else the installed or checkout version (which
    is then cached next to this module), else the last cached value.
    """
    override = os.getenv(ENV_VERSION, "").strip()
    if override:
        return override
    version = _installed_version(dist_name) or _read_version_from_setup()
    if version:
        _write_cached_version(version)
        return version
    return _read_cached_version() or "Unknown"
