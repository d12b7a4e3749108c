"""
Pytest configuration and shared fixtures for helm-installer tests.
"""

import io
import zipfile

import pytest

from helm_installer.core.platform import PlatformInfo, clear_platform_cache
from helm_installer.core.tool_cache import ToolCache

ISOLATED_ENV_VARS = [
    "GITHUB_ACTIONS",
    "GITHUB_OUTPUT",
    "GITHUB_PATH",
    "INPUT_VERSION",
    "INPUT_TOKEN",
    "HELM_INSTALLER_LEGACY_VERSIONING",
    "RUNNER_TOOL_CACHE",
    "RUNNER_TEMP",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep runner variables of the host out of every test."""
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def linux_platform() -> PlatformInfo:
    """Linux x64 platform."""
    return PlatformInfo("Linux", "x64")


@pytest.fixture
def windows_platform() -> PlatformInfo:
    """Windows x64 platform."""
    return PlatformInfo("Windows", "x64")


@pytest.fixture
def tool_cache(tmp_path) -> ToolCache:
    """Empty tool cache rooted in a temporary directory."""
    return ToolCache(tmp_path / "toolcache", arch="x64")


def build_helm_zip(suffix: str = "linux-amd64", executable: str = "helm") -> bytes:
    """
    Build an in-memory archive laid out like a Helm release.

    The archive contains ``<suffix>/<executable>``, ``<suffix>/LICENSE`` and
    ``<suffix>/README.md``.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr(f"{suffix}/{executable}", b"#!/bin/sh\necho helm\n")
        zf.writestr(f"{suffix}/LICENSE", "Apache License 2.0\n")
        zf.writestr(f"{suffix}/README.md", "# Helm\n")
    return buffer.getvalue()


@pytest.fixture
def make_helm_zip():
    """Factory building Helm-like release archives."""
    return build_helm_zip


@pytest.fixture
def helm_zip_bytes() -> bytes:
    """Archive bytes of a Linux Helm release."""
    return build_helm_zip()
