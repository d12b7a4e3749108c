"""
Tests for Helm acquisition and lookup.
"""

import os
import sys

import pytest
import responses
from unittest.mock import Mock, patch

from helm_installer.core.exceptions import HelmDownloadError, HelmNotFoundError
from helm_installer.core.platform import PlatformInfo
from helm_installer.installer import (
    HelmInstaller,
    find_helm,
    get_helm_download_url,
)

LINUX_URL = "https://get.helm.sh/helm-v3.5.3-linux-amd64.zip"


@pytest.fixture
def installer(tool_cache, linux_platform, tmp_path):
    """Installer on Linux with an isolated cache and temp dir."""
    return HelmInstaller(
        cache=tool_cache,
        platform=linux_platform,
        temp_dir=tmp_path / "tmp",
        resolver=Mock(),
    )


class TestDownloadUrl:
    """Test archive URL construction."""

    @pytest.mark.parametrize(
        "system,url",
        [
            ("Linux", "https://get.helm.sh/helm-v3.5.3-linux-amd64.zip"),
            ("Darwin", "https://get.helm.sh/helm-v3.5.3-darwin-amd64.zip"),
            ("Windows", "https://get.helm.sh/helm-v3.5.3-windows-amd64.zip"),
            ("FreeBSD", "https://get.helm.sh/helm-v3.5.3-windows-amd64.zip"),
        ],
    )
    def test_url_per_platform(self, system, url):
        """Test each platform gets its archive URL."""
        assert get_helm_download_url("v3.5.3", PlatformInfo(system, "x64")) == url


class TestFindHelm:
    """Test executable lookup."""

    def test_not_found(self, tmp_path, linux_platform):
        """Test a tree without helm raises HelmNotFoundError naming the root."""
        (tmp_path / "README.md").write_text("readme")

        with pytest.raises(HelmNotFoundError) as exc_info:
            find_helm(tmp_path, linux_platform)

        assert exc_info.value.search_path == tmp_path
        assert str(tmp_path) in str(exc_info.value)

    def test_single_match(self, tmp_path, linux_platform):
        """Test the only match is returned."""
        (tmp_path / "linux-amd64").mkdir()
        (tmp_path / "linux-amd64" / "helm").write_text("binary")

        assert find_helm(tmp_path, linux_platform) == tmp_path / "linux-amd64" / "helm"

    def test_windows_looks_for_exe(self, tmp_path, windows_platform):
        """Test Windows searches for helm.exe only."""
        (tmp_path / "windows-amd64").mkdir()
        (tmp_path / "windows-amd64" / "helm").write_text("wrong")
        (tmp_path / "windows-amd64" / "helm.exe").write_text("binary")

        assert (
            find_helm(tmp_path, windows_platform)
            == tmp_path / "windows-amd64" / "helm.exe"
        )

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    def test_root_gets_full_permissions(self, tmp_path, linux_platform):
        """Test the search root is opened up before walking."""
        root = tmp_path / "root"
        root.mkdir()
        (root / "helm").write_text("binary")
        os.chmod(root, 0o700)

        find_helm(root, linux_platform)

        assert root.stat().st_mode & 0o777 == 0o777


class TestAcquire:
    """Test HelmInstaller.acquire()."""

    @responses.activate
    def test_cache_miss_downloads(self, installer, tool_cache, helm_zip_bytes):
        """Test a miss downloads, extracts, caches and returns the binary."""
        responses.add(responses.GET, LINUX_URL, body=helm_zip_bytes)

        helm_path = installer.acquire("v3.5.3")

        expected_root = tool_cache.root / "helm" / "3.5.3" / "x64"
        assert helm_path == expected_root / "linux-amd64" / "helm"
        assert helm_path.read_bytes().startswith(b"#!/bin/sh")
        assert tool_cache.find("helm", "v3.5.3") == expected_root
        if sys.platform != "win32":
            assert helm_path.stat().st_mode & 0o777 == 0o777

    @responses.activate
    def test_second_acquire_uses_cache(self, installer, helm_zip_bytes):
        """Test acquiring the same version twice downloads once."""
        responses.add(responses.GET, LINUX_URL, body=helm_zip_bytes)

        first = installer.acquire("v3.5.3")
        second = installer.acquire("v3.5.3")

        assert first == second
        assert len(responses.calls) == 1

    @responses.activate
    def test_cached_version_skips_network(self, installer, tool_cache, tmp_path):
        """Test an existing (helm, v3.5.3) entry needs no download."""
        extracted = tmp_path / "prefilled"
        (extracted / "linux-amd64").mkdir(parents=True)
        (extracted / "linux-amd64" / "helm").write_text("cached")
        tool_cache.cache_dir(extracted, "helm", "v3.5.3")

        helm_path = installer.acquire("v3.5.3")

        assert helm_path.read_text() == "cached"
        assert len(responses.calls) == 0

    @responses.activate
    def test_download_failure(self, installer, tool_cache):
        """Test download errors are fatal and name the URL."""
        responses.add(responses.GET, LINUX_URL, status=404)

        with pytest.raises(HelmDownloadError) as exc_info:
            installer.acquire("v3.5.3")

        assert exc_info.value.url == LINUX_URL
        assert LINUX_URL in str(exc_info.value)
        assert tool_cache.find("helm", "v3.5.3") is None

    @responses.activate
    def test_archive_without_helm(self, installer, tool_cache, make_helm_zip):
        """Test a cached archive lacking the binary raises HelmNotFoundError."""
        responses.add(
            responses.GET, LINUX_URL, body=make_helm_zip(executable="tiller")
        )

        with pytest.raises(HelmNotFoundError) as exc_info:
            installer.acquire("v3.5.3")

        assert exc_info.value.search_path == tool_cache.root / "helm" / "3.5.3" / "x64"

    @responses.activate
    def test_empty_version_uses_global_discovery(self, installer, helm_zip_bytes):
        """Test an empty version resolves to the latest stable release."""
        installer.resolver.get_global_latest.return_value = "v3.5.3"
        responses.add(responses.GET, LINUX_URL, body=helm_zip_bytes)

        helm_path = installer.acquire("")

        installer.resolver.get_global_latest.assert_called_once()
        assert helm_path.name == "helm"

    @responses.activate
    def test_temp_files_removed(self, installer, tmp_path, helm_zip_bytes):
        """Test the downloaded archive does not outlive acquisition."""
        responses.add(responses.GET, LINUX_URL, body=helm_zip_bytes)

        installer.acquire("v3.5.3")

        assert list((tmp_path / "tmp").iterdir()) == []

    def test_windows_archive(self, tool_cache, windows_platform, tmp_path, make_helm_zip):
        """Test Windows downloads the windows archive and finds helm.exe."""
        archive = make_helm_zip(suffix="windows-amd64", executable="helm.exe")

        def fake_download(url, destination, **kwargs):
            assert url == "https://get.helm.sh/helm-v3.5.3-windows-amd64.zip"
            destination.write_bytes(archive)
            return destination

        installer = HelmInstaller(
            cache=tool_cache, platform=windows_platform, temp_dir=tmp_path / "tmp"
        )
        with patch("helm_installer.installer.download_file", side_effect=fake_download):
            helm_path = installer.acquire("v3.5.3")

        assert helm_path.name == "helm.exe"
        assert helm_path.parent.name == "windows-amd64"
