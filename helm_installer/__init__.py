"""
helm-installer - resolve, download and cache Helm for CI workflows.
"""

from helm_installer.installer import HelmInstaller, find_helm, get_helm_download_url
from helm_installer.resolver import ResolverDefaults, VersionResolver

__all__ = [
    "HelmInstaller",
    "find_helm",
    "get_helm_download_url",
    "ResolverDefaults",
    "VersionResolver",
]
