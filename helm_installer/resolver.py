"""
Helm version resolution.

Turns a user-supplied version token ("latest", "3.*", "2.*", "3.5.3",
"v3.5.3") into a concrete version string with a leading 'v'.

Discovery failures never reach the caller: they are logged as warnings and
replaced with the matching default from ResolverDefaults.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from packaging.version import Version

from helm_installer.core.download import DEFAULT_TIMEOUT
from helm_installer.core.exceptions import ReleaseListingError
from helm_installer.core.tool_cache import clean_version
from helm_installer.releases import (
    HELM_ALL_RELEASES_URL,
    GraphQLReleaseClient,
    list_all_release_tags,
)

logger = logging.getLogger(__name__)

LATEST = "latest"
LATEST_HELM2_VERSION = "2.*"
LATEST_HELM3_VERSION = "3.*"

HELM_OWNER = "helm"
HELM_REPOSITORY = "helm"
RECENT_RELEASE_WINDOW = 100

_PRERELEASE_ID = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    rf"(?:-({_PRERELEASE_ID}(?:\.{_PRERELEASE_ID})*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


@dataclass(frozen=True)
class ResolverDefaults:
    """
    Fallback versions used when discovery fails.

    Attributes:
        stable: Result of global discovery when the listing is unavailable
        stable_v2: Result of v2 family discovery when nothing matches
        stable_v3: Result of v3 family discovery when nothing matches
    """

    stable: str = "v3.2.1"
    stable_v2: str = "v2.17.0"
    stable_v3: str = "v3.5.3"

    def for_family(self, family: str) -> str:
        return self.stable_v2 if family == "v2" else self.stable_v3


def is_valid_version(version: str, family: str) -> bool:
    """
    Check that a tag belongs to a major-version family and is a stable release.

    Example:
        >>> is_valid_version("V3.5.0", "v3")
        True
        >>> is_valid_version("v3.6.0-rc.1", "v3")
        False
    """
    if not version.lower().startswith(family):
        return False
    return "rc" not in version


def _ensure_v_prefix(version: str) -> str:
    if not version.lower().startswith("v"):
        return "v" + version
    return version


def semver_key(version: str) -> Optional[Tuple]:
    """
    Build a sort key with semantic-version precedence.

    Only strict MAJOR.MINOR.PATCH versions are accepted, with optional
    pre-release and build suffixes. A pre-release sorts below its release and
    build metadata is ignored.

    Returns:
        Sort key, or None if the string is not a semantic version

    Example:
        >>> semver_key("3.2.1-post1") < semver_key("3.2.1")
        True
        >>> semver_key("4") is None
        True
    """
    match = SEMVER_PATTERN.match(version)
    if match is None:
        return None

    release = Version(".".join(match.group(1, 2, 3)))
    prerelease = match.group(4)
    if prerelease is None:
        return (release, 1, ())

    # numeric identifiers sort below alphanumeric ones
    identifiers = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in prerelease.split(".")
    )
    return (release, 0, identifiers)


class VersionResolver:
    """
    Resolve version tokens against Helm release listings.

    Example:
        >>> resolver = VersionResolver(token="ghp_...")
        >>> resolver.resolve("2.17.0")
        'v2.17.0'
        >>> resolver.resolve("latest")
        'v3.5.0'
    """

    def __init__(
        self,
        token: str = "",
        defaults: Optional[ResolverDefaults] = None,
        releases_url: str = HELM_ALL_RELEASES_URL,
        timeout: int = DEFAULT_TIMEOUT,
        recent_tags: Optional[Callable[[], List[str]]] = None,
        all_tags: Optional[Callable[[], List[str]]] = None,
    ):
        """
        Initialize resolver.

        Args:
            token: Credential for the GraphQL release query
            defaults: Fallback versions (default: ResolverDefaults())
            releases_url: Bulk REST release listing URL
            timeout: HTTP timeout in seconds
            recent_tags: Override for the recent-releases query
            all_tags: Override for the bulk listing fetch
        """
        self.token = token
        self.defaults = defaults or ResolverDefaults()
        self.releases_url = releases_url
        self.timeout = timeout
        self._recent_tags = recent_tags or self._query_recent_tags
        self._all_tags = all_tags or self._fetch_all_tags

    def resolve(self, token: str, legacy_mode: bool = False) -> str:
        """
        Resolve a version token to a concrete 'v'-prefixed version.

        Args:
            token: "latest", "2.*", "3.*" or a literal version
            legacy_mode: Use the legacy rules without major-version families

        Returns:
            Concrete version string
        """
        if legacy_mode:
            if token.lower() == LATEST:
                return self.get_global_latest()
            return _ensure_v_prefix(token)

        if token.lower() == LATEST or token == LATEST_HELM3_VERSION:
            return self.get_latest_for("v3")
        if token == LATEST_HELM2_VERSION:
            return self.get_latest_for("v2")
        return _ensure_v_prefix(token)

    def get_latest_for(self, family: str) -> str:
        """
        Find a stable release of a major-version family.

        The recent-releases window is reversed and the first matching tag is
        returned, which is the earliest match in that window.
        """
        fallback = self.defaults.for_family(family)

        try:
            releases = list(reversed(self._recent_tags()))
        except ReleaseListingError as e:
            logger.warning(
                f"Error while fetching the latest Helm {family} release. "
                f"Error: {e}. Using default Helm version {fallback}."
            )
            return fallback

        for tag in releases:
            if is_valid_version(tag, family):
                return tag

        logger.warning(
            f"Could not find stable release for Helm {family}. "
            f"Using default Helm version {fallback}."
        )
        return fallback

    def get_global_latest(self) -> str:
        """
        Find the highest stable version in the bulk release listing.

        Never returns less than ``defaults.stable``.
        """
        try:
            tags = self._all_tags()
        except ReleaseListingError as e:
            logger.warning(
                f"Cannot get the latest Helm info from {self.releases_url}. "
                f"Error {e}. Using default Helm version {self.defaults.stable}."
            )
            return self.defaults.stable

        latest = clean_version(self.defaults.stable)
        latest_key = semver_key(latest)

        for tag in tags:
            current = clean_version(tag)
            if "rc" in current:
                continue
            current_key = semver_key(current)
            if current_key is None:
                continue
            if latest_key is None or current_key > latest_key:
                latest, latest_key = current, current_key

        return "v" + latest

    def _query_recent_tags(self) -> List[str]:
        client = GraphQLReleaseClient(self.token, timeout=self.timeout)
        return client.list_recent_release_tags(
            HELM_OWNER, HELM_REPOSITORY, last=RECENT_RELEASE_WINDOW
        )

    def _fetch_all_tags(self) -> List[str]:
        return list_all_release_tags(self.releases_url, timeout=self.timeout)
