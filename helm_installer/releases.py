"""
Release listings for the upstream Helm project.

Two sources are supported:
- The bulk REST listing (``/repos/helm/helm/releases``), unauthenticated
- A GraphQL query for the last N release tag names, authenticated with a token

Both return tag strings; neither applies any filtering.
"""

import logging
from typing import List, Optional

import requests
from requests.exceptions import RequestException

from helm_installer.core.download import DEFAULT_TIMEOUT, DownloadError, fetch_json
from helm_installer.core.exceptions import ReleaseListingError

logger = logging.getLogger(__name__)

HELM_ALL_RELEASES_URL = "https://api.github.com/repos/helm/helm/releases"
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

RELEASE_TAGS_QUERY = """
{
    repository(name: "%(name)s", owner: "%(owner)s") {
        releases(last: %(last)d) {
            nodes {
                tagName
            }
        }
    }
}
"""


def list_all_release_tags(
    url: str = HELM_ALL_RELEASES_URL,
    timeout: int = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> List[str]:
    """
    Fetch the bulk REST release listing and return its tag names.

    Entries that are not objects or carry no ``tag_name`` are skipped.

    Raises:
        ReleaseListingError: If the listing cannot be fetched or is not a list
    """
    try:
        releases = fetch_json(url, timeout=timeout, session=session)
    except DownloadError as e:
        raise ReleaseListingError(str(e)) from e

    if not isinstance(releases, list):
        raise ReleaseListingError(f"Expected a JSON array from {url}")

    tags = []
    for release in releases:
        if not isinstance(release, dict):
            continue
        tag_name = release.get("tag_name")
        if tag_name:
            tags.append(str(tag_name))
    return tags


class GraphQLReleaseClient:
    """
    Query release tag names through the GitHub GraphQL API.

    Example:
        >>> client = GraphQLReleaseClient(token="ghp_...")
        >>> client.list_recent_release_tags("helm", "helm")
        ['v3.4.0', 'v3.4.1', ...]
    """

    def __init__(
        self,
        token: str,
        url: str = GITHUB_GRAPHQL_URL,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def query(self, query: str) -> dict:
        """
        Run a GraphQL query and return its ``data`` payload.

        Raises:
            ReleaseListingError: On transport errors, error statuses
                (including bad credentials) or GraphQL errors
        """
        headers = {"Authorization": f"token {self.token}"}

        try:
            response = self.session.post(
                self.url, json={"query": query}, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except (RequestException, ValueError) as e:
            raise ReleaseListingError(f"GraphQL request to {self.url} failed: {e}") from e

        if not isinstance(payload, dict):
            raise ReleaseListingError("GraphQL response is not an object")

        errors = payload.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            messages = "; ".join(
                str(error.get("message", error) if isinstance(error, dict) else error)
                for error in errors
            )
            raise ReleaseListingError(f"GraphQL query failed: {messages}")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ReleaseListingError("GraphQL response has no data")
        return data

    def list_recent_release_tags(
        self, owner: str, name: str, last: int = 100
    ) -> List[str]:
        """
        Get the tag names of the last ``last`` releases, in API order.

        Raises:
            ReleaseListingError: If the query fails or the response is malformed
        """
        data = self.query(RELEASE_TAGS_QUERY % {"owner": owner, "name": name, "last": last})

        try:
            nodes = data["repository"]["releases"]["nodes"]
        except (KeyError, TypeError) as e:
            raise ReleaseListingError(f"Unexpected GraphQL response shape: {e}") from e

        if not isinstance(nodes, list):
            raise ReleaseListingError("Unexpected GraphQL response shape: nodes")

        tags = [
            str(node["tagName"])
            for node in nodes
            if isinstance(node, dict) and node.get("tagName")
        ]
        logger.debug(f"Fetched {len(tags)} release tags for {owner}/{name}")
        return tags
