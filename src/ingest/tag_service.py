"""World API client for region tag queries.

This module resolves region tags to region name sets using the
``regionsbytag`` world shard. The three classification tags are
independent, so they are fetched concurrently.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from xml.etree import ElementTree

import requests

from core.config import SweepConfig
from core.constants import FRONTIER_TAG, GOVERNORLESS_TAG, PASSWORD_TAG, REGION_TAGS
from core.errors import SweepNetworkError
from core.logging_config import get_logger
from core.types import RegionTags

_LOGGER = get_logger(__name__)


class TagService:
    """Queries region name sets by tag."""

    def __init__(self, config: SweepConfig, session: requests.Session) -> None:
        self._config = config
        self._session = session

    def query_by_tag(self, tag: str) -> frozenset[str]:
        """Return names of all regions carrying ``tag``.

        Args:
            tag: World API region tag.

        Returns:
            Region names as returned by the API.

        Raises:
            SweepConfigError: If no user nation is configured.
            SweepNetworkError: If the request fails or the payload is invalid.
        """
        url = f"{self._config.api_url}?q=regionsbytag;tags={tag}"
        headers = {"User-Agent": self._config.user_agent()}
        try:
            response = self._session.get(url, headers=headers, timeout=self._config.http_timeout)
            response.raise_for_status()
        except requests.RequestException as error:
            raise SweepNetworkError(
                f"Failed to query regions tagged '{tag}': {error}. "
                "Check connectivity and the configured user nation."
            ) from error
        names = parse_regions_by_tag(response.content, tag)
        _LOGGER.info("tag_fetched", tag=tag, region_count=len(names))
        return names

    def fetch_region_tags(self) -> RegionTags:
        """Fetch governorless, password, and frontier sets concurrently.

        Returns:
            Tag sets for region classification.

        Raises:
            SweepNetworkError: If any tag query fails.
        """
        with ThreadPoolExecutor(max_workers=len(REGION_TAGS)) as executor:
            futures = {tag: executor.submit(self.query_by_tag, tag) for tag in REGION_TAGS}
            results = {tag: future.result() for tag, future in futures.items()}
        return RegionTags(
            governorless=results[GOVERNORLESS_TAG],
            password=results[PASSWORD_TAG],
            frontier=results[FRONTIER_TAG],
        )


def parse_regions_by_tag(payload: bytes, tag: str) -> frozenset[str]:
    """Parse a ``regionsbytag`` response body.

    Args:
        payload: XML response body.
        tag: Queried tag, used for error context.

    Returns:
        Set of region names; empty when no region carries the tag.

    Raises:
        SweepNetworkError: If the payload is not a WORLD/REGIONS document.
    """
    try:
        root = ElementTree.fromstring(payload)
    except ElementTree.ParseError as error:
        raise SweepNetworkError(
            f"Invalid response for tag '{tag}': {error}. The world API may be unavailable."
        ) from error
    regions_text = root.findtext("REGIONS")
    if root.tag != "WORLD" or regions_text is None:
        raise SweepNetworkError(
            f"Invalid response for tag '{tag}': expected <WORLD><REGIONS>. "
            "The world API may be unavailable."
        )
    return frozenset(name.strip() for name in regions_text.split(",") if name.strip())
