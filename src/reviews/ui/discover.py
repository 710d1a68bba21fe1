"""
Discover page controller.

Holds the section, filters, sort and loaded result pages. Every filter or
sort change rewrites the page URL and reloads from the first page; scrolling
appends the next page until the server reports no more.
"""

import logging
from urllib.parse import urlencode

from reviews.discover import (
    DEFAULT_SECTION,
    FILTER_TYPES,
    SORT_OPTIONS,
    DiscoverFilters,
    DiscoverQuery,
    section_config,
)
from reviews.ui.api_client import ApiError, ReviewsApiClient

logger = logging.getLogger(__name__)

LOAD_FAILED = "Could not load results. Please try again."


class DiscoverController:
    """State and actions for one discover results page."""

    def __init__(self, api: ReviewsApiClient, query: DiscoverQuery | None = None):
        self.api = api
        self.query = query or DiscoverQuery()
        self.results: list[dict] = []
        self.pages_loaded = 0
        self.has_more = True
        self.total_count = 0
        self.loading = False
        self.error: str | None = None
        # Bumped on every reset; responses from older generations are dropped
        self._generation = 0
        self.announcement = self.navigation_announcement

    @classmethod
    def from_url(cls, api: ReviewsApiClient, section: str, params: dict[str, str]) -> "DiscoverController":
        """Restore a page from its URL section and query parameters."""
        return cls(api, DiscoverQuery.from_params(section or DEFAULT_SECTION, params))

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    @property
    def section(self) -> str:
        return self.query.section

    @property
    def title(self) -> str:
        return section_config(self.section)["title"]

    @property
    def subtitle(self) -> str:
        return section_config(self.section)["subtitle"]

    @property
    def page_title(self) -> str:
        return f"{self.title} - Reviews App"

    @property
    def navigation_announcement(self) -> str:
        return f"Showing all results for {self.title}"

    @property
    def results_label(self) -> str:
        count = len(self.results)
        return "1 result" if count == 1 else f"{count} results"

    @property
    def is_empty(self) -> bool:
        return not self.loading and self.pages_loaded > 0 and not self.results

    @property
    def active_filters(self) -> list[tuple[str, str]]:
        return self.query.active_filters()

    @property
    def has_filters(self) -> bool:
        return not self.query.filters.is_empty()

    @property
    def url(self) -> str:
        params = self.query.to_params()
        path = f"/discover/{self.section}"
        return f"{path}?{urlencode(params)}" if params else path

    # -------------------------------------------------------------------------
    # Filters and sort
    # -------------------------------------------------------------------------

    def _replace_filters(self, **changes) -> None:
        values = self.query.filters.model_dump()
        values.update(changes)
        # Rebuild rather than copy so new values are validated
        filters = DiscoverFilters(**values)
        self.query = self.query.model_copy(update={"filters": filters, "page": 1})

    async def set_filter(self, filter_type: str, value: str) -> bool:
        """Apply a filter value; choosing the active value again removes it."""
        if filter_type not in FILTER_TYPES:
            raise ValueError(f"Unknown filter: {filter_type}")
        current = getattr(self.query.filters, filter_type)
        self._replace_filters(**{filter_type: None if current == value else value})
        return await self.load(reset=True)

    async def toggle_open_now(self) -> bool:
        self._replace_filters(open_now=not self.query.filters.open_now)
        return await self.load(reset=True)

    async def remove_filter(self, filter_type: str) -> bool:
        if filter_type == "open-now":
            self._replace_filters(open_now=False)
        elif filter_type in FILTER_TYPES:
            self._replace_filters(**{filter_type: None})
        else:
            raise ValueError(f"Unknown filter: {filter_type}")
        return await self.load(reset=True)

    async def clear_filters(self) -> bool:
        self.query = self.query.model_copy(update={"filters": DiscoverFilters(), "page": 1})
        return await self.load(reset=True)

    async def set_sort(self, sort: str) -> bool:
        if sort not in SORT_OPTIONS:
            raise ValueError(f"Unknown sort: {sort}")
        self.query = self.query.model_copy(update={"sort": sort, "page": 1})
        return await self.load(reset=True)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self, reset: bool = False) -> bool:
        """
        Load the first page (reset) or the next page.

        Loading more is ignored while a load is in flight or when nothing more
        is available. A reset always starts a new load; any response still in
        flight for an earlier query is then discarded.
        """
        if reset:
            self._generation += 1
            self.results = []
            self.pages_loaded = 0
            self.has_more = True
            self.total_count = 0
        elif self.loading or not self.has_more:
            return False

        generation = self._generation
        section = self.section
        page = self.pages_loaded + 1
        params = self.query.to_params()
        if page > 1:
            params["page"] = str(page)

        self.loading = True
        self.error = None
        try:
            body = await self.api.discover(section, params)
        except ApiError as e:
            logger.warning(f"Discover {section} page {page} failed: {e.message}")
            if generation == self._generation:
                self.error = LOAD_FAILED
                self.announcement = LOAD_FAILED
            return False
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug(f"Discarding stale discover page {page} for {section}")
            return False

        batch = body.get("results") or []
        self.results.extend(batch)
        self.pages_loaded = page
        self.has_more = bool(body.get("hasMore"))
        self.total_count = body.get("totalCount", len(self.results))

        if page == 1:
            self.announcement = f"Showing {len(self.results)} results"
        else:
            self.announcement = f"Loaded {len(batch)} more items"
        return True

    async def load_more(self) -> bool:
        return await self.load(reset=False)
