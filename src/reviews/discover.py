"""
Discover query model.

Sections, filters, sort and pagination for the discover/search results page.
The query round-trips through URL parameters so a results page can be
restored from its address.
"""

import math

from pydantic import BaseModel, Field, field_validator

PAGE_SIZE = 20

DEFAULT_SECTION = "for-you"
DEFAULT_SORT = "relevance"

SECTION_CONFIGS = {
    "for-you": {
        "title": "For You",
        "subtitle": "Personalized picks based on your interests",
    },
    "trending": {
        "title": "Trending",
        "subtitle": "Popular places everyone is talking about",
    },
    "nearby": {
        "title": "Nearby",
        "subtitle": "Great places within your area",
    },
    "featured": {
        "title": "Featured",
        "subtitle": "Handpicked recommendations from our team",
    },
}

PRICE_LEVELS = {"budget": 1, "moderate": 2, "expensive": 3, "luxury": 4}
PRICE_DISPLAY = {"budget": "$", "moderate": "$$", "expensive": "$$$", "luxury": "$$$$"}

DISTANCE_OPTIONS_KM = {"1km": 1.0, "5km": 5.0, "10km": 10.0, "25km": 25.0}

SORT_OPTIONS = ("relevance", "rating", "reviews", "distance", "price-low", "price-high")

FILTER_TYPES = ("category", "price", "rating", "distance")


def section_config(section: str) -> dict:
    """Title/subtitle for a section; unknown sections fall back to For You."""
    return SECTION_CONFIGS.get(section) or SECTION_CONFIGS[DEFAULT_SECTION]


def filter_display(filter_type: str, value: str) -> str:
    """Chip text for an active filter."""
    if filter_type == "rating":
        return f"{value} rating"
    if filter_type == "price":
        return PRICE_DISPLAY.get(value, value)
    if filter_type == "distance":
        return f"Within {value}"
    return value


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    radius = 6371.0
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * radius * math.asin(math.sqrt(a))


def format_distance(km: float) -> str:
    return f"{km:.1f} km"


class DiscoverFilters(BaseModel):
    """Active filters. None means the filter is off."""

    category: str | None = None
    price: str | None = None
    rating: str | None = None
    distance: str | None = None
    open_now: bool = False

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: str | None) -> str | None:
        if v is not None and v not in PRICE_LEVELS:
            raise ValueError(f"Unknown price: {v}")
        return v

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            value = float(v)
        except ValueError as e:
            raise ValueError(f"Invalid rating: {v}") from e
        if not 0 <= value <= 5:
            raise ValueError(f"Invalid rating: {v}")
        return v

    @field_validator("distance")
    @classmethod
    def validate_distance(cls, v: str | None) -> str | None:
        if v is not None and v not in DISTANCE_OPTIONS_KM:
            raise ValueError(f"Unknown distance: {v}")
        return v

    @property
    def min_rating(self) -> float | None:
        return float(self.rating) if self.rating is not None else None

    @property
    def max_distance_km(self) -> float | None:
        return DISTANCE_OPTIONS_KM.get(self.distance) if self.distance else None

    def is_empty(self) -> bool:
        return not self.open_now and all(getattr(self, f) is None for f in FILTER_TYPES)


class DiscoverQuery(BaseModel):
    """A discover results request."""

    section: str = DEFAULT_SECTION
    filters: DiscoverFilters = Field(default_factory=DiscoverFilters)
    sort: str = DEFAULT_SORT
    page: int = Field(default=1, ge=1)
    lat: float | None = None
    lng: float | None = None
    interests: list[str] = Field(default_factory=list)

    @field_validator("section")
    @classmethod
    def normalize_section(cls, v: str) -> str:
        return v if v in SECTION_CONFIGS else DEFAULT_SECTION

    @field_validator("sort")
    @classmethod
    def validate_sort(cls, v: str) -> str:
        if v not in SORT_OPTIONS:
            raise ValueError(f"Unknown sort: {v}")
        return v

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def offset(self) -> int:
        return (self.page - 1) * PAGE_SIZE

    def active_filters(self) -> list[tuple[str, str]]:
        """(filter type, chip text) for each active filter, in display order."""
        chips = []
        for filter_type in FILTER_TYPES:
            value = getattr(self.filters, filter_type)
            if value:
                chips.append((filter_type, filter_display(filter_type, value)))
        if self.filters.open_now:
            chips.append(("open-now", "Open Now"))
        return chips

    def to_params(self, include_page: bool = False) -> dict[str, str]:
        """URL query parameters. Defaults are omitted."""
        params: dict[str, str] = {}
        for filter_type in FILTER_TYPES:
            value = getattr(self.filters, filter_type)
            if value:
                params[filter_type] = value
        if self.filters.open_now:
            params["openNow"] = "true"
        if self.sort != DEFAULT_SORT:
            params["sort"] = self.sort
        if self.lat is not None:
            params["lat"] = str(self.lat)
        if self.lng is not None:
            params["lng"] = str(self.lng)
        if self.interests:
            params["interests"] = ",".join(self.interests)
        if include_page and self.page != 1:
            params["page"] = str(self.page)
        return params

    @classmethod
    def from_params(cls, section: str, params: dict[str, str]) -> "DiscoverQuery":
        """Inverse of to_params. Raises pydantic ValidationError on bad values."""
        interests = params.get("interests")
        return cls(
            section=section,
            filters=DiscoverFilters(
                category=params.get("category") or None,
                price=params.get("price") or None,
                rating=params.get("rating") or None,
                distance=params.get("distance") or None,
                open_now=params.get("openNow") == "true",
            ),
            sort=params.get("sort") or DEFAULT_SORT,
            page=int(params.get("page") or 1),
            lat=float(params["lat"]) if params.get("lat") else None,
            lng=float(params["lng"]) if params.get("lng") else None,
            interests=[i for i in interests.split(",") if i] if interests else [],
        )
