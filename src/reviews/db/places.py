"""
Place search for the discover page.
"""

import logging

from supabase import Client

from reviews.discover import PAGE_SIZE, PRICE_LEVELS, DiscoverQuery, format_distance, haversine_km

logger = logging.getLogger(__name__)

TABLE = "places"

# sort -> (column, descending)
_SORT_COLUMNS = {
    "rating": ("rating", True),
    "reviews": ("review_count", True),
    "price-low": ("price_level", False),
    "price-high": ("price_level", True),
}

# section default ordering when sort is "relevance"
_SECTION_ORDER = {
    "for-you": ("rating", True),
    "trending": ("trending_score", True),
    "nearby": ("rating", True),
    "featured": ("rating", True),
}


class PlaceStore:
    """Supabase-backed place search."""

    def __init__(self, client: Client):
        self.client = client

    def search(self, query: DiscoverQuery) -> tuple[list[dict], bool, int]:
        """
        One page of places matching the query.

        Returns (results, has_more, total_count). Distance is computed when the query
        carries a location; the distance filter and sort apply within the page.
        """
        filters = query.filters
        q = self.client.table(TABLE).select("*", count="exact")

        if query.section == "featured":
            q = q.eq("is_featured", True)
        if query.section == "for-you" and query.interests and not filters.category:
            q = q.in_("category", query.interests)

        if filters.category:
            q = q.eq("category", filters.category)
        if filters.price:
            q = q.eq("price_level", PRICE_LEVELS[filters.price])
        if filters.min_rating is not None:
            q = q.gte("rating", filters.min_rating)
        if filters.open_now:
            q = q.eq("is_open", True)

        column, desc = _SORT_COLUMNS.get(query.sort) or _SECTION_ORDER[query.section]
        q = q.order(column, desc=desc)
        q = q.range(query.offset, query.offset + PAGE_SIZE - 1)

        try:
            response = q.execute()
        except Exception as e:
            logger.error(f"Place search failed: {e}")
            raise

        rows = response.data or []
        if response.count is None:
            total = query.offset + len(rows)
            has_more = len(rows) == PAGE_SIZE
        else:
            total = response.count
            has_more = query.offset + len(rows) < total
        results = [_with_distance(row, query) for row in rows]

        max_km = filters.max_distance_km
        if max_km is not None and query.has_location:
            results = [r for r in results if r["distanceKm"] is not None and r["distanceKm"] <= max_km]

        if query.has_location and (query.sort == "distance" or query.section == "nearby"):
            results.sort(key=lambda r: r["distanceKm"] if r["distanceKm"] is not None else float("inf"))

        return results, has_more, total


def _with_distance(row: dict, query: DiscoverQuery) -> dict:
    """Result card fields, with distance when both ends have coordinates."""
    distance_km = None
    if query.has_location and row.get("lat") is not None and row.get("lng") is not None:
        distance_km = haversine_km(query.lat, query.lng, row["lat"], row["lng"])

    price_level = row.get("price_level") or 1
    return {
        "id": row.get("id"),
        "name": row.get("name"),
        "category": row.get("category"),
        "rating": row.get("rating"),
        "reviewCount": row.get("review_count", 0),
        "price": "$" * price_level,
        "image": row.get("image_url"),
        "isOpen": bool(row.get("is_open")),
        "distanceKm": distance_km,
        "distance": format_distance(distance_km) if distance_km is not None else None,
    }
