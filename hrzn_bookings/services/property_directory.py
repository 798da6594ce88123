"""
Static directory of rental listings.

Maps the rental platform's listing ID to the internal property code used to
partition bookings and name calendar feeds. Built once at import and never
mutated; unknown listings resolve to the default property so a paid booking
is always recorded somewhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from hrzn_bookings.config import DEFAULT_PROPERTY_CODE

FALLBACK_PROPERTY_NAME = "HRZN Property"

DEFAULT_LISTING_ID = "869f5e1f-223b-4cc2-b64a-a0f4b8194c82"


@dataclass(frozen=True)
class Property:
    code: str
    name: str
    listing_id: str


PROPERTY_MAP: Mapping[str, Property] = MappingProxyType(
    {
        listing_id: Property(code=code, name=name, listing_id=listing_id)
        for listing_id, code, name in [
            (DEFAULT_LISTING_ID, "cos1", "Colorado Springs Retreat"),
            ("your-vegas-listing-id", "vegas1", "Vegas Villa"),
            ("your-miami-listing-id", "miami1", "Miami Beach House"),
            ("your-austin-listing-id", "austin1", "Austin Downtown Loft"),
            ("your-denver-listing-id", "denver1", "Denver Mountain Lodge"),
            ("your-phoenix-listing-id", "phoenix1", "Phoenix Desert Villa"),
        ]
    }
)


class PropertyDirectory:
    """
    Read-only lookup from listing ID to property.

    Example:
        >>> directory = PropertyDirectory(PROPERTY_MAP, default_code="cos1")
        >>> directory.resolve("your-vegas-listing-id").code
        'vegas1'
        >>> directory.resolve("nope").name
        'HRZN Property'
    """

    def __init__(
        self,
        properties: Mapping[str, Property],
        default_code: str,
        default_listing_id: str = DEFAULT_LISTING_ID,
    ):
        self._properties = MappingProxyType(dict(properties))
        self._codes = frozenset(p.code for p in properties.values())
        self.default_code = default_code
        self.default_listing_id = default_listing_id

    def resolve(self, listing_id: str | None) -> Property:
        """
        Resolve a listing ID, falling back to the default property.

        Args:
            listing_id: Rental platform listing ID (may be None or unknown)

        Returns:
            Property: The matching property, or the default code with a generic name
        """
        listing_id = listing_id or self.default_listing_id
        if listing_id in self._properties:
            return self._properties[listing_id]
        return Property(code=self.default_code, name=FALLBACK_PROPERTY_NAME, listing_id=listing_id)

    def is_known_code(self, code: str | None) -> bool:
        return bool(code) and code in self._codes

    def codes(self) -> list[str]:
        return sorted(self._codes)


directory = PropertyDirectory(PROPERTY_MAP, default_code=DEFAULT_PROPERTY_CODE)
