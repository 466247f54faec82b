"""
Lexical matching over the hospital directory.

Both lookups are case-insensitive substring matches and preserve the
directory's source order.
"""

import logging
from typing import List, Optional
from app.directory import HospitalDirectory, get_hospital_directory
from app.models import HospitalRecord

logger = logging.getLogger(__name__)


class HospitalMatcher:
    """Substring lookups by city and by (name, city) pair."""

    def __init__(self, directory: Optional[HospitalDirectory] = None):
        self._directory = directory

    @property
    def directory(self) -> HospitalDirectory:
        # Resolved lazily so the matcher can be built before startup loads the CSV
        return self._directory if self._directory is not None else get_hospital_directory()

    def search_near_city(self, city: str, limit: int = 3) -> List[HospitalRecord]:
        """
        Find hospitals whose city contains the given text.

        Args:
            city: City text to look for
            limit: Maximum number of records to return

        Returns:
            First `limit` matches in source order
        """
        needle = (city or "").upper()
        if not needle.strip() or limit <= 0:
            return []

        matches = []
        for record in self.directory:
            if needle in record.city.upper():
                matches.append(record)
                if len(matches) >= limit:
                    break

        logger.debug(f"search_near_city({city!r}, {limit}) -> {len(matches)} matches")
        return matches

    def find_by_name_and_city(self, name: str, city: str) -> List[HospitalRecord]:
        """
        Find hospitals matching both a name and a city.

        Args:
            name: Hospital name text
            city: City text

        Returns:
            All matches in source order
        """
        name_needle = (name or "").upper()
        city_needle = (city or "").upper()
        if not name_needle.strip() or not city_needle.strip():
            return []

        matches = [
            record for record in self.directory
            if name_needle in record.name.upper() and city_needle in record.city.upper()
        ]
        logger.debug(f"find_by_name_and_city({name!r}, {city!r}) -> {len(matches)} matches")
        return matches


def get_hospital_matcher() -> HospitalMatcher:
    """Get a matcher bound to the global hospital directory."""
    return HospitalMatcher()
