"""
Lexical matcher tests.
"""

import pytest


class TestSearchNearCity:
    """City substring search."""

    def test_returns_first_matches_in_source_order(self, matcher):
        results = matcher.search_near_city("Bangalore", 3)

        assert [r.name for r in results] == [
            "Manipal Hospital",
            "Apollo Hospital Bannerghatta",
            "Fortis Hospital",
        ]

    def test_is_case_insensitive_substring(self, matcher):
        results = matcher.search_near_city("bangal", 10)

        assert len(results) == 4

    @pytest.mark.parametrize("city", ["", "   ", None])
    def test_empty_city_returns_nothing(self, matcher, city):
        assert matcher.search_near_city(city, 3) == []

    def test_unknown_city_returns_nothing(self, matcher):
        assert matcher.search_near_city("Atlantis", 3) == []

    @pytest.mark.parametrize("city", ["Bangalore", "chennai", "MUM", "une", "a"])
    @pytest.mark.parametrize("limit", [0, 1, 2, 3, 10])
    def test_results_respect_limit_and_city(self, matcher, city, limit):
        results = matcher.search_near_city(city, limit)

        assert len(results) <= limit
        assert all(city.lower() in r.city.lower() for r in results)


class TestFindByNameAndCity:
    """Name and city lookups."""

    def test_every_record_finds_itself(self, matcher, directory):
        for record in directory:
            for name, city in [
                (record.name, record.city),
                (record.name.upper(), record.city.lower()),
            ]:
                assert record in matcher.find_by_name_and_city(name, city)

    def test_partial_name_matches_all_branches(self, matcher):
        results = matcher.find_by_name_and_city("apollo", "Bangalore")

        assert [r.name for r in results] == ["Apollo Hospital Bannerghatta"]

    def test_wrong_city_returns_nothing(self, matcher):
        assert matcher.find_by_name_and_city("Apollo Hospital", "Mumbai") == []

    @pytest.mark.parametrize("name,city", [("", "Chennai"), ("Apollo", ""), ("  ", "Chennai")])
    def test_missing_slot_returns_nothing(self, matcher, name, city):
        assert matcher.find_by_name_and_city(name, city) == []
