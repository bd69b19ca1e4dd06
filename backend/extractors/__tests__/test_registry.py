"""
Unit tests for the adapter registry and shared adapter helpers.

Run: python3 -m pytest extractors/__tests__/test_registry.py -v
"""
import pytest

from config.settings import Settings
from enrichment.rate_limiter import build_rate_limiters
from extractors.registry import (
    ADAPTER_REGISTRY,
    get_enabled_extractors,
    get_extractor,
    list_sources,
)
from extractors.utils import (
    clean_description,
    dedupe_tags,
    extract_keyword_tags,
    format_salary,
    normalize_location,
)

KEYLESS = ["remoteok", "arbeitnow", "remotive", "themuse", "greenhouse", "lever"]


def make_settings(**keys) -> Settings:
    return Settings(_env_file=None, **keys)


class TestGetEnabledExtractors:
    """Tests for get_enabled_extractors()."""

    def test_keyless_only_without_keys(self):
        extractors = get_enabled_extractors(make_settings())
        assert [e.NAME for e in extractors] == KEYLESS

    def test_keyed_adapter_enabled_by_key(self):
        extractors = get_enabled_extractors(make_settings(RAPIDAPI_KEY="k", REED_API_KEY="r"))
        assert [e.NAME for e in extractors] == KEYLESS + ["jsearch", "reed"]

    def test_adzuna_needs_both_keys(self):
        names = [e.NAME for e in get_enabled_extractors(make_settings(ADZUNA_APP_ID="id"))]
        assert "adzuna" not in names

        names = [e.NAME for e in get_enabled_extractors(make_settings(ADZUNA_APP_ID="id", ADZUNA_API_KEY="key"))]
        assert "adzuna" in names

    def test_limiters_assigned_to_quota_sources(self):
        limiters = build_rate_limiters()
        extractors = get_enabled_extractors(make_settings(RAPIDAPI_KEY="k"), limiters=limiters)
        by_name = {e.NAME: e for e in extractors}

        assert by_name["jsearch"].limiter is limiters["jsearch"]
        assert by_name["remoteok"].limiter is None

    def test_max_jobs_from_settings(self):
        extractors = get_enabled_extractors(make_settings(MAX_JOBS_PER_ADAPTER=5))
        assert all(e.max_jobs == 5 for e in extractors)

    def test_custom_registry(self):
        assert get_enabled_extractors(make_settings(), registry=ADAPTER_REGISTRY[:1])[0].NAME == "remoteok"


class TestGetExtractor:
    def test_by_name_case_insensitive(self):
        extractor = get_extractor("Greenhouse", settings=make_settings())
        assert extractor.NAME == "greenhouse"

    def test_unknown_source(self):
        with pytest.raises(ValueError, match="not found in registry"):
            get_extractor("monster")

    def test_list_sources(self):
        assert list_sources() == KEYLESS + ["jsearch", "adzuna", "reed"]


class TestAdapterHelpers:
    """Tests for extractors.utils."""

    def test_format_salary(self):
        assert format_salary(80000, 120000) == "$80k - $120k/yr"
        assert format_salary(80000, None) == "$80k+/yr"
        assert format_salary(None, 120000) == "Up to $120k/yr"
        assert format_salary(25, 40, period="hour") == "$25 - $40/hr"
        assert format_salary(None, None) is None

    def test_normalize_location(self):
        assert normalize_location("  worldwide ") == "Remote"
        assert normalize_location("Remote - US") == "Remote (US)"
        assert normalize_location("") == "Remote"
        assert normalize_location("New   York") == "New York"

    def test_keyword_tags_whole_words(self):
        assert extract_keyword_tags("Google Java Developer") == ["Java"]
        assert extract_keyword_tags("JavaScript Engineer") == ["JavaScript"]

    def test_dedupe_tags(self):
        assert dedupe_tags(["AWS", "aws", None, " ", "Go"]) == ["AWS", "Go"]

    def test_clean_description_truncates(self):
        text = clean_description("<p>" + "word " * 1000 + "</p>", max_length=50)
        assert text.endswith("...")
        assert len(text) <= 53
        assert clean_description(None) is None
