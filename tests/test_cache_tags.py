"""Tests for cache directive computation."""

import pytest

from gateway.services.cache_tags import CacheTagCoordinator, FetchOptions, dedupe_strings


@pytest.fixture
def coordinator() -> CacheTagCoordinator:
    return CacheTagCoordinator(default_tag="strapi", default_revalidate_seconds=60)


def test_default_directive_carries_default_tag_and_ttl(coordinator):
    directive = coordinator.directive()

    assert directive.tags == ("strapi",)
    assert directive.revalidate_seconds == 60
    assert directive.bypass is False
    assert directive.cacheable


def test_caller_tags_are_merged_after_default_and_deduplicated(coordinator):
    directive = coordinator.directive(tags=["tours", " strapi ", "tours", ""])

    assert directive.tags == ("strapi", "tours")


@pytest.mark.parametrize("ttl", [0, 1, 3600])
def test_non_negative_integer_ttl_is_kept(coordinator, ttl):
    assert coordinator.directive(revalidate_seconds=ttl).revalidate_seconds == ttl


@pytest.mark.parametrize("ttl", [-1, 2.5, True, None])
def test_invalid_ttl_falls_back_to_default(coordinator, ttl):
    assert coordinator.directive(revalidate_seconds=ttl).revalidate_seconds == 60


def test_bypass_keeps_tags_but_drops_ttl(coordinator):
    directive = coordinator.directive(bypass=True, tags=["articles"], revalidate_seconds=30)

    assert directive.tags == ("strapi", "articles")
    assert directive.revalidate_seconds is None
    assert not directive.cacheable


def test_bypass_without_tags_has_no_tags(coordinator):
    directive = coordinator.directive(bypass=True)

    assert directive.tags == ()
    assert directive.bypass is True


def test_for_options_reads_fetch_options(coordinator):
    directive = coordinator.for_options(FetchOptions(revalidate_seconds=5, tags=("tours",)))

    assert directive.tags == ("strapi", "tours")
    assert directive.revalidate_seconds == 5


def test_dedupe_strings_drops_non_strings():
    assert dedupe_strings(["a", 1, None, " a", "b "]) == ["a", "b"]
