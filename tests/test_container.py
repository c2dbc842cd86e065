"""Tests for container wiring."""

import asyncio

from recipe_nutrition.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.nutrition_service is not None
    assert container.auto_map_service.min_confidence == settings.auto_map_min_confidence
    assert container.candidate_service.limit == settings.candidate_limit
    asyncio.run(container.close_resources())
