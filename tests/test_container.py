"""Tests for container wiring."""

import asyncio

from nutrition_resolver.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.resolution_service is not None
    assert container.cache_writeback_service is not None
    assert container.resolution_service.external_resolver.timeout_seconds == 30.0
    asyncio.run(container.close_resources())
