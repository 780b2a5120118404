"""Tests for the provider health monitor."""

import asyncio

import pytest

from api.llm.health import HealthMonitor


@pytest.mark.asyncio
async def test_both_providers_available(make_provider):
    # Arrange
    providers = {"openai": make_provider("openai", "gpt-4o"), "gemini": make_provider("gemini", "gemini-2.5-flash")}
    monitor = HealthMonitor(providers, preferred_provider="openai")

    # Act
    health = await monitor.check_health()

    # Assert
    assert health.status == "healthy"
    assert health.preferred_provider == "openai"
    assert health.available_providers() == ["openai", "gemini"]
    assert health.providers["openai"].model == "gpt-4o"
    assert health.providers["gemini"].model == "gemini-2.5-flash"
    assert health.providers["openai"].last_check == health.providers["gemini"].last_check


@pytest.mark.asyncio
async def test_one_available_is_still_healthy(make_provider):
    providers = {"openai": make_provider("openai", healthy=False), "gemini": make_provider("gemini")}
    monitor = HealthMonitor(providers, preferred_provider="openai")

    health = await monitor.check_health()

    assert health.status == "healthy"
    assert health.providers["openai"].available is False
    assert health.providers["gemini"].available is True


@pytest.mark.asyncio
async def test_none_available_is_unhealthy(make_provider):
    providers = {"openai": make_provider("openai", healthy=False), "gemini": make_provider("gemini", healthy=False)}
    monitor = HealthMonitor(providers, preferred_provider="gemini")

    health = await monitor.check_health()

    assert health.status == "unhealthy"
    assert health.available_providers() == []


@pytest.mark.asyncio
async def test_unconfigured_provider_is_not_pinged(make_provider):
    openai = make_provider("openai", configured=False)
    gemini = make_provider("gemini")
    monitor = HealthMonitor({"openai": openai, "gemini": gemini}, preferred_provider="openai")

    health = await monitor.check_health()

    assert openai.pings == 0
    assert health.providers["openai"].available is False
    assert health.status == "healthy"


@pytest.mark.asyncio
async def test_unexpected_ping_error_marks_unavailable(make_provider):
    openai = make_provider("openai")
    gemini = make_provider("gemini")

    async def broken_ping():
        raise RuntimeError("connection reset")

    openai.ping = broken_ping
    monitor = HealthMonitor({"openai": openai, "gemini": gemini}, preferred_provider="openai")

    health = await monitor.check_health()

    assert health.providers["openai"].available is False
    assert health.providers["gemini"].available is True


@pytest.mark.asyncio
async def test_slow_ping_times_out(make_provider):
    openai = make_provider("openai")
    gemini = make_provider("gemini")

    async def slow_ping():
        await asyncio.sleep(5)

    gemini.ping = slow_ping
    monitor = HealthMonitor({"openai": openai, "gemini": gemini}, preferred_provider="openai", timeout=0.01)

    health = await monitor.check_health()

    assert health.providers["gemini"].available is False
    assert health.status == "healthy"


@pytest.mark.asyncio
async def test_health_is_recomputed_each_call(make_provider):
    openai = make_provider("openai")
    gemini = make_provider("gemini", healthy=False)
    monitor = HealthMonitor({"openai": openai, "gemini": gemini}, preferred_provider="openai")

    first = await monitor.check_health()
    openai.healthy = False
    second = await monitor.check_health()

    assert first.status == "healthy"
    assert second.status == "unhealthy"
    assert openai.pings == 2


def test_unknown_preferred_provider_rejected(make_provider):
    with pytest.raises(ValueError):
        HealthMonitor({"openai": make_provider("openai")}, preferred_provider="anthropic")
