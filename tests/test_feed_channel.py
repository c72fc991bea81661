"""Tests for the feed-enablement control channel."""

from __future__ import annotations

import asyncio

import pytest
from fake_backend import FakeStoreBackend

from fleetrecon._transport import StreamEvent
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import NotReadyError, PermissionDeniedError, ReconTransportError, ToggleRejectedError
from fleetrecon.feed import FeedControlChannel
from fleetrecon.models.feed import FeedState, FeedStatus


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_listener_value_resolves_state(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.flag = True
    channel = FeedControlChannel(config, backend)
    seen: list[FeedState] = []

    channel.subscribe(seen.append)
    assert channel.state.status == FeedStatus.UNKNOWN
    await _settle()

    assert channel.state.enabled is True
    assert seen == [FeedState(enabled=True)]
    await channel.aclose()


@pytest.mark.asyncio
async def test_timeout_after_listener_does_not_clobber(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.flag = True
    channel = FeedControlChannel(config, backend, resolve_timeout=0.05)
    seen: list[FeedState] = []

    channel.subscribe(seen.append)
    await asyncio.sleep(0.15)

    assert channel.state.enabled is True
    assert seen == [FeedState(enabled=True)]
    await channel.aclose()


@pytest.mark.asyncio
async def test_missing_flag_resolves_false(config: ReconConfig, backend: FakeStoreBackend) -> None:
    channel = FeedControlChannel(config, backend)
    channel.subscribe()
    await _settle()
    assert channel.state == FeedState(enabled=False)
    await channel.aclose()


@pytest.mark.asyncio
async def test_silent_listener_resolves_false_at_timeout_not_before(
    config: ReconConfig,
    backend: FakeStoreBackend,
) -> None:
    backend.stream_initial = False
    channel = FeedControlChannel(config, backend, resolve_timeout=0.2)
    seen: list[FeedState] = []
    channel.subscribe(seen.append)

    await asyncio.sleep(0.05)
    assert channel.state.status == FeedStatus.UNKNOWN
    assert seen == []

    await asyncio.sleep(0.3)
    assert channel.state == FeedState(enabled=False)
    assert seen == [FeedState(enabled=False)]

    # A value arriving later still updates the live view.
    backend.push_flag(True)
    await _settle()
    assert channel.state.enabled is True
    await channel.aclose()


@pytest.mark.asyncio
async def test_listener_permission_denied_resolves_false(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.stream_error = PermissionDeniedError("HTTP 401", status_code=401)
    channel = FeedControlChannel(config, backend, resolve_timeout=5.0)
    channel.subscribe()
    await _settle()
    assert channel.state == FeedState(enabled=False)
    await channel.aclose()


@pytest.mark.asyncio
async def test_server_cancel_resolves_false(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.flag = True
    channel = FeedControlChannel(config, backend, resolve_timeout=5.0)
    channel.subscribe()
    await _settle()
    assert channel.state.enabled is True

    backend.push_event(StreamEvent(event="cancel", data=None))
    await _settle()
    assert channel.state.enabled is False
    await channel.aclose()


@pytest.mark.asyncio
async def test_toggle_while_unknown_is_rejected_without_write(
    config: ReconConfig,
    backend: FakeStoreBackend,
) -> None:
    backend.stream_initial = False
    channel = FeedControlChannel(config, backend, resolve_timeout=5.0)
    channel.subscribe()

    with pytest.raises(NotReadyError):
        await channel.toggle()

    assert backend.writes == []
    assert backend.count("PUT", backend.flag_url) == 0
    await channel.aclose()


@pytest.mark.asyncio
async def test_toggle_without_subscription_is_rejected(config: ReconConfig, backend: FakeStoreBackend) -> None:
    channel = FeedControlChannel(config, backend)
    with pytest.raises(NotReadyError):
        await channel.toggle()
    assert backend.writes == []


@pytest.mark.asyncio
async def test_toggle_writes_negation(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.flag = False
    channel = FeedControlChannel(config, backend)
    seen: list[FeedState] = []
    channel.subscribe(seen.append)
    await _settle()

    assert await channel.toggle() is True
    await _settle()

    assert backend.writes == [True]
    assert channel.state == FeedState(enabled=True)
    assert FeedState(enabled=False, toggling=True) in seen
    assert seen[-1] == FeedState(enabled=True)
    await channel.aclose()


@pytest.mark.asyncio
async def test_second_toggle_while_in_flight_is_rejected(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.flag = True
    backend.write_delay = 0.05
    channel = FeedControlChannel(config, backend)
    channel.subscribe()
    await _settle()

    first = asyncio.create_task(channel.toggle())
    await asyncio.sleep(0)
    assert channel.state.toggling is True

    with pytest.raises(NotReadyError):
        await channel.toggle()

    assert await first is False
    assert backend.writes == [False]
    await channel.aclose()


@pytest.mark.asyncio
async def test_failed_toggle_keeps_prior_value(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.flag = True
    backend.write_error = ReconTransportError("HTTP 500", status_code=500)
    channel = FeedControlChannel(config, backend)
    channel.subscribe()
    await _settle()

    with pytest.raises(ToggleRejectedError) as excinfo:
        await channel.toggle()

    assert not isinstance(excinfo.value, NotReadyError)
    assert channel.state == FeedState(enabled=True)
    # No automatic retry.
    assert backend.count("PUT", backend.flag_url) == 1
    await channel.aclose()


@pytest.mark.asyncio
async def test_unsubscribe_stops_transitions(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.stream_initial = False
    channel = FeedControlChannel(config, backend, resolve_timeout=0.05)
    seen: list[FeedState] = []
    unsubscribe = channel.subscribe(seen.append)
    await _settle()
    assert backend.open_streams == 1

    unsubscribe()
    await asyncio.sleep(0.1)

    assert seen == []
    assert channel.state.status == FeedStatus.UNKNOWN
    assert backend.open_streams == 0
    assert not channel.is_subscribed


@pytest.mark.asyncio
async def test_resubscribe_starts_unknown_and_stale_unsubscribe_is_noop(
    config: ReconConfig,
    backend: FakeStoreBackend,
) -> None:
    backend.flag = True
    channel = FeedControlChannel(config, backend)
    first_unsubscribe = channel.subscribe()
    await _settle()
    assert channel.state.enabled is True

    backend.stream_initial = False
    channel.subscribe()
    assert channel.state.status == FeedStatus.UNKNOWN

    first_unsubscribe()
    assert channel.is_subscribed
    await _settle()
    assert backend.open_streams == 1

    backend.push_flag(False)
    await _settle()
    assert channel.state.enabled is False
    await channel.aclose()


@pytest.mark.asyncio
async def test_callback_errors_do_not_break_channel(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.flag = False

    def explode(_state: FeedState) -> None:
        raise RuntimeError("consumer bug")

    channel = FeedControlChannel(config, backend)
    channel.subscribe(explode)
    await _settle()
    assert channel.state.enabled is False
    assert await channel.toggle() is True
    await channel.aclose()
