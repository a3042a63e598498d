# tests/test_connections.py
import pytest

from tripboard.live import ConnectionRegistry

from .conftest import FakeWebSocket


def test_identity_is_per_connection(registry: ConnectionRegistry) -> None:
    first, second = FakeWebSocket("a"), FakeWebSocket("b")
    registry.admit(first)
    registry.admit(second)

    registry.identify(first, " Mei ")

    assert registry.display_name(first) == "Mei"
    assert registry.is_identified(first)
    assert not registry.is_identified(second)
    assert registry.display_name(second) is None


def test_identify_rejects_empty_name(registry: ConnectionRegistry) -> None:
    ws = FakeWebSocket()
    registry.admit(ws)
    with pytest.raises(ValueError):
        registry.identify(ws, "   ")


def test_forget_is_idempotent(registry: ConnectionRegistry) -> None:
    ws = FakeWebSocket()
    registry.admit(ws)
    registry.identify(ws, "Mei")

    registry.forget(ws)
    registry.forget(ws)

    assert ws not in registry
    assert len(registry) == 0
    assert registry.display_name(ws) is None


@pytest.mark.asyncio
async def test_broadcast_reaches_every_open_connection(registry: ConnectionRegistry) -> None:
    named, anonymous, dropped = FakeWebSocket("named"), FakeWebSocket("anon"), FakeWebSocket("gone")
    for ws in (named, anonymous, dropped):
        registry.admit(ws)
    registry.identify(named, "Mei")
    dropped.drop()

    delivered = await registry.broadcast({"type": "ping"})

    assert delivered == 2
    assert named.sent == [{"type": "ping"}]
    assert anonymous.sent == [{"type": "ping"}]
    assert dropped.sent == []


@pytest.mark.asyncio
async def test_send_to_failing_transport_is_skipped(registry: ConnectionRegistry) -> None:
    ws = FakeWebSocket()
    registry.admit(ws)

    async def boom(data, mode="text"):
        raise RuntimeError("socket went away")

    ws.send_json = boom

    assert await registry.send(ws, {"type": "ping"}) is False
    assert await registry.broadcast({"type": "ping"}) == 0
