import pytest

from models import IDLE, PAIRED


async def pair(engine, find, a, b):
    await find(engine, a, "A")
    return await find(engine, b, "B")


@pytest.mark.asyncio
async def test_leave_chat_clears_both_sides_and_keeps_partner(engine, connect, find):
    a, b = connect(1), connect(2)
    room = await pair(engine, find, a, b)

    left = await engine.dispatch("leave_chat", a, {"identity": "A", "roomId": room["room_id"]})

    assert left is True
    for identity in ("A", "B"):
        session = engine.registry.get(identity)
        assert session is not None
        assert session["status"] == IDLE
        assert session["room_id"] is None
        assert session["partner_id"] is None
    assert b.events().count("partner_disconnected") == 1
    assert "partner_disconnected" not in a.events()
    assert a.groups == b.groups == []
    assert room["room_id"] not in engine.rooms.rooms


@pytest.mark.asyncio
async def test_leave_chat_with_stale_room_is_ignored(engine, connect, find):
    a, b = connect(1), connect(2)
    await pair(engine, find, a, b)

    left = await engine.dispatch("leave_chat", a, {"identity": "A", "roomId": "room_old"})

    assert left is False
    assert engine.registry.get("A")["status"] == PAIRED
    assert "partner_disconnected" not in b.events()


@pytest.mark.asyncio
async def test_leave_chat_when_not_paired_is_a_no_op(engine, connect, find):
    a = connect(1)
    await find(engine, a, "A")

    assert await engine.dispatch("leave_chat", a, {"identity": "A", "roomId": "room_x"}) is False
    assert await engine.dispatch("leave_chat", a, {"identity": "nobody"}) is False
    assert "A" in engine.pool


@pytest.mark.asyncio
async def test_close_while_waiting_removes_from_pool(engine, connect, find):
    a, b = connect(1), connect(2)
    await find(engine, a, "A")

    closed = await engine.connection_closed(1)
    await find(engine, b, "B")

    assert closed == "A"
    assert "A" not in engine.pool
    assert "A" not in engine.registry
    assert a.events() == ["waiting"]
    assert b.events() == ["waiting"]


@pytest.mark.asyncio
async def test_close_while_paired_deletes_session_and_frees_partner(engine, connect, find):
    a, b = connect(1), connect(2)
    await pair(engine, find, a, b)

    await engine.connection_closed(2)

    assert "B" not in engine.registry
    assert engine.registry.find_by_connection(2) is None
    assert engine.registry.get("A")["status"] == IDLE
    assert engine.registry.get("A")["partner_id"] is None
    assert a.events() == ["waiting", "partner_found", "partner_disconnected"]
    assert len(engine.rooms.rooms) == 0


@pytest.mark.asyncio
async def test_close_of_unknown_connection_is_ignored(engine):
    assert await engine.connection_closed(99) is None


@pytest.mark.asyncio
async def test_cancel_search_keeps_session(engine, connect, find):
    a = connect(1)
    await find(engine, a, "A")

    cancelled = await engine.dispatch("cancel_search", a, {"identity": "A"})

    assert cancelled is True
    assert "A" not in engine.pool
    assert engine.registry.get("A")["status"] == IDLE
    assert await engine.dispatch("cancel_search", a, {"identity": "A"}) is False


@pytest.mark.asyncio
async def test_cancel_search_does_not_touch_a_pairing(engine, connect, find):
    a, b = connect(1), connect(2)
    await pair(engine, find, a, b)

    assert await engine.dispatch("cancel_search", a, {"identity": "A"}) is False
    assert engine.registry.get("A")["status"] == PAIRED


@pytest.mark.asyncio
async def test_leave_with_one_sided_pairing_leaves_other_relation_alone(engine, connect, find):
    a, b = connect(1), connect(2)
    await pair(engine, find, a, b)
    partner = engine.registry.get("B")
    partner["partner_id"] = "X"
    partner["room_id"] = "room_other"

    assert engine.rooms.leave("A")

    assert engine.registry.get("A")["partner_id"] is None
    assert partner["partner_id"] == "X"
    assert partner["room_id"] == "room_other"
    assert len(engine.outbox) == 0


@pytest.mark.asyncio
async def test_heal_clears_one_sided_pairing(engine, connect, find):
    a, b = connect(1), connect(2)
    room = await pair(engine, find, a, b)
    engine.registry.set_idle("B")

    healed = engine.rooms.heal()

    assert healed == 1
    assert engine.registry.get("A")["status"] == IDLE
    assert engine.registry.get("A")["room_id"] is None
    assert room["room_id"] not in engine.rooms.rooms
    assert [event for _, event, _ in engine.outbox.drain()] == ["partner_disconnected"]


@pytest.mark.asyncio
async def test_heal_leaves_symmetric_pairs_alone(engine, connect, find):
    await pair(engine, find, connect(1), connect(2))

    assert engine.rooms.heal() == 0
    assert engine.registry.get("A")["status"] == PAIRED
