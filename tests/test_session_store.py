"""Tests for the per-customer session store."""

import asyncio

import pytest

from salon_booking.conversation.session_store import SessionStore
from salon_booking.locks import KeyedLock
from salon_booking.prompts import replies
from salon_booking.schemas.session_schema import Session, Stage

from conftest import TAX_ID, TOMORROW


class TestSessionStore:
    def test_unknown_customer_has_no_session(self, sessions):
        assert sessions.get("nobody") is None
        assert "nobody" not in sessions

    def test_put_then_get(self, sessions):
        session = Session(name="Maria")
        sessions.put("c1", session)
        assert sessions.get("c1") is session
        assert len(sessions) == 1

    def test_put_overwrites(self, sessions):
        sessions.put("c1", Session(name="Maria"))
        sessions.put("c1", Session(name="Joana", stage=Stage.MAIN_MENU))
        assert sessions.get("c1").name == "Joana"
        assert len(sessions) == 1

    def test_delete_removes_session(self, sessions):
        sessions.put("c1", Session())
        sessions.delete("c1")
        assert sessions.get("c1") is None
        assert len(sessions) == 0

    def test_delete_unknown_is_noop(self, sessions):
        sessions.delete("nobody")
        assert len(sessions) == 0

    def test_new_session_starts_awaiting_name(self):
        assert Session().stage == Stage.AWAITING_NAME


class TestIdleEviction:
    def _store(self, now):
        return SessionStore(idle_timeout_sec=60, clock=lambda: now[0])

    def test_idle_session_is_evicted(self):
        now = [1000.0]
        store = self._store(now)
        store.put("c1", Session())
        now[0] += 61
        assert store.purge_idle() == 1
        assert "c1" not in store

    def test_recent_session_is_kept(self):
        now = [1000.0]
        store = self._store(now)
        store.put("c1", Session())
        now[0] += 30
        store.put("c2", Session())
        now[0] += 40
        assert store.purge_idle() == 1
        assert "c1" not in store
        assert "c2" in store

    def test_put_refreshes_activity(self):
        now = [1000.0]
        store = self._store(now)
        store.put("c1", Session())
        now[0] += 50
        store.put("c1", Session(stage=Stage.MAIN_MENU))
        now[0] += 50
        assert store.purge_idle() == 0

    def test_zero_timeout_disables_eviction(self):
        now = [1000.0]
        store = SessionStore(idle_timeout_sec=0, clock=lambda: now[0])
        store.put("c1", Session())
        now[0] += 10_000
        assert store.purge_idle() == 0
        assert "c1" in store

    @pytest.mark.asyncio
    async def test_session_in_a_running_turn_is_kept(self):
        now = [1000.0]
        store = self._store(now)
        store.put("c1", Session())
        now[0] += 61
        async with store.turn("c1"):
            assert store.purge_idle() == 0
        assert store.purge_idle() == 1


class TestTurnSerialisation:
    @pytest.mark.asyncio
    async def test_same_customer_turns_are_serialised(self, sessions):
        order = []

        async def turn(label):
            async with sessions.turn("c1"):
                order.append(f"{label}-start")
                await asyncio.sleep(0.01)
                order.append(f"{label}-end")

        await asyncio.gather(turn("a"), turn("b"))
        assert order == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_other_customer_not_blocked(self, sessions):
        async def other():
            async with sessions.turn("c2"):
                return "done"

        async with sessions.turn("c1"):
            assert await asyncio.wait_for(other(), timeout=0.1) == "done"

    @pytest.mark.asyncio
    async def test_finished_turns_leave_no_locks(self, sessions):
        async def turn(customer_id):
            async with sessions.turn(customer_id):
                await asyncio.sleep(0)

        await asyncio.gather(*(turn(f"c{i}") for i in range(20)))
        assert sessions.active_turns == 0

    @pytest.mark.asyncio
    async def test_queued_turn_keeps_lock_alive(self, sessions):
        release = asyncio.Event()
        order = []

        async def first():
            async with sessions.turn("c1"):
                order.append("first")
                await release.wait()

        async def second():
            async with sessions.turn("c1"):
                order.append("second")

        tasks = [asyncio.create_task(first()), asyncio.create_task(second())]
        await asyncio.sleep(0.01)
        assert order == ["first"]
        assert sessions.active_turns == 1
        release.set()
        await asyncio.gather(*tasks)
        assert order == ["first", "second"]
        assert sessions.active_turns == 0

    @pytest.mark.asyncio
    async def test_concurrent_messages_are_answered_in_arrival_order(self, machine, sessions):
        for text in ("Hi", "Maria", TAX_ID, "1", "1"):
            await machine.handle_message("c1", text)

        date_reply, time_reply = await asyncio.gather(
            machine.handle_message("c1", TOMORROW),
            machine.handle_message("c1", "09:00"),
        )
        assert date_reply.startswith("Available times")
        assert time_reply == replies.booking_summary(
            "Maria", "Haircut", sessions.get("c1").date, "09:00"
        )
        assert sessions.get("c1").stage == Stage.CONFIRM_BOOKING
        assert sessions.active_turns == 0


class TestKeyedLock:
    @pytest.mark.asyncio
    async def test_distinct_keys_do_not_block(self):
        locks = KeyedLock()
        async with locks.hold(("2030-05-16", "09:00")):
            async with locks.hold(("2030-05-16", "10:00")):
                assert len(locks) == 2
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_is_released_on_error(self):
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.hold("k"):
                raise RuntimeError("boom")
        assert not locks.is_held("k")
        assert len(locks) == 0
