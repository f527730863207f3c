"""Event dispatcher and background runner."""

import logging

import pytest

from heimursaga.services.events import EventDispatcher
from heimursaga.utils.background import BackgroundRunner


@pytest.mark.asyncio
class TestEventDispatcher:
    async def test_failing_handler_does_not_affect_others(self, caplog):
        dispatcher = EventDispatcher()
        received = []

        async def broken(payload):
            raise RuntimeError("mail server down")

        async def recorder(payload):
            received.append(payload)

        dispatcher.on("entry.created", broken)
        dispatcher.on("entry.created", recorder)
        with caplog.at_level(logging.ERROR, logger="heimursaga.utils.background"):
            dispatcher.trigger("entry.created", {"entry_id": "abc"})
            await dispatcher.drain()

        assert received == [{"entry_id": "abc"}]
        assert "background task 'broken' failed" in caplog.text

    async def test_handlers_get_their_own_payload_copy(self):
        dispatcher = EventDispatcher()
        seen = []

        async def mutate(payload):
            payload["touched"] = True

        async def observe(payload):
            seen.append(dict(payload))

        dispatcher.on("x", mutate)
        dispatcher.on("x", observe)
        original = {"id": 1}
        dispatcher.trigger("x", original)
        await dispatcher.drain()

        assert original == {"id": 1}
        assert seen == [{"id": 1}]

    async def test_trigger_without_handlers_is_a_no_op(self):
        dispatcher = EventDispatcher()
        dispatcher.trigger("nobody.listens", {})
        await dispatcher.drain()

    async def test_clear_removes_handlers(self):
        dispatcher = EventDispatcher()
        calls = []

        async def handler(payload):
            calls.append(payload)

        dispatcher.on("x", handler)
        dispatcher.clear()
        dispatcher.trigger("x", {})
        await dispatcher.drain()

        assert calls == []


@pytest.mark.asyncio
async def test_runner_drains_tasks_spawned_while_draining():
    runner = BackgroundRunner("test")
    order = []

    async def child():
        order.append("child")

    async def parent():
        order.append("parent")
        runner.spawn(child)

    runner.spawn(parent)
    await runner.drain()

    assert order == ["parent", "child"]
    assert runner.pending == 0
