"""Tests for the listen -> respond -> transform -> send dispatch cycle."""
from __future__ import annotations

import asyncio
import logging

import pytest

from RelayBot.kernel.dispatcher import Dispatcher
from RelayBot.message.event import Message, Response

from conftest import FakeMessenger


class RecordingListener:
    def __init__(self, log: list[str], name: str, delay: float = 0.0) -> None:
        self.log = log
        self.name = name
        self.delay = delay

    async def observe(self, message: Message) -> None:
        await asyncio.sleep(self.delay)
        self.log.append(self.name)


class FixedResponder:
    def __init__(self, text: str | None, calls: list[str] | None = None, name: str = "") -> None:
        self.text = text
        self.calls = calls if calls is not None else []
        self.name = name or f"Fixed({text})"

    async def respond(self, message: Message) -> Response | None:
        self.calls.append(self.name)
        if self.text is None:
            return None
        return message.respond(self.text)


class AppendTransformer:
    def __init__(self, suffix: str) -> None:
        self.suffix = suffix

    async def transform(self, response: Response) -> Response:
        return response.replace(text=response.text + self.suffix)


class BrokenStage:
    name = "Broken"

    async def observe(self, message: Message) -> None:
        raise RuntimeError("listener boom")

    async def respond(self, message: Message) -> Response | None:
        raise RuntimeError("responder boom")

    async def transform(self, response: Response) -> Response:
        raise RuntimeError("transformer boom")


class NoneTransformer:
    async def transform(self, response: Response) -> Response:
        return None  # type: ignore[return-value]


@pytest.mark.asyncio
async def test_all_listeners_finish_before_responders(messenger: FakeMessenger):
    log: list[str] = []
    listeners = [RecordingListener(log, f"l{i}", delay=0.01 * i) for i in range(5)]

    class CountingResponder:
        seen: int | None = None

        async def respond(self, message: Message) -> Response | None:
            CountingResponder.seen = len(log)
            return None

    dispatcher = Dispatcher(listeners, [CountingResponder()], [], messenger)
    await dispatcher.dispatch(messenger.message("hi"))

    assert CountingResponder.seen == 5


@pytest.mark.asyncio
async def test_listeners_run_concurrently(messenger: FakeMessenger):
    ready = asyncio.Event()

    class Waiter:
        async def observe(self, message: Message) -> None:
            await asyncio.wait_for(ready.wait(), timeout=1)

    class Setter:
        async def observe(self, message: Message) -> None:
            ready.set()

    dispatcher = Dispatcher([Waiter(), Setter()], [], [], messenger)

    # Sequential execution would time out inside Waiter
    await asyncio.wait_for(dispatcher.dispatch(messenger.message("hi")), timeout=2)
    assert ready.is_set()


@pytest.mark.asyncio
async def test_first_non_empty_responder_short_circuits(messenger: FakeMessenger):
    calls: list[str] = []
    responders = [
        FixedResponder(None, calls, "r0"),
        FixedResponder("second", calls, "r1"),
        FixedResponder("third", calls, "r2"),
    ]
    dispatcher = Dispatcher([], responders, [], messenger)

    response = await dispatcher.dispatch(messenger.message("hi"))

    assert calls == ["r0", "r1"]
    assert response is not None and response.text == "second"
    assert messenger.sent == [("#test", "second", False)]


@pytest.mark.asyncio
async def test_transformers_compose_in_order(messenger: FakeMessenger):
    dispatcher = Dispatcher(
        [],
        [FixedResponder("x")],
        [AppendTransformer("1"), AppendTransformer("2"), AppendTransformer("3")],
        messenger,
    )

    await dispatcher.dispatch(messenger.message("hi"))

    assert messenger.sent == [("#test", "x123", False)]


@pytest.mark.asyncio
async def test_no_response_means_no_send(messenger: FakeMessenger):
    dispatcher = Dispatcher([], [FixedResponder(None), FixedResponder(None)], [], messenger)

    assert await dispatcher.dispatch(messenger.message("hi")) is None
    assert messenger.sent == []


@pytest.mark.asyncio
async def test_failing_stages_are_neutralised(messenger: FakeMessenger, caplog):
    log: list[str] = []
    dispatcher = Dispatcher(
        [BrokenStage(), RecordingListener(log, "ok")],
        [BrokenStage(), FixedResponder("fine")],
        [AppendTransformer("!"), BrokenStage(), NoneTransformer(), AppendTransformer("?")],
        messenger,
    )

    with caplog.at_level(logging.WARNING, logger="RelayBot"):
        response = await dispatcher.dispatch(messenger.message("hi", user="bob"))

    assert log == ["ok"]
    assert response is not None
    assert messenger.sent == [("#test", "fine!?", False)]

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 3
    assert all("Broken" in r.getMessage() for r in errors)
    assert all("bob" in r.getMessage() for r in errors)


@pytest.mark.asyncio
async def test_stage_timeout_skips_slow_responder(messenger: FakeMessenger):
    class SlowResponder:
        async def respond(self, message: Message) -> Response | None:
            await asyncio.sleep(5)
            return message.respond("too late")

    dispatcher = Dispatcher(
        [], [SlowResponder(), FixedResponder("fast")], [], messenger, stage_timeout=0.05
    )

    response = await dispatcher.dispatch(messenger.message("hi"))

    assert response is not None and response.text == "fast"


@pytest.mark.asyncio
async def test_send_failure_is_contained():
    class ExplodingMessenger(FakeMessenger):
        async def send_message(self, channel: str, text: str, action: bool = False) -> None:
            raise ConnectionError("gone")

    messenger = ExplodingMessenger()
    dispatcher = Dispatcher([], [FixedResponder("x")], [], messenger)

    assert await dispatcher.dispatch(messenger.message("hi")) is None


@pytest.mark.asyncio
async def test_attach_subscribes_once(messenger: FakeMessenger):
    dispatcher = Dispatcher([], [FixedResponder("pong")], [], messenger)
    dispatcher.attach()

    with pytest.raises(RuntimeError):
        dispatcher.attach()

    await messenger.submit_event(messenger.message("ping"))
    await dispatcher.drain(timeout=1)

    assert messenger.sent == [("#test", "pong", False)]
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_cycles_run_independently(messenger: FakeMessenger):
    release = asyncio.Event()

    class GatedResponder:
        async def respond(self, message: Message) -> Response | None:
            if message.text == "slow":
                await release.wait()
            return message.respond(message.text)

    dispatcher = Dispatcher([], [GatedResponder()], [], messenger)
    dispatcher.attach()

    slow = await dispatcher.submit(messenger.message("slow"))
    fast = await dispatcher.submit(messenger.message("fast"))
    await asyncio.wait_for(fast, timeout=1)

    assert messenger.sent == [("#test", "fast", False)]
    assert not slow.done()

    release.set()
    await asyncio.wait_for(slow, timeout=1)
    assert messenger.sent[-1] == ("#test", "slow", False)


@pytest.mark.asyncio
async def test_drain_cancels_stuck_cycles(messenger: FakeMessenger):
    class StuckResponder:
        async def respond(self, message: Message) -> Response | None:
            await asyncio.Event().wait()
            return None

    dispatcher = Dispatcher([], [StuckResponder()], [], messenger)
    task = await dispatcher.submit(messenger.message("hi"))

    await dispatcher.drain(timeout=0.05)

    assert task.cancelled()
    assert dispatcher.pending == 0
