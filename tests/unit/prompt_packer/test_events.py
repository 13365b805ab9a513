import asyncio
import threading

import pytest

from prompt_packer.events import Debouncer, SimpleEmitter


@pytest.mark.unit
def test_emitter_calls_handlers_in_order_and_unsubscribes() -> None:
    emitter = SimpleEmitter()
    seen: list[str] = []
    emitter.on("changed", lambda value: seen.append(f"first:{value}"))
    remove = emitter.on("changed", lambda value: seen.append(f"second:{value}"))

    emitter.emit("changed", 1)
    remove()
    emitter.emit("changed", 2)

    assert seen == ["first:1", "second:1", "first:2"]
    assert not emitter.has_listeners("other")


@pytest.mark.unit
def test_debouncer_coalesces_burst_into_one_call() -> None:
    delivered = threading.Event()
    calls: list[int] = []

    def deliver() -> None:
        calls.append(1)
        delivered.set()

    debouncer = Debouncer(0.02, deliver)
    for _ in range(10):
        debouncer.schedule()

    assert delivered.wait(timeout=2)
    assert calls == [1]
    assert not debouncer.pending


@pytest.mark.unit
def test_debouncer_cancel_drops_pending_call() -> None:
    calls: list[int] = []
    debouncer = Debouncer(60, lambda: calls.append(1))

    debouncer.schedule()
    debouncer.cancel()
    debouncer.flush()

    assert calls == []


@pytest.mark.unit
def test_debouncer_with_zero_delay_delivers_synchronously() -> None:
    calls: list[int] = []
    debouncer = Debouncer(0, lambda: calls.append(1))

    debouncer.schedule()
    debouncer.schedule()

    assert calls == [1, 1]


@pytest.mark.unit
def test_debouncer_runs_on_the_event_loop_thread_when_one_is_running() -> None:
    threads: list[int] = []

    async def scenario() -> bool:
        debouncer = Debouncer(0.01, lambda: threads.append(threading.get_ident()))
        for _ in range(5):
            debouncer.schedule()
        pending = debouncer.pending
        await asyncio.sleep(0.1)
        return pending

    assert asyncio.run(scenario()) is True
    assert threads == [threading.get_ident()]


@pytest.mark.unit
def test_debouncer_flush_on_the_event_loop_delivers_once() -> None:
    calls: list[int] = []

    async def scenario() -> None:
        debouncer = Debouncer(0.01, lambda: calls.append(1))
        debouncer.schedule()
        debouncer.flush()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert calls == [1]
