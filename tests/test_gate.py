"""Tests for the bounded-concurrency gate."""

import asyncio

import pytest

from core.gate import ConcurrencyGate


@pytest.mark.asyncio
async def test_never_exceeds_limit_and_returns_in_input_order():
    gate = ConcurrencyGate(3)
    running = 0
    peak = 0

    async def task(i):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01 * (10 - i))
        running -= 1
        return i

    outcomes = await gate.run([lambda i=i: task(i) for i in range(10)])

    assert peak == 3
    assert [o.value for o in outcomes] == list(range(10))
    assert all(o.ok for o in outcomes)


@pytest.mark.asyncio
async def test_failures_do_not_cancel_siblings():
    gate = ConcurrencyGate(2)
    finished = []

    async def ok(i):
        await asyncio.sleep(0.01)
        finished.append(i)
        return i

    async def bad():
        raise RuntimeError("nope")

    outcomes = await gate.run([lambda: ok(0), bad, lambda: ok(2), lambda: ok(3)])

    assert sorted(finished) == [0, 2, 3]
    assert outcomes[1].ok is False
    assert isinstance(outcomes[1].error, RuntimeError)
    assert [o.value for o in outcomes if o.ok] == [0, 2, 3]


@pytest.mark.asyncio
async def test_starts_next_task_as_soon_as_slot_frees():
    gate = ConcurrencyGate(2)
    started = []

    async def task(i, delay):
        started.append(i)
        await asyncio.sleep(delay)
        return i

    # task 0 is slow; task 2 must start once task 1 finishes, not after task 0
    run = asyncio.create_task(gate.run([
        lambda: task(0, 0.2),
        lambda: task(1, 0.01),
        lambda: task(2, 0.01),
    ]))
    await asyncio.sleep(0.05)
    assert started == [0, 1, 2]
    await run


@pytest.mark.asyncio
async def test_empty_input():
    assert await ConcurrencyGate(5).run([]) == []


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        ConcurrencyGate(0)
