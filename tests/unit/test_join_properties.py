"""Order- and mix-independence of gateway joins, including across stop/resume."""

from __future__ import annotations

from itertools import permutations, product

import pytest

from bpmn_engine.engine.flow.gateways import ParallelGateway
from bpmn_engine.engine.flow.sequence_flow import FlowStatus, SequenceFlow

WIDTH = 3
ORDERS = list(permutations(range(WIDTH)))
MIXES = list(product([True, False], repeat=WIDTH))  # True = take
TAKING_MIXES = [m for m in MIXES if any(m)]


def _join() -> ParallelGateway:
    inbound = [
        SequenceFlow(f"in{i}", source_id=f"branch{i}", target_id="join") for i in range(WIDTH)
    ]
    outbound = [
        SequenceFlow("out1", source_id="join", target_id="next1"),
        SequenceFlow("out2", source_id="join", target_id="next2"),
    ]
    gateway = ParallelGateway("join", inbound=inbound, outbound=outbound)
    gateway.activate()
    return gateway


def _resolve(gateway: ParallelGateway, index: int, take: bool) -> None:
    f = gateway.inbound[index]
    if take:
        f.take()
    else:
        f.discard()


class _Tally:
    def __init__(self, gateway: ParallelGateway) -> None:
        self.end = 0
        self.leave = 0
        self.taken: list[str] = []
        self.discarded: list[str] = []
        gateway.on("end", lambda _g: self._inc("end"))
        gateway.on("leave", lambda _g: self._inc("leave"))
        for f in gateway.outbound:
            f.on("taken", lambda fl: self.taken.append(fl.id))
            f.on("discarded", lambda fl: self.discarded.append(fl.id))

    def _inc(self, name: str) -> None:
        setattr(self, name, getattr(self, name) + 1)

    @property
    def outcome(self) -> tuple[str, list[str], list[str]]:
        terminal = "end" if self.end else ("leave" if self.leave else "none")
        return terminal, sorted(self.taken), sorted(self.discarded)


@pytest.mark.parametrize("order", ORDERS)
@pytest.mark.parametrize("mix", TAKING_MIXES)
def test_join_with_a_take_ends_once_and_takes_every_outbound(
    order: tuple[int, ...], mix: tuple[bool, ...]
) -> None:
    gateway = _join()
    tally = _Tally(gateway)

    for i in order:
        _resolve(gateway, i, mix[i])

    assert tally.end == 1
    assert tally.taken == ["out1", "out2"]
    assert tally.discarded == []
    assert gateway.pending_inbound is None


@pytest.mark.parametrize("order", ORDERS)
def test_fully_discarded_join_leaves_once_without_end(order: tuple[int, ...]) -> None:
    gateway = _join()
    tally = _Tally(gateway)

    for i in order:
        _resolve(gateway, i, False)

    assert tally.leave == 1
    assert tally.end == 0
    assert tally.discarded == ["out1", "out2"]
    assert [f.status for f in gateway.outbound] == [FlowStatus.DISCARDED] * 2


@pytest.mark.parametrize("first", range(WIDTH))
@pytest.mark.parametrize("take", [True, False])
def test_state_after_first_resolution_lists_remaining_inbound_in_order(
    first: int, take: bool
) -> None:
    gateway = _join()
    _resolve(gateway, first, take)

    state = gateway.get_state()

    expected = [f"in{i}" for i in range(WIDTH) if i != first]
    assert state.pending_inbound == expected
    assert len(state.pending_inbound) == WIDTH - 1
    assert state.discarded_inbound == (None if take else [f"in{first}"])


@pytest.mark.parametrize("order", ORDERS)
@pytest.mark.parametrize("mix", MIXES)
def test_resume_at_any_point_matches_uninterrupted_run(
    order: tuple[int, ...], mix: tuple[bool, ...]
) -> None:
    reference = _join()
    reference_tally = _Tally(reference)
    for i in order:
        _resolve(reference, i, mix[i])

    for stop_after in range(1, WIDTH):
        paused = _join()
        for i in order[:stop_after]:
            _resolve(paused, i, mix[i])
        snapshot = paused.get_state().to_json()

        resumed = _join()
        resumed_tally = _Tally(resumed)
        resumed.resume(snapshot)
        for i in order[stop_after:]:
            _resolve(resumed, i, mix[i])

        assert resumed_tally.outcome == reference_tally.outcome, f"stopped after {stop_after}"
