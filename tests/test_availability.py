"""
Tests for the API availability gate.

Feature: hubgate
"""

import logging
import threading
import time

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from hubgate.availability import AvailabilityGate, ProbeStatus
from hubgate.debug import DebugSettings
from hubgate.exceptions import ServerError
from hubgate.offline import OfflineMode, OfflineModeState
from hubgate.testing import FakeClock, ScriptedProbe
from hubgate.transport import HTTPTransport, ServiceMetadataProbe

gap_strategy = st.floats(min_value=0.0, max_value=9.99)


@given(gaps=st.lists(gap_strategy, min_size=1, max_size=20))
@settings(max_examples=100)
def test_calls_within_interval_share_one_probe(gaps: list[float]) -> None:
    """
    Property: throttle

    After a successful probe, calls made within the throttle interval of
    that success issue no further probes.
    """
    clock = FakeClock()
    probe = ScriptedProbe()
    gate = AvailabilityGate(probe, OfflineModeState(), clock=clock)

    assert gate.is_available()
    start = clock()
    for gap in gaps:
        clock.now = start + gap
        assert gate.is_available()

    assert probe.call_count == 1


@given(
    advances=st.lists(st.floats(min_value=0.0, max_value=100.0), max_size=20),
    ignore=st.booleans(),
)
@settings(max_examples=100)
def test_offline_mode_never_probes(advances: list[float], ignore: bool) -> None:
    """
    Property: offline mode is authoritative

    Once forced offline, is_available() returns False and issues no probe,
    whatever the throttle state, unless the override is explicitly ignored.
    """
    clock = FakeClock()
    probe = ScriptedProbe()
    state = OfflineModeState()
    gate = AvailabilityGate(probe, state, clock=clock)
    state.go_offline()

    for advance in advances:
        clock.advance(advance)
        assert gate.is_available() is False

    assert probe.call_count == 0

    if ignore:
        assert gate.is_available(ignore_offline_override=True) is True
        assert probe.call_count == 1


class TestThrottle:
    def test_second_call_two_seconds_later_reuses_success(
        self, gate: AvailabilityGate, scripted_probe: ScriptedProbe, fake_clock: FakeClock
    ) -> None:
        assert gate.is_available() is True
        fake_clock.advance(2)
        assert gate.is_available() is True

        assert scripted_probe.call_count == 1

    def test_probe_again_after_interval(
        self, gate: AvailabilityGate, scripted_probe: ScriptedProbe, fake_clock: FakeClock
    ) -> None:
        gate.is_available()
        fake_clock.advance(10)
        gate.is_available()

        assert scripted_probe.call_count == 2

    def test_failure_does_not_update_record(
        self, offline_state: OfflineModeState, fake_clock: FakeClock
    ) -> None:
        probe = ScriptedProbe([httpx.ConnectError("unreachable"), None])
        gate = AvailabilityGate(probe, offline_state, clock=fake_clock)

        assert gate.is_available() is False
        assert gate.record.last_success is None
        # no success recorded, so the very next call probes again
        assert gate.is_available() is True
        assert probe.call_count == 2
        assert gate.record.last_success == fake_clock()

    def test_reset_forces_a_new_probe(
        self, gate: AvailabilityGate, scripted_probe: ScriptedProbe
    ) -> None:
        gate.is_available()
        gate.reset()
        gate.is_available()

        assert scripted_probe.call_count == 2

    def test_concurrent_callers_share_one_probe(self, offline_state: OfflineModeState) -> None:
        probe = ScriptedProbe([0.3])
        gate = AvailabilityGate(probe, offline_state)
        results: list[bool] = []

        threads = [
            threading.Thread(target=lambda: results.append(gate.is_available()))
            for _ in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results == [True] * 4
        assert probe.call_count == 1

    def test_probe_receives_api_timeout(
        self, offline_state: OfflineModeState, fake_clock: FakeClock
    ) -> None:
        probe = ScriptedProbe()
        gate = AvailabilityGate(probe, offline_state, api_timeout=0.75, clock=fake_clock)

        gate.is_available()

        assert probe.calls[0].timeout == 0.75


class TestClassification:
    def test_deadline_is_timed_out(self, offline_state: OfflineModeState) -> None:
        probe = ScriptedProbe([2.0])
        gate = AvailabilityGate(probe, offline_state, api_timeout=0.2)

        started = time.monotonic()
        outcome = gate.probe_once()
        elapsed = time.monotonic() - started

        assert outcome.status is ProbeStatus.TIMED_OUT
        assert elapsed < 1.5

    def test_httpx_timeout_is_timed_out(self, offline_state: OfflineModeState) -> None:
        gate = AvailabilityGate(ScriptedProbe([httpx.ReadTimeout("slow")]), offline_state)

        assert gate.probe_once().status is ProbeStatus.TIMED_OUT

    def test_transport_error_is_errored_with_cause(self, offline_state: OfflineModeState) -> None:
        gate = AvailabilityGate(ScriptedProbe([httpx.ConnectError("refused")]), offline_state)

        outcome = gate.probe_once()

        assert outcome.status is ProbeStatus.ERRORED
        assert outcome.cause is not None and "refused" in outcome.cause

    def test_api_error_is_errored(self, offline_state: OfflineModeState) -> None:
        gate = AvailabilityGate(
            ScriptedProbe([ServerError("HTTP_503", "unavailable")]), offline_state
        )

        outcome = gate.probe_once()

        assert outcome.status is ProbeStatus.ERRORED
        assert gate.last_outcome == outcome

    def test_reason_text(self, offline_state: OfflineModeState) -> None:
        gate = AvailabilityGate(ScriptedProbe([httpx.ConnectError("refused")]), offline_state)

        assert "refused" in gate.probe_once().reason(1.0)

    def test_non_json_success_page_is_reachable(self, offline_state: OfflineModeState) -> None:
        transport = HTTPTransport(
            http_transport=httpx.MockTransport(
                lambda request: httpx.Response(200, text="<html>login</html>")
            )
        )
        gate = AvailabilityGate(ServiceMetadataProbe(transport), offline_state)

        assert gate.is_available() is True
        assert gate.last_outcome is not None and gate.last_outcome.available

    def test_decode_error_is_errored(self, offline_state: OfflineModeState) -> None:
        gate = AvailabilityGate(
            ScriptedProbe([ValueError("Expecting value: line 1 column 1 (char 0)")]),
            offline_state,
        )

        assert gate.is_available() is False
        assert gate.last_outcome is not None
        assert gate.last_outcome.status is ProbeStatus.ERRORED
        assert "ValueError" in (gate.last_outcome.cause or "")


class TestGoOfflinePrompt:
    def test_accepting_switches_to_offline(self, fake_clock: FakeClock) -> None:
        state = OfflineModeState()
        prompts: list[str] = []

        def confirm(message: str) -> bool:
            prompts.append(message)
            return True

        probe = ScriptedProbe([httpx.ConnectError("refused")])
        gate = AvailabilityGate(probe, state, confirm=confirm, clock=fake_clock)

        assert gate.is_available() is False
        assert state.mode is OfflineMode.FORCED_OFFLINE
        assert len(prompts) == 1
        assert "Go offline?" in prompts[0]

        # offline now, so no further probes
        fake_clock.advance(60)
        assert gate.is_available() is False
        assert probe.call_count == 1

    def test_declining_keeps_mode(self, fake_clock: FakeClock) -> None:
        state = OfflineModeState()
        probe = ScriptedProbe([httpx.ConnectError("refused")])
        gate = AvailabilityGate(probe, state, confirm=lambda message: False, clock=fake_clock)

        assert gate.is_available() is False
        assert state.mode is OfflineMode.DEFAULT
        assert gate.is_available() is True

    def test_no_prompt_when_probing_while_offline(self, fake_clock: FakeClock) -> None:
        state = OfflineModeState(OfflineMode.FORCED_OFFLINE)
        prompts: list[str] = []
        gate = AvailabilityGate(
            ScriptedProbe([httpx.ConnectError("refused")]),
            state,
            confirm=lambda message: prompts.append(message) or True,
            clock=fake_clock,
        )

        assert gate.is_available(ignore_offline_override=True) is False
        assert prompts == []


class TestDebugLines:
    def test_check_lines_follow_the_debug_flag(
        self,
        offline_state: OfflineModeState,
        fake_clock: FakeClock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        debug = DebugSettings()
        gate = AvailabilityGate(ScriptedProbe(), offline_state, clock=fake_clock, debug=debug)

        try:
            with caplog.at_level(logging.DEBUG, logger="hubgate.http"):
                gate.probe_once()
                assert "probe: available" not in caplog.text

                debug.enabled = True
                gate.probe_once()
                assert "probe: available" in caplog.text
        finally:
            debug.enabled = False

    def test_enabling_lowers_logger_levels(self) -> None:
        debug = DebugSettings()

        try:
            debug.enabled = True
            assert logging.getLogger("hubgate.http").level == logging.DEBUG
            assert logging.getLogger("hubgate.helper").level == logging.DEBUG
        finally:
            debug.enabled = False

        assert logging.getLogger("hubgate.http").level == logging.NOTSET
