"""
SimulationController
====================
Sits between the simulation engine and the UI.

It owns:
  - A BB84Protocol instance and the current Session
  - A Scheduler handle that drives the one-transmission-per-tick loop
  - PyQt signals that the UI connects to

The UI sends intents (start / stop / reset / set_eavesdropper); the
controller decides whether each one is allowed in the current state, drives
*when* each qubit is sent, and emits the events the views respond to.
"""
from dataclasses import replace
from enum import Enum
from typing import List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

import config
from simulation.bb84 import BB84Protocol
from simulation.quantum_channel import RandomSourceError
from simulation.session_result import (
    Session,
    SessionSnapshot,
    SessionState,
    SessionStatistics,
    TransmissionRecord,
)
from .scheduler import QtScheduler, Scheduler


class IntentResult(Enum):
    ACCEPTED = "accepted"
    IGNORED  = "ignored"


# ------------------------------------------------------------------ #
#  Controller                                                          #
# ------------------------------------------------------------------ #
class SimulationController(QObject):

    # ---- Signals ----
    transmission_processed = pyqtSignal(object)   # TransmissionRecord (copy)
    progress_updated       = pyqtSignal(int, int) # (done, total)
    session_updated        = pyqtSignal(object)   # SessionSnapshot
    state_changed          = pyqtSignal(object)   # SessionState
    session_complete       = pyqtSignal(object)   # SessionStatistics
    simulation_reset       = pyqtSignal()
    eavesdropper_toggled   = pyqtSignal(bool)
    log_message            = pyqtSignal(str)      # status-log text

    def __init__(
        self,
        protocol: Optional[BB84Protocol] = None,
        scheduler: Optional[Scheduler] = None,
        eavesdropper_enabled: bool = config.EAVESDROPPER_ENABLED_DEFAULT,
        interval_ms: int = config.TICK_INTERVAL_MS,
        parent=None,
    ):
        super().__init__(parent)

        self._protocol = protocol or BB84Protocol()
        self._scheduler = scheduler or QtScheduler(self)
        self.interval_ms: int = _checked_interval(interval_ms)

        # At most one pending tick; _tick_token identifies the live one
        self._pending = None
        self._tick_token: int = 0

        self._session: Session = self._protocol.new_session(eavesdropper_enabled)

    # ------------------------------------------------------------------ #
    #  Read accessors                                                      #
    # ------------------------------------------------------------------ #
    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def eavesdropper_enabled(self) -> bool:
        return self._session.eavesdropper_enabled

    @property
    def progress_fraction(self) -> float:
        return self._session.progress_fraction

    @property
    def matched_count(self) -> int:
        return self._session.matched_count

    @property
    def sifted_key(self) -> List[int]:
        return list(self._session.sifted_key)

    def statistics(self) -> SessionStatistics:
        return SessionStatistics.from_session(self._session)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot.of(self._session)

    # ------------------------------------------------------------------ #
    #  Intents                                                             #
    # ------------------------------------------------------------------ #
    def start(self) -> IntentResult:
        """Idle → Running.  Ignored while running or once all qubits are sent."""
        session = self._session
        if session.state is not SessionState.IDLE or session.is_complete:
            self.log_message.emit(f"Start ignored ({session.state.value}).")
            return IntentResult.IGNORED

        resumed = session.next_index > 0
        self._set_state(SessionState.RUNNING)
        self._schedule_tick()
        if resumed:
            self.log_message.emit(f"Resumed at {session.next_index}/{session.key_length}.")
        else:
            self.log_message.emit(
                f"Session started — {session.key_length} qubits, "
                f"Eve={'ON' if session.eavesdropper_enabled else 'OFF'}, "
                f"interval={self.interval_ms} ms"
            )
        return IntentResult.ACCEPTED

    def stop(self) -> IntentResult:
        """Running → Idle, keeping progress."""
        if self._session.state is not SessionState.RUNNING:
            self.log_message.emit(f"Stop ignored ({self._session.state.value}).")
            return IntentResult.IGNORED
        self._release_timer()
        self._set_state(SessionState.IDLE)
        self.log_message.emit("Paused.")
        return IntentResult.ACCEPTED

    def reset(self) -> IntentResult:
        """Discards the session from any state; the Eve setting carries over."""
        self._release_timer()
        self._session = self._protocol.new_session(self._session.eavesdropper_enabled)
        self.simulation_reset.emit()
        self.state_changed.emit(self._session.state)
        self.progress_updated.emit(0, self._session.key_length)
        self.session_updated.emit(self.snapshot())
        self.log_message.emit("Reset.")
        return IntentResult.ACCEPTED

    def set_eavesdropper(self, enabled: bool) -> IntentResult:
        """Switches Eve on / off in any state, rewriting already-sent records."""
        session = self._session
        if session.eavesdropper_enabled == enabled:
            return IntentResult.IGNORED

        changed = self._protocol.set_eavesdropper(session, enabled)
        self.eavesdropper_toggled.emit(enabled)
        self.session_updated.emit(self.snapshot())
        self.log_message.emit(
            f"Eve {'enabled' if enabled else 'disabled'}; "
            f"{len(changed)} earlier transmission(s) re-measured."
        )
        return IntentResult.ACCEPTED

    def set_interval(self, ms: int) -> None:
        """Changes the tick interval; takes effect from the next scheduled tick."""
        self.interval_ms = _checked_interval(ms)

    def shutdown(self) -> None:
        """Teardown: make sure no tick fires against this controller again."""
        self._release_timer()
        if self._session.state is SessionState.RUNNING:
            self._set_state(SessionState.IDLE)

    # ------------------------------------------------------------------ #
    #  Internal tick                                                       #
    # ------------------------------------------------------------------ #
    def tick(self) -> Optional[TransmissionRecord]:
        """Sends one qubit.  Only acts while Running; returns the new record."""
        session = self._session
        if session.state is not SessionState.RUNNING:
            return None

        try:
            record = self._protocol.step(session)
        except RandomSourceError:
            # Fatal: stop cleanly, then let it propagate
            self._release_timer()
            self._set_state(SessionState.IDLE)
            raise

        self.transmission_processed.emit(_copy(record))
        self.progress_updated.emit(session.next_index, session.key_length)
        self.log_message.emit(_describe(record))

        if session.is_complete:
            self._release_timer()
            self._set_state(SessionState.COMPLETE)
            self.session_updated.emit(self.snapshot())
            self._finish_session()
        else:
            self.session_updated.emit(self.snapshot())
            self._schedule_tick()
        return record

    def _on_timer(self, token: int) -> None:
        # Stale callback from a timer that was cancelled or superseded
        if token != self._tick_token or self._pending is None:
            return
        self._pending = None
        self.tick()

    def _schedule_tick(self) -> None:
        self._release_timer()
        token = self._tick_token
        self._pending = self._scheduler.schedule(self.interval_ms, lambda: self._on_timer(token))

    def _release_timer(self) -> None:
        self._tick_token += 1
        if self._pending is not None:
            self._scheduler.cancel(self._pending)
            self._pending = None

    def _set_state(self, state: SessionState) -> None:
        if self._session.state is state:
            return
        self._session.state = state
        self.state_changed.emit(state)

    def _finish_session(self) -> None:
        stats = self.statistics()
        self.session_complete.emit(stats)

        status = (
            "Eve SUSPECTED -- error rate above threshold!"
            if stats.eavesdropper_suspected else "No eavesdropping detected."
        )
        self.log_message.emit(
            f"Session complete. Matched bases: {stats.matched_count}/{stats.total}. "
            f"Sifted key: {stats.sifted_key_string or '(empty)'}. "
            f"QBER={stats.error_rate:.1%}. {status}"
        )


# ------------------------------------------------------------------ #
#  Helpers                                                             #
# ------------------------------------------------------------------ #
def _checked_interval(ms: int) -> int:
    """Positive intervals are clamped up to the minimum; anything else is rejected."""
    if ms <= 0:
        raise ValueError(f"Tick interval must be positive, got {ms}")
    return max(config.MIN_TICK_INTERVAL_MS, ms)


def _copy(record: TransmissionRecord) -> TransmissionRecord:
    return replace(record)


def _describe(record: TransmissionRecord) -> str:
    eve = ""
    if record.intercepted:
        eve = f" Eve {record.eavesdropper_basis.symbol}{record.eavesdropper_value.symbol}"
    key = record.key_bit if record.bases_match else "-"
    return (
        f"#{record.index + 1}: Alice {record.sender_basis.symbol}{record.sender_value.symbol}"
        f"{eve} Bob {record.receiver_basis.symbol}{record.receiver_value.symbol} "
        f"match={'yes' if record.bases_match else 'no'} key={key}"
    )
