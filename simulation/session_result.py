"""
Per-transmission record, session state and the read-only views handed to the UI.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

import config
from .qubit import Basis, QubitValue, to_key_bit


class SessionState(Enum):
    IDLE     = "idle"
    RUNNING  = "running"
    COMPLETE = "complete"


@dataclass
class TransmissionRecord:
    """Complete history for a single qubit transit."""
    index: int

    # Alice's side
    sender_basis: Basis
    sender_value: QubitValue

    # Bob's side
    receiver_basis: Basis
    receiver_value: QubitValue     # only rewritten by an eavesdropper toggle

    # Eve's side (present iff intercepted)
    eavesdropper_basis: Optional[Basis] = None
    eavesdropper_value: Optional[QubitValue] = None
    intercepted: bool = False

    @property
    def bases_match(self) -> bool:
        return self.sender_basis == self.receiver_basis

    @property
    def key_bit(self) -> Optional[int]:
        """Sender's key bit, or None when the bases differ (sifted out)."""
        return to_key_bit(self.sender_value) if self.bases_match else None

    @property
    def receiver_key_bit(self) -> Optional[int]:
        return to_key_bit(self.receiver_value) if self.bases_match else None

    @property
    def is_error(self) -> bool:
        """Sifted position where Bob's bit disagrees with Alice's."""
        return self.bases_match and self.key_bit != self.receiver_key_bit


@dataclass
class Session:
    """One BB84 run: ordered records plus cursor, Eve flag and sifted key."""
    eavesdropper_enabled: bool = False
    records: List[TransmissionRecord] = field(default_factory=list)
    next_index: int = 0
    state: SessionState = SessionState.IDLE
    sifted_key: List[int] = field(default_factory=list)
    key_length: int = config.KEY_LENGTH

    @property
    def is_complete(self) -> bool:
        return self.next_index >= self.key_length

    @property
    def progress_fraction(self) -> float:
        return self.next_index / self.key_length

    @property
    def matched_count(self) -> int:
        return sum(1 for r in self.records if r.bases_match)

    @property
    def current_record(self) -> Optional[TransmissionRecord]:
        return self.records[-1] if self.records else None


@dataclass(frozen=True)
class SessionStatistics:
    """Aggregated statistics for the statistics view and the completion summary."""
    transmitted: int
    total: int
    matched_count: int
    sifted_key: Tuple[int, ...]
    receiver_sifted_key: Tuple[int, ...]
    error_count: int
    error_rate: float
    eavesdropper_suspected: bool

    @property
    def sifted_key_string(self) -> str:
        return "".join(map(str, self.sifted_key))

    @classmethod
    def from_session(cls, session: Session) -> "SessionStatistics":
        sifted = [r for r in session.records if r.bases_match]
        errors = sum(1 for r in sifted if r.is_error)
        rate = errors / len(sifted) if sifted else 0.0
        return cls(
            transmitted=session.next_index,
            total=session.key_length,
            matched_count=len(sifted),
            sifted_key=tuple(session.sifted_key),
            receiver_sifted_key=tuple(r.receiver_key_bit for r in sifted),
            error_count=errors,
            error_rate=rate,
            eavesdropper_suspected=rate > config.QBER_ABORT_THRESHOLD,
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of a Session, safe to hold across ticks."""
    records: Tuple[TransmissionRecord, ...]
    state: SessionState
    eavesdropper_enabled: bool
    progress_fraction: float
    matched_count: int
    sifted_key: Tuple[int, ...]
    statistics: SessionStatistics

    @property
    def current_record(self) -> Optional[TransmissionRecord]:
        return self.records[-1] if self.records else None

    @classmethod
    def of(cls, session: Session) -> "SessionSnapshot":
        return cls(
            records=tuple(replace(r) for r in session.records),
            state=session.state,
            eavesdropper_enabled=session.eavesdropper_enabled,
            progress_fraction=session.progress_fraction,
            matched_count=session.matched_count,
            sifted_key=tuple(session.sifted_key),
            statistics=SessionStatistics.from_session(session),
        )
