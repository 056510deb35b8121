"""
BB84Protocol: the per-step algorithm behind one BB84 session.

The protocol owns no timing; the controller decides *when* to call step().
  1. new_session()       – fresh, empty Session.
  2. step()              – sends one qubit and appends its TransmissionRecord.
  3. set_eavesdropper()  – switches Eve on / off, rewriting existing records.
"""
from typing import Iterable, List, Optional

import config
from .attacks import InterceptResendAttack
from .quantum_channel import QuantumChannel
from .qubit import to_key_bit
from .session_result import Session, SessionState, TransmissionRecord


class ProtocolError(RuntimeError):
    """Raised when the protocol is asked to step past the end of a session."""


class BB84Protocol:
    """BB84 transmission and sifting over a simulated quantum channel."""

    def __init__(self, channel: Optional[QuantumChannel] = None, key_length: int = config.KEY_LENGTH):
        self.key_length = key_length
        self._channel = channel or QuantumChannel()
        self._attack = InterceptResendAttack(self._channel)

    def new_session(self, eavesdropper_enabled: bool = False) -> Session:
        return Session(
            eavesdropper_enabled=eavesdropper_enabled,
            state=SessionState.IDLE,
            key_length=self.key_length,
        )

    # ------------------------------------------------------------------ #
    #  One transmission                                                    #
    # ------------------------------------------------------------------ #
    def step(self, session: Session) -> TransmissionRecord:
        """
        Alice prepares a random qubit, Bob picks a random basis, and (if Eve
        is enabled) Eve intercepts on the way. The record is appended, the
        cursor advances, and a key bit is added when the bases match.
        """
        if session.is_complete:
            raise ProtocolError(
                f"Session already holds {session.next_index}/{session.key_length} transmissions"
            )

        sender_basis = self._channel.draw_basis()
        sender_value = self._channel.draw_value(sender_basis)
        receiver_basis = self._channel.draw_basis()

        record = TransmissionRecord(
            index=session.next_index,
            sender_basis=sender_basis,
            sender_value=sender_value,
            receiver_basis=receiver_basis,
            receiver_value=sender_value,
        )
        if session.eavesdropper_enabled:
            self._attack.apply(record)
        else:
            record.receiver_value = self._channel.measure(sender_value, sender_basis, receiver_basis)

        session.records.append(record)
        session.next_index += 1
        if record.bases_match:
            session.sifted_key.append(to_key_bit(record.sender_value))
        return record

    # ------------------------------------------------------------------ #
    #  Eve toggle                                                          #
    # ------------------------------------------------------------------ #
    def set_eavesdropper(self, session: Session, enabled: bool) -> List[TransmissionRecord]:
        """
        Sets the Eve flag and rewrites history to match it: records not yet
        intercepted gain an interception when enabling, intercepted records
        lose it when disabling. Bob's basis is kept; only his value is
        re-measured. Returns the records that changed.

        If the random source fails part way, records already rewritten keep
        their new state and the flag keeps its old value, so calling again
        finishes the job.
        """
        changed = []
        for record in session.records:
            if enabled and not record.intercepted:
                changed.append(self._attack.apply(record))
            elif not enabled and record.intercepted:
                changed.append(self._attack.strip(record))
        session.eavesdropper_enabled = enabled
        session.sifted_key = sift(session.records)
        return changed


# ------------------------------------------------------------------ #
#  Pure functions                                                      #
# ------------------------------------------------------------------ #
def sift(records: Iterable[TransmissionRecord]) -> List[int]:
    """Alice's key bits at the positions where she and Bob used the same basis."""
    return [to_key_bit(r.sender_value) for r in records if r.bases_match]
