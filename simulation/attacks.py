"""
attacks.py
==========
Intercept-resend eavesdropping for the BB84 simulation.

Eve sits between Alice and Bob, measures the qubit in a basis of her own
choosing and re-emits what she saw. Bob then measures Eve's re-emitted
qubit instead of Alice's original one.

The attack works in place on a TransmissionRecord so it can be applied
when a qubit is first sent, or retroactively when Eve is switched on for
records that were already transmitted.
"""
from __future__ import annotations

from .quantum_channel import QuantumChannel
from .session_result import TransmissionRecord


class InterceptResendAttack:
    """
    Classic intercept-resend attack on every transmitted qubit.

    QBER contribution:
      Eve picks the wrong basis half of the time; her re-emitted qubit then
      gives Bob a random outcome, so a sifted bit is corrupted often enough
      to push the error rate well past the abort threshold.
    """

    def __init__(self, channel: QuantumChannel):
        self._channel = channel

    def apply(self, record: TransmissionRecord) -> TransmissionRecord:
        """Inserts Eve's measurement into the record's causal chain."""
        eve_basis = self._channel.draw_basis()
        eve_value = self._channel.measure(record.sender_value, record.sender_basis, eve_basis)
        # Bob measures the qubit Eve re-emitted, in his original basis
        receiver_value = self._channel.measure(eve_value, eve_basis, record.receiver_basis)

        # Every draw succeeded; only now touch the record
        record.eavesdropper_basis = eve_basis
        record.eavesdropper_value = eve_value
        record.receiver_value = receiver_value
        record.intercepted = True
        return record

    def strip(self, record: TransmissionRecord) -> TransmissionRecord:
        """Removes Eve from the chain; Bob measures Alice's qubit directly."""
        receiver_value = self._channel.measure(
            record.sender_value, record.sender_basis, record.receiver_basis
        )

        record.eavesdropper_basis = None
        record.eavesdropper_value = None
        record.receiver_value = receiver_value
        record.intercepted = False
        return record
