import random
import unittest

from simulation.bb84 import BB84Protocol, ProtocolError, sift
from simulation.quantum_channel import QuantumChannel
from simulation.qubit import Basis, QubitValue
from simulation.session_result import SessionState
from tests.support import ScriptedRandom

R, D = Basis.RECTILINEAR, Basis.DIAGONAL
ZERO, ONE, PLUS, MINUS = QubitValue.ZERO, QubitValue.ONE, QubitValue.PLUS, QubitValue.MINUS


def scripted_protocol(*answers):
    rng = ScriptedRandom(*answers)
    return BB84Protocol(QuantumChannel(rng)), rng


def assert_record_invariants(test, record):
    has_basis = record.eavesdropper_basis is not None
    has_value = record.eavesdropper_value is not None
    test.assertEqual(has_basis, record.intercepted)
    test.assertEqual(has_value, record.intercepted)
    test.assertEqual(record.bases_match, record.sender_basis == record.receiver_basis)
    if record.bases_match and not record.intercepted:
        test.assertIs(record.receiver_value, record.sender_value)


class TestStep(unittest.TestCase):
    def test_matching_bases_without_eve(self):
        protocol, _ = scripted_protocol(R, ZERO, R)
        session = protocol.new_session()

        record = protocol.step(session)

        self.assertTrue(record.bases_match)
        self.assertFalse(record.intercepted)
        self.assertIs(record.receiver_value, ZERO)
        self.assertEqual(record.key_bit, 0)
        self.assertEqual(session.sifted_key, [0])
        self.assertEqual(session.next_index, 1)

    def test_mismatched_bases_without_eve(self):
        protocol, _ = scripted_protocol(D, MINUS, R, ONE)
        session = protocol.new_session()

        record = protocol.step(session)

        self.assertFalse(record.bases_match)
        self.assertIs(record.receiver_value, ONE)
        self.assertIsNone(record.key_bit)
        self.assertEqual(session.sifted_key, [])

    def test_interception_chain(self):
        # Alice R/ONE, Bob R, Eve D -> Eve sees PLUS, Bob measures Eve's D qubit in R -> ZERO
        protocol, _ = scripted_protocol(R, ONE, R, D, PLUS, ZERO)
        session = protocol.new_session(eavesdropper_enabled=True)

        record = protocol.step(session)

        self.assertTrue(record.intercepted)
        self.assertIs(record.eavesdropper_basis, D)
        self.assertIs(record.eavesdropper_value, PLUS)
        self.assertIs(record.receiver_value, ZERO)
        self.assertTrue(record.is_error)
        # Key bit comes from Alice's value, not Bob's
        self.assertEqual(session.sifted_key, [1])

    def test_eve_in_same_basis_is_invisible(self):
        protocol, _ = scripted_protocol(D, MINUS, D, D)
        session = protocol.new_session(eavesdropper_enabled=True)

        record = protocol.step(session)

        self.assertIs(record.eavesdropper_value, MINUS)
        self.assertIs(record.receiver_value, MINUS)
        self.assertFalse(record.is_error)

    def test_indices_follow_cursor(self):
        protocol = BB84Protocol(QuantumChannel(random.Random(3)))
        session = protocol.new_session()
        for _ in range(8):
            protocol.step(session)
        self.assertEqual([r.index for r in session.records], list(range(8)))

    def test_step_past_end_raises(self):
        protocol = BB84Protocol(QuantumChannel(random.Random(0)))
        session = protocol.new_session()
        for _ in range(8):
            protocol.step(session)
        self.assertTrue(session.is_complete)
        with self.assertRaises(ProtocolError):
            protocol.step(session)
        self.assertEqual(len(session.records), 8)

    def test_new_session_is_idle_and_empty(self):
        session = BB84Protocol().new_session(eavesdropper_enabled=True)
        self.assertIs(session.state, SessionState.IDLE)
        self.assertEqual(session.records, [])
        self.assertEqual(session.sifted_key, [])
        self.assertTrue(session.eavesdropper_enabled)


class TestInvariants(unittest.TestCase):
    def test_random_sessions(self):
        rng = random.Random(2024)
        protocol = BB84Protocol(QuantumChannel(rng))
        for trial in range(50):
            session = protocol.new_session(eavesdropper_enabled=trial % 2 == 0)
            for _ in range(8):
                protocol.step(session)
            for record in session.records:
                assert_record_invariants(self, record)
            self.assertEqual(len(session.sifted_key), session.matched_count)
            self.assertEqual(session.sifted_key, sift(session.records))


class TestEavesdropperToggle(unittest.TestCase):
    def setUp(self):
        self.protocol = BB84Protocol(QuantumChannel(random.Random(99)))
        self.session = self.protocol.new_session()
        for _ in range(6):
            self.protocol.step(self.session)

    def test_enable_intercepts_every_record(self):
        key = list(self.session.sifted_key)
        matches = [r.bases_match for r in self.session.records]
        receiver_bases = [r.receiver_basis for r in self.session.records]

        changed = self.protocol.set_eavesdropper(self.session, True)

        self.assertEqual(len(changed), 6)
        self.assertTrue(self.session.eavesdropper_enabled)
        for record in self.session.records:
            self.assertTrue(record.intercepted)
            assert_record_invariants(self, record)
        self.assertEqual([r.bases_match for r in self.session.records], matches)
        self.assertEqual([r.receiver_basis for r in self.session.records], receiver_bases)
        self.assertEqual(self.session.sifted_key, key)

    def test_enable_twice_is_idempotent(self):
        self.protocol.set_eavesdropper(self.session, True)
        before = [(r.eavesdropper_basis, r.eavesdropper_value, r.receiver_value)
                  for r in self.session.records]

        changed = self.protocol.set_eavesdropper(self.session, True)

        self.assertEqual(changed, [])
        after = [(r.eavesdropper_basis, r.eavesdropper_value, r.receiver_value)
                 for r in self.session.records]
        self.assertEqual(before, after)

    def test_disable_restores_direct_measurement(self):
        self.protocol.set_eavesdropper(self.session, True)
        self.protocol.set_eavesdropper(self.session, False)

        for record in self.session.records:
            self.assertFalse(record.intercepted)
            assert_record_invariants(self, record)

    def test_round_trip_restores_interception(self):
        key = list(self.session.sifted_key)
        self.protocol.set_eavesdropper(self.session, True)
        self.protocol.set_eavesdropper(self.session, False)
        self.protocol.set_eavesdropper(self.session, True)

        self.assertTrue(all(r.intercepted for r in self.session.records))
        self.assertEqual(self.session.sifted_key, key)

    def test_toggle_on_empty_session(self):
        session = self.protocol.new_session()
        self.assertEqual(self.protocol.set_eavesdropper(session, True), [])
        self.assertTrue(session.eavesdropper_enabled)

    def test_new_records_follow_flag(self):
        self.protocol.set_eavesdropper(self.session, True)
        record = self.protocol.step(self.session)
        self.assertTrue(record.intercepted)


if __name__ == "__main__":
    unittest.main()
