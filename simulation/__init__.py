from .qubit import Basis, QubitValue, to_key_bit
from .quantum_channel import QuantumChannel, RandomSourceError
from .attacks import InterceptResendAttack
from .bb84 import BB84Protocol, ProtocolError, sift
from .session_result import (
    Session,
    SessionSnapshot,
    SessionState,
    SessionStatistics,
    TransmissionRecord,
)
