"""
config.py — Simulation configuration.
"""
import os

# Protocol
KEY_LENGTH = 8   # fixed demonstration length, not overridable
QBER_ABORT_THRESHOLD = 0.11

# Timing
TICK_INTERVAL_MS = int(os.environ.get("QKD_TICK_INTERVAL_MS", "1000"))
MIN_TICK_INTERVAL_MS = 10

# Randomness (unset = OS entropy)
_seed = os.environ.get("QKD_RANDOM_SEED")
RANDOM_SEED = int(_seed) if _seed else None

# Eve
EAVESDROPPER_ENABLED_DEFAULT = os.environ.get("QKD_EVE", "0").lower() in ("1", "true", "yes", "on")
