# Star Registry - constants.py
# Copyright (C) 2025 The Star Registry Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""Defining constants shared by the chain, the ownership protocol and the node."""

from typing import Any, Final

ENCODING: Final[str] = "utf-8"

# --- Chain Constants ---
GENESIS_DATA: Final[dict[str, Any]] = {"data": "Genesis Block"}
GENESIS_HEIGHT: Final[int] = 0

# --- Ownership Verification Constants ---
CHALLENGE_SEPARATOR: Final[str] = ":"
CHALLENGE_SUFFIX: Final[str] = "starRegistry"
CHALLENGE_WINDOW_MINUTES: Final[int] = 5
CHALLENGE_WINDOW_SECONDS: Final[int] = CHALLENGE_WINDOW_MINUTES * 60

# --- Bitcoin Signed Message Constants ---
SIGNED_MESSAGE_PREFIX: Final[bytes] = b"Bitcoin Signed Message:\n"
COMPACT_SIGNATURE_SIZE: Final[int] = 65  # in bytes
HASH160_SIZE: Final[int] = 20  # in bytes
P2PKH_VERSION: Final[int] = 0x00
TESTNET_P2PKH_VERSION: Final[int] = 0x6F

# --- Node Configuration ---
DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 8_000  # Note: This can be overridden at runtime
CLIENT_TIMEOUT: Final[int] = 10  # in seconds
