# Star Registry - ownership.py
# Copyright (C) 2025 The Star Registry Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""Ownership Verification - Time boxed challenges signed by a wallet.

The challenge carries the address and the issuance time itself, so no
session table is kept on the server. The only replay defense is the
validity window: a signed challenge can be submitted more than once
while it is fresh.
"""

from __future__ import annotations

import logging
import sys

from star_registry.common import StarRegistryError, now_ts
from star_registry.constants import (
    CHALLENGE_SEPARATOR,
    CHALLENGE_SUFFIX,
    CHALLENGE_WINDOW_MINUTES,
    CHALLENGE_WINDOW_SECONDS,
)
from star_registry.message_signing import verify_message

logger = logging.getLogger("ownership")

stdout_handler = logging.StreamHandler(stream=sys.stdout)
stdout_handler.setFormatter(
    logging.Formatter(
        "[%(name)s] %(asctime)s | %(levelname)s | %(filename)s:%(lineno)s >>> %(message)s",
    ),
)
logger.addHandler(stdout_handler)
logger.setLevel(logging.INFO)
logger.propagate = False


class MalformedChallengeError(StarRegistryError):
    """Raised when a challenge message has no readable issuance time."""

    __slots__ = ()


class ExpiredChallengeError(StarRegistryError):
    """Raised when a challenge is older than the validity window."""

    __slots__ = ()


class InvalidSignatureError(StarRegistryError):
    """Raised when a signature does not prove ownership of the address."""

    __slots__ = ()


def issue_challenge(address: str) -> str:
    """Return the message the owner of address has to sign."""
    return CHALLENGE_SEPARATOR.join(
        [address, str(now_ts()), CHALLENGE_SUFFIX],
    )


def challenge_issued_at(message: str) -> int:
    """Return the issuance time encoded in a challenge message."""
    fields = message.split(CHALLENGE_SEPARATOR)
    if len(fields) < 2:
        raise MalformedChallengeError(f"not a challenge message: {message!r}")
    try:
        return int(fields[1])
    except ValueError as e:
        raise MalformedChallengeError(
            f"challenge time is not an integer: {fields[1]!r}",
        ) from e


def check_challenge_window(message: str) -> int:
    """Raise ExpiredChallengeError if message is past its window.

    Returns the elapsed time in whole minutes.
    """
    elapsed = now_ts() - challenge_issued_at(message)
    elapsed_minutes = elapsed // 60
    if elapsed > CHALLENGE_WINDOW_SECONDS:
        logger.info(
            f"rejected challenge issued {elapsed} seconds ago ({elapsed_minutes=})",
        )
        raise ExpiredChallengeError(
            f"More than {CHALLENGE_WINDOW_MINUTES} minutes have elapsed",
        )
    return elapsed_minutes


def check_signature(address: str, message: str, signature: str) -> None:
    """Raise InvalidSignatureError unless signature proves address owns message."""
    try:
        valid = verify_message(message, address, signature)
    except Exception as e:  # noqa: BLE001
        logger.info(f"signature verification failed for {address}: {e}")
        raise InvalidSignatureError(str(e)) from e
    if not valid:
        logger.info(f"signature does not match address {address}")
        raise InvalidSignatureError("Signature not valid")


def verify_ownership(address: str, message: str, signature: str) -> None:
    """Run the window check, then the signature check."""
    check_challenge_window(message)
    check_signature(address, message, signature)
