# Star Registry - conftest.py

from __future__ import annotations

from dataclasses import dataclass

import pytest
from ecdsa import SECP256k1, SigningKey

from star_registry.chain import Blockchain
from star_registry.message_signing import address_from_signing_key, sign_message


@dataclass
class Wallet:
    """A key held in memory, standing in for Electrum during tests."""

    signing_key: SigningKey
    address: str

    def sign(self, message: str) -> str:
        return sign_message(self.signing_key, message)


def make_wallet(secret: int) -> Wallet:
    signing_key = SigningKey.from_secret_exponent(secret, curve=SECP256k1)
    return Wallet(
        signing_key=signing_key,
        address=address_from_signing_key(signing_key),
    )


@pytest.fixture
def blockchain() -> Blockchain:
    """Return a fresh chain holding only its Genesis Block."""
    return Blockchain()


@pytest.fixture
def wallet() -> Wallet:
    return make_wallet(0xC0FFEE)


@pytest.fixture
def other_wallet() -> Wallet:
    return make_wallet(0xBADC0DE)
