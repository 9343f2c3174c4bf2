# Star Registry - message_signing.py
# Copyright (C) 2025 The Star Registry Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""Bitcoin signed messages, as produced by Electrum and Bitcoin Core wallets.

A signature is 65 bytes, base64 encoded: one header byte followed by the
``r`` and ``s`` values of a secp256k1 ECDSA signature. The header carries the
recovery id, which lets the verifier rebuild the signer's public key from the
signature alone. The message is authentic if and only if that public key
hashes to the payload of the claimed address.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
from enum import Enum

import base58
import bech32
from Crypto.Hash import RIPEMD160
from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.util import sigdecode_string, sigencode_string_canonize

from star_registry.constants import (
    COMPACT_SIGNATURE_SIZE,
    ENCODING,
    HASH160_SIZE,
    P2PKH_VERSION,
    SIGNED_MESSAGE_PREFIX,
)

_HEADER_BASE = 27
_HEADER_MAX = 42
# P2SH wrapped witness program: OP_0 PUSH20 <hash160(pubkey)>
_P2WPKH_SCRIPT_PREFIX = b"\x00\x14"


class SignatureFormatError(ValueError):
    """Raised when a signature or an address cannot be decoded."""

    __slots__ = ()


class AddressKind(Enum):
    """Represent the address types a signature header can announce."""

    P2PKH = 0
    P2SH_P2WPKH = 1
    P2WPKH = 2


def _varint(n: int) -> bytes:
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


def message_digest(message: str) -> bytes:
    """Return the double SHA-256 digest a wallet signs for message."""
    data = message.encode(ENCODING)
    payload = (
        _varint(len(SIGNED_MESSAGE_PREFIX))
        + SIGNED_MESSAGE_PREFIX
        + _varint(len(data))
        + data
    )
    return hashlib.sha256(hashlib.sha256(payload).digest()).digest()


def hash160(data: bytes) -> bytes:
    """Return RIPEMD-160 of SHA-256 of data."""
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def _decode_signature(
    signature: str,
) -> tuple[int, bool, AddressKind, bytes]:
    """Split a compact signature into its header fields and ``r || s``."""
    try:
        raw = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SignatureFormatError(f"signature is not base64 ({e})") from e

    if len(raw) != COMPACT_SIGNATURE_SIZE:
        raise SignatureFormatError(
            f"signature must be {COMPACT_SIGNATURE_SIZE} bytes, got {len(raw)}",
        )

    header = raw[0]
    if not _HEADER_BASE <= header <= _HEADER_MAX:
        raise SignatureFormatError(f"invalid signature header byte {header}")

    flag = header - _HEADER_BASE
    recovery_id = flag & 3
    if flag < 4:
        return recovery_id, False, AddressKind.P2PKH, raw[1:]
    if flag < 8:
        return recovery_id, True, AddressKind.P2PKH, raw[1:]
    if flag < 12:
        return recovery_id, True, AddressKind.P2SH_P2WPKH, raw[1:]
    return recovery_id, True, AddressKind.P2WPKH, raw[1:]


def _recover_public_keys(rs: bytes, digest: bytes) -> list[VerifyingKey]:
    """Return both public keys for which ``rs`` is a valid signature of digest.

    The first key belongs to the even-y nonce point (recovery id 0).
    """
    return VerifyingKey.from_public_key_recovery_with_digest(
        rs,
        digest,
        SECP256k1,
        hashfunc=hashlib.sha256,
        sigdecode=sigdecode_string,
    )


def address_hash(address: str) -> bytes:
    """Return the 20 byte hash an address commits to.

    Base58check addresses are accepted whatever their version byte, so
    mainnet and testnet addresses both work. Anything else is decoded as a
    bech32 version 0 witness program.
    """
    try:
        decoded = base58.b58decode_check(address)
    except ValueError:
        decoded = None

    if decoded is not None:
        if len(decoded) != HASH160_SIZE + 1:
            raise SignatureFormatError(f"unexpected address length: {address}")
        return decoded[1:]

    hrp, separator, _ = address.lower().rpartition("1")
    if not hrp or not separator:
        raise SignatureFormatError(f"cannot decode address: {address}")
    witness_version, witness_program = bech32.decode(hrp, address)
    if (
        witness_version is None
        or witness_program is None
        or len(witness_program) != HASH160_SIZE
    ):
        raise SignatureFormatError(f"cannot decode address: {address}")
    return bytes(witness_program)


def verify_message(message: str, address: str, signature: str) -> bool:
    """Check that signature over message was made by the owner of address.

    Raises:
        SignatureFormatError: if the signature or the address is malformed.

    """
    recovery_id, compressed, kind, rs = _decode_signature(signature)
    expected = address_hash(address)

    try:
        candidates = _recover_public_keys(rs, message_digest(message))
    except Exception as e:  # noqa: BLE001
        raise SignatureFormatError(
            f"cannot recover a public key from signature ({e})",
        ) from e

    public_key = candidates[recovery_id & 1].to_string(
        "compressed" if compressed else "uncompressed",
    )
    key_hash = hash160(public_key)
    script_hash = hash160(_P2WPKH_SCRIPT_PREFIX + key_hash)

    if kind is AddressKind.P2SH_P2WPKH:
        return expected == script_hash
    if kind is AddressKind.P2WPKH:
        return expected == key_hash
    if compressed:
        # Electrum signs segwit addresses with the plain compressed header.
        return expected in (key_hash, script_hash)
    return expected == key_hash


def sign_message(
    signing_key: SigningKey,
    message: str,
    compressed: bool = True,
) -> str:
    """Sign message the way a wallet does and return the base64 signature."""
    digest = message_digest(message)
    rs = signing_key.sign_digest_deterministic(
        digest,
        hashfunc=hashlib.sha256,
        sigencode=sigencode_string_canonize,
    )

    own_key = signing_key.get_verifying_key().to_string()
    candidates = _recover_public_keys(rs, digest)
    recovery_id = next(
        index
        for index, candidate in enumerate(candidates)
        if candidate.to_string() == own_key
    )

    header = _HEADER_BASE + recovery_id + (4 if compressed else 0)
    return base64.b64encode(bytes([header]) + rs).decode("ascii")


def address_from_signing_key(
    signing_key: SigningKey,
    compressed: bool = True,
    version: int = P2PKH_VERSION,
) -> str:
    """Return the P2PKH address of signing_key."""
    public_key = signing_key.get_verifying_key().to_string(
        "compressed" if compressed else "uncompressed",
    )
    return base58.b58encode_check(
        bytes([version]) + hash160(public_key),
    ).decode("ascii")
