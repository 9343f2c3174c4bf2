"""Block - The sealed unit of the star registry chain."""

# Copyright (C) 2025 The Star Registry Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.

from __future__ import annotations

import hashlib
import json
import logging
import sys
from typing import Any

from pydantic import BaseModel

from star_registry.common import StarRegistryError
from star_registry.constants import ENCODING, GENESIS_HEIGHT

logger = logging.getLogger("block")

stdout_handler = logging.StreamHandler(stream=sys.stdout)
stdout_handler.setFormatter(
    logging.Formatter(
        "[%(name)s] %(asctime)s | %(levelname)s | %(filename)s:%(lineno)s >>> %(message)s",
    ),
)
logger.addHandler(stdout_handler)
logger.setLevel(logging.INFO)
logger.propagate = False


class BlockDecodeError(StarRegistryError):
    """Raised when a block body cannot be decoded to a payload."""

    __slots__ = ()


def encode_body(payload: Any) -> str:
    """Encode a JSON serializable payload to the hex form stored in a block."""
    return json.dumps(payload).encode(ENCODING).hex()


class Block(BaseModel):
    """A single entry of the chain.

    The payload is kept hex encoded in ``body`` so that the hash commits to
    its exact bytes. ``height``, ``time``, ``previous_block_hash`` and
    ``hash`` are stamped by the chain when the block is appended.
    """

    hash: str | None = None
    height: int = 0
    body: str
    time: int = 0
    previous_block_hash: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> Block:
        """Return an unsealed block carrying payload."""
        return cls(body=encode_body(payload))

    def canonical_bytes(self) -> bytes:
        """Return the stable serialization the hash is computed over."""
        return json.dumps(
            {
                "height": self.height,
                "body": self.body,
                "time": self.time,
                "previous_block_hash": self.previous_block_hash,
            },
            sort_keys=True,
            separators=(",", ":"),
        ).encode(ENCODING)

    def compute_hash(self) -> str:
        """Return hash from this block's current fields."""
        return hashlib.sha256(self.canonical_bytes()).hexdigest()

    def seal(self) -> None:
        """Finalize the block's hash."""
        self.hash = self.compute_hash()
        logger.debug(f"Block #{self.height} sealed! Hash: {self.hash}")

    def is_valid(self) -> bool:
        """Return True if the stored hash still matches the block's fields."""
        return self.hash is not None and self.hash == self.compute_hash()

    def decode_body(self) -> dict[str, Any]:
        """Return the decoded payload.

        Raises:
            BlockDecodeError: for the Genesis Block, which carries no star,
                and for bodies that are not hex encoded JSON objects.

        """
        if self.height == GENESIS_HEIGHT:
            raise BlockDecodeError("the Genesis Block carries no star data")
        try:
            payload = json.loads(bytes.fromhex(self.body).decode(ENCODING))
        except (ValueError, UnicodeDecodeError) as e:
            raise BlockDecodeError(
                f"cannot decode body of block #{self.height} ({e})",
            ) from e
        if not isinstance(payload, dict):
            raise BlockDecodeError(
                f"body of block #{self.height} is not an object",
            )
        return payload

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for API responses."""
        return {
            "hash": self.hash,
            "height": self.height,
            "body": self.body,
            "time": self.time,
            "previous_block_hash": self.previous_block_hash,
        }
