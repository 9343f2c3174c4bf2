"""Chain - The in-memory star registry and its append protocol."""

# Copyright (C) 2025 The Star Registry Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.

from __future__ import annotations

import logging
import sys
import threading
from typing import Any

from star_registry.block import Block, BlockDecodeError
from star_registry.common import StarRegistryError, now_ts
from star_registry.constants import GENESIS_DATA
from star_registry.ownership import issue_challenge, verify_ownership
from star_registry.validator import validate_chain

logger = logging.getLogger("chain")

stdout_handler = logging.StreamHandler(stream=sys.stdout)
stdout_handler.setFormatter(
    logging.Formatter(
        "[%(name)s] %(asctime)s | %(levelname)s | %(filename)s:%(lineno)s >>> %(message)s",
    ),
)
logger.addHandler(stdout_handler)
logger.setLevel(logging.INFO)
logger.propagate = False


class ChainValidationError(StarRegistryError):
    """Raised when the stored chain fails validation before an append."""

    def __init__(self, errors: list[str]) -> None:
        """Initialize the error with every validation failure found."""
        super().__init__(f"chain is invalid: {'; '.join(errors)}")
        self.errors = errors


class Blockchain:
    """Provides the append-only chain of star claims.

    Every instance starts with the Genesis Block. Appends run under one lock
    per instance; readers work on a snapshot of the blocks, and a block is
    only published once it is sealed.
    """

    def __init__(self) -> None:
        """Initialize the chain with its Genesis Block."""
        self._blocks: list[Block] = []
        self._lock = threading.Lock()
        self._initialize_chain()

    def _initialize_chain(self) -> None:
        if self.get_chain_height() == -1:
            self._add_block(Block.from_payload(GENESIS_DATA))
            logger.info("Genesis Block created and sealed.")

    def _snapshot(self) -> tuple[Block, ...]:
        # Readers never take the lock: blocks are appended already sealed
        # and copying the list is atomic.
        return tuple(self._blocks)

    def get_chain_height(self) -> int:
        """Return the height of the latest block, -1 for an empty chain."""
        return len(self._blocks) - 1

    def _add_block(self, block: Block) -> Block:
        """Stamp, seal and append block.

        The stored chain is validated before the block is published; if it
        is corrupt nothing is appended.

        Raises:
            ChainValidationError: if the stored chain is not valid.

        """
        with self._lock:
            height = self.get_chain_height()
            if height > -1:
                block.previous_block_hash = self._blocks[height].hash
            block.height = height + 1
            block.time = now_ts()
            block.seal()

            errors = validate_chain(self._blocks)
            if errors:
                logger.warning(
                    f"refused block #{block.height}, chain is invalid: {errors}",
                )
                raise ChainValidationError(errors)

            self._blocks.append(block)
            logger.info(
                f"Appended block #{block.height} to the chain. Hash: {block.hash}",
            )
            return block

    def request_message_ownership_verification(self, address: str) -> str:
        """Return the challenge message address has to sign."""
        return issue_challenge(address)

    def submit_star(
        self,
        address: str,
        message: str,
        signature: str,
        star: Any,
    ) -> Block:
        """Register star for address, after checking the signed challenge.

        Raises:
            MalformedChallengeError: if message is not a challenge.
            ExpiredChallengeError: if the challenge is too old.
            InvalidSignatureError: if signature does not match address.
            ChainValidationError: if the stored chain is not valid.

        """
        verify_ownership(address, message, signature)
        return self._add_block(
            Block.from_payload({"owner": address, "star": star}),
        )

    def get_block_by_hash(self, block_hash: str) -> Block | None:
        """Return the block with hash block_hash if it exists."""
        return next(
            (block for block in self._snapshot() if block.hash == block_hash),
            None,
        )

    def get_block_by_height(self, height: int) -> Block | None:
        """Return the block at height if it exists."""
        blocks = self._snapshot()
        if 0 <= height < len(blocks):
            return blocks[height]
        return None

    def get_stars_by_wallet_address(self, address: str) -> list[dict[str, Any]]:
        """Return the decoded payloads owned by address, in chain order."""
        stars = []
        for block in self._snapshot():
            try:
                payload = block.decode_body()
            except BlockDecodeError:
                continue
            if payload.get("owner") == address:
                stars.append(payload)
        return stars

    def validate_chain(self) -> list[str]:
        """Return every inconsistency of the stored chain."""
        return validate_chain(self._snapshot())
