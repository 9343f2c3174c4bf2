# Star Registry - validator.py
# Copyright (C) 2025 The Star Registry Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""Chain Validator - Report every inconsistency of a chain in one pass."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from star_registry.block import Block


def block_is_self_consistent(block: Block) -> bool:
    """Return True if the block's stored hash matches its current fields."""
    return block.is_valid()


def _broken_links(chain: Sequence[Block]) -> list[int]:
    """Return the heights whose previous hash does not match their parent."""
    return [
        height
        for height in range(1, len(chain))
        if chain[height].previous_block_hash != chain[height - 1].hash
    ]


def _invalid_block_message(height: int) -> str:
    return f"Block at height {height} is not valid"


def _broken_link_message(height: int) -> str:
    return (
        f"Block {height} previousBlockHash is not the same as the previous hash"
    )


def links_are_consistent(chain: Sequence[Block]) -> list[str]:
    """Return one error per block that does not link to its predecessor."""
    return [_broken_link_message(height) for height in _broken_links(chain)]


def validate_chain(chain: Sequence[Block]) -> list[str]:
    """Return every error found in chain, in ascending height order.

    Each block is checked for its own hash and, past the Genesis Block, for
    its link to the previous block. Both checks always run, so a single
    block may contribute two errors.
    """
    broken = set(_broken_links(chain))
    errors: list[str] = []
    for height, block in enumerate(chain):
        if not block_is_self_consistent(block):
            errors.append(_invalid_block_message(height))
        if height in broken:
            errors.append(_broken_link_message(height))
    return errors
