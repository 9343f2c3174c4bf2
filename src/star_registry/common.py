"""Common - Shared errors and helpers."""
# Star Registry - common.py
# Copyright (C) 2025 The Star Registry Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.

from __future__ import annotations

import time


class StarRegistryError(Exception):
    """Base class of every error raised by the registry."""

    __slots__ = ()


def now_ts() -> int:
    """Unix timestamp in seconds."""
    return int(time.time())
