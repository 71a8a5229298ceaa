"""Id factories for rows, columns and content blocks.

Ids only have to be unique within one conversion.  Production code uses
:class:`RandomIdFactory`; tests inject :class:`SequentialIdFactory` so that
two conversions of the same input compare equal.
"""

from __future__ import annotations

import itertools
import random
import string
from typing import Callable, Optional

IdFactory = Callable[[], str]

_BASE36 = string.digits + string.ascii_lowercase


class RandomIdFactory:
    """Mint opaque 9-character base-36 tokens, never repeating within one instance."""

    def __init__(self, length: int = 9, rng: Optional[random.Random] = None) -> None:
        self._length = length
        self._rng = rng or random.SystemRandom()
        self._issued: set[str] = set()

    def __call__(self) -> str:
        while True:
            token = "".join(self._rng.choice(_BASE36) for _ in range(self._length))
            if token not in self._issued:
                self._issued.add(token)
                return token


class SequentialIdFactory:
    """Deterministic ids: ``id-1``, ``id-2``, ..."""

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"
