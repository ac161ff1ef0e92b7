"""
Gas Mix Registry
================

A fixed-capacity, insertion-ordered set of (oxygen%, helium%) pairs.

The layout pass registers every distinct gas seen in the dive samples.
The index a pair receives here is the index reported by the field
accessor and by GASMIX sample events, so indices are stable for the
lifetime of a layout.
"""

import logging
from typing import Optional

from shearwater_log.errors import GasMixLimitError
from shearwater_log.parser.records import GasMix

logger = logging.getLogger(__name__)

# Maximum number of distinct gas mixes per dive
NGASMIXES = 10


class GasMixTable:
    """
    Ordered registry of distinct gas mixes.

    Example:
        >>> table = GasMixTable()
        >>> table.resolve(32, 0)
        0
        >>> table.resolve(21, 35)
        1
        >>> table.resolve(32, 0)
        0
    """

    def __init__(self, capacity: int = NGASMIXES):
        self.capacity = capacity
        self._mixes: list[GasMix] = []

    def __len__(self) -> int:
        return len(self._mixes)

    def find(self, oxygen: int, helium: int) -> Optional[int]:
        """Return the index of a registered pair, or None."""
        mix = GasMix(oxygen, helium)
        for index, known in enumerate(self._mixes):
            if known == mix:
                return index
        return None

    def resolve(self, oxygen: int, helium: int) -> int:
        """
        Return the index of a pair, registering it on first sight.

        Raises:
            GasMixLimitError: If the pair is new and the table is full
        """
        index = self.find(oxygen, helium)
        if index is not None:
            return index

        if len(self._mixes) >= self.capacity:
            logger.error(f"Maximum number of gas mixes ({self.capacity}) reached")
            raise GasMixLimitError(self.capacity, oxygen, helium)

        self._mixes.append(GasMix(oxygen, helium))
        logger.debug(f"Registered gas mix {oxygen}/{helium} as index {len(self._mixes) - 1}")
        return len(self._mixes) - 1

    def freeze(self) -> tuple[GasMix, ...]:
        """Snapshot the registered mixes in index order."""
        return tuple(self._mixes)
