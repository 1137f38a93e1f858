"""
Shape specification for tensor sequences.

A sequence shape is the engine's four-dimensional index: three spatial extents
of a single time-point item plus the number of time points.
"""

from dataclasses import dataclass
from typing import Tuple, Dict, Any


@dataclass(frozen=True)
class SequenceShape:
    """Extents of one time-point item and the sequence depth."""

    item: Tuple[int, int, int]
    depth: int

    def __post_init__(self):
        """Validate sequence shape."""
        if len(self.item) != 3:
            raise ValueError("item must have exactly 3 extents")
        if any(extent <= 0 for extent in self.item):
            raise ValueError("item extents must be positive")
        if self.depth <= 0:
            raise ValueError("depth must be positive")

    @classmethod
    def flat(cls, item_size: int, depth: int) -> 'SequenceShape':
        """Shape whose items are flat vectors of ``item_size`` scalars."""
        return cls(item=(1, 1, item_size), depth=depth)

    @property
    def item_size(self) -> int:
        """Number of scalars in one time-point item."""
        x, y, z = self.item
        return x * y * z

    @property
    def plain_size(self) -> int:
        """Number of scalars in the whole sequence."""
        return self.item_size * self.depth

    def to_dict(self) -> Dict[str, Any]:
        """Convert spec to dictionary."""
        return {
            'item': list(self.item),
            'depth': self.depth
        }
