from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import InvalidParameterError


class HyperRectDomain:
    """Inclusive axis-aligned box of integer points.

    Parameters
    ----------
    lower, upper : sequence of int
        Lowest and highest corner, both included.
    """

    def __init__(self, lower: Sequence[int], upper: Sequence[int]):
        lo = tuple(int(v) for v in lower)
        up = tuple(int(v) for v in upper)
        if len(lo) != len(up) or len(lo) == 0:
            raise InvalidParameterError("lower and upper must have the same non-zero dimension")
        if any(a > b for a, b in zip(lo, up)):
            raise InvalidParameterError(f"empty domain: lower={lo} upper={up}")
        self.lower = lo
        self.upper = up

    def __repr__(self) -> str:
        return f"HyperRectDomain(lower={self.lower}, upper={self.upper})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, HyperRectDomain):
            return NotImplemented
        return self.lower == other.lower and self.upper == other.upper

    def __hash__(self) -> int:
        return hash((self.lower, self.upper))

    @property
    def dimension(self) -> int:
        return len(self.lower)

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(b - a + 1 for a, b in zip(self.lower, self.upper))

    @property
    def size(self) -> int:
        return int(np.prod(self.shape))

    def contains(self, point: Sequence[int]) -> bool:
        return all(a <= int(p) <= b for a, p, b in zip(self.lower, point, self.upper))

    __contains__ = contains

    def contains_array(self, points: np.ndarray) -> np.ndarray:
        """Vectorized membership test for an ``(n, d)`` array of points."""
        P = np.asarray(points)
        lo = np.asarray(self.lower)
        up = np.asarray(self.upper)
        return np.all((P >= lo) & (P <= up), axis=-1)

    def points(self) -> np.ndarray:
        """All points of the domain as an ``(size, d)`` int array, first axis slowest."""
        axes = [np.arange(a, b + 1, dtype=np.int64) for a, b in zip(self.lower, self.upper)]
        grids = np.meshgrid(*axes, indexing="ij")
        return np.stack([g.ravel() for g in grids], axis=1)

    def index(self, points: np.ndarray) -> tuple[np.ndarray, ...]:
        """Index tuple into an image of shape ``self.shape`` for in-domain points."""
        P = np.asarray(points, dtype=np.int64) - np.asarray(self.lower, dtype=np.int64)
        return tuple(P[..., i] for i in range(self.dimension))
