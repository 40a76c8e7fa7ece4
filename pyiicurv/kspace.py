"""Cellular grid space in Khalimsky coordinates.

A cell is encoded by integer Khalimsky coordinates: the coordinate along an
axis is odd where the cell has extent and even where it is closed. The spel
(pixel) of a digital point ``p`` has coordinates ``2p + 1``; a surfel lying
between two face-adjacent spels has a single even coordinate, along its
orthogonal direction.

Signed cells carry an orientation. For a positive surfel the direct incident
spel along the orthogonal direction is on the ``+`` side; it is the outer
spel when the surfel bounds a shape. The indirect incident spel is the inner
one.
"""
from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np

from .errors import InvalidParameterError


class SCell(NamedTuple):
    """Signed cell: Khalimsky coordinates plus orientation."""

    kcoords: tuple[int, ...]
    sign: bool = True


class SurfelAdjacency:
    """Interior/exterior adjacency choice for each (orthogonal, tangent) axis pair."""

    def __init__(self, dimension: int, interior: bool = True):
        if dimension < 1:
            raise InvalidParameterError("dimension must be positive")
        self.dimension = int(dimension)
        self._interior = np.full((self.dimension, self.dimension), bool(interior), dtype=bool)

    def get_adjacency(self, i: int, j: int) -> bool:
        """True when surfels orthogonal to ``i`` follow the interior when moving along ``j``."""
        return bool(self._interior[i, j])

    def set_adjacency(self, i: int, j: int, interior: bool) -> None:
        self._interior[i, j] = bool(interior)

    def __repr__(self) -> str:
        return f"SurfelAdjacency(dimension={self.dimension}, interior={self._interior.tolist()})"


class KSpace:
    """Bounded Khalimsky space over the digital box ``[lower, upper]``.

    Parameters
    ----------
    lower, upper : sequence of int
        Digital bounds of the spels of the space.
    closed : bool, default True
        When True the space also holds the lower-dimensional cells on the
        border of the box, so that surfels between the outermost spels and the
        outside are part of it.
    """

    def __init__(self, lower: Sequence[int], upper: Sequence[int], closed: bool = True):
        lo = tuple(int(v) for v in lower)
        up = tuple(int(v) for v in upper)
        if len(lo) != len(up) or len(lo) == 0:
            raise InvalidParameterError("lower and upper must have the same non-zero dimension")
        if any(a > b for a, b in zip(lo, up)):
            raise InvalidParameterError(f"invalid bounds: lower={lo} upper={up}")
        self.lower = lo
        self.upper = up
        self.closed = bool(closed)
        if self.closed:
            self._klower = tuple(2 * a for a in lo)
            self._kupper = tuple(2 * b + 2 for b in up)
        else:
            self._klower = tuple(2 * a + 1 for a in lo)
            self._kupper = tuple(2 * b + 1 for b in up)

    def __repr__(self) -> str:
        return f"KSpace(lower={self.lower}, upper={self.upper}, closed={self.closed})"

    @property
    def dimension(self) -> int:
        return len(self.lower)

    # =================================================================
    # CONSTRUCTION AND ACCESSORS
    # =================================================================

    def s_cell(self, kcoords: Sequence[int], sign: bool = True) -> SCell:
        kc = tuple(int(v) for v in kcoords)
        if len(kc) != self.dimension:
            raise ValueError(f"expected {self.dimension} Khalimsky coordinates, got {len(kc)}")
        return SCell(kc, bool(sign))

    def spel(self, point: Sequence[int], sign: bool = True) -> SCell:
        """Spel of digital point ``point``."""
        return self.s_cell([2 * int(p) + 1 for p in point], sign)

    def s_kcoords(self, cell: SCell) -> tuple[int, ...]:
        return cell.kcoords

    def s_sign(self, cell: SCell) -> bool:
        return cell.sign

    def s_coords(self, cell: SCell) -> tuple[int, ...]:
        """Digital coordinates of ``cell`` (those of its spel for a spel)."""
        return tuple(k >> 1 for k in cell.kcoords)

    def s_dim(self, cell: SCell) -> int:
        return sum(k & 1 for k in cell.kcoords)

    def s_dirs(self, cell: SCell) -> list[int]:
        """Axes along which ``cell`` is open."""
        return [i for i, k in enumerate(cell.kcoords) if k & 1]

    def s_is_surfel(self, cell: SCell) -> bool:
        return self.s_dim(cell) == self.dimension - 1

    def s_orth_dir(self, surfel: SCell) -> int:
        """The unique axis along which ``surfel`` is closed."""
        closed_axes = [i for i, k in enumerate(surfel.kcoords) if not k & 1]
        if len(closed_axes) != 1:
            raise ValueError(f"{surfel} is not a surfel")
        return closed_axes[0]

    def s_is_inside(self, cell: SCell) -> bool:
        return all(a <= k <= b for a, k, b in zip(self._klower, cell.kcoords, self._kupper))

    def s_real_center(self, cell: SCell, h: float = 1.0) -> np.ndarray:
        """Centre of ``cell`` in real units for grid step ``h``."""
        return h * (np.asarray(cell.kcoords, dtype=float) - 1.0) / 2.0

    # =================================================================
    # INCIDENCE AND ADJACENCY
    # =================================================================

    def _moved(self, cell: SCell, k: int, delta: int, sign: bool) -> SCell:
        kc = list(cell.kcoords)
        kc[k] += delta
        return SCell(tuple(kc), sign)

    def s_opp(self, cell: SCell) -> SCell:
        return SCell(cell.kcoords, not cell.sign)

    def s_incident(self, cell: SCell, k: int, up: bool) -> SCell:
        """Cell incident to ``cell`` along axis ``k``, toward ``+`` when ``up``.

        The orientation follows the boundary operator: the face on the side
        given by the cell's own sign keeps it, the other one is flipped.
        """
        sign = cell.sign if up else not cell.sign
        return self._moved(cell, k, 1 if up else -1, sign)

    def s_direct_incident(self, cell: SCell, k: int) -> SCell:
        """Incident cell along ``k`` on the side given by the sign of ``cell``."""
        return self._moved(cell, k, 1 if cell.sign else -1, True)

    def s_indirect_incident(self, cell: SCell, k: int) -> SCell:
        """Incident cell along ``k`` on the side opposite to the sign of ``cell``."""
        return self._moved(cell, k, -1 if cell.sign else 1, False)

    def s_adjacent(self, cell: SCell, k: int, up: bool) -> SCell:
        """Cell of the same dimension next to ``cell`` along axis ``k``."""
        return self._moved(cell, k, 2 if up else -2, cell.sign)

    # =================================================================
    # SURFELS BETWEEN POINTS
    # =================================================================

    def surfel_between(self, inner: Sequence[int], outer: Sequence[int]) -> SCell:
        """Surfel separating face-adjacent digital points ``inner`` and ``outer``.

        The surfel is oriented so that its indirect incident spel is ``inner``.
        """
        diff = [int(o) - int(i) for i, o in zip(inner, outer)]
        nz = [ax for ax, d in enumerate(diff) if d != 0]
        if len(nz) != 1 or abs(diff[nz[0]]) != 1:
            raise ValueError(f"points {tuple(inner)} and {tuple(outer)} are not face-adjacent")
        kc = tuple(int(i) + int(o) + 1 for i, o in zip(inner, outer))
        return SCell(kc, diff[nz[0]] > 0)

    def inner_point(self, surfel: SCell) -> tuple[int, ...]:
        """Digital point of the spel on the inner side of ``surfel``."""
        k = self.s_orth_dir(surfel)
        return self.s_coords(self.s_indirect_incident(surfel, k))

    def outer_point(self, surfel: SCell) -> tuple[int, ...]:
        """Digital point of the spel on the outer side of ``surfel``."""
        k = self.s_orth_dir(surfel)
        return self.s_coords(self.s_direct_incident(surfel, k))

    def inner_spel(self, surfel: SCell) -> SCell:
        return self.spel(self.inner_point(surfel))
