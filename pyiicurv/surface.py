"""Implicit digital surfaces: boundaries of a point predicate in a KSpace."""
from __future__ import annotations

import logging
from typing import Callable, Iterator, Sequence

import numpy as np

from .domain import HyperRectDomain
from .errors import BoundaryNotFoundError, InvalidParameterError, InvalidSeedError
from .kspace import KSpace, SCell, SurfelAdjacency
from .visitor import DepthFirstVisitor

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

PointPredicate = Callable[[Sequence[int]], bool]


class LightImplicitDigitalSurface:
    """Boundary of a point predicate, explored lazily from a seed surfel.

    Nothing is stored but the seed: neighbours are computed on demand from
    the predicate, so the surface may be arbitrarily large. Digital points
    outside the bounds of ``kspace`` count as outside the shape, which keeps
    every component closed and finite.

    Parameters
    ----------
    kspace : KSpace
        Cellular space holding the surface.
    predicate : callable
        ``predicate(point) -> bool`` for digital points.
    adjacency : SurfelAdjacency
        Interior/exterior choice used to resolve diagonal configurations.
    seed : SCell
        A boundary surfel of the predicate.

    Raises
    ------
    InvalidSeedError
        If ``seed`` is not a surfel separating an inside point from an outside one.
    """

    def __init__(self, kspace: KSpace, predicate: PointPredicate, adjacency: SurfelAdjacency, seed: SCell):
        if adjacency.dimension != kspace.dimension:
            raise InvalidParameterError("adjacency and kspace dimensions differ")
        self.kspace = kspace
        self.predicate = predicate
        self.adjacency = adjacency
        self._bounds = HyperRectDomain(kspace.lower, kspace.upper)
        if not self.is_bel(seed):
            raise InvalidSeedError(f"{seed} is not a boundary surfel of the shape")
        self.seed = seed

    def __repr__(self) -> str:
        return f"LightImplicitDigitalSurface(kspace={self.kspace!r}, seed={self.seed})"

    @property
    def dimension(self) -> int:
        return self.kspace.dimension

    def _inside(self, point: Sequence[int]) -> bool:
        return self._bounds.contains(point) and bool(self.predicate(point))

    def is_bel(self, surfel) -> bool:
        """True if ``surfel`` has its inner spel inside and its outer spel outside."""
        if not isinstance(surfel, SCell) or len(surfel.kcoords) != self.dimension:
            return False
        if not self.kspace.s_is_surfel(surfel) or not self.kspace.s_is_inside(surfel):
            return False
        return self._inside(self.kspace.inner_point(surfel)) and not self._inside(self.kspace.outer_point(surfel))

    __contains__ = is_bel

    def _follow(self, surfel: SCell, orth: int, track: int, pos: bool) -> SCell:
        K = self.kspace
        p_in = list(K.inner_point(surfel))
        p_out = list(K.outer_point(surfel))
        step = 1 if pos else -1
        q_in = list(p_in)
        q_in[track] += step
        q_out = list(p_out)
        q_out[track] += step
        if self.adjacency.get_adjacency(orth, track):
            if self._inside(q_out):
                return K.surfel_between(q_out, p_out)
            if self._inside(q_in):
                return K.surfel_between(q_in, q_out)
            return K.surfel_between(p_in, q_in)
        if not self._inside(q_in):
            return K.surfel_between(p_in, q_in)
        if not self._inside(q_out):
            return K.surfel_between(q_in, q_out)
        return K.surfel_between(q_out, p_out)

    def neighbors(self, surfel: SCell) -> list[SCell]:
        """Adjacent surfels: tangent axes ascending, ``+`` direction before ``-``."""
        orth = self.kspace.s_orth_dir(surfel)
        out: list[SCell] = []
        for track in self.kspace.s_dirs(surfel):
            for pos in (True, False):
                out.append(self._follow(surfel, orth, track, pos))
        return out

    def degree(self, surfel: SCell) -> int:
        return len(self.neighbors(surfel))

    def __iter__(self) -> Iterator[SCell]:
        return iter(DepthFirstVisitor(self))

    def __len__(self) -> int:
        return sum(1 for _ in self)


def find_a_bel(
    kspace: KSpace,
    predicate: PointPredicate,
    max_tries: int = 10000,
    random_state=None,
) -> SCell:
    """Locate one boundary surfel of ``predicate`` by random sampling and bisection.

    Random points of the space are drawn until one differs from the first
    sample with respect to the predicate; the segment between the two is then
    bisected down to a pair of face-adjacent points on both sides of the
    boundary.

    Parameters
    ----------
    kspace : KSpace
        Space whose digital bounds are sampled.
    predicate : callable
        ``predicate(point) -> bool``.
    max_tries : int, default 10000
        Number of random samples before giving up.
    random_state : int or numpy.random.Generator, optional
        Seed for reproducible searches.

    Returns
    -------
    SCell
        A surfel whose inner point satisfies the predicate and whose outer
        point does not.

    Raises
    ------
    BoundaryNotFoundError
        If no sample differs from the first one within ``max_tries``.
    """
    rng = np.random.default_rng(random_state)
    lo = np.asarray(kspace.lower, dtype=np.int64)
    up = np.asarray(kspace.upper, dtype=np.int64)
    bounds = HyperRectDomain(kspace.lower, kspace.upper)

    def inside(p) -> bool:
        return bounds.contains(p) and bool(predicate(tuple(int(v) for v in p)))

    x1 = rng.integers(lo, up + 1)
    v1 = inside(x1)
    for _ in range(int(max_tries)):
        x2 = rng.integers(lo, up + 1)
        if inside(x2) != v1:
            break
    else:
        raise BoundaryNotFoundError(f"no boundary found after {max_tries} tries")

    # bisect until the two points are within one step on every axis
    while np.max(np.abs(x2 - x1)) > 1:
        mid = (x1 + x2) // 2
        if inside(mid) == v1:
            x1 = mid
        else:
            x2 = mid

    # walk from x1 to x2 one axis at a time until the predicate flips
    cur = x1.copy()
    for axis in range(kspace.dimension):
        if cur[axis] == x2[axis]:
            continue
        nxt = cur.copy()
        nxt[axis] = x2[axis]
        if inside(nxt) != v1:
            a, b = (cur, nxt) if v1 else (nxt, cur)
            bel = kspace.surfel_between(a.tolist(), b.tolist())
            logger.debug("find_a_bel: found %s", bel)
            return bel
        cur = nxt
    raise BoundaryNotFoundError("bisection did not isolate a boundary surfel")


def boundary_surfels(kspace: KSpace, image: np.ndarray, domain: HyperRectDomain) -> set[SCell]:
    """All boundary surfels of a binary image, every component included.

    Points outside ``domain`` count as outside, as in
    :class:`LightImplicitDigitalSurface`.
    """
    img = np.asarray(image, dtype=bool)
    if img.shape != domain.shape:
        raise ValueError(f"image shape {img.shape} does not match domain shape {domain.shape}")
    padded = np.pad(img, 1, constant_values=False)
    lower = np.asarray(domain.lower, dtype=np.int64) - 1
    out: set[SCell] = set()
    for axis in range(img.ndim):
        a = np.swapaxes(padded, 0, axis)
        change = a[:-1] != a[1:]
        for idx in np.argwhere(change):
            first = idx.copy()
            second = idx.copy()
            second[0] += 1
            first[[0, axis]] = first[[axis, 0]]
            second[[0, axis]] = second[[axis, 0]]
            p1 = (first + lower).tolist()
            p2 = (second + lower).tolist()
            if padded[tuple(first)]:
                out.add(kspace.surfel_between(p1, p2))
            else:
                out.add(kspace.surfel_between(p2, p1))
    return out
