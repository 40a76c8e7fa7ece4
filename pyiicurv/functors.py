"""Inside/outside indicators on digital points and on cells.

Every functor exposes a scalar ``__call__`` and a vectorized ``values``
taking an ``(n, d)`` integer array. Points outside the functor's domain map to
the outside value instead of raising, so that convolution kernels reaching
past the digitized domain simply see empty space.
"""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .domain import HyperRectDomain
from .kspace import KSpace, SCell

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def _evaluate_predicate(predicate, points: np.ndarray) -> np.ndarray:
    if hasattr(predicate, "contains_array"):
        return np.asarray(predicate.contains_array(points), dtype=bool)
    return np.fromiter((bool(predicate(tuple(p))) for p in points.tolist()), dtype=bool, count=points.shape[0])


class PointIndicator:
    """Constant-valued indicator of a point predicate restricted to a domain.

    Parameters
    ----------
    predicate : callable
        ``predicate(point) -> bool``; a ``contains_array`` method is used for
        vectorized queries when available.
    domain : HyperRectDomain
        Points outside it return ``outside_value`` without querying the predicate.
    inside_value, outside_value : float
        Values returned for points inside and outside the shape.
    """

    def __init__(self, predicate, domain: HyperRectDomain, inside_value: float = 1, outside_value: float = 0):
        self.predicate = predicate
        self.domain = domain
        self.inside_value = inside_value
        self.outside_value = outside_value

    @property
    def integer_valued(self) -> bool:
        return all(float(v).is_integer() for v in (self.inside_value, self.outside_value))

    def __call__(self, point: Sequence[int]) -> float:
        if not self.domain.contains(point):
            return self.outside_value
        return self.inside_value if self.predicate(tuple(int(v) for v in point)) else self.outside_value

    def values(self, points: np.ndarray) -> np.ndarray:
        P = np.asarray(points, dtype=np.int64).reshape(-1, self.domain.dimension)
        out = np.full(P.shape[0], self.outside_value, dtype=float)
        valid = self.domain.contains_array(P)
        if np.any(valid):
            hit = _evaluate_predicate(self.predicate, P[valid])
            out[np.flatnonzero(valid)[hit]] = self.inside_value
        return out


class ImageIndicator:
    """Indicator backed by a precomputed image over ``domain``."""

    def __init__(self, image: np.ndarray, domain: HyperRectDomain):
        img = np.asarray(image)
        if img.shape != domain.shape:
            raise ValueError(f"image shape {img.shape} does not match domain shape {domain.shape}")
        self.image = img
        self.domain = domain

    @property
    def integer_valued(self) -> bool:
        return self.image.dtype.kind in "iub"

    def __call__(self, point: Sequence[int]) -> float:
        if not self.domain.contains(point):
            return 0
        return self.image[self.domain.index(np.asarray(point))]

    def values(self, points: np.ndarray) -> np.ndarray:
        P = np.asarray(points, dtype=np.int64).reshape(-1, self.domain.dimension)
        out = np.zeros(P.shape[0], dtype=float)
        valid = self.domain.contains_array(P)
        if np.any(valid):
            out[valid] = self.image[self.domain.index(P[valid])]
        return out


def image_from_predicate(
    domain: HyperRectDomain,
    predicate,
    inside_value: float = 1,
    outside_value: float = 0,
    dtype=np.uint8,
    *,
    verbose: bool = False,
) -> ImageIndicator:
    """Sample ``predicate`` on every point of ``domain`` into an :class:`ImageIndicator`."""
    P = domain.points()
    hit = _evaluate_predicate(predicate, P)
    img = np.where(hit, inside_value, outside_value).astype(dtype).reshape(domain.shape)
    if verbose:
        logger.info("Indicator image %s: %d inside points out of %d", domain.shape, int(hit.sum()), hit.size)
    return ImageIndicator(img, domain)


class CellIndicator:
    """Indicator on cells, read from a point indicator at the cell's digital coordinates.

    Parameters
    ----------
    point_functor : PointIndicator or ImageIndicator
        Point-level indicator with values in ``[0, 1]``.
    kspace : KSpace
        Space giving the digital coordinates of a cell.
    """

    def __init__(self, point_functor, kspace: KSpace):
        self.point_functor = point_functor
        self.kspace = kspace

    @property
    def integer_valued(self) -> bool:
        """True when every value is an integer, so masked sums are exact under updates."""
        return bool(getattr(self.point_functor, "integer_valued", False))

    def __call__(self, cell: SCell) -> float:
        return float(self.point_functor(self.kspace.s_coords(cell)))

    def values(self, kcoords: np.ndarray) -> np.ndarray:
        """Values of the cells with Khalimsky coordinates ``kcoords`` (``(n, d)``)."""
        K = np.asarray(kcoords, dtype=np.int64)
        return self.point_functor.values(np.right_shift(K, 1))

    def sum_at(self, center: Sequence[int], offsets: np.ndarray) -> float:
        """Sum of the indicator over the cells ``center + offsets``."""
        if offsets.shape[0] == 0:
            return 0.0
        return float(self.values(np.asarray(center, dtype=np.int64) + offsets).sum())
