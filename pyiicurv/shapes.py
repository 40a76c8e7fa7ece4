"""Continuous shapes and their Gauss digitization."""
from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from .domain import HyperRectDomain
from .errors import InvalidParameterError

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class ImplicitBall:
    """Euclidean ball ``|x - center| <= radius``."""

    def __init__(self, center: Sequence[float], radius: float):
        if not radius > 0:
            raise InvalidParameterError("radius must be positive")
        self.center = np.asarray(center, dtype=float)
        self.radius = float(radius)

    @property
    def dimension(self) -> int:
        return self.center.shape[0]

    @property
    def curvature(self) -> float:
        return 1.0 / self.radius

    def contains(self, x: Sequence[float]) -> bool:
        d = np.asarray(x, dtype=float) - self.center
        return bool(d @ d <= self.radius * self.radius)

    def contains_array(self, X: np.ndarray) -> np.ndarray:
        D = np.asarray(X, dtype=float) - self.center
        return np.einsum("ij,ij->i", D, D) <= self.radius * self.radius

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        return self.center - self.radius, self.center + self.radius


class Flower2D:
    """Star-shaped flower with polar contour ``rho(t) = radius + var_radius * cos(k t + phi)``.

    Parameters
    ----------
    x0, y0 : float
        Centre.
    radius : float
        Mean radius.
    var_radius : float
        Amplitude of the petals; must be smaller than ``radius``.
    k : int
        Number of petals.
    phi : float
        Phase shift of the petals.
    """

    def __init__(self, x0: float, y0: float, radius: float, var_radius: float, k: int, phi: float = 0.0):
        if not radius > 0 or not 0 <= var_radius < radius:
            raise InvalidParameterError("need radius > 0 and 0 <= var_radius < radius")
        self.center = np.array([x0, y0], dtype=float)
        self.radius = float(radius)
        self.var_radius = float(var_radius)
        self.k = int(k)
        self.phi = float(phi)

    @property
    def dimension(self) -> int:
        return 2

    def rho(self, t):
        return self.radius + self.var_radius * np.cos(self.k * np.asarray(t) + self.phi)

    def contains(self, x: Sequence[float]) -> bool:
        dx, dy = np.asarray(x, dtype=float) - self.center
        r = math.hypot(dx, dy)
        return bool(r <= self.rho(math.atan2(dy, dx)))

    def contains_array(self, X: np.ndarray) -> np.ndarray:
        D = np.asarray(X, dtype=float) - self.center
        r = np.hypot(D[:, 0], D[:, 1])
        t = np.arctan2(D[:, 1], D[:, 0])
        return r <= self.rho(t)

    def curvature(self, t):
        """Curvature of the contour at polar angle ``t``."""
        t = np.asarray(t, dtype=float)
        r = self.rho(t)
        dr = -self.k * self.var_radius * np.sin(self.k * t + self.phi)
        ddr = -self.k * self.k * self.var_radius * np.cos(self.k * t + self.phi)
        return (r * r + 2.0 * dr * dr - r * ddr) / np.power(r * r + dr * dr, 1.5)

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        e = self.radius + self.var_radius
        return self.center - e, self.center + e


class GaussDigitizer:
    """Gauss digitization of a shape at grid step ``h``.

    The digital point ``p`` stands for the real point ``h * p``; it belongs to
    the digitized shape when that real point lies in the shape and ``p`` lies
    in the digital domain spanned by ``[lower, upper]``.

    Parameters
    ----------
    shape : object
        Any object exposing ``contains(x)``; ``contains_array(X)`` is used
        when present.
    lower, upper : sequence of float
        Real bounding box to digitize.
    h : float
        Grid step, must be positive.
    """

    def __init__(self, shape, lower: Sequence[float], upper: Sequence[float], h: float):
        if not (math.isfinite(h) and h > 0):
            raise InvalidParameterError(f"grid step h must be positive, got {h}")
        lo = np.asarray(lower, dtype=float)
        up = np.asarray(upper, dtype=float)
        if lo.shape != up.shape:
            raise InvalidParameterError("lower and upper must have the same dimension")
        self.shape = shape
        self.h = float(h)
        self._domain = HyperRectDomain(np.ceil(lo / h).astype(int), np.floor(up / h).astype(int))
        logger.debug("GaussDigitizer: h=%.4g domain=%s", self.h, self._domain)

    def get_domain(self) -> HyperRectDomain:
        return self._domain

    def get_lower_bound(self) -> tuple[int, ...]:
        return self._domain.lower

    def get_upper_bound(self) -> tuple[int, ...]:
        return self._domain.upper

    def embed(self, points) -> np.ndarray:
        """Real position of digital points."""
        return self.h * np.asarray(points, dtype=float)

    def __call__(self, point: Sequence[int]) -> bool:
        if not self._domain.contains(point):
            return False
        return bool(self.shape.contains(self.embed(point)))

    def contains_array(self, points: np.ndarray) -> np.ndarray:
        P = np.asarray(points, dtype=np.int64).reshape(-1, self._domain.dimension)
        inside = self._domain.contains_array(P)
        if not np.any(inside):
            return inside
        X = self.embed(P[inside])
        if hasattr(self.shape, "contains_array"):
            vals = np.asarray(self.shape.contains_array(X), dtype=bool)
        else:
            vals = np.fromiter((self.shape.contains(x) for x in X), dtype=bool, count=X.shape[0])
        out = np.zeros(P.shape[0], dtype=bool)
        out[inside] = vals
        return out
