"""Finite-difference operators on images defined over a HyperRectDomain.

Neighbours falling outside the domain are replaced by the point itself, so
one-sided differences vanish on the border. The ``*_field`` variants compute
the same quantities on a whole image with ``scipy.ndimage`` (``mode="nearest"``
reproduces the clamping).
"""
from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from scipy import ndimage

from .domain import HyperRectDomain
from .errors import InvalidParameterError

_WEIGHTS = {
    "forward": np.array([0.0, -1.0, 1.0]),
    "backward": np.array([-1.0, 1.0, 0.0]),
    "central": np.array([-0.5, 0.0, 0.5]),
}


def _check_h(h: float) -> float:
    if not (math.isfinite(h) and h > 0):
        raise InvalidParameterError(f"grid step h must be positive, got {h}")
    return float(h)


def _value(image: np.ndarray, domain: HyperRectDomain, point: Sequence[int]) -> float:
    return float(image[domain.index(np.asarray(point))])


def _check_point(image: np.ndarray, domain: HyperRectDomain, point: Sequence[int]) -> None:
    if image.shape != domain.shape:
        raise ValueError(f"image shape {image.shape} does not match domain shape {domain.shape}")
    if not domain.contains(point):
        raise ValueError(f"point {tuple(point)} is outside {domain}")


def next_point(domain: HyperRectDomain, point: Sequence[int], axis: int) -> tuple[int, ...]:
    p = [int(v) for v in point]
    p[axis] += 1
    return tuple(p) if domain.contains(p) else tuple(int(v) for v in point)


def previous_point(domain: HyperRectDomain, point: Sequence[int], axis: int) -> tuple[int, ...]:
    p = [int(v) for v in point]
    p[axis] -= 1
    return tuple(p) if domain.contains(p) else tuple(int(v) for v in point)


def forward_difference(image, domain: HyperRectDomain, point, axis: int, h: float = 1.0) -> float:
    """``(u(p + e_axis) - u(p)) / h``."""
    h = _check_h(h)
    _check_point(image, domain, point)
    return (_value(image, domain, next_point(domain, point, axis)) - _value(image, domain, point)) / h


def backward_difference(image, domain: HyperRectDomain, point, axis: int, h: float = 1.0) -> float:
    """``(u(p) - u(p - e_axis)) / h``."""
    h = _check_h(h)
    _check_point(image, domain, point)
    return (_value(image, domain, point) - _value(image, domain, previous_point(domain, point, axis))) / h


def central_difference(image, domain: HyperRectDomain, point, axis: int, h: float = 1.0) -> float:
    """``(u(p + e_axis) - u(p - e_axis)) / (2h)``."""
    h = _check_h(h)
    _check_point(image, domain, point)
    nxt = _value(image, domain, next_point(domain, point, axis))
    prv = _value(image, domain, previous_point(domain, point, axis))
    return (nxt - prv) / (2.0 * h)


def central_gradient(image, domain: HyperRectDomain, point, h: float = 1.0) -> np.ndarray:
    return np.array([central_difference(image, domain, point, i, h) for i in range(domain.dimension)])


def central_gradient_modulus(image, domain: HyperRectDomain, point, h: float = 1.0) -> float:
    return float(np.linalg.norm(central_gradient(image, domain, point, h)))


def upwind_gradient(image, domain: HyperRectDomain, point, vector: Sequence[float], h: float = 1.0) -> np.ndarray:
    """Upwind gradient for a displacement ``vector``.

    Along each axis the backward difference is used where the displacement is
    positive and the forward difference otherwise.
    """
    if len(vector) != domain.dimension:
        raise ValueError("vector and domain dimensions differ")
    g = np.empty(domain.dimension, dtype=float)
    for i, v in enumerate(vector):
        if v > 0:
            g[i] = backward_difference(image, domain, point, i, h)
        else:
            g[i] = forward_difference(image, domain, point, i, h)
    return g


def upwind_gradient_modulus(image, domain: HyperRectDomain, point, vector: Sequence[float], h: float = 1.0) -> float:
    return float(np.linalg.norm(upwind_gradient(image, domain, point, vector, h)))


def godunov_gradient(image, domain: HyperRectDomain, point, is_positive: bool, h: float = 1.0) -> np.ndarray:
    """Godunov scheme gradient.

    ``is_positive`` is True when the front moves along the normal. Per axis,
    the candidates are ``max(D-, 0)`` and ``min(D+, 0)`` for a positive
    motion, ``min(D-, 0)`` and ``max(D+, 0)`` otherwise; the one with the
    largest magnitude is kept.
    """
    g = np.empty(domain.dimension, dtype=float)
    for i in range(domain.dimension):
        dm = backward_difference(image, domain, point, i, h)
        dp = forward_difference(image, domain, point, i, h)
        if is_positive:
            a, b = max(dm, 0.0), min(dp, 0.0)
        else:
            a, b = min(dm, 0.0), max(dp, 0.0)
        g[i] = a if a * a >= b * b else b
    return g


def godunov_gradient_modulus(image, domain: HyperRectDomain, point, is_positive: bool, h: float = 1.0) -> float:
    return float(np.linalg.norm(godunov_gradient(image, domain, point, is_positive, h)))


def difference_field(image: np.ndarray, axis: int, kind: str = "central", h: float = 1.0) -> np.ndarray:
    """Difference of ``kind`` ("forward", "backward" or "central") at every pixel."""
    h = _check_h(h)
    try:
        w = _WEIGHTS[kind]
    except KeyError:
        raise ValueError(f"Unknown difference kind: {kind}") from None
    u = np.asarray(image, dtype=np.float64)
    return ndimage.correlate1d(u, w, axis=axis, mode="nearest") / h


def central_gradient_field(image: np.ndarray, h: float = 1.0) -> np.ndarray:
    """Central gradient at every pixel, stacked on a trailing axis."""
    u = np.asarray(image, dtype=np.float64)
    return np.stack([difference_field(u, i, "central", h) for i in range(u.ndim)], axis=-1)
