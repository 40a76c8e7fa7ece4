"""Integral invariant estimation of mean curvature on 2-D digital surfaces.

For a ball of radius ``re`` centred on a smooth boundary curve, the area of
the part of the ball inside the shape satisfies

    A(re) = pi re^2 / 2 - kappa re^3 / 3 + O(re^4)

so that ``kappa ~ 3 pi / (2 re) - 3 A / re^3``. The area is measured by
counting the spels of the digitized shape whose centre lies in the ball
(each of area ``h^2``), the ball being centred on the surfel.
"""
from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

import numpy as np

from .errors import InvalidParameterError, NumericAnomalyError, UninitializedEstimatorError
from .kspace import KSpace, SCell

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def _check_positive(name: str, value: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"{name} must be a real number, got {value!r}") from None
    if not (math.isfinite(v) and v > 0):
        raise InvalidParameterError(f"{name} must be positive and finite, got {value!r}")
    return v


def build_kernel_mask(h: float, re: float, dimension: int, orth_dir: int) -> np.ndarray:
    """Khalimsky offsets of the spels covered by a ball centred on a surfel.

    The surfel is closed along ``orth_dir``, so spel offsets are odd along
    that axis and even along the others. An offset ``o`` is kept when
    ``h * |o| / 2 <= re``.

    Parameters
    ----------
    h : float
        Grid step.
    re : float
        Euclidean radius of the ball, in real units.
    dimension : int
        Dimension of the space.
    orth_dir : int
        Orthogonal direction of the surfels the mask is centred on.

    Returns
    -------
    offsets : (n, dimension) int array
        Read-only, sorted lexicographically.
    """
    h = _check_positive("h", h)
    re = _check_positive("re", re)
    if not 0 <= orth_dir < dimension:
        raise InvalidParameterError(f"orth_dir {orth_dir} out of range for dimension {dimension}")
    limit = 2.0 * re / h
    L = int(math.floor(limit)) + 1
    r = np.arange(-L, L + 1, dtype=np.int64)
    odd = r[r % 2 != 0]
    even = r[r % 2 == 0]
    axes = [odd if i == orth_dir else even for i in range(dimension)]
    grids = np.meshgrid(*axes, indexing="ij")
    O = np.stack([g.ravel() for g in grids], axis=1)
    sq = np.einsum("ij,ij->i", O, O)
    O = O[sq <= limit * limit * (1.0 + 1e-12)]
    O = O[np.lexsort(O.T[::-1])]
    O.setflags(write=False)
    return O


def _encode(offsets: np.ndarray, base: int) -> np.ndarray:
    width = 2 * base + 1
    code = np.zeros(offsets.shape[0], dtype=np.int64)
    for i in range(offsets.shape[1] - 1, -1, -1):
        code = code * width + (offsets[:, i] + base)
    return code


@dataclass(frozen=True)
class KernelMask:
    """Kernel offsets for one surfel orientation, with difference masks.

    ``added[d]`` and ``removed[d]`` hold the offsets (relative to the new
    centre) entering and leaving the kernel when its centre moves by ``d``,
    for every ``d`` with components in ``{-2, 0, 2}``.
    """

    orth_dir: int
    offsets: np.ndarray
    added: Mapping = field(default_factory=lambda: MappingProxyType({}))
    removed: Mapping = field(default_factory=lambda: MappingProxyType({}))

    @property
    def size(self) -> int:
        return int(self.offsets.shape[0])

    @classmethod
    def build(cls, h: float, re: float, dimension: int, orth_dir: int) -> "KernelMask":
        M = build_kernel_mask(h, re, dimension, orth_dir)
        base = int(np.abs(M).max(initial=0)) + 4
        codes = _encode(M, base)
        added: dict = {}
        removed: dict = {}
        for d in itertools.product((-2, 0, 2), repeat=dimension):
            if not any(d):
                continue
            shifted = M - np.asarray(d, dtype=np.int64)
            shifted_codes = _encode(shifted, base)
            a = M[~np.isin(codes, shifted_codes)]
            r = shifted[~np.isin(shifted_codes, codes)]
            a.setflags(write=False)
            r.setflags(write=False)
            added[d] = a
            removed[d] = r
        return cls(orth_dir=orth_dir, offsets=M, added=MappingProxyType(added), removed=MappingProxyType(removed))


class IntegralInvariantMeanCurvatureEstimator:
    """Mean curvature of a 2-D digital surface by integral invariants.

    Parameters
    ----------
    kspace : KSpace
        Space of the surfels to evaluate; must be 2-D.
    functor : CellIndicator
        Indicator of the shape on cells (``sum_at(center, offsets)``).
    verbose : bool, default False
        Log kernel construction and evaluation summaries.
    log : logging.Logger, optional
        Custom logger. If None, use module logger.

    Examples
    --------
    >>> est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    >>> est.init(h=0.5, re=4.5)
    >>> values = list(est.eval(DepthFirstVisitor(surface)))
    """

    def __init__(self, kspace: KSpace, functor, *, verbose: bool = False, log: Optional[logging.Logger] = None):
        if kspace.dimension != 2:
            raise InvalidParameterError(f"only 2-D spaces are supported, got dimension {kspace.dimension}")
        self.kspace = kspace
        self.functor = functor
        self.verbose = verbose
        self._log = log or logger
        self._h: Optional[float] = None
        self._re: Optional[float] = None
        self._masks: Optional[tuple[KernelMask, ...]] = None
        self._k1 = 0.0
        self._k2 = 0.0

    @property
    def is_initialized(self) -> bool:
        return self._masks is not None

    @property
    def h(self) -> Optional[float]:
        return self._h

    @property
    def re(self) -> Optional[float]:
        return self._re

    @property
    def masks(self) -> tuple[KernelMask, ...]:
        self._require_init()
        return self._masks

    @property
    def kernel_area(self) -> float:
        """Digital area of the kernel, close to ``pi re^2``."""
        self._require_init()
        return self._h * self._h * self._masks[0].size

    def _require_init(self) -> None:
        if self._masks is None:
            raise UninitializedEstimatorError("call init(h, re) before evaluating the estimator")

    def init(self, h: float, re: float) -> None:
        """Build the kernels for grid step ``h`` and kernel radius ``re``.

        Parameters are validated before anything is touched: on
        ``InvalidParameterError`` the estimator keeps its previous state. On
        success any previous kernel is discarded.
        """
        h = _check_positive("h", h)
        re = _check_positive("re", re)
        if re < 2.0 * h:
            self._log.warning("Kernel radius re=%.4g is below 2h=%.4g; estimates will be dominated by digitization noise", re, 2.0 * h)
        self._masks = None
        masks = tuple(KernelMask.build(h, re, self.kspace.dimension, k) for k in range(self.kspace.dimension))
        self._h = h
        self._re = re
        self._k1 = 3.0 * math.pi / (2.0 * re)
        self._k2 = 3.0 / (re ** 3)
        self._masks = masks
        if self.verbose:
            self._log.info(
                "II estimator: h=%.4g re=%.4g, kernel of %d spels (area %.4g vs pi re^2 = %.4g)",
                h, re, masks[0].size, self.kernel_area, math.pi * re * re,
            )

    def _to_curvature(self, masked_sum: float, h: float, k1: float, k2: float) -> float:
        return k1 - k2 * (h * h * masked_sum)

    def _check(self, value: float, surfel: SCell) -> float:
        if not math.isfinite(value):
            raise NumericAnomalyError(f"non-finite curvature {value} at {surfel}")
        return value

    def eval_one(self, surfel: SCell) -> float:
        """Curvature at a single surfel, from a full masked sum."""
        self._require_init()
        k = self.kspace.s_orth_dir(surfel)
        s = self.functor.sum_at(surfel.kcoords, self._masks[k].offsets)
        return self._check(self._to_curvature(s, self._h, self._k1, self._k2), surfel)

    def eval(self, surfels: Iterable[SCell], *, incremental: bool = True, check_finite: bool = True) -> Iterator[float]:
        """Lazily yield one curvature value per surfel of ``surfels``, in order.

        Parameters
        ----------
        surfels : iterable of SCell
            Typically a :class:`DepthFirstVisitor`; consumed one surfel at a time.
        incremental : bool, default True
            Keep the last centre and sum for each surfel orientation and update
            the sum with the difference masks when the centre moved by a step
            of at most one spel per axis. Only used when the functor reports
            ``integer_valued``; fractional indicators always get full sums, so
            every value depends on its surfel alone.
        check_finite : bool, default True
            Raise ``NumericAnomalyError`` on NaN or infinite values.

        Raises
        ------
        UninitializedEstimatorError
            If ``init`` has not succeeded; raised before any surfel is consumed.
        """
        self._require_init()
        return self._eval(surfels, self._masks, self._h, self._k1, self._k2, incremental, check_finite)

    def _eval(self, surfels, masks, h, k1, k2, incremental, check_finite) -> Iterator[float]:
        functor = self.functor
        incremental = incremental and bool(getattr(functor, "integer_valued", False))
        orth_dir = self.kspace.s_orth_dir
        last_center: list[Optional[tuple[int, ...]]] = [None] * len(masks)
        last_sum = [0.0] * len(masks)
        n = n_full = 0
        for surfel in surfels:
            k = orth_dir(surfel)
            mask = masks[k]
            center = surfel.kcoords
            prev = last_center[k]
            d = None if prev is None else tuple(c - p for c, p in zip(center, prev))
            if incremental and d is not None and not any(d):
                s = last_sum[k]
            elif incremental and d is not None and d in mask.added:
                s = last_sum[k] + functor.sum_at(center, mask.added[d]) - functor.sum_at(center, mask.removed[d])
            else:
                s = functor.sum_at(center, mask.offsets)
                n_full += 1
            last_center[k] = center
            last_sum[k] = s
            value = self._to_curvature(s, h, k1, k2)
            if check_finite:
                value = self._check(value, surfel)
            n += 1
            yield value
        if self.verbose:
            self._log.info("II estimator: evaluated %d surfels (%d full kernel sums)", n, n_full)
