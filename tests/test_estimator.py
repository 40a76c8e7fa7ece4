import itertools
import math

import numpy as np
import pytest

from pyiicurv.errors import InvalidParameterError, NumericAnomalyError, UninitializedEstimatorError
from pyiicurv.estimator import IntegralInvariantMeanCurvatureEstimator, KernelMask, build_kernel_mask
from pyiicurv.functors import CellIndicator, ImageIndicator, image_from_predicate
from pyiicurv.kspace import KSpace, SurfelAdjacency
from pyiicurv.shapes import GaussDigitizer, ImplicitBall
from pyiicurv.surface import LightImplicitDigitalSurface
from pyiicurv.visitor import DepthFirstVisitor


def _setup(radius=5.0, h=0.1, extent=6.0):
    dig = GaussDigitizer(ImplicitBall((0.0, 0.0), radius), (-extent, -extent), (extent, extent), h)
    D = dig.get_domain()
    K = KSpace(D.lower, D.upper)
    n = int(math.floor(radius / h)) + 1
    while not dig((n, 0)):
        n -= 1
    seed = K.surfel_between((n, 0), (n + 1, 0))
    surf = LightImplicitDigitalSurface(K, dig, SurfelAdjacency(2), seed)
    functor = CellIndicator(image_from_predicate(D, dig), K)
    return K, surf, functor


def test_kernel_mask_matches_brute_force_count():
    O = build_kernel_mask(1.0, 3.0, 2, 0)
    expected = sum(
        1 for x in range(-5, 5) for y in range(-5, 6) if (x + 0.5) ** 2 + y ** 2 <= 9.0
    )
    assert O.shape == (expected, 2)
    assert np.all(O[:, 0] % 2 == 1)
    assert np.all(O[:, 1] % 2 == 0)
    assert not O.flags.writeable


def test_kernel_mask_is_symmetric():
    for orth in (0, 1):
        O = build_kernel_mask(0.5, 4.0, 2, orth)
        S = set(map(tuple, O.tolist()))
        assert set(map(tuple, (-O).tolist())) == S
        for axis in (0, 1):
            R = O.copy()
            R[:, axis] *= -1
            assert set(map(tuple, R.tolist())) == S
    # both orientations are transposes of each other
    A = build_kernel_mask(0.5, 4.0, 2, 0)
    B = build_kernel_mask(0.5, 4.0, 2, 1)
    assert set(map(tuple, A[:, ::-1].tolist())) == set(map(tuple, B.tolist()))


def test_kernel_mask_rejects_bad_parameters():
    for h, re in [(0.0, 1.0), (-1.0, 1.0), (1.0, 0.0), (1.0, -2.0), (float("nan"), 1.0)]:
        with pytest.raises(InvalidParameterError):
            build_kernel_mask(h, re, 2, 0)
    with pytest.raises(InvalidParameterError):
        build_kernel_mask(1.0, 2.0, 2, 2)


def test_difference_masks_reproduce_the_shifted_kernel():
    mask = KernelMask.build(1.0, 4.0, 2, 1)
    M = set(map(tuple, mask.offsets.tolist()))
    assert len(mask.added) == 8
    for d, added in mask.added.items():
        prev = {(o[0] - d[0], o[1] - d[1]) for o in M}
        A = set(map(tuple, added.tolist()))
        Rm = set(map(tuple, mask.removed[d].tolist()))
        assert A.isdisjoint(prev)
        assert Rm <= prev
        assert (prev - Rm) | A == M
        assert len(A) == len(Rm)


def test_kernel_masks_are_read_only():
    mask = KernelMask.build(1.0, 3.0, 2, 0)
    with pytest.raises(TypeError):
        mask.added[(2, 0)] = mask.offsets
    with pytest.raises(TypeError):
        del mask.removed[(2, 0)]
    assert not mask.added[(2, 0)].flags.writeable
    assert not mask.removed[(2, 0)].flags.writeable


def test_init_rejects_invalid_parameters_without_building():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    for h, re in [(0.0, 2.0), (-0.25, 2.0), (0.25, 0.0), (0.25, -2.0)]:
        with pytest.raises(InvalidParameterError):
            est.init(h, re)
        assert not est.is_initialized
    with pytest.raises(UninitializedEstimatorError):
        est.masks


def test_failed_reinit_keeps_previous_kernel():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    est.init(0.1, 2.0)
    with pytest.raises(InvalidParameterError):
        est.init(0.1, -1.0)
    assert est.is_initialized
    assert est.re == 2.0


def test_eval_before_init():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    with pytest.raises(UninitializedEstimatorError):
        est.eval(DepthFirstVisitor(surf))
    with pytest.raises(UninitializedEstimatorError):
        est.eval_one(surf.seed)


def test_eval_empty_sequence():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    est.init(0.1, 2.0)
    assert list(est.eval([])) == []


def test_kernel_area_close_to_disk_area():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    est.init(0.1, 3.0)
    assert est.kernel_area == pytest.approx(math.pi * 9.0, rel=0.02)


def test_one_value_per_surfel_all_finite():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    est.init(0.1, 2.0)
    surfels = list(DepthFirstVisitor(surf))
    values = list(est.eval(DepthFirstVisitor(surf)))
    assert len(values) == len(surfels)
    assert np.all(np.isfinite(values))
    assert np.mean(values) == pytest.approx(0.2, abs=0.03)


def test_incremental_matches_full_evaluation():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    est.init(0.1, 2.0)
    surfels = list(DepthFirstVisitor(surf))
    inc = list(est.eval(surfels))
    full = list(est.eval(surfels, incremental=False))
    single = [est.eval_one(s) for s in surfels]
    assert inc == full == single
    # values do not depend on the order of evaluation
    assert list(est.eval(surfels[::-1])) == single[::-1]


def test_reinit_discards_previous_kernel():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    est.init(0.1, 2.0)
    small = list(est.eval(DepthFirstVisitor(surf)))
    est.init(0.1, 3.0)
    large = list(est.eval(DepthFirstVisitor(surf)))

    fresh = IntegralInvariantMeanCurvatureEstimator(K, functor)
    fresh.init(0.1, 3.0)
    assert large == list(fresh.eval(DepthFirstVisitor(surf)))
    assert large != small
    assert est.re == 3.0


def test_non_finite_values_are_reported():
    class NanFunctor:
        def sum_at(self, center, offsets):
            return float("nan")

    K, surf, _ = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, NanFunctor())
    est.init(0.1, 2.0)
    with pytest.raises(NumericAnomalyError):
        list(est.eval([surf.seed]))
    assert math.isnan(next(est.eval([surf.seed], check_finite=False)))


def test_only_two_dimensional_spaces():
    K3 = KSpace((0, 0, 0), (2, 2, 2))
    with pytest.raises(InvalidParameterError):
        IntegralInvariantMeanCurvatureEstimator(K3, None)


def test_non_surfel_cells_are_rejected():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    est.init(0.1, 2.0)
    with pytest.raises(ValueError):
        list(est.eval([K.spel((0, 0))]))


def test_fractional_indicator_values_do_not_depend_on_order():
    K, surf, functor = _setup()
    base = functor.point_functor
    weights = np.random.default_rng(0).uniform(0.3, 1.0, size=base.image.shape)
    fractional = CellIndicator(ImageIndicator(base.image * weights, base.domain), K)
    assert functor.integer_valued
    assert not fractional.integer_valued

    est = IntegralInvariantMeanCurvatureEstimator(K, fractional)
    est.init(0.1, 2.0)
    surfels = list(DepthFirstVisitor(surf))
    single = [est.eval_one(s) for s in surfels]
    assert list(est.eval(surfels)) == single
    assert list(est.eval(surfels[::-1])) == single[::-1]


def test_eval_consumes_surfels_one_at_a_time():
    K, surf, functor = _setup()
    est = IntegralInvariantMeanCurvatureEstimator(K, functor)
    est.init(0.1, 2.0)
    surfels = list(DepthFirstVisitor(surf))
    k = 5
    pulled = []

    def source():
        for s in surfels[:k]:
            pulled.append(s)
            yield s
        raise AssertionError("read past the requested values")

    values = est.eval(source())
    assert pulled == []
    head = list(itertools.islice(values, k))
    assert len(head) == k
    assert pulled == surfels[:k]
    assert head == [est.eval_one(s) for s in surfels[:k]]
