import numpy as np
import pytest

from pyiicurv.errors import BoundaryNotFoundError, InvalidParameterError, InvalidSeedError
from pyiicurv.functors import image_from_predicate
from pyiicurv.kspace import KSpace, SurfelAdjacency
from pyiicurv.shapes import GaussDigitizer, ImplicitBall
from pyiicurv.surface import LightImplicitDigitalSurface, boundary_surfels, find_a_bel


def _disk(radius=5.0, h=1.0, extent=6.0):
    dig = GaussDigitizer(ImplicitBall((0.0, 0.0), radius), (-extent, -extent), (extent, extent), h)
    D = dig.get_domain()
    K = KSpace(D.lower, D.upper)
    return dig, D, K


def test_find_a_bel_returns_boundary_surfel():
    dig, D, K = _disk()
    bel = find_a_bel(K, dig, random_state=3)
    assert K.s_is_surfel(bel)
    assert dig(K.inner_point(bel))
    assert not dig(K.outer_point(bel))


def test_find_a_bel_is_reproducible():
    dig, D, K = _disk()
    assert find_a_bel(K, dig, random_state=7) == find_a_bel(K, dig, random_state=7)


def test_find_a_bel_fails_on_empty_shape():
    K = KSpace((-5, -5), (5, 5))
    with pytest.raises(BoundaryNotFoundError):
        find_a_bel(K, lambda p: False, max_tries=50, random_state=0)


def test_invalid_seed_is_rejected():
    dig, D, K = _disk()
    adj = SurfelAdjacency(2, interior=True)
    outside = K.surfel_between((6, 6), (5, 6))
    with pytest.raises(InvalidSeedError):
        LightImplicitDigitalSurface(K, dig, adj, outside)
    # correct place, wrong orientation
    flipped = K.surfel_between((6, 0), (5, 0))
    with pytest.raises(InvalidSeedError):
        LightImplicitDigitalSurface(K, dig, adj, flipped)
    with pytest.raises(InvalidSeedError):
        LightImplicitDigitalSurface(K, dig, adj, K.spel((0, 0)))


def test_disk_neighbors_are_symmetric_with_degree_two():
    dig, D, K = _disk()
    seed = K.surfel_between((5, 0), (6, 0))
    surf = LightImplicitDigitalSurface(K, dig, SurfelAdjacency(2), seed)
    image = image_from_predicate(D, dig).image
    bels = boundary_surfels(K, image, D)
    for s in bels:
        nbs = surf.neighbors(s)
        assert len(nbs) == 2
        assert len(set(nbs)) == 2
        for nb in nbs:
            assert nb in bels
            assert s in surf.neighbors(nb)


def test_neighbor_order_is_local_and_fixed():
    dig, D, K = _disk()
    seed = K.surfel_between((5, 0), (6, 0))
    surf = LightImplicitDigitalSurface(K, dig, SurfelAdjacency(2), seed)
    # (5, 1) and (5, -1) are outside: both neighbours turn inward, +y first
    assert surf.neighbors(seed) == [
        K.surfel_between((5, 0), (5, 1)),
        K.surfel_between((5, 0), (5, -1)),
    ]


def test_boundary_surfels_of_digital_disk():
    dig, D, K = _disk()
    image = image_from_predicate(D, dig).image
    bels = boundary_surfels(K, image, D)
    # a digital disk of radius 5 spans 11 rows and 11 columns and is HV-convex
    assert len(bels) == 2 * (11 + 11)
    for s in bels:
        assert dig(K.inner_point(s)) and not dig(K.outer_point(s))


def test_shape_touching_domain_border_is_closed():
    K = KSpace((0, 0), (3, 3))
    seed = K.surfel_between((3, 1), (4, 1))
    surf = LightImplicitDigitalSurface(K, lambda p: True, SurfelAdjacency(2), seed)
    assert len(surf) == 16
    assert seed in surf


def test_interior_and_exterior_adjacency_on_diagonal_pixels():
    pixels = {(0, 0), (1, 1)}
    K = KSpace((-2, -2), (3, 3))
    seed = K.surfel_between((0, 0), (1, 0))

    def pred(p):
        return tuple(p) in pixels

    interior = LightImplicitDigitalSurface(K, pred, SurfelAdjacency(2, interior=True), seed)
    exterior = LightImplicitDigitalSurface(K, pred, SurfelAdjacency(2, interior=False), seed)
    assert len(interior) == 8
    assert len(exterior) == 4
    assert np.all([interior.is_bel(s) for s in exterior])


def test_adjacency_dimension_must_match_space():
    dig, D, K = _disk()
    seed = K.surfel_between((5, 0), (6, 0))
    with pytest.raises(InvalidParameterError):
        LightImplicitDigitalSurface(K, dig, SurfelAdjacency(3), seed)
