"""pyiicurv: integral invariant curvature estimation on 2-D digital surfaces.

Public API:
- GaussDigitizer(shape, lower, upper, h), ImplicitBall, Flower2D
- KSpace(lower, upper), SurfelAdjacency(dimension, interior=True)
- LightImplicitDigitalSurface(kspace, predicate, adjacency, seed), find_a_bel(kspace, predicate)
- DepthFirstVisitor(surface), surface_graph(surface)
- PointIndicator, image_from_predicate, CellIndicator
- IntegralInvariantMeanCurvatureEstimator(kspace, functor).init(h, re).eval(surfels)
- estimate_mean_curvature(shape, *, h, re, ...)

"""
from .errors import (
    PyIICurvError,
    InvalidParameterError,
    InvalidSeedError,
    BoundaryNotFoundError,
    UninitializedEstimatorError,
    EmptySurfaceError,
    NumericAnomalyError,
)
from .domain import HyperRectDomain
from .kspace import KSpace, SCell, SurfelAdjacency
from .shapes import GaussDigitizer, ImplicitBall, Flower2D
from .surface import LightImplicitDigitalSurface, find_a_bel, boundary_surfels
from .visitor import DepthFirstVisitor, surface_graph
from .functors import PointIndicator, ImageIndicator, CellIndicator, image_from_predicate
from .estimator import IntegralInvariantMeanCurvatureEstimator, KernelMask, build_kernel_mask
from .curvature import CurvatureResult, estimate_mean_curvature, analyze_curvature, print_curvature_analysis

__all__ = [
    "PyIICurvError",
    "InvalidParameterError",
    "InvalidSeedError",
    "BoundaryNotFoundError",
    "UninitializedEstimatorError",
    "EmptySurfaceError",
    "NumericAnomalyError",
    "HyperRectDomain",
    "KSpace",
    "SCell",
    "SurfelAdjacency",
    "GaussDigitizer",
    "ImplicitBall",
    "Flower2D",
    "LightImplicitDigitalSurface",
    "find_a_bel",
    "boundary_surfels",
    "DepthFirstVisitor",
    "surface_graph",
    "PointIndicator",
    "ImageIndicator",
    "CellIndicator",
    "image_from_predicate",
    "IntegralInvariantMeanCurvatureEstimator",
    "KernelMask",
    "build_kernel_mask",
    "CurvatureResult",
    "estimate_mean_curvature",
    "analyze_curvature",
    "print_curvature_analysis",
]
