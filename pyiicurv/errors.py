"""Exceptions raised by pyiicurv."""
from __future__ import annotations


class PyIICurvError(Exception):
    """Base class for all pyiicurv errors."""


class InvalidParameterError(PyIICurvError, ValueError):
    """A numeric parameter (grid step, kernel radius, bounds...) is out of range."""


class InvalidSeedError(PyIICurvError, ValueError):
    """The traversal seed is not a boundary surfel of the surface."""


class BoundaryNotFoundError(PyIICurvError, RuntimeError):
    """No boundary surfel could be located on the digitized shape."""


class UninitializedEstimatorError(PyIICurvError, RuntimeError):
    """An estimator was evaluated before ``init`` succeeded."""


class EmptySurfaceError(PyIICurvError, RuntimeError):
    """A traversal visited no surfel where a non-empty surface was required."""


class NumericAnomalyError(PyIICurvError, ArithmeticError):
    """An estimated quantity is NaN or infinite."""
