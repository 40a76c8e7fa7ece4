"""Depth-first traversal of digital surfaces."""
from __future__ import annotations

import logging
from typing import Iterator, Optional

import networkx as nx

from .errors import InvalidSeedError
from .kspace import SCell

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class DepthFirstVisitor:
    """Depth-first enumeration of the surfels reachable from a seed.

    Each call to ``iter()`` starts a new traversal; the traversal state (an
    explicit stack of frontier surfels and the set of surfels already pushed)
    lives in the generator and is released when the generator is exhausted
    or closed. A surfel is marked when it is pushed, so it is emitted exactly
    once, and it is emitted when it is popped. Neighbours are pushed in the
    order returned by ``surface.neighbors``, hence the last one is visited
    first.

    Parameters
    ----------
    surface : LightImplicitDigitalSurface
        Any object with ``neighbors(surfel)`` and ``is_bel(surfel)``.
    seed : SCell, optional
        Starting surfel; defaults to ``surface.seed``.
    """

    def __init__(self, surface, seed: Optional[SCell] = None):
        self.surface = surface
        self.seed = surface.seed if seed is None else seed

    def _check_seed(self) -> None:
        if not self.surface.is_bel(self.seed):
            raise InvalidSeedError(f"{self.seed} is not on the surface")

    def __iter__(self) -> Iterator[SCell]:
        self._check_seed()
        return self._walk()

    def _walk(self) -> Iterator[SCell]:
        for node, _ in self._walk_with_depth():
            yield node

    def visit_with_depth(self) -> Iterator[tuple[SCell, int]]:
        """Same traversal, yielding ``(surfel, depth)`` pairs.

        The depth is the number of edges between the seed and the surfel in
        the tree of first discoveries.
        """
        self._check_seed()
        return self._walk_with_depth()

    def _walk_with_depth(self) -> Iterator[tuple[SCell, int]]:
        neighbors = self.surface.neighbors
        stack: list[tuple[SCell, int]] = [(self.seed, 0)]
        marked: set[SCell] = {self.seed}
        count = 0
        try:
            while stack:
                node, depth = stack.pop()
                count += 1
                yield node, depth
                for nb in neighbors(node):
                    if nb not in marked:
                        marked.add(nb)
                        stack.append((nb, depth + 1))
        finally:
            logger.debug("DepthFirstVisitor: emitted %d surfels, %d pending", count, len(stack))
            stack.clear()
            marked.clear()


def surface_graph(surface, seed: Optional[SCell] = None) -> nx.Graph:
    """Undirected graph of the component of ``surface`` reachable from ``seed``."""
    G = nx.Graph()
    for node in DepthFirstVisitor(surface, seed):
        G.add_node(node)
        for nb in surface.neighbors(node):
            G.add_edge(node, nb)
    return G
