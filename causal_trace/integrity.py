"""
integrity.py

Certifies that a chain's relationship graph is well-formed.

Validation pipeline (stops at the first failure):
1. every parent_id resolves to an event in the chain
2. every depends_on entry resolves to an event in the chain
3. the graph of event -> parent_id / depends_on edges is acyclic

A dangling reference makes cycle analysis meaningless, so problems are
reported one at a time; re-run validate() after fixing each.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from causal_trace.chain import Chain
from causal_trace.errors import CycleDetectedError, MissingReferenceError
from causal_trace.relationships import RelationshipGraph
from causal_trace.result import Result

logger = logging.getLogger(__name__)


def find_cycle(
    adjacency: Dict[str, Sequence[str]],
    order: Optional[Iterable[str]] = None,
) -> Optional[Tuple[str, ...]]:
    """
    Return the node ids of one cycle in adjacency, or None if acyclic.

    Iterative depth-first search with an explicit stack. Nodes on the
    current path are grey, finished nodes are black; reaching a grey node
    closes a cycle. Neighbours missing from adjacency are sinks.

    Args:
        adjacency: node -> outgoing neighbour ids
        order: start nodes, in the order to try them (default: adjacency order)
    """
    on_path: Dict[str, int] = {}  # node -> index in path
    done = set()
    path: List[str] = []

    for start in (order if order is not None else adjacency):
        if start in done:
            continue

        stack = [(start, iter(adjacency.get(start, ())))]
        on_path[start] = 0
        path.append(start)

        while stack:
            node, neighbours = stack[-1]
            advanced = False

            for neighbour in neighbours:
                if neighbour in on_path:
                    return tuple(path[on_path[neighbour]:])
                if neighbour in done:
                    continue
                on_path[neighbour] = len(path)
                path.append(neighbour)
                stack.append((neighbour, iter(adjacency.get(neighbour, ()))))
                advanced = True
                break

            if not advanced:
                stack.pop()
                path.pop()
                del on_path[node]
                done.add(node)

    return None


class IntegrityValidator:
    """
    Referential-integrity and cycle checker for one Chain.

    Example:
        result = IntegrityValidator().validate(chain)
        if not result.ok:
            print(result.error.format_full())
    """

    def validate(self, chain: Chain) -> Result[Chain]:
        """
        Validate relationships of chain.

        Returns:
            Result.success(chain) with the same object, or a failure
            carrying MissingReferenceError or CycleDetectedError.
        """
        graph = RelationshipGraph(chain)

        error = (
            self._check_parents(chain, graph)
            or self._check_dependencies(chain, graph)
            or self._check_cycles(chain, graph)
        )

        if error is not None:
            logger.debug(
                "Chain %s failed validation: %s",
                chain.id,
                error.format(),
                extra={"error_code": error.error_code},
            )
            return Result.failure(error)

        logger.debug("Chain %s passed validation (%d events)", chain.id, len(chain))
        return Result.success(chain)

    def _check_parents(self, chain: Chain, graph: RelationshipGraph) -> Optional[MissingReferenceError]:
        for event in chain.events:
            if event.parent_id is not None and event.parent_id not in graph:
                return MissingReferenceError("parent", event.parent_id, event.id)
        return None

    def _check_dependencies(self, chain: Chain, graph: RelationshipGraph) -> Optional[MissingReferenceError]:
        for event in chain.events:
            for dependency in event.depends_on:
                if dependency not in graph:
                    return MissingReferenceError("depends_on", dependency, event.id)
        return None

    def _check_cycles(self, chain: Chain, graph: RelationshipGraph) -> Optional[CycleDetectedError]:
        cycle = find_cycle(graph.adjacency(), (e.id for e in chain.events))
        if cycle is None:
            return None
        return CycleDetectedError(cycle)


_default_validator = IntegrityValidator()


def validate(chain: Chain) -> Result[Chain]:
    """Validate chain relationships with the default validator."""
    return _default_validator.validate(chain)
