"""Relation graph of a bundle, rendered as Graphviz DOT.

    juju-bundle export -b bundle.yaml | dot -Tsvg > bundle.svg
"""

from __future__ import annotations

import pygraphviz as pgv

from .bundle import Bundle, endpoint_app, endpoint_interface

__all__ = ["GraphInvariantViolation", "edge_names", "export", "to_dot"]


class GraphInvariantViolation(RuntimeError):
    """A relation points at an application that is not a node.

    Loading and selection both guarantee this cannot happen, so hitting it
    means a bug, not bad input.
    """


def export(bundle: Bundle, *, edge_labels: bool = True) -> pgv.AGraph:
    """One node per application, one edge per relation.

    Edges point from the first endpoint to the second and are labelled with
    the first endpoint's interface. The graph is not strict: two relations
    between the same pair of applications stay two edges. Each edge is keyed
    by the index of its relation.
    """
    graph = pgv.AGraph(directed=True, strict=False, name=bundle.name or "")
    for name in bundle.applications:
        graph.add_node(name)

    for key, (a, b) in enumerate(bundle.relations):
        source, target = endpoint_app(a), endpoint_app(b)
        for app in (source, target):
            if not graph.has_node(app):
                raise GraphInvariantViolation(f"relation endpoint {app!r} has no node")
        attrs = {"label": endpoint_interface(a)} if edge_labels else {}
        graph.add_edge(source, target, key=str(key), **attrs)
    return graph


def edge_names(graph: pgv.AGraph) -> list[tuple[str, str, str]]:
    """Edges as ``(source, target, label)``, in relation order."""
    edges = sorted(graph.edges(), key=lambda e: int(e.name))
    return [(str(e[0]), str(e[1]), e.attr.get("label") or "") for e in edges]


def to_dot(graph: pgv.AGraph) -> str:
    return graph.to_string()
