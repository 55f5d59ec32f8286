"""
Chain traversal for pentool.

Curves are nodes and latch pairs are undirected edges. A chain is a connected
component of that graph; cycles and self-latches are just more edges, networkx
visits every node once.
"""

import networkx as nx

from pentool.errors import UnknownId
from pentool.models import AnchorEdge, ChainLink
from pentool.tracer import get_tracer, trace


def latch_network(store, graph=None):
    """
    Build the latch network of every curve in the store.

    Each edge carries the two endpoints it joins. Mirrors are checked while
    building when a LatchGraph is passed.
    """
    network = nx.MultiGraph()
    for curve in store.curves():
        network.add_node(curve.curve_id)

    seen = set()
    for curve in store.curves():
        for edge, latch in curve.latches.items():
            if graph is not None:
                graph.check_mirror(curve.curve_id, edge)
            key = frozenset([(curve.curve_id, edge), (latch.latched_to_id, latch.partners_edge)])
            if key in seen:
                continue
            seen.add(key)
            network.add_edge(
                curve.curve_id, latch.latched_to_id,
                a_end=(curve.curve_id, edge),
                b_end=(latch.latched_to_id, latch.partners_edge),
            )

    return network


def chain_of(store, seed, graph=None):
    """Every curve in the seed's chain, seed included."""
    if seed not in store:
        raise UnknownId(f"Unknown curve id: {seed}", curve_id=seed)
    return set(nx.node_connected_component(latch_network(store, graph), seed))


@trace(label="connected_component", arg_names=["seed"])
def connected_component(store, seed, graph=None):
    """
    Curves reachable from seed through latches, seed excluded.

    For a chain A-B-C, connected_component(A) is {B, C}.
    """
    chain = chain_of(store, seed, graph)
    chain.discard(seed)
    get_tracer().event(f"Chain of {seed}: {len(chain)} connected curves")
    return chain


def _in_set_partner(curve, edge, members):
    latch = curve.latches.get(edge)
    if latch is None or latch.latched_to_id not in members:
        return None
    return latch


def order_chain(store, members):
    """
    Order a set of curves along their latches.

    Walks from an extremity (a member with an edge that has no in-set
    partner). A closed loop starts from its smallest id, entering through its
    start. Members that do not connect are walked component by component.

    Returns a list of ChainLink, `reversed` set when a curve is walked from its
    end to its start.
    """
    members = set(members)
    visited = set()
    links = []

    def walk(curve_id, entry_edge):
        while curve_id is not None and curve_id not in visited:
            visited.add(curve_id)
            links.append(ChainLink(curve_id=curve_id, reversed=entry_edge is AnchorEdge.END))
            curve = store.get_mut(curve_id)
            exit_edge = entry_edge.opposite
            latch = _in_set_partner(curve, exit_edge, members)
            if latch is None:
                return
            curve_id, entry_edge = latch.latched_to_id, latch.partners_edge

    # open chains first, from their free ends
    for curve_id in sorted(members):
        if curve_id in visited:
            continue
        curve = store.get_mut(curve_id)
        for edge in (AnchorEdge.START, AnchorEdge.END):
            if _in_set_partner(curve, edge, members) is None:
                walk(curve_id, edge)
                break

    # whatever is left are closed loops
    for curve_id in sorted(members):
        if curve_id not in visited:
            walk(curve_id, AnchorEdge.START)

    return links
