#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Graph analysis of the version succession graph using NetworkX."""

import logging
from typing import Any, Dict, Iterable, List, Set, Tuple
from dataclasses import dataclass

import networkx as nx

logger = logging.getLogger(__name__)


@dataclass
class SuccessionGraphReport:
    """Health summary of the succession graph.

    Attributes:
        node_count: Versions in the graph (including unknown successor targets)
        edge_count: Successor pointers
        unreachable: Known versions not reachable from any walk root
        dangling: (version, successor) pointers to versions without a document
        cycles: Strongly connected components with more than one version
        self_loops: Versions listing themselves as successor
        missing_roots: Walk roots that are not in the graph
    """

    node_count: int
    edge_count: int
    unreachable: List[str]
    dangling: List[Tuple[str, str]]
    cycles: List[Set[str]]
    self_loops: List[str]
    missing_roots: List[str]

    def is_healthy(self) -> bool:
        return not (self.unreachable or self.dangling or self.cycles or self.self_loops or self.missing_roots)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "unreachable": self.unreachable,
            "dangling": [list(d) for d in self.dangling],
            "cycles": [sorted(c) for c in self.cycles],
            "self_loops": self.self_loops,
            "missing_roots": self.missing_roots,
        }


def find_strongly_connected_components(graph: "nx.DiGraph[Any]") -> Tuple[List[Set[str]], List[str]]:
    """Find cycles using NetworkX's strongly connected components (Tarjan).

    Returns:
        (cycles, self_loops): multi-node components sorted by size (largest first)
        and nodes with an edge to themselves
    """
    sccs = list(nx.strongly_connected_components(graph))
    cycles = [scc for scc in sccs if len(scc) > 1]
    cycles.sort(key=len, reverse=True)
    self_loops = sorted(node for node in graph.nodes() if graph.has_edge(node, node))
    return cycles, self_loops


def reachable_from(graph: "nx.DiGraph[Any]", roots: Iterable[str]) -> Set[str]:
    """All nodes reachable from any of the roots (roots included)."""
    reached: Set[str] = set()
    for root in roots:
        if root in graph and root not in reached:
            reached.add(root)
            reached.update(nx.descendants(graph, root))
    return reached


def analyze_succession_graph(graph: "nx.DiGraph[Any]", roots: Iterable[str]) -> SuccessionGraphReport:
    """Summarize structural problems that limit the match walk."""
    roots = list(roots)
    reached = reachable_from(graph, roots)
    known = [n for n, known in graph.nodes(data="known", default=True) if known]
    unreachable = sorted(n for n in known if n not in reached)
    dangling = sorted((u, v) for u, v in graph.edges() if not graph.nodes[v].get("known", True))
    cycles, self_loops = find_strongly_connected_components(graph)
    missing_roots = [r for r in roots if r not in graph]
    logger.debug("Succession graph: %d nodes, %d edges, %d reachable", graph.number_of_nodes(), graph.number_of_edges(), len(reached))
    return SuccessionGraphReport(
        node_count=graph.number_of_nodes(),
        edge_count=graph.number_of_edges(),
        unreachable=unreachable,
        dangling=dangling,
        cycles=cycles,
        self_loops=self_loops,
        missing_roots=missing_roots,
    )
