# dag.py
from __future__ import annotations

import heapq
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .model import Step


def build_graph(steps: Sequence[Step]) -> Tuple[Dict[str, Set[str]], Dict[str, int]]:
    """
    Build a DAG from Step objects.

    Edges run prerequisite -> dependent for both `depends_on` and `after`.
    References to steps that are not in `steps` are ignored here; the
    orchestrator validates hard dependencies separately.

    Returns:
      adj:   step id -> ids that must wait for it
      indeg: step id -> number of prerequisites
    """
    names = [s.id for s in steps]
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise ValueError(f"Duplicate step ids found: {dupes}")

    name_set = set(names)
    adj: Dict[str, Set[str]] = {n: set() for n in names}
    indeg: Dict[str, int] = {n: 0 for n in names}

    for step in steps:
        for prereq in list(step.depends_on) + list(step.after):
            if prereq not in name_set:
                continue
            if step.id not in adj[prereq]:
                adj[prereq].add(step.id)
                indeg[step.id] += 1

    return adj, indeg


def find_cycle(steps: Sequence[Step]) -> Optional[List[str]]:
    """
    Depth-first search with recursion-stack marking.

    Returns the cycle as a path (first id repeated at the end), or None.
    """
    by_id = {s.id: s for s in steps}
    order = {s.id: i for i, s in enumerate(steps)}
    visited: Set[str] = set()
    on_stack: List[str] = []
    on_stack_set: Set[str] = set()

    def prereqs(sid: str) -> List[str]:
        s = by_id[sid]
        found = [p for p in list(s.depends_on) + list(s.after) if p in by_id]
        return sorted(set(found), key=order.__getitem__)

    def visit(sid: str) -> Optional[List[str]]:
        visited.add(sid)
        on_stack.append(sid)
        on_stack_set.add(sid)
        for nxt in prereqs(sid):
            if nxt in on_stack_set:
                return on_stack[on_stack.index(nxt):] + [nxt]
            if nxt not in visited:
                cycle = visit(nxt)
                if cycle:
                    return cycle
        on_stack.pop()
        on_stack_set.discard(sid)
        return None

    for s in steps:
        if s.id not in visited:
            cycle = visit(s.id)
            if cycle:
                return cycle
    return None


def stable_order(steps: Sequence[Step]) -> List[Step]:
    """
    Topological order; among ready steps the earliest registered goes first,
    so the same registry always yields the same order.
    """
    adj, indeg = build_graph(steps)
    indeg = dict(indeg)  # copy (we mutate it)
    index = {s.id: i for i, s in enumerate(steps)}

    ready: List[int] = [index[sid] for sid, d in indeg.items() if d == 0]
    heapq.heapify(ready)

    ordered: List[Step] = []
    while ready:
        i = heapq.heappop(ready)
        step = steps[i]
        ordered.append(step)
        for child in adj[step.id]:
            indeg[child] -= 1
            if indeg[child] == 0:
                heapq.heappush(ready, index[child])

    if len(ordered) != len(steps):
        remaining = sorted(sid for sid, d in indeg.items() if d > 0)
        raise ValueError(f"Step graph has a cycle. Stuck steps: {remaining}")

    return ordered
