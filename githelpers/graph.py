"""The graph of objects that we've found names for.

Git computes the graph for us (`git rev-list --parents`); we only keep an
adjacency table so that we can walk it in both directions, and carry names
from the roots toward their ancestors.
"""
import collections
import logging
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple

import pygit2

from . import OidStr, run_git_silent
from .names import Name, derive_parent_name, derive_peeled_name, sort_names
from .refs import Root


@dataclass
class Node:
    """An object in the graph, along with its names and neighbors."""

    oid: OidStr
    kind: str = "commit"
    names: List[Name] = field(default_factory=list)
    parents: List[OidStr] = field(default_factory=list)
    """The parents of this object, in order.

    For a tag, this is the commit that it points to.
    """

    children: List[OidStr] = field(default_factory=list)
    subject: Optional[str] = None

    def best_name(self) -> Optional[Name]:
        """The most useful name for this object, if it has any."""
        names = sort_names(self.names)
        if names:
            return names[0]
        else:
            return None


class ObjectGraph:
    """Table of objects, keyed by OID."""

    def __init__(self) -> None:
        self._nodes: Dict[OidStr, Node] = {}

    def __contains__(self, oid: OidStr) -> bool:
        return oid in self._nodes

    def __getitem__(self, oid: OidStr) -> Node:
        return self._nodes[oid]

    def __len__(self) -> int:
        return len(self._nodes)

    def add_object(self, oid: OidStr, kind: str = "commit") -> Node:
        """Get the node for the given OID, creating it if necessary."""
        node = self._nodes.get(oid)
        if node is None:
            node = Node(oid=oid, kind=kind)
            self._nodes[oid] = node
        elif kind != "commit":
            node.kind = kind
        return node

    def add_edge(self, child_oid: OidStr, parent_oid: OidStr) -> None:
        """Record that `parent_oid` is a parent of `child_oid`.

        Adding the same edge twice has no effect.
        """
        child = self.add_object(child_oid)
        parent = self.add_object(parent_oid)
        if parent_oid not in child.parents:
            child.parents.append(parent_oid)
        if child_oid not in parent.children:
            parent.children.append(child_oid)

    def add_name(self, oid: OidStr, name: Name) -> None:
        node = self.add_object(oid)
        if name not in node.names:
            node.names.append(name)

    def add_rev_list_output(self, output: str) -> None:
        """Add the objects from `git rev-list --parents` output.

        Args:
          output: Lines of the form `<oid> <parent1-oid> <parent2-oid>...`.
        """
        for line in output.splitlines():
            if not line:
                continue
            [oid, *parent_oids] = line.split()
            self.add_object(oid)
            for parent_oid in parent_oids:
                self.add_edge(child_oid=oid, parent_oid=parent_oid)

    def add_roots(self, roots: Iterable[Root]) -> None:
        """Add the named roots to the graph.

        A tag becomes a node of its own, whose only parent is the commit it
        points to.
        """
        for root in roots:
            node = self.add_object(root.oid, kind=root.kind)
            if root.subject is not None:
                node.subject = root.subject
            if root.target is not None:
                self.add_edge(child_oid=root.oid, parent_oid=root.target)
            self.add_name(root.oid, root.name)

    def find_descendants(self, oids: Iterable[OidStr]) -> Set[OidStr]:
        """Find all descendants of the given objects.

        Args:
          oids: The objects to start from. OIDs not in the graph are ignored.

        Returns:
          The set of the given objects and all objects reachable from them by
          following child edges.
        """
        result: Set[OidStr] = set()
        queue: Deque[OidStr] = collections.deque(oid for oid in oids if oid in self)
        while queue:
            oid = queue.popleft()
            if oid in result:
                continue
            result.add(oid)
            queue.extend(self._nodes[oid].children)
        return result


def _walk_ancestor_names(
    graph: ObjectGraph, root_oid: OidStr, root_name: Name, relevant: Set[OidStr]
) -> Iterable[Tuple[OidStr, Name]]:
    seen = {root_oid}
    queue: Deque[Tuple[OidStr, Name]] = collections.deque([(root_oid, root_name)])
    while queue:
        (oid, name) = queue.popleft()
        node = graph[oid]
        for parent_number, parent_oid in enumerate(node.parents, start=1):
            if parent_oid in seen or parent_oid not in relevant:
                continue
            seen.add(parent_oid)

            if node.kind == "tag":
                parent_name = derive_peeled_name(name.name)
            else:
                parent_name = derive_parent_name(name.name, parent_number)
            derived = Name(
                name=parent_name, source=name.source, distance=name.distance + 1
            )
            yield (parent_oid, derived)
            queue.append((parent_oid, derived))


def propagate_names(graph: ObjectGraph, targets: Iterable[OidStr]) -> None:
    """Carry names from the roots toward their ancestors.

    Only the part of the graph which can name the targets or their parents is
    visited: their descendants. Every other node keeps only the names that it
    started with.

    Each node receives at most one name per root name: the one with the
    fewest edges from the root. Among those, first parents win.

    Args:
      graph: The graph to update.
      targets: The objects that we want names for.
    """
    starts: Set[OidStr] = set()
    for oid in targets:
        if oid in graph:
            starts.add(oid)
            starts.update(graph[oid].parents)
    relevant = graph.find_descendants(starts)

    roots = [
        (oid, name)
        for oid in relevant
        for name in graph[oid].names
        if name.distance == 0
    ]
    logging.debug(
        f"Propagating {len(roots)} names through {len(relevant)} objects"
    )
    for (root_oid, root_name) in roots:
        for (oid, name) in _walk_ancestor_names(
            graph=graph, root_oid=root_oid, root_name=root_name, relevant=relevant
        ):
            graph.add_name(oid, name)


def make_graph(
    repo: pygit2.Repository, git_executable: str, roots: List[Root]
) -> ObjectGraph:
    """Build the graph of everything reachable from the given roots.

    Args:
      repo: The Git repository.
      git_executable: The path to the `git` executable on disk.
      roots: The named roots, as returned by `collect_roots`.

    Returns:
      The graph, with the roots' names attached. Names have not been
      propagated yet.
    """
    graph = ObjectGraph()
    commit_oids = []
    for root in roots:
        commit_oids.append(root.oid if root.target is None else root.target)
    if commit_oids:
        # Fed on stdin, since there may be too many for the command line.
        output = run_git_silent(
            repo=repo,
            git_executable=git_executable,
            args=["rev-list", "--parents", "--stdin"],
            input="".join(f"{oid}\n" for oid in dict.fromkeys(commit_oids)),
        )
        graph.add_rev_list_output(output)
    graph.add_roots(roots)
    logging.debug(f"Built graph of {len(graph)} objects")
    return graph
