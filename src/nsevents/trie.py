from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


def normalize_path(name: str) -> List[str]:
    """Split a dotted event name into its non-empty segments.

    ``"user.created"`` becomes ``["user", "created"]``; leading, trailing and
    doubled dots are ignored, and ``""`` maps to the root (``[]``).
    """
    return [segment for segment in name.split(".") if segment]


@dataclass(eq=False)
class Listener:
    """A registered callback plus its one-shot flag."""

    callback: Callable[..., Any]
    once: bool = False

    def matches(self, callback: Callable[..., Any]) -> bool:
        # == so that two lookups of the same bound method compare equal
        return self.callback == callback


@dataclass(eq=False)
class Node:
    """One namespace segment: its listeners and the children below it."""

    listeners: List[Listener] = field(default_factory=list)
    children: Dict[str, "Node"] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.listeners and not self.children


Visitor = Callable[[Node], Any]


class NamespaceTree:
    """Trie of namespace segments rooted at the empty path.

    The root matches every event. A listener attached at ``a.b`` is reached by
    any traversal of ``a.b`` or of a descendant such as ``a.b.c``, because the
    traversal visits the deepest matching node first and then walks back up
    through every ancestor.
    """

    def __init__(self) -> None:
        self.root = Node()

    def insert(self, path: Sequence[str], listener: Listener) -> Node:
        """Attach ``listener`` at ``path``, creating intermediate nodes as needed.

        Args:
            path: Normalized segments (see :func:`normalize_path`).
            listener: The listener to append.

        Returns:
            The node the listener was appended to.
        """
        node = self.root
        for segment in path:
            child = node.children.get(segment)
            if child is None:
                child = node.children[segment] = Node()
            node = child
        node.listeners.append(listener)
        return node

    def find(self, path: Sequence[str]) -> Optional[Node]:
        """Return the node exactly at ``path``, or None. Never prunes."""
        node = self.root
        for segment in path:
            child = node.children.get(segment)
            if child is None:
                return None
            node = child
        return node

    def traverse(self, path: Sequence[str], visitor: Visitor) -> bool:
        """Visit the nodes along ``path`` from the deepest match back to the root.

        The visitor's truthiness decides whether the next ancestor is visited:
        a falsy result stops the walk, so a visitor that always returns False
        only ever sees the deepest matching node. Regardless of that, every
        node on the way back up that ended up with no listeners and no
        children is detached from its parent.

        Args:
            path: Normalized segments to descend along.
            visitor: Called with each visited node.

        Returns:
            The result of the last visitor call, as a bool.
        """
        trail: List[Node] = [self.root]
        keys: List[str] = []
        node = self.root
        for segment in path:
            child = node.children.get(segment)
            if child is None:
                break
            trail.append(child)
            keys.append(segment)
            node = child

        propagate = True
        depth = len(trail) - 1
        try:
            while depth >= 0:
                if propagate:
                    propagate = bool(visitor(trail[depth]))
                self._prune(trail, keys, depth)
                depth -= 1
        finally:
            # A visitor that raised still leaves no dead branches behind.
            for remaining in range(depth, 0, -1):
                self._prune(trail, keys, remaining)
        return propagate

    @staticmethod
    def _prune(trail: List[Node], keys: List[str], depth: int) -> None:
        if depth == 0:
            return
        node, parent, key = trail[depth], trail[depth - 1], keys[depth - 1]
        # A callback may already have detached or replaced this branch.
        if node.is_empty() and parent.children.get(key) is node:
            del parent.children[key]
            logger.debug("Pruned empty namespace segment '%s'", key)
