"""Tree core shared by the category tree and the media folder tree.

Nodes of one kind are loaded into a ``TreeIndex``: an arena keyed by id
with a parent -> children index. Every ancestor and descendant walk is an
index lookup over that arena, recomputed per request and never cached.

The guard functions at the bottom validate a mutation against the index
before anything is written. They raise and never modify state.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..exceptions import ConflictError, ValidationError

logger = logging.getLogger(__name__)

CATEGORY_PATH_SEPARATOR = " > "
FOLDER_PATH_SEPARATOR = "/"


@dataclass(frozen=True)
class NodeRecord:
    id: int
    parent_id: Optional[int]
    name: str


class TreeIndex:
    """Arena of nodes with parent and children lookups."""

    def __init__(self, rows: Iterable):
        self._nodes: Dict[int, NodeRecord] = {}
        self._children: Dict[Optional[int], List[int]] = {}
        for row in rows:
            node = NodeRecord(id=row[0], parent_id=row[1], name=row[2])
            self._nodes[node.id] = node
            self._children.setdefault(node.parent_id, []).append(node.id)

    @classmethod
    def load(cls, db: Session, model, *order_by) -> "TreeIndex":
        """Build the index from every row of *model* (id, parent_id, name).

        *order_by* columns fix the order of each node's children list.
        """
        query = db.query(model.id, model.parent_id, model.name)
        if order_by:
            query = query.order_by(*order_by)
        return cls(query.all())

    def __contains__(self, node_id) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, node_id: int) -> NodeRecord:
        return self._nodes[node_id]

    # -- Ascending --------------------------------------------------------

    def ancestors(self, node_id: int) -> List[NodeRecord]:
        """Parent chain of *node_id*, nearest parent first, root last.

        A dangling parent_id ends the walk as if the node were a root.
        """
        chain: List[NodeRecord] = []
        seen = {node_id}
        current = self._nodes[node_id].parent_id
        while current is not None and current in self._nodes:
            if current in seen:
                logger.error("Cycle detected in parent chain", extra={"node_id": node_id})
                break
            seen.add(current)
            parent = self._nodes[current]
            chain.append(parent)
            current = parent.parent_id
        return chain

    def breadcrumbs(self, node_id: int) -> List[Dict]:
        """``[{id, name}, ...]`` from the root down to *node_id* inclusive."""
        trail = [self._nodes[node_id]] + self.ancestors(node_id)
        return [{"id": n.id, "name": n.name} for n in reversed(trail)]

    def display_path(self, node_id: int, separator: str = CATEGORY_PATH_SEPARATOR) -> str:
        return separator.join(crumb["name"] for crumb in self.breadcrumbs(node_id))

    def depth(self, node_id: int) -> int:
        """0 for a root."""
        return len(self.ancestors(node_id))

    # -- Descending -------------------------------------------------------

    def children(self, node_id: Optional[int]) -> List[int]:
        """Direct children ids. ``None`` lists the roots."""
        return list(self._children.get(node_id, []))

    def has_children(self, node_id: int) -> bool:
        return bool(self._children.get(node_id))

    def descendants(self, node_id: int) -> List[int]:
        """Every node below *node_id* (excluding itself), parents before children."""
        result: List[int] = []
        stack = list(reversed(self._children.get(node_id, [])))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self._children.get(current, [])))
        return result

    def post_order(self, node_id: int) -> List[int]:
        """*node_id* and its subtree with every child listed before its parent."""
        result: List[int] = []
        stack = [(node_id, False)]
        while stack:
            current, expanded = stack.pop()
            if expanded:
                result.append(current)
                continue
            stack.append((current, True))
            for child in reversed(self._children.get(current, [])):
                stack.append((child, False))
        return result


def materialize_path(parent_path: Optional[str], name: str) -> str:
    """Stored folder path: ``parent_path/name``, or ``name`` for a root."""
    if parent_path:
        return f"{parent_path}{FOLDER_PATH_SEPARATOR}{name}"
    return name


# ---------------------------------------------------------------------------
# Mutation guards
# ---------------------------------------------------------------------------

def validate_parent_exists(index: TreeIndex, parent_id: Optional[int], kind: str = "node") -> None:
    if parent_id is not None and parent_id not in index:
        raise ValidationError(f"Parent {kind} not found: {parent_id}", field="parent_id")


def validate_reparent(
    index: TreeIndex,
    node_id: int,
    proposed_parent_id: Optional[int],
    kind: str = "node",
) -> None:
    """Reject a parent that is the node itself or lies in its subtree.

    Moving to the root (``None``) is always valid.
    """
    if proposed_parent_id is None:
        return
    validate_parent_exists(index, proposed_parent_id, kind)
    if proposed_parent_id == node_id:
        raise ConflictError(
            f"A {kind} cannot be its own parent.",
            details={"id": node_id, "parent_id": proposed_parent_id},
        )
    if proposed_parent_id in set(index.descendants(node_id)):
        raise ConflictError(
            f"Cannot move a {kind} under one of its own descendants.",
            details={"id": node_id, "parent_id": proposed_parent_id},
        )


def validate_delete(index: TreeIndex, node_id: int, kind: str = "node") -> None:
    """Reject deleting a node that still has direct children."""
    children = index.children(node_id)
    if children:
        raise ConflictError(
            f"Cannot delete {kind} with children. Delete or move them first.",
            details={"id": node_id, "child_count": len(children)},
        )


def validate_unique_name(
    index: TreeIndex,
    parent_id: Optional[int],
    name: str,
    exclude_id: Optional[int] = None,
    kind: str = "node",
) -> None:
    """Reject a sibling with the same name under *parent_id*."""
    for sibling_id in index.children(parent_id):
        if sibling_id != exclude_id and index.get(sibling_id).name == name:
            raise ConflictError(
                f"A {kind} with this name already exists in this location.",
                details={"parent_id": parent_id, "name": name},
            )
