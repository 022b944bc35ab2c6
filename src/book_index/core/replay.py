"""Rebuild structure states from recorded step events.

Given every event a structure emitted since it was created, these
functions reproduce its intermediate states one event at a time without
looking at the live structure. Events of other structures are skipped, so
whole catalog batches can be fed in directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .events import (
    GraphAddEdge,
    GraphAddNode,
    GraphRemoveEdge,
    GraphStep,
    HashChainCompare,
    HashDelete,
    HashInsert,
    HashProbe,
    HashRehash,
    HashResizeComplete,
    HashResizeStart,
    HashStep,
    HashUpdate,
    QueueDequeue,
    QueueEmptyCheck,
    QueueEnqueue,
    QueueHighlight,
    QueuePeek,
    QueueRemove,
    QueueSizeCheck,
    QueueStep,
    TreeDelete,
    TreeInsert,
    TreeRotate,
    TreeStep,
    TreeSuccessor,
    TrieCreateNode,
    TrieMarkEnd,
    TrieStep,
    TrieUnmarkEnd,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .events import StepEvent


def replay_hash(events: Iterable[StepEvent], initial_capacity: int = 8) -> Iterator[list[list[str]]]:
    """Yield the bucket layout (lists of keys) after each hash event."""
    buckets: list[list[str]] = [[] for _ in range(initial_capacity)]
    staging: list[list[str]] | None = None

    for event in events:
        if not isinstance(event, HashStep):
            continue

        match event:
            case HashInsert(bucket=bucket, key=key):
                buckets[bucket].append(key)
            case HashDelete(bucket=bucket, index=index):
                del buckets[bucket][index]
            case HashResizeStart(new_capacity=new_capacity):
                staging = [[] for _ in range(new_capacity)]
            case HashRehash(key=key, old_bucket=old_bucket, new_bucket=new_bucket):
                assert staging is not None, "rehash outside of a resize"
                buckets[old_bucket].remove(key)
                staging[new_bucket].append(key)
            case HashResizeComplete():
                assert staging is not None, "resize completed without starting"
                buckets, staging = staging, None
            case HashProbe() | HashChainCompare() | HashUpdate():
                pass

        # Mid-resize the new array is the one being filled
        current = staging if staging is not None else buckets
        yield [list(chain) for chain in current]


def rebuild_buckets(events: Iterable[StepEvent], initial_capacity: int = 8) -> list[list[str]]:
    """Final bucket layout after replaying events."""
    layout: list[list[str]] = [[] for _ in range(initial_capacity)]
    for state in replay_hash(events, initial_capacity):
        layout = state
    return layout


@dataclass
class TrieShape:
    """Replayed trie: every node path and the keys held by terminal paths."""

    paths: set[str] = field(default_factory=lambda: {""})
    terminals: dict[str, list[str]] = field(default_factory=dict)


def rebuild_trie(events: Iterable[StepEvent]) -> TrieShape:
    shape = TrieShape()
    for event in events:
        if not isinstance(event, TrieStep):
            continue

        match event:
            case TrieCreateNode(path=path):
                shape.paths.add(path)
            case TrieMarkEnd(path=path, key=key):
                keys = shape.terminals.setdefault(path, [])
                if key not in keys:
                    keys.append(key)
            case TrieUnmarkEnd(path=path, key=key):
                keys = shape.terminals.get(path, [])
                if key in keys:
                    keys.remove(key)
                if not keys:
                    shape.terminals.pop(path, None)
            case _:
                pass
    return shape


def rebuild_queue(events: Iterable[StepEvent]) -> list[str]:
    """Queued item ids, front first, after replaying queue events."""
    items: list[str] = []
    for event in events:
        if not isinstance(event, QueueStep):
            continue

        match event:
            case QueueEnqueue(item_id=item_id, position=position):
                items.insert(position, item_id)
            case QueueDequeue():
                items.pop(0)
            case QueueRemove(position=position, removed=True):
                assert position is not None
                del items[position]
            case QueueRemove() | QueuePeek() | QueueEmptyCheck() | QueueSizeCheck() | QueueHighlight():
                pass
    return items


@dataclass
class _TreeSlot:
    id: str
    rating: float
    left: str | None = None
    right: str | None = None


class TreeShape:
    """Replayed AVL tree, nodes keyed by the id of the record they hold.

    A two-child deletion copies the successor's record into the deleted
    node; the copy is applied once the successor's own node is spliced out,
    so ids stay unique at every step.
    """

    def __init__(self) -> None:
        self.nodes: dict[str, _TreeSlot] = {}
        self.root: str | None = None
        self._successors: dict[str, str] = {}  # successor id -> id of the node taking it

    def _parent_of(self, node_id: str) -> _TreeSlot | None:
        for node in self.nodes.values():
            if node_id in (node.left, node.right):
                return node
        return None

    def _relink(self, old: str, new: str | None) -> None:
        """Point old's parent (or the root) at new."""
        parent = self._parent_of(old)
        if parent is None:
            self.root = new
        elif parent.left == old:
            parent.left = new
        else:
            parent.right = new

    def apply(self, event: StepEvent) -> None:
        if not isinstance(event, TreeStep):
            return

        match event:
            case TreeInsert(node_id=node_id, rating=rating, parent_id=parent_id, side=side):
                self.nodes[node_id] = _TreeSlot(node_id, rating)
                if parent_id is None:
                    self.root = node_id
                elif side == "left":
                    self.nodes[parent_id].left = node_id
                else:
                    self.nodes[parent_id].right = node_id
            case TreeSuccessor(node_id=node_id, successor_id=successor_id):
                self._successors[successor_id] = node_id
            case TreeDelete(node_id=node_id):
                node = self.nodes[node_id]
                if node.left is not None and node.right is not None:
                    return
                self._relink(node_id, node.left if node.left is not None else node.right)
                del self.nodes[node_id]
                holder_id = self._successors.pop(node_id, None)
                if holder_id is not None:
                    self._take_record(holder_id, node)
            case TreeRotate(direction="right", pivot_id=pivot_id, new_root_id=new_root_id):
                self._relink(pivot_id, new_root_id)
                pivot, new_root = self.nodes[pivot_id], self.nodes[new_root_id]
                pivot.left = new_root.right
                new_root.right = pivot_id
            case TreeRotate(direction="left", pivot_id=pivot_id, new_root_id=new_root_id):
                self._relink(pivot_id, new_root_id)
                pivot, new_root = self.nodes[pivot_id], self.nodes[new_root_id]
                pivot.right = new_root.left
                new_root.left = pivot_id
            case _:
                pass

    def _take_record(self, holder_id: str, record: _TreeSlot) -> None:
        holder = self.nodes.pop(holder_id)
        self._relink(holder_id, record.id)
        holder.id, holder.rating = record.id, record.rating
        self.nodes[record.id] = holder

    def structure(self) -> dict[str, Any] | None:
        """Nested snapshot in the same layout as AVLTree.structure()."""

        def _snapshot(node_id: str | None) -> tuple[dict[str, Any] | None, int, int]:
            if node_id is None:
                return None, 0, 0
            node = self.nodes[node_id]
            left, left_h, left_n = _snapshot(node.left)
            right, right_h, right_n = _snapshot(node.right)
            snapshot = {
                "id": node.id,
                "rating": node.rating,
                "height": 1 + max(left_h, right_h),
                "size": 1 + left_n + right_n,
                "balance": left_h - right_h,
                "left": left,
                "right": right,
            }
            return snapshot, snapshot["height"], snapshot["size"]

        return _snapshot(self.root)[0]


def rebuild_tree(events: Iterable[StepEvent]) -> TreeShape:
    shape = TreeShape()
    for event in events:
        shape.apply(event)
    return shape


@dataclass
class GraphShape:
    """Replayed graph: node id -> (kind, label), and edges in insertion order."""

    nodes: dict[str, tuple[str, str]] = field(default_factory=dict)
    edges: list[tuple[str, str, str]] = field(default_factory=list)


def rebuild_graph(events: Iterable[StepEvent]) -> GraphShape:
    shape = GraphShape()
    for event in events:
        if not isinstance(event, GraphStep):
            continue

        match event:
            case GraphAddNode(node_id=node_id, node_kind=node_kind, label=label):
                shape.nodes[node_id] = (node_kind, label)
            case GraphAddEdge(source=source, target=target, edge_kind=edge_kind):
                shape.edges.append((source, target, edge_kind))
            case GraphRemoveEdge(source=source, target=target, edge_kind=edge_kind):
                shape.edges.remove((source, target, edge_kind))
            case _:
                pass
    return shape
