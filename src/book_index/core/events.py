"""Step events emitted by the index structures.

Each observable micro-operation of a structure is one frozen dataclass.
The ``structure`` and ``kind`` class attributes tag the variant so that
consumers can either ``match`` on the class or dispatch on the tag of the
``to_dict()`` rendering.

Invariant: the ordered events of one operation are enough to rebuild the
intermediate states of the structure that emitted them (see ``replay``).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Literal, Union

RotationCase = Literal["LL", "RR", "LR", "RL"]
NodeKind = Literal["student", "book"]
EdgeKind = Literal["owns", "wants", "swap"]


@dataclass(frozen=True, slots=True)
class StepEvent:
    """Base class of every step event."""

    structure: ClassVar[str] = ""
    kind: ClassVar[str] = ""

    def to_dict(self) -> dict[str, Any]:
        """Render the event as a plain dict for presentation consumers."""
        data: dict[str, Any] = {"structure": self.structure, "kind": self.kind}
        data.update(asdict(self))
        return data


# -----------------------------
# Hash table
# -----------------------------
@dataclass(frozen=True, slots=True)
class HashEvent(StepEvent):
    structure: ClassVar[str] = "hash_table"


@dataclass(frozen=True, slots=True)
class HashProbe(HashEvent):
    kind: ClassVar[str] = "hash-probe"
    bucket: int
    key: str


@dataclass(frozen=True, slots=True)
class HashChainCompare(HashEvent):
    kind: ClassVar[str] = "hash-chain-compare"
    bucket: int
    index: int
    key: str
    match: bool


@dataclass(frozen=True, slots=True)
class HashInsert(HashEvent):
    kind: ClassVar[str] = "hash-insert"
    bucket: int
    key: str


@dataclass(frozen=True, slots=True)
class HashUpdate(HashEvent):
    kind: ClassVar[str] = "hash-update"
    bucket: int
    key: str


@dataclass(frozen=True, slots=True)
class HashDelete(HashEvent):
    kind: ClassVar[str] = "hash-delete"
    bucket: int
    index: int
    key: str


@dataclass(frozen=True, slots=True)
class HashResizeStart(HashEvent):
    kind: ClassVar[str] = "hash-resize-start"
    old_capacity: int
    new_capacity: int


@dataclass(frozen=True, slots=True)
class HashRehash(HashEvent):
    kind: ClassVar[str] = "hash-rehash"
    key: str
    old_bucket: int
    new_bucket: int


@dataclass(frozen=True, slots=True)
class HashResizeComplete(HashEvent):
    kind: ClassVar[str] = "hash-resize-complete"
    capacity: int


# -----------------------------
# AVL tree
# -----------------------------
@dataclass(frozen=True, slots=True)
class TreeEvent(StepEvent):
    structure: ClassVar[str] = "avl_tree"


@dataclass(frozen=True, slots=True)
class TreeVisit(TreeEvent):
    kind: ClassVar[str] = "avl-visit"
    node_id: str
    rating: float
    purpose: str


@dataclass(frozen=True, slots=True)
class TreeInsert(TreeEvent):
    kind: ClassVar[str] = "avl-insert"
    node_id: str
    rating: float
    parent_id: str | None
    side: Literal["left", "right"] | None


@dataclass(frozen=True, slots=True)
class TreeReplace(TreeEvent):
    kind: ClassVar[str] = "avl-replace"
    node_id: str
    rating: float


@dataclass(frozen=True, slots=True)
class TreeDelete(TreeEvent):
    kind: ClassVar[str] = "avl-delete"
    node_id: str
    rating: float


@dataclass(frozen=True, slots=True)
class TreeSuccessor(TreeEvent):
    kind: ClassVar[str] = "avl-successor"
    node_id: str
    successor_id: str


@dataclass(frozen=True, slots=True)
class TreeRotate(TreeEvent):
    kind: ClassVar[str] = "avl-rotate"
    case: RotationCase
    direction: Literal["left", "right"]
    pivot_id: str
    new_root_id: str


@dataclass(frozen=True, slots=True)
class TreeMetrics(TreeEvent):
    kind: ClassVar[str] = "avl-update-metrics"
    node_id: str
    height: int
    balance: int
    size: int


@dataclass(frozen=True, slots=True)
class TreeRank(TreeEvent):
    kind: ClassVar[str] = "avl-rank"
    node_id: str
    rank: int


# -----------------------------
# Trie
# -----------------------------
@dataclass(frozen=True, slots=True)
class TrieEvent(StepEvent):
    structure: ClassVar[str] = "trie"


@dataclass(frozen=True, slots=True)
class TrieInsertStart(TrieEvent):
    kind: ClassVar[str] = "insert_start"
    word: str
    key: str


@dataclass(frozen=True, slots=True)
class TrieCreateNode(TrieEvent):
    kind: ClassVar[str] = "create_node"
    char: str
    path: str


@dataclass(frozen=True, slots=True)
class TrieTraverseNode(TrieEvent):
    kind: ClassVar[str] = "traverse_node"
    char: str
    path: str


@dataclass(frozen=True, slots=True)
class TrieMarkEnd(TrieEvent):
    kind: ClassVar[str] = "mark_end"
    path: str
    key: str


@dataclass(frozen=True, slots=True)
class TrieUnmarkEnd(TrieEvent):
    kind: ClassVar[str] = "unmark_end"
    path: str
    key: str
    terminal: bool


@dataclass(frozen=True, slots=True)
class TrieSearchStart(TrieEvent):
    kind: ClassVar[str] = "search_start"
    prefix: str


@dataclass(frozen=True, slots=True)
class TrieSearchStep(TrieEvent):
    kind: ClassVar[str] = "search_step"
    char: str
    path: str
    found: bool


@dataclass(frozen=True, slots=True)
class TrieSearchComplete(TrieEvent):
    kind: ClassVar[str] = "search_complete"
    prefix: str
    matches: tuple[str, ...]


# -----------------------------
# Graph
# -----------------------------
@dataclass(frozen=True, slots=True)
class GraphEvent(StepEvent):
    structure: ClassVar[str] = "graph"


@dataclass(frozen=True, slots=True)
class GraphAddNode(GraphEvent):
    kind: ClassVar[str] = "add_node"
    node_id: str
    node_kind: NodeKind
    label: str


@dataclass(frozen=True, slots=True)
class GraphAddEdge(GraphEvent):
    kind: ClassVar[str] = "add_edge"
    source: str
    target: str
    edge_kind: EdgeKind


@dataclass(frozen=True, slots=True)
class GraphRemoveEdge(GraphEvent):
    kind: ClassVar[str] = "remove_edge"
    source: str
    target: str
    edge_kind: EdgeKind


@dataclass(frozen=True, slots=True)
class BfsStart(GraphEvent):
    kind: ClassVar[str] = "bfs_start"
    start_id: str
    max_depth: int


@dataclass(frozen=True, slots=True)
class BfsVisit(GraphEvent):
    kind: ClassVar[str] = "bfs_visit"
    node_id: str
    level: int


@dataclass(frozen=True, slots=True)
class BfsExplore(GraphEvent):
    kind: ClassVar[str] = "bfs_explore"
    source: str
    target: str
    via: str


@dataclass(frozen=True, slots=True)
class CycleFound(GraphEvent):
    kind: ClassVar[str] = "match_found"
    path: tuple[str, ...]
    description: str


# -----------------------------
# Queue
# -----------------------------
@dataclass(frozen=True, slots=True)
class QueueEvent(StepEvent):
    structure: ClassVar[str] = "queue"


@dataclass(frozen=True, slots=True)
class QueueEnqueue(QueueEvent):
    kind: ClassVar[str] = "enqueue"
    item_id: str
    priority: int | None
    position: int


@dataclass(frozen=True, slots=True)
class QueueDequeue(QueueEvent):
    kind: ClassVar[str] = "dequeue"
    item_id: str


@dataclass(frozen=True, slots=True)
class QueuePeek(QueueEvent):
    kind: ClassVar[str] = "peek"
    item_id: str


@dataclass(frozen=True, slots=True)
class QueueEmptyCheck(QueueEvent):
    kind: ClassVar[str] = "empty_check"
    empty: bool


@dataclass(frozen=True, slots=True)
class QueueSizeCheck(QueueEvent):
    kind: ClassVar[str] = "size_check"
    size: int


@dataclass(frozen=True, slots=True)
class QueueRemove(QueueEvent):
    kind: ClassVar[str] = "remove"
    item_id: str
    position: int | None
    removed: bool


@dataclass(frozen=True, slots=True)
class QueueHighlight(QueueEvent):
    kind: ClassVar[str] = "highlight"
    end: Literal["front", "rear"]
    reason: str


HashStep = Union[
    HashProbe,
    HashChainCompare,
    HashInsert,
    HashUpdate,
    HashDelete,
    HashResizeStart,
    HashRehash,
    HashResizeComplete,
]
TreeStep = Union[
    TreeVisit,
    TreeInsert,
    TreeReplace,
    TreeDelete,
    TreeSuccessor,
    TreeRotate,
    TreeMetrics,
    TreeRank,
]
TrieStep = Union[
    TrieInsertStart,
    TrieCreateNode,
    TrieTraverseNode,
    TrieMarkEnd,
    TrieUnmarkEnd,
    TrieSearchStart,
    TrieSearchStep,
    TrieSearchComplete,
]
GraphStep = Union[
    GraphAddNode, GraphAddEdge, GraphRemoveEdge, BfsStart, BfsVisit, BfsExplore, CycleFound
]
QueueStep = Union[
    QueueEnqueue,
    QueueDequeue,
    QueuePeek,
    QueueEmptyCheck,
    QueueSizeCheck,
    QueueRemove,
    QueueHighlight,
]
