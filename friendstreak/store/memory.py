"""In-process graph store, used for development and tests"""
import asyncio
import copy
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager

from ..dates import utcnow
from . import EDGE_ENDS, NODE_KINDS, GraphStore, GraphTransaction


def _check_kind(kind: str, known):
    if kind not in known:
        raise ValueError(f'unknown kind {kind!r}')


def _matches(edge: dict, matcher: dict) -> bool:
    return all(edge.get(k) == v for k, v in matcher.items())


class MemoryTransaction(GraphTransaction):

    def __init__(self, nodes, edges):
        self._nodes = nodes
        self._edges = edges

    def _find(self, kind, matcher):
        _check_kind(kind, EDGE_ENDS)
        found = [e for e in self._edges[kind].values() if _matches(e, matcher)]
        found.sort(key=lambda e: (e['created_at'], e['id']))
        return found

    async def upsert_node(self, kind, node_id):
        _check_kind(kind, NODE_KINDS)
        self._nodes[kind].add(node_id)

    async def create_edge(self, kind, from_id, to_id, properties):
        _check_kind(kind, EDGE_ENDS)
        start, end = EDGE_ENDS[kind]
        edge = dict(properties)
        edge.setdefault('id', str(uuid.uuid4()))
        edge.setdefault('created_at', utcnow())
        edge[start] = from_id
        edge[end] = to_id
        self._edges[kind][edge['id']] = edge
        return dict(edge)

    async def merge_edge(self, kind, from_id, to_id, key=None, on_create=None, on_match=None):
        start, end = EDGE_ENDS.get(kind, (None, None))
        matcher = {start: from_id, end: to_id, **(key or {})}
        found = self._find(kind, matcher)
        if found:
            edge = found[0]
            edge.update(on_match or {})
            return dict(edge), False
        created = await self.create_edge(kind, from_id, to_id, {**(key or {}), **(on_create or {})})
        return created, True

    async def read_edge(self, kind, lock=False, **matcher):
        # every transaction already holds the store lock
        found = self._find(kind, matcher)
        return dict(found[0]) if found else None

    async def read_edges(self, kind, **matcher):
        return [dict(e) for e in self._find(kind, matcher)]

    async def update_edge(self, kind, matcher, changes):
        found = self._find(kind, matcher)
        if not found:
            return None
        found[0].update(changes)
        return dict(found[0])

    async def delete_edge(self, kind, **matcher):
        found = self._find(kind, matcher)
        for edge in found:
            del self._edges[kind][edge['id']]
        return len(found)

    async def query_ordered(self, kind, sort_key, direction='desc', limit=None, tiebreak='id'):
        _check_kind(kind, EDGE_ENDS)
        edges = sorted(self._edges[kind].values(), key=lambda e: e[tiebreak])
        edges.sort(key=lambda e: e[sort_key], reverse=(direction == 'desc'))
        if limit is not None:
            edges = edges[:limit]
        return [dict(e) for e in edges]


class MemoryGraphStore(GraphStore):
    """
    Dict-backed store. One asyncio.Lock serializes all transactions and the
    previous state is restored when a transaction body raises.
    """

    transaction_class = MemoryTransaction

    def __init__(self):
        self._nodes = defaultdict(set)
        self._edges = defaultdict(dict)
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self):
        async with self._lock:
            nodes, edges = copy.deepcopy(self._nodes), copy.deepcopy(self._edges)
            try:
                yield self.transaction_class(self._nodes, self._edges)
            except BaseException:
                self._nodes.clear()
                self._nodes.update(nodes)
                self._edges.clear()
                self._edges.update(edges)
                raise

    def has_node(self, kind: str, node_id: str) -> bool:
        return node_id in self._nodes[kind]
