"""
Logical property-graph store.

Students are nodes; friend requests, friendships and joint attendance days
are typed edges carrying properties. Callers open a `transaction()` and run
every read and write of one logical operation inside it, so no intermediate
state is ever visible to other callers.

Edge properties are plain dicts keyed by attribute name. Matchers are keyword
arguments compared for equality; values are always passed as parameters.
"""
from contextlib import asynccontextmanager

STUDENT = 'Student'
SENT_REQUEST = 'SENT_REQUEST'
FRIENDS_WITH = 'FRIENDS_WITH'
ATTENDED_WITH = 'ATTENDED_WITH'

NODE_KINDS = (STUDENT,)

# property names holding the (from, to) endpoints of each edge kind
EDGE_ENDS = {
    SENT_REQUEST: ('sender_id', 'receiver_id'),
    FRIENDS_WITH: ('student1_id', 'student2_id'),
    ATTENDED_WITH: ('student1_id', 'student2_id'),
}


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    """Order an unordered pair of student ids for storage and lookup"""
    return (a, b) if a <= b else (b, a)


class GraphTransaction:
    """Operations available inside one atomic store transaction"""

    async def upsert_node(self, kind: str, node_id: str) -> None:
        raise NotImplementedError

    async def create_edge(self, kind: str, from_id: str, to_id: str, properties: dict) -> dict:
        raise NotImplementedError

    async def merge_edge(self, kind: str, from_id: str, to_id: str, key: dict | None = None,
                         on_create: dict | None = None, on_match: dict | None = None) -> tuple[dict, bool]:
        """
        Match the edge by its endpoints plus `key`, creating it when absent.

        Returns the edge properties and whether the edge was created.
        """
        raise NotImplementedError

    async def read_edge(self, kind: str, lock: bool = False, **matcher) -> dict | None:
        raise NotImplementedError

    async def read_edges(self, kind: str, **matcher) -> list[dict]:
        """All matching edges, oldest first"""
        raise NotImplementedError

    async def update_edge(self, kind: str, matcher: dict, changes: dict) -> dict | None:
        """Apply `changes` to the edge matching `matcher`; None if nothing matched"""
        raise NotImplementedError

    async def delete_edge(self, kind: str, **matcher) -> int:
        raise NotImplementedError

    async def query_ordered(self, kind: str, sort_key: str, direction: str = 'desc',
                            limit: int | None = None, tiebreak: str = 'id') -> list[dict]:
        raise NotImplementedError


class GraphStore:
    """Factory for atomic transactions over the graph"""

    @asynccontextmanager
    async def transaction(self):
        raise NotImplementedError
        yield  # pragma: no cover

    async def create_schema(self):
        pass

    async def close(self):
        pass


from .memory import MemoryGraphStore  # noqa: E402
from .sql import SqlGraphStore  # noqa: E402

__all__ = [
    'GraphStore',
    'GraphTransaction',
    'MemoryGraphStore',
    'SqlGraphStore',
    'canonical_pair',
    'STUDENT',
    'SENT_REQUEST',
    'FRIENDS_WITH',
    'ATTENDED_WITH',
    'EDGE_ENDS',
]
