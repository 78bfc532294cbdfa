"""Graph store on PostgreSQL through the SQLAlchemy async ORM"""
import logging
import uuid
from contextlib import asynccontextmanager

from sqlalchemy import select, delete, asc, desc
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..dates import utcnow
from ..errors import Conflict, StoreUnavailable
from ..models import Base, create_session_factory
from ..models.students import Student
from ..models.friend_requests import FriendRequest
from ..models.friendships import Friendship
from ..models.attendance import AttendanceEvent
from . import EDGE_ENDS, STUDENT, SENT_REQUEST, FRIENDS_WITH, ATTENDED_WITH, GraphStore, GraphTransaction, canonical_pair

logger = logging.getLogger(__name__)

NODE_MODELS = {STUDENT: Student}
EDGE_MODELS = {
    SENT_REQUEST: FriendRequest,
    FRIENDS_WITH: Friendship,
    ATTENDED_WITH: AttendanceEvent,
}


def _props(row) -> dict:
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


def _model(kind):
    try:
        return EDGE_MODELS[kind]
    except KeyError:
        raise ValueError(f'unknown kind {kind!r}')


def _where(model, matcher: dict):
    return [getattr(model, k) == v for k, v in matcher.items()]


class SqlTransaction(GraphTransaction):

    def __init__(self, session):
        self.session = session

    async def upsert_node(self, kind, node_id):
        model = NODE_MODELS[kind]
        stmt = pg_insert(model.__table__).values(id=node_id).on_conflict_do_nothing(index_elements=['id'])
        await self.session.execute(stmt)

    async def create_edge(self, kind, from_id, to_id, properties):
        model = _model(kind)
        start, end = EDGE_ENDS[kind]
        values = dict(properties)
        values.setdefault('id', str(uuid.uuid4()))
        values.setdefault('created_at', utcnow())
        values[start] = from_id
        values[end] = to_id
        if kind == SENT_REQUEST:
            values['pair_low'], values['pair_high'] = canonical_pair(from_id, to_id)
        row = model(**values)
        self.session.add(row)
        await self.session.flush()
        return _props(row)

    async def merge_edge(self, kind, from_id, to_id, key=None, on_create=None, on_match=None):
        model = _model(kind)
        start, end = EDGE_ENDS[kind]
        matcher = {start: from_id, end: to_id, **(key or {})}
        q = await self.session.execute(select(model).where(*_where(model, matcher)).with_for_update())
        row = q.scalars().first()
        if row is not None:
            for name, value in (on_match or {}).items():
                setattr(row, name, value)
            await self.session.flush()
            return _props(row), False
        created = await self.create_edge(kind, from_id, to_id, {**(key or {}), **(on_create or {})})
        return created, True

    async def read_edge(self, kind, lock=False, **matcher):
        model = _model(kind)
        stmt = select(model).where(*_where(model, matcher)).limit(1)
        if lock:
            stmt = stmt.with_for_update()
        q = await self.session.execute(stmt)
        row = q.scalars().first()
        return _props(row) if row is not None else None

    async def read_edges(self, kind, **matcher):
        model = _model(kind)
        q = await self.session.execute(
            select(model).where(*_where(model, matcher)).order_by(model.created_at.asc(), model.id.asc())
        )
        return [_props(row) for row in q.scalars().all()]

    async def update_edge(self, kind, matcher, changes):
        model = _model(kind)
        # FOR UPDATE re-checks the matcher once a competing writer commits
        q = await self.session.execute(select(model).where(*_where(model, matcher)).with_for_update())
        row = q.scalars().first()
        if row is None:
            return None
        for name, value in changes.items():
            setattr(row, name, value)
        await self.session.flush()
        return _props(row)

    async def delete_edge(self, kind, **matcher):
        model = _model(kind)
        result = await self.session.execute(delete(model).where(*_where(model, matcher)))
        return result.rowcount

    async def query_ordered(self, kind, sort_key, direction='desc', limit=None, tiebreak='id'):
        model = _model(kind)
        order = desc if direction == 'desc' else asc
        stmt = select(model).order_by(order(getattr(model, sort_key)), asc(getattr(model, tiebreak)))
        if limit is not None:
            stmt = stmt.limit(limit)
        q = await self.session.execute(stmt)
        return [_props(row) for row in q.scalars().all()]


class SqlGraphStore(GraphStore):

    def __init__(self, database_url: str, **engine_options):
        self.engine, self._session_factory = create_session_factory(database_url, **engine_options)

    @asynccontextmanager
    async def transaction(self):
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield SqlTransaction(session)
        except IntegrityError as e:
            logger.info({'msg': 'store_constraint_violation', 'error': str(e.orig)})
            raise Conflict('operation violates a uniqueness constraint') from e
        except (SQLAlchemyError, OSError) as e:
            logger.error({'msg': 'store_unavailable', 'error': str(e)})
            raise StoreUnavailable('graph store unavailable') from e

    async def create_schema(self):
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable('graph store unavailable') from e

    async def close(self):
        await self.engine.dispose()
