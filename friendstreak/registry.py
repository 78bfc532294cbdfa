"""
Relationship registry: friend requests and the friendships they turn into.

Invariants held here, per unordered student pair:
  - at most one friendship (stored once under the canonical pair);
  - at most one pending request, whichever student sent it;
  - no request while the pair are already friends.
Requests are created pending and resolved exactly once.
"""
import logging

from .core import REQUESTS_SENT, REQUESTS_RESOLVED
from .clients.notifications import NotificationEvent, NullNotifier, deliver
from .clients.schedule import StaticScheduleClient
from .dates import utcnow
from .errors import Conflict, InvalidArgument, NotFound, PreconditionFailed
from .schemas.friendships import Friendship, FriendshipRequest, RequestStatus
from .store import ATTENDED_WITH, FRIENDS_WITH, SENT_REQUEST, STUDENT, canonical_pair

logger = logging.getLogger(__name__)

PENDING = RequestStatus.PENDING.value


def _require_id(value, name: str):
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f'{name} is required', field=name)


class RelationshipRegistry:

    def __init__(self, store, schedule=None, notifier=None):
        self.store = store
        self.schedule = schedule or StaticScheduleClient()
        self.notifier = notifier or NullNotifier()

    async def send_request(self, sender_id: str, receiver_id: str) -> FriendshipRequest:
        _require_id(sender_id, 'sender_id')
        _require_id(receiver_id, 'receiver_id')
        if sender_id == receiver_id:
            raise InvalidArgument('a student cannot send a friend request to themselves', student_id=sender_id)

        if not await self.schedule.are_in_same_cohort(sender_id, receiver_id):
            raise PreconditionFailed('students must be in the same turn to become friends',
                                     sender_id=sender_id, receiver_id=receiver_id)

        low, high = canonical_pair(sender_id, receiver_id)
        async with self.store.transaction() as tx:
            await tx.upsert_node(STUDENT, sender_id)
            await tx.upsert_node(STUDENT, receiver_id)
            # lock any pending request first so a concurrent accept commits before the friendship read
            for a, b in ((sender_id, receiver_id), (receiver_id, sender_id)):
                pending = await tx.read_edge(SENT_REQUEST, lock=True, sender_id=a, receiver_id=b, status=PENDING)
                if pending is not None:
                    raise Conflict('a friend request between these students is already pending',
                                   request_id=pending['id'])
            friendship = await tx.read_edge(FRIENDS_WITH, student1_id=low, student2_id=high)
            if friendship is not None:
                raise Conflict('students are already friends', friendship_id=friendship['id'])
            props = await tx.create_edge(SENT_REQUEST, sender_id, receiver_id, {'status': PENDING})

        request = FriendshipRequest(**props)
        REQUESTS_SENT.inc()
        logger.info({'msg': 'friend_request_sent', 'request_id': request.id,
                     'sender_id': sender_id, 'receiver_id': receiver_id})
        await deliver(self.notifier, NotificationEvent(
            type='friend_request.received',
            recipient_id=receiver_id,
            payload={'request_id': request.id, 'sender_id': sender_id},
        ))
        return request

    async def accept_request(self, request_id: str) -> Friendship:
        """Accept a pending request and create the friendship in the same transaction"""
        async with self.store.transaction() as tx:
            props = await tx.update_edge(
                SENT_REQUEST,
                {'id': request_id, 'status': PENDING},
                {'status': RequestStatus.ACCEPTED.value, 'accepted_at': utcnow()},
            )
            if props is None:
                raise NotFound('no pending friend request with this id', request_id=request_id)
            low, high = canonical_pair(props['sender_id'], props['receiver_id'])
            created = await tx.create_edge(FRIENDS_WITH, low, high, {
                'streak_count': 0,
                'last_attendance_date': None,
            })

        friendship = Friendship(**created)
        REQUESTS_RESOLVED.labels(outcome='accepted').inc()
        logger.info({'msg': 'friend_request_accepted', 'request_id': request_id, 'friendship_id': friendship.id})
        await deliver(self.notifier, NotificationEvent(
            type='friend_request.accepted',
            recipient_id=props['sender_id'],
            payload={'request_id': request_id, 'friendship_id': friendship.id, 'friend_id': props['receiver_id']},
        ))
        return friendship

    async def reject_request(self, request_id: str) -> FriendshipRequest:
        async with self.store.transaction() as tx:
            props = await tx.update_edge(
                SENT_REQUEST,
                {'id': request_id, 'status': PENDING},
                {'status': RequestStatus.REJECTED.value, 'rejected_at': utcnow()},
            )
            if props is None:
                raise NotFound('no pending friend request with this id', request_id=request_id)
        REQUESTS_RESOLVED.labels(outcome='rejected').inc()
        logger.info({'msg': 'friend_request_rejected', 'request_id': request_id})
        return FriendshipRequest(**props)

    async def get_request(self, request_id: str) -> FriendshipRequest | None:
        async with self.store.transaction() as tx:
            props = await tx.read_edge(SENT_REQUEST, id=request_id)
        return FriendshipRequest(**props) if props else None

    async def list_pending_requests(self, student_id: str) -> list[FriendshipRequest]:
        """Pending requests the student has received, oldest first"""
        async with self.store.transaction() as tx:
            rows = await tx.read_edges(SENT_REQUEST, receiver_id=student_id, status=PENDING)
        return [FriendshipRequest(**r) for r in rows]

    async def list_sent_requests(self, student_id: str) -> list[FriendshipRequest]:
        async with self.store.transaction() as tx:
            rows = await tx.read_edges(SENT_REQUEST, sender_id=student_id, status=PENDING)
        return [FriendshipRequest(**r) for r in rows]

    async def list_friends(self, student_id: str) -> list[Friendship]:
        # friendships are rows where (student1 == me) or (student2 == me)
        async with self.store.transaction() as tx:
            rows = await tx.read_edges(FRIENDS_WITH, student1_id=student_id)
            rows += await tx.read_edges(FRIENDS_WITH, student2_id=student_id)
        rows.sort(key=lambda r: (r['created_at'], r['id']))
        return [Friendship(**r) for r in rows]

    async def ranked_friendships(self, limit: int) -> list[Friendship]:
        async with self.store.transaction() as tx:
            rows = await tx.query_ordered(FRIENDS_WITH, 'streak_count', 'desc', limit=limit, tiebreak='id')
        return [Friendship(**r) for r in rows]

    async def get_friendship(self, friendship_id: str | None = None,
                             pair: tuple[str, str] | None = None) -> Friendship | None:
        if (friendship_id is None) == (pair is None):
            raise InvalidArgument('pass exactly one of friendship_id or pair')
        async with self.store.transaction() as tx:
            if friendship_id is not None:
                props = await tx.read_edge(FRIENDS_WITH, id=friendship_id)
            else:
                low, high = canonical_pair(*pair)
                props = await tx.read_edge(FRIENDS_WITH, student1_id=low, student2_id=high)
        return Friendship(**props) if props else None

    async def are_friends(self, student_a: str, student_b: str) -> bool:
        return await self.get_friendship(pair=(student_a, student_b)) is not None

    async def remove_friendship(self, friendship_id: str) -> bool:
        async with self.store.transaction() as tx:
            await tx.delete_edge(ATTENDED_WITH, friendship_id=friendship_id)
            deleted = await tx.delete_edge(FRIENDS_WITH, id=friendship_id)
        if deleted:
            logger.info({'msg': 'friendship_removed', 'friendship_id': friendship_id})
        return deleted > 0
