from fastapi import APIRouter, Depends, HTTPException

from ..schemas.friendships import ActionOkOut, FriendOverview, Friendship, FriendRequestIn, FriendshipRequest
from .deps import get_aggregator, get_registry

router = APIRouter()


@router.post('/requests', response_model=FriendshipRequest)
async def send_request(payload: FriendRequestIn, registry=Depends(get_registry)):
    return await registry.send_request(payload.sender_id, payload.receiver_id)


@router.post('/requests/{request_id}/accept', response_model=Friendship)
async def accept_request(request_id: str, registry=Depends(get_registry)):
    return await registry.accept_request(request_id)


@router.post('/requests/{request_id}/reject', response_model=FriendshipRequest)
async def reject_request(request_id: str, registry=Depends(get_registry)):
    return await registry.reject_request(request_id)


@router.get('/requests/{request_id}', response_model=FriendshipRequest)
async def get_request(request_id: str, registry=Depends(get_registry)):
    request = await registry.get_request(request_id)
    if not request:
        raise HTTPException(404, 'Friend request not found')
    return request


@router.get('/students/{student_id}/requests/pending', response_model=list[FriendshipRequest])
async def pending_requests(student_id: str, registry=Depends(get_registry)):
    return await registry.list_pending_requests(student_id)


@router.get('/students/{student_id}/requests/sent', response_model=list[FriendshipRequest])
async def sent_requests(student_id: str, registry=Depends(get_registry)):
    return await registry.list_sent_requests(student_id)


@router.get('/students/{student_id}/friends', response_model=list[Friendship])
async def list_friends(student_id: str, registry=Depends(get_registry)):
    return await registry.list_friends(student_id)


@router.get('/students/{student_id}/friends/overview', response_model=list[FriendOverview])
async def friends_overview(student_id: str, aggregator=Depends(get_aggregator)):
    return await aggregator.friends_overview(student_id)


@router.get('/friendships/between/{student_a}/{student_b}', response_model=Friendship)
async def friendship_between(student_a: str, student_b: str, registry=Depends(get_registry)):
    friendship = await registry.get_friendship(pair=(student_a, student_b))
    if not friendship:
        raise HTTPException(404, 'Friendship not found')
    return friendship


@router.get('/friendships/{friendship_id}', response_model=Friendship)
async def get_friendship(friendship_id: str, registry=Depends(get_registry)):
    friendship = await registry.get_friendship(friendship_id=friendship_id)
    if not friendship:
        raise HTTPException(404, 'Friendship not found')
    return friendship


@router.delete('/friendships/{friendship_id}', response_model=ActionOkOut)
async def remove_friendship(friendship_id: str, registry=Depends(get_registry)):
    if not await registry.remove_friendship(friendship_id):
        raise HTTPException(404, 'Friendship not found')
    return {'ok': True}
