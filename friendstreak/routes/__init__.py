from fastapi import APIRouter
from .friendships import router as friendships_router
from .streaks import router as streaks_router

router = APIRouter()
router.include_router(friendships_router, tags=['friendships'])
router.include_router(streaks_router, tags=['streaks'])
