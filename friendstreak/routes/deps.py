from fastapi import Request

from ..registry import RelationshipRegistry
from ..streaks import StreakEngine
from ..ranking import StreakAggregator


def get_registry(request: Request) -> RelationshipRegistry:
    return request.app.state.registry


def get_engine(request: Request) -> StreakEngine:
    return request.app.state.engine


def get_aggregator(request: Request) -> StreakAggregator:
    return request.app.state.aggregator
