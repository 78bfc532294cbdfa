from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from pythonjsonlogger import jsonlogger

from . import core
from .routes import router
from .errors import Conflict, FriendStreakError, InvalidArgument, NotFound, PreconditionFailed, StoreUnavailable
from .store import MemoryGraphStore, SqlGraphStore
from .clients import (
    HttpNotifier,
    HttpProfileClient,
    HttpScheduleClient,
    KafkaNotifier,
    NullNotifier,
    PlaceholderProfileClient,
    StaticScheduleClient,
)
from .registry import RelationshipRegistry
from .streaks import StreakEngine
from .ranking import StreakAggregator

# setup structured logging
logger = logging.getLogger('friendstreak')
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(core.LOG_LEVEL)

ERROR_STATUS = {
    InvalidArgument: 400,
    NotFound: 404,
    Conflict: 409,
    PreconditionFailed: 412,
    StoreUnavailable: 503,
}


def build_store():
    if core.STORE_BACKEND == 'memory':
        return MemoryGraphStore()
    return SqlGraphStore(core.DATABASE_URL)


def build_schedule():
    if core.TURNS_MANAGEMENT_URL:
        return HttpScheduleClient(core.TURNS_MANAGEMENT_URL, timeout=core.HTTP_TIMEOUT_SECONDS)
    return StaticScheduleClient()


def build_notifier():
    if core.NOTIFIER == 'kafka':
        return KafkaNotifier(core.KAFKA_BOOTSTRAP_SERVERS, core.NOTIFICATIONS_TOPIC)
    if core.NOTIFIER == 'http' and core.NOTIFICATIONS_API_URL:
        return HttpNotifier(core.NOTIFICATIONS_API_URL, timeout=core.HTTP_TIMEOUT_SECONDS)
    return NullNotifier()


def build_profiles():
    if core.USERS_API_URL:
        return HttpProfileClient(core.USERS_API_URL, timeout=core.HTTP_TIMEOUT_SECONDS)
    return PlaceholderProfileClient()


def create_app(store=None, schedule=None, notifier=None, profiles=None) -> FastAPI:
    store = store or build_store()
    schedule = schedule or build_schedule()
    notifier = notifier or build_notifier()
    profiles = profiles or build_profiles()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Best-effort init, don't block app from starting if a dependency fails
        try:
            await store.create_schema()
        except Exception as e:
            logger.warning({'msg': 'schema_init_failed', 'error': str(e)})
        try:
            await notifier.start()
        except Exception as e:
            logger.warning({'msg': 'notifier_start_failed', 'error': str(e)})
        core.init_metrics()
        yield
        await notifier.stop()
        await schedule.close()
        await profiles.close()
        await store.close()

    app = FastAPI(title="FriendStreak API", version="0.1.0", lifespan=lifespan)

    app.state.registry = RelationshipRegistry(store, schedule=schedule, notifier=notifier)
    app.state.engine = StreakEngine(store, notifier=notifier)
    app.state.aggregator = StreakAggregator(
        app.state.registry, app.state.engine,
        profiles=profiles, schedule=schedule,
        lookup_timeout=core.LOOKUP_TIMEOUT_SECONDS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=['*'],
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    app.include_router(router, prefix="/api/streak")

    @app.get('/healthz')
    async def healthz():
        return {'status': 'ok'}

    @app.exception_handler(FriendStreakError)
    async def handle_core_error(request: Request, exc: FriendStreakError):
        status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
        return JSONResponse(
            status_code=status,
            content={'error': exc.code, 'detail': exc.message, **exc.details},
        )

    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        logger.info({'msg': 'request_start', 'method': request.method, 'path': request.url.path})
        response = await call_next(request)
        logger.info({'msg': 'request_end', 'status': response.status_code})
        return response

    return app


app = create_app()
