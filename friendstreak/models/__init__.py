from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def create_session_factory(database_url: str, **engine_options):
    engine = create_async_engine(database_url, future=True, echo=False, **engine_options)
    return engine, sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Import models to register tables
from .students import Student  # noqa: F401,E402
from .friend_requests import FriendRequest  # noqa: F401,E402
from .friendships import Friendship  # noqa: F401,E402
from .attendance import AttendanceEvent  # noqa: F401,E402
