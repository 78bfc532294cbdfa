"""
Error taxonomy shared by the registry, the streak engine and the aggregator.

The HTTP layer maps these onto status codes; the core only raises them.
"""


class FriendStreakError(Exception):
    """Base class for every error raised by the core"""

    code = 'error'

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidArgument(FriendStreakError):
    code = 'invalid_argument'


class Conflict(FriendStreakError):
    code = 'conflict'


class NotFound(FriendStreakError):
    code = 'not_found'


class PreconditionFailed(FriendStreakError):
    code = 'precondition_failed'


class StoreUnavailable(FriendStreakError):
    code = 'store_unavailable'


class ExternalServiceUnavailable(StoreUnavailable):
    """A collaborator service could not be reached"""

    code = 'external_service_unavailable'
