"""
Typed failures raised by the quiz core.
Route handlers never build error bodies themselves; the handlers registered
in main.py turn these into {"message": ...} responses.
"""

import functools
import logging

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class QuizError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailure(QuizError):
    status_code = 400


class NotFound(QuizError):
    status_code = 404


class SubmissionWindowClosed(QuizError):
    status_code = 403


class StorageFailure(QuizError):
    status_code = 500

    def __init__(self, message: str = "Storage failure, please retry"):
        super().__init__(message)


def translate_storage_errors(func):
    """Re-raise driver errors escaping a data-access coroutine as StorageFailure"""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyMongoError as exc:
            logger.exception("Storage operation %s failed", func.__name__)
            raise StorageFailure() from exc

    return wrapper
