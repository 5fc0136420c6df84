"""
Repository Helpers
"""

import contextlib
import logging
from functools import wraps
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import StorageError


logger = logging.getLogger(__name__)

T = TypeVar("T")


def storage_errors(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Turn driver/ORM failures into a generic StorageError.

    OSError covers the driver failing to reach the database at all.

    The original exception is logged and chained but never surfaces in the
    message handed to callers.
    """

    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except (SQLAlchemyError, OSError) as e:
            logger.exception("%s.%s failed", type(self).__name__, func.__name__)
            with contextlib.suppress(SQLAlchemyError, OSError):
                await self.db.rollback()
            raise StorageError() from e

    return wrapper
