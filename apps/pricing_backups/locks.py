"""
Named lock serializing backup creation, restoration and deletion.

All of these read or write the same live configuration stores or the backup
table, so only one may run at a time. The lock lives in the default cache
(Redis) and expires on its own if a worker dies while holding it. The stored
value names the operation holding the lock so that waiting callers can tell
what they are waiting on.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Optional

from django.conf import settings
from django.core.cache import cache

from .exceptions import OperationInProgressError

logger = logging.getLogger(__name__)

BACKUP_OPERATION_LOCK = "pricing_backups:operation:lock"
LOCK_POLL_INTERVAL = 0.5


def automatic_backup_operation(change_day: str) -> str:
    return f"auto_backup:{change_day}"


def manual_backup_operation(change_day: str) -> str:
    return f"manual_backup:{change_day}"


def restore_operation(change_day_id: str) -> str:
    return f"restore:{change_day_id}"


def get_lock_wait_timeout() -> float:
    """Seconds a backup, deletion or retention run waits for a busy lock."""
    return getattr(settings, "PRICING_BACKUP_LOCK_WAIT_TIMEOUT", 30)


@contextmanager
def backup_operation_lock(
    operation: str = "operation",
    wait_timeout: float = 0,
    name: str = BACKUP_OPERATION_LOCK,
    timeout: Optional[int] = None,
):
    """
    Hold the named backup operation lock for the duration of the block.

    Args:
        operation: Label of the operation taking the lock
        wait_timeout: Seconds to wait for a busy lock (0 fails immediately)
        name: Cache key of the lock
        timeout: Lock expiry in seconds (defaults to PRICING_BACKUP_LOCK_TIMEOUT)

    Raises:
        OperationInProgressError: If the lock is still held after wait_timeout
    """
    if timeout is None:
        timeout = getattr(settings, "PRICING_BACKUP_LOCK_TIMEOUT", 1800)

    token = f"{operation}|{uuid.uuid4().hex}"
    deadline = time.monotonic() + wait_timeout

    while not cache.add(name, token, timeout):
        if time.monotonic() >= deadline:
            holder = get_lock_holder(name)
            raise OperationInProgressError(
                f"Another pricing backup or restore operation is in progress ({holder or 'unknown'})",
                holder=holder,
            )
        time.sleep(LOCK_POLL_INTERVAL)

    logger.debug(f"Acquired backup operation lock {name} for {operation}")

    try:
        yield token
    finally:
        try:
            if cache.get(name) == token:
                cache.delete(name)
                logger.debug(f"Released backup operation lock {name}")
        except Exception as lock_error:
            logger.warning(f"Failed to release backup operation lock: {lock_error}")


def get_lock_holder(name: str = BACKUP_OPERATION_LOCK) -> Optional[str]:
    """Return the label of the operation holding the lock, if any."""
    value = cache.get(name)
    if value is None:
        return None
    return str(value).split("|", 1)[0]


def is_operation_in_progress(name: str = BACKUP_OPERATION_LOCK) -> bool:
    return cache.get(name) is not None
