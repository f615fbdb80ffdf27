"""
wa_gateway/services/cleanup.py

Purpose: Delete a user's persisted engine session

- Runs detached; the caller never waits on it
- Retries while the engine's own teardown still holds file locks
- Gives up (leaving the folder) on other errors or after the budget
"""

import asyncio
import errno
import shutil
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from wa_gateway.core.config import settings
from wa_gateway.core.logging import get_logger
from wa_gateway.utils.validation_utils import session_dir_name

logger = get_logger(__name__)

# Raised while a browser process is still releasing its profile
BUSY_ERRNOS = frozenset({errno.EBUSY, errno.EPERM, errno.EACCES, errno.ENOTEMPTY})


def _remove_tree(path: Path) -> None:
    shutil.rmtree(path)


class SessionCleanupWorker:
    """
    Removes `<sessions_dir>/user-<id>` with bounded retry.
    At most one removal loop per user is in flight.
    """

    def __init__(
        self,
        sessions_dir: Optional[Path] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        remove: Callable[[Path], None] = _remove_tree,
    ):
        self.sessions_dir = Path(sessions_dir or settings.SESSIONS_DIR)
        self.max_retries = settings.CLEANUP_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = settings.CLEANUP_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._sleep = sleep
        self._remove = remove
        self._tasks: Dict[str, asyncio.Task] = {}

    def session_path(self, user_id: str) -> Path:
        return self.sessions_dir / session_dir_name(user_id)

    def schedule(self, user_id: str) -> asyncio.Task:
        """
        Starts a removal loop for the user, or returns the one in flight.
        """
        task = self._tasks.get(user_id)
        if task is not None and not task.done():
            logger.debug(f"Cleanup already running for user {user_id}", extra={"user_id": user_id})
            return task

        task = asyncio.create_task(self.cleanup(user_id), name=f"cleanup-{user_id}")
        self._tasks[user_id] = task
        task.add_done_callback(lambda t, uid=user_id: self._forget(uid, t))
        return task

    def _forget(self, user_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(user_id) is task:
            del self._tasks[user_id]

    def is_pending(self, user_id: str) -> bool:
        task = self._tasks.get(user_id)
        return task is not None and not task.done()

    async def wait(self, user_id: str) -> None:
        """Blocks until the user's removal loop (if any) has finished."""
        task = self._tasks.get(user_id)
        if task is not None and not task.done():
            await asyncio.shield(task)

    async def cleanup(self, user_id: str) -> bool:
        """
        Removes the user's session folder.

        Returns:
            True once the folder is gone, False if it was left in place
        """
        path = self.session_path(user_id)
        attempt = 0

        while True:
            attempt += 1
            try:
                await asyncio.to_thread(self._remove, path)
            except FileNotFoundError:
                pass
            except OSError as e:
                if e.errno not in BUSY_ERRNOS:
                    logger.error(
                        f"Failed to delete session folder for user {user_id}: {e}",
                        extra={"user_id": user_id, "attempt": attempt}
                    )
                    return False
                if attempt > self.max_retries:
                    logger.error(
                        f"Session folder for user {user_id} still locked after {attempt} attempts: {path}",
                        extra={"user_id": user_id, "attempt": attempt}
                    )
                    return False
                logger.warning(
                    f"Session folder for user {user_id} still locked. Retrying in {self.retry_delay}s...",
                    extra={"user_id": user_id, "attempt": attempt}
                )
                await self._sleep(self.retry_delay)
                continue

            # rmtree can report success while a file handle keeps an entry alive
            if not path.exists():
                logger.info(f"Deleted session folder for user {user_id}", extra={"user_id": user_id})
                return True

            if attempt > self.max_retries:
                logger.error(
                    f"Could not delete folder after multiple attempts: {path}",
                    extra={"user_id": user_id, "attempt": attempt}
                )
                return False
            logger.warning(
                f"Folder still exists after deletion for user {user_id}. Retrying...",
                extra={"user_id": user_id, "attempt": attempt}
            )
            await self._sleep(self.retry_delay)

    async def shutdown(self):
        """Cancels outstanding removal loops (process exit)."""
        tasks = [t for t in self._tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
