"""
tests/test_cleanup.py — Session folder removal with bounded retry
"""

import asyncio
import errno

import pytest

from conftest import busy_error
from wa_gateway.services.cleanup import SessionCleanupWorker


def make_worker(tmp_path, remove=None, sleeps=None):
    async def sleep(delay):
        if sleeps is not None:
            sleeps.append(delay)
        await asyncio.sleep(0)

    kwargs = {"remove": remove} if remove else {}
    return SessionCleanupWorker(sessions_dir=tmp_path, max_retries=5, retry_delay=2.0, sleep=sleep, **kwargs)


@pytest.mark.asyncio
async def test_removes_existing_session_folder(tmp_path):
    folder = tmp_path / "user-42"
    (folder / "Default").mkdir(parents=True)
    (folder / "Default" / "Cookies").write_text("x")

    worker = make_worker(tmp_path)
    assert await worker.cleanup("42") is True
    assert not folder.exists()


@pytest.mark.asyncio
async def test_missing_folder_counts_as_removed(tmp_path):
    worker = make_worker(tmp_path)
    assert await worker.cleanup("nobody") is True


@pytest.mark.asyncio
async def test_always_busy_gives_up_after_five_retries(tmp_path):
    attempts = []
    sleeps = []

    def remove(path):
        attempts.append(path)
        raise busy_error()

    worker = make_worker(tmp_path, remove=remove, sleeps=sleeps)
    assert await worker.cleanup("42") is False
    assert len(attempts) == 6
    assert sleeps == [2.0] * 5
    assert attempts[0] == tmp_path / "user-42"


@pytest.mark.asyncio
async def test_busy_then_success(tmp_path):
    calls = []

    def remove(path):
        calls.append(path)
        if len(calls) < 3:
            raise OSError(errno.EPERM, "Operation not permitted")

    worker = make_worker(tmp_path, remove=remove)
    assert await worker.cleanup("42") is True
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_other_errors_are_terminal(tmp_path):
    calls = []

    def remove(path):
        calls.append(path)
        raise OSError(errno.EROFS, "Read-only file system")

    worker = make_worker(tmp_path, remove=remove)
    assert await worker.cleanup("42") is False
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_folder_still_present_after_remove_is_retried(tmp_path):
    folder = tmp_path / "user-42"
    folder.mkdir()
    calls = []

    def remove(path):
        calls.append(path)
        # Pretend success but leave the folder until the third try
        if len(calls) == 3:
            path.rmdir()

    worker = make_worker(tmp_path, remove=remove)
    assert await worker.cleanup("42") is True
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_folder_that_never_goes_away_shares_the_retry_budget(tmp_path):
    (tmp_path / "user-42").mkdir()
    calls = []

    def remove(path):
        calls.append(path)
        if len(calls) % 2:
            raise busy_error()

    worker = make_worker(tmp_path, remove=remove)
    assert await worker.cleanup("42") is False
    assert len(calls) == 6


@pytest.mark.asyncio
async def test_schedule_runs_detached_and_dedupes(tmp_path):
    release = asyncio.Event()

    async def gated_sleep(_delay):
        await release.wait()

    calls = []

    def remove(path):
        calls.append(path)
        if len(calls) == 1:
            raise busy_error()

    worker = SessionCleanupWorker(sessions_dir=tmp_path, sleep=gated_sleep, remove=remove)
    first = worker.schedule("42")
    second = worker.schedule("42")
    assert first is second

    await asyncio.sleep(0.05)
    assert worker.is_pending("42")

    release.set()
    assert await first is True
    await asyncio.sleep(0)
    assert not worker.is_pending("42")


@pytest.mark.asyncio
async def test_shutdown_cancels_pending_loops(tmp_path):
    async def forever(_delay):
        await asyncio.Event().wait()

    def remove(path):
        raise busy_error()

    worker = SessionCleanupWorker(sessions_dir=tmp_path, sleep=forever, remove=remove)
    task = worker.schedule("42")
    await asyncio.sleep(0.05)

    await worker.shutdown()
    assert task.cancelled()
    assert not worker.is_pending("42")
