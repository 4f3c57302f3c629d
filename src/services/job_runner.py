"""
Job runner: download -> relay -> notify -> cleanup, detached from the request.

The HTTP layer calls ``submit`` and answers 202 right away; the job runs
as a tracked background task. At most ``max_concurrent_jobs`` jobs run at
once, the rest wait for a slot. Jobs share no mutable state.
"""

import asyncio
import logging
from typing import Optional, Set

from ..domain.artifacts import DownloadedArtifact, JobContext
from ..domain.errors import DownloadFailed, RelayError
from ..domain.ports import Downloader, Notifier
from ..utils.files import remove_file_quietly
from ..utils.logging import RequestContext
from ..utils.task_tracker import create_tracked_task
from .chunked_relay import DEFAULT_MAX_PART_SIZE, ChunkedRelay

logger = logging.getLogger(__name__)

JOB_TASK_PREFIX = "relay-job"
DEFAULT_DOWNLOAD_TIMEOUT = 1800.0  # 30 minutes
DEFAULT_MAX_CONCURRENT_JOBS = 4


def format_queued() -> str:
    return "⏳ Waiting for a free slot..."


def format_download_started(platform: str) -> str:
    return f"🔄 Downloading from {platform}..."


def format_upload_started() -> str:
    return "📤 Uploading..."


def format_success() -> str:
    return "✅ File uploaded successfully!"


def format_failure(error: BaseException) -> str:
    return f"❌ Processing failed:\n{str(error) or type(error).__name__}"


class JobRunner:
    """Runs relay jobs as detached, slot-limited background tasks."""

    def __init__(
        self,
        downloader: Downloader,
        relay: ChunkedRelay,
        notifier: Notifier,
        max_part_size: int = DEFAULT_MAX_PART_SIZE,
        download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS,
    ) -> None:
        if max_concurrent_jobs <= 0:
            raise ValueError("max_concurrent_jobs must be positive")
        self._downloader = downloader
        self._relay = relay
        self._notifier = notifier
        self.max_part_size = max_part_size
        self.download_timeout = download_timeout
        self.max_concurrent_jobs = max_concurrent_jobs
        self._slots = asyncio.Semaphore(max_concurrent_jobs)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active_jobs(self) -> int:
        """Jobs submitted and not yet finished (running or waiting for a slot)."""
        return len(self._tasks)

    def submit(self, context: JobContext) -> asyncio.Task:
        """Start ``context`` as a background job and return immediately."""
        task = create_tracked_task(
            self.run(context), name=f"{JOB_TASK_PREFIX}-{context.job_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(
            f"Job {context.job_id} accepted: {context.platform} URL "
            f"for user {context.user_id} -> chat {context.chat_id}"
        )
        return task

    async def run(self, context: JobContext) -> bool:
        """Run one job to completion. Returns True on success."""
        RequestContext.set(job_id=context.job_id)
        if self._slots.locked():
            await self._notify(context.chat_id, format_queued())
        async with self._slots:
            return await self._run_job(context)

    async def _run_job(self, context: JobContext) -> bool:
        artifact: Optional[DownloadedArtifact] = None
        try:
            await self._notify(
                context.chat_id, format_download_started(context.platform)
            )
            artifact = await self._download(context)

            await self._notify(context.chat_id, format_upload_started())
            outcome = await self._relay.relay(
                artifact,
                context.chat_id,
                context.source_url,
                self.max_part_size,
                backup_channel_id=context.backup_channel_id,
            )

            await self._notify(context.chat_id, format_success())
            logger.info(
                f"Job {context.job_id} done: {outcome.part_count} part(s) delivered"
            )
            return True

        except RelayError as e:
            logger.error(f"Job {context.job_id} failed: {e}")
            await self._notify(context.chat_id, format_failure(e))
            return False
        except Exception as e:
            logger.error(f"Job {context.job_id} crashed: {e}", exc_info=True)
            await self._notify(context.chat_id, format_failure(e))
            return False
        finally:
            if artifact is not None:
                remove_file_quietly(artifact.path)

    async def _download(self, context: JobContext) -> DownloadedArtifact:
        try:
            return await asyncio.wait_for(
                self._downloader.download(context.source_url, context.custom_name),
                timeout=self.download_timeout,
            )
        except asyncio.TimeoutError as e:
            raise DownloadFailed(
                f"Download timed out after {self.download_timeout:.0f}s"
            ) from e

    async def _notify(self, destination: int, text: str) -> None:
        try:
            await self._notifier.notify(destination, text)
        except Exception as e:
            logger.warning(f"Notification to {destination} failed: {e}")
