"""
Handles the low-level downloading of package files over HTTP.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles
from rich.progress import Progress, TaskID

from msstore_dl.api.transport import HttpTransport
from msstore_dl.exceptions import NetworkError

log = logging.getLogger(__name__)


class Downloader:
    """Streams a URL to a file, optionally reporting to a Rich Progress."""

    CHUNK_SIZE = 262144  # 256 KB

    def __init__(self, transport: HttpTransport, progress: Optional[Progress] = None):
        self._transport = transport
        self._progress = progress

    async def download(self, url: str, destination_path: Path) -> int:
        """
        Downloads `url` to `destination_path`, replacing any existing file.

        Returns:
            The number of bytes written.

        Raises:
            NetworkError: On transport failure, timeout or a failed write. The
                partial file is removed.
        """
        task_id: Optional[TaskID] = None
        bytes_downloaded = 0
        try:
            async with self._transport.stream(url) as response:
                if self._progress is not None:
                    task_id = self._progress.add_task(
                        destination_path.name, total=response.content_length
                    )
                async with aiofiles.open(destination_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)
                        bytes_downloaded += len(chunk)
                        if task_id is not None:
                            self._progress.update(task_id, advance=len(chunk))
        except OSError as e:
            await self._discard(destination_path)
            raise NetworkError(f"Could not write '{destination_path}': {e}") from e
        except (NetworkError, asyncio.CancelledError):
            await self._discard(destination_path)
            raise
        finally:
            if task_id is not None:
                self._progress.remove_task(task_id)

        log.debug(f"Wrote {bytes_downloaded} bytes to '{destination_path}'")
        return bytes_downloaded

    @staticmethod
    async def _discard(path: Path) -> None:
        exists = await asyncio.to_thread(os.path.isfile, path)
        if exists:
            await asyncio.to_thread(os.remove, path)
            log.debug(f"Removed partial file '{os.path.basename(path)}'")
