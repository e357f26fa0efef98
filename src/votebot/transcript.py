"""Per-channel transcripts of the raw lines received from the server."""

import logging
import os
from pathlib import Path

import aiofiles

logger = logging.getLogger(__name__)

DIRECTORY_MODE = 0o750
FILE_MODE = 0o640


def _owner_group_opener(path, flags):
    return os.open(path, flags, FILE_MODE)


class TranscriptSink:
    """Appends received lines to ``<directory>/log_<name>``.

    Failures are logged and otherwise ignored; a transcript never stops
    the bot.
    """

    def __init__(self, directory: str = "irc", enabled: bool = True):
        self.directory = Path(directory)
        self.enabled = enabled
        self._files = {}

    def path_for(self, name: str) -> Path:
        return self.directory / f"log_{name}"

    async def _open(self, name: str):
        handle = self._files.get(name)
        if handle is not None:
            return handle

        self.directory.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
        handle = await aiofiles.open(
            self.path_for(name),
            "a",
            encoding="utf-8",
            opener=_owner_group_opener,
        )
        self._files[name] = handle
        return handle

    async def append(self, name: str, line: str) -> None:
        if not self.enabled:
            return
        try:
            handle = await self._open(name)
            await handle.write(line + "\n")
            await handle.flush()
        except OSError as e:
            logger.error("error writing transcript for %s: %s", name, e)

    async def close(self) -> None:
        files, self._files = self._files, {}
        for name, handle in files.items():
            try:
                await handle.close()
            except OSError as e:
                logger.error("error closing transcript for %s: %s", name, e)
