"""Filesystem operations on the destination directory, optionally via sudo."""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from setapp_cli.errors import FilesystemError

logger = logging.getLogger(__name__)


class Filesystem(Protocol):
    async def make_dirs(self, path: Path) -> None: ...

    async def move(self, src: Path, dst: Path) -> None: ...

    async def remove(self, path: Path) -> None: ...


class ShellFilesystem:
    """Runs mkdir/mv/rm as subprocesses.

    Directory creation and moves go through sudo when ``use_sudo`` is set,
    since /Applications is usually not user-writable. Removal is only used
    on our own temporary files and never escalates.
    """

    def __init__(self, use_sudo: bool = True):
        self.use_sudo = use_sudo

    async def _run(self, *args: str, privileged: bool = False) -> None:
        command = ["sudo", *args] if privileged and self.use_sudo else list(args)
        logger.debug(f"Running {' '.join(command)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise FilesystemError(command, None, str(e)) from e
        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise FilesystemError(command, proc.returncode, stderr.decode(errors="replace"))

    async def make_dirs(self, path: Path) -> None:
        await self._run("mkdir", "-p", str(path), privileged=True)

    async def move(self, src: Path, dst: Path) -> None:
        await self._run("mv", str(src), str(dst), privileged=True)

    async def remove(self, path: Path) -> None:
        await self._run("rm", "-rf", str(path))
