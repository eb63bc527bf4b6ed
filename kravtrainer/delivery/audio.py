"""
Audio players.

The engine only needs ``await play(file_id) -> bool``; anything other than
``True`` (including an exception) counts as a failed playback.

- SilentAudioPlayer: always succeeds, for terminals without sound
- CommandAudioPlayer: plays files from an audio directory with an external
  command (aplay, afplay, ffplay, ...)
"""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path
from typing import Protocol

from loguru import logger

from kravtrainer.core.constants import DEFAULT_VOLUME, MAX_VOLUME, MIN_VOLUME


class AudioPlayer(Protocol):
    async def play(self, file_id: str) -> bool: ...

    def set_volume(self, volume: int) -> None: ...


class SilentAudioPlayer:
    """Accepts every playback without producing sound."""

    def __init__(self, volume: int = DEFAULT_VOLUME):
        self.volume = volume
        self.played: list[str] = []

    async def play(self, file_id: str) -> bool:
        self.played.append(file_id)
        return True

    def set_volume(self, volume: int) -> None:
        self.volume = max(MIN_VOLUME, min(MAX_VOLUME, volume))


class CommandAudioPlayer:
    """
    Play audio files through an external command.

    ``command`` may contain ``{file}`` and ``{volume}`` placeholders; without
    ``{file}`` the file path is appended as the last argument. Example:
    ``"ffplay -nodisp -autoexit -loglevel quiet -volume {volume}"``.
    """

    def __init__(
        self,
        audio_dir: Path,
        command: str = "aplay -q",
        volume: int = DEFAULT_VOLUME,
        timeout: float = 10.0,
    ):
        self.audio_dir = Path(audio_dir)
        self.command = command
        self.volume = volume
        self.timeout = timeout

    def set_volume(self, volume: int) -> None:
        self.volume = max(MIN_VOLUME, min(MAX_VOLUME, volume))

    def resolve(self, file_id: str) -> Path:
        return self.audio_dir / file_id

    def build_argv(self, path: Path) -> list[str]:
        argv = [
            part.format(file=str(path), volume=self.volume)
            for part in shlex.split(self.command)
        ]
        if "{file}" not in self.command:
            argv.append(str(path))
        return argv

    async def play(self, file_id: str) -> bool:
        path = self.resolve(file_id)
        if not path.is_file():
            logger.warning(f"Audio file not found: {path}")
            return False

        argv = self.build_argv(path)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except (FileNotFoundError, PermissionError) as e:
            logger.warning(f"Audio command unavailable ({argv[0]}): {e}")
            return False

        try:
            code = await asyncio.wait_for(process.wait(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._kill(process)
            await process.wait()
            logger.warning(f"Audio playback timed out after {self.timeout}s: {path.name}")
            return False
        except asyncio.CancelledError:
            self._kill(process)
            raise

        if code != 0:
            logger.warning(f"Audio command exited with {code} for {path.name}")
            return False
        return True

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
