"""Tests for audio players and notification sinks."""
import asyncio
import sys
from pathlib import Path

import pytest
from rich.console import Console

from kravtrainer.delivery.audio import CommandAudioPlayer, SilentAudioPlayer
from kravtrainer.delivery.notifier import (
    ConsoleNotifier,
    RecordingNotifier,
    Severity,
    notify_safely,
)


class TestSilentAudioPlayer:
    @pytest.mark.asyncio
    async def test_always_succeeds(self):
        player = SilentAudioPlayer()
        assert await player.play("jab.wav") is True
        assert player.played == ["jab.wav"]

    def test_volume_clamped(self):
        player = SilentAudioPlayer()
        player.set_volume(130)
        assert player.volume == 100


class TestCommandAudioPlayer:
    def test_file_appended_without_placeholder(self, tmp_path):
        player = CommandAudioPlayer(tmp_path, command="aplay -q")
        assert player.build_argv(Path("/a/jab.wav")) == ["aplay", "-q", "/a/jab.wav"]

    def test_placeholders(self, tmp_path):
        player = CommandAudioPlayer(tmp_path, command="ffplay -volume {volume} -i {file}", volume=40)
        assert player.build_argv(Path("/a/jab.wav")) == ["ffplay", "-volume", "40", "-i", "/a/jab.wav"]

    @pytest.mark.asyncio
    async def test_missing_file_fails(self, tmp_path):
        player = CommandAudioPlayer(tmp_path, command=f"{sys.executable} -c pass")
        assert await player.play("missing.wav") is False

    @pytest.mark.asyncio
    async def test_missing_command_fails(self, tmp_path):
        (tmp_path / "jab.wav").write_bytes(b"RIFF")
        player = CommandAudioPlayer(tmp_path, command="definitely-not-a-player-xyz")
        assert await player.play("jab.wav") is False

    @pytest.mark.asyncio
    async def test_exit_status_decides(self, tmp_path):
        (tmp_path / "jab.wav").write_bytes(b"RIFF")
        ok = CommandAudioPlayer(tmp_path, command=f'"{sys.executable}" -c "import sys; sys.exit(0)"')
        bad = CommandAudioPlayer(tmp_path, command=f'"{sys.executable}" -c "import sys; sys.exit(3)"')

        assert await ok.play("jab.wav") is True
        assert await bad.play("jab.wav") is False

    @pytest.mark.asyncio
    async def test_timeout_fails(self, tmp_path):
        (tmp_path / "jab.wav").write_bytes(b"RIFF")
        player = CommandAudioPlayer(
            tmp_path,
            command=f'"{sys.executable}" -c "import time; time.sleep(5)"',
            timeout=0.2,
        )
        assert await player.play("jab.wav") is False

    @pytest.mark.asyncio
    async def test_cancelled_playback_kills_player(self, tmp_path, monkeypatch):
        (tmp_path / "jab.wav").write_bytes(b"RIFF")
        spawned = []
        real_exec = asyncio.create_subprocess_exec

        async def tracking_exec(*args, **kwargs):
            process = await real_exec(*args, **kwargs)
            spawned.append(process)
            return process

        monkeypatch.setattr(asyncio, "create_subprocess_exec", tracking_exec)
        player = CommandAudioPlayer(
            tmp_path,
            command=f'"{sys.executable}" -c "import time; time.sleep(30)"',
        )

        task = asyncio.create_task(player.play("jab.wav"))
        while not spawned:
            await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        code = await asyncio.wait_for(spawned[0].wait(), timeout=5)
        assert code != 0


class TestNotifiers:
    def test_recording_notifier_filters_by_severity(self):
        notifier = RecordingNotifier()
        notifier.notify("a", Severity.INFO)
        notifier.notify("b", Severity.ERROR)

        assert notifier.of(Severity.ERROR) == ["b"]
        assert notifier.messages == [("a", Severity.INFO), ("b", Severity.ERROR)]

    def test_console_notifier_prints(self):
        console = Console(record=True, width=80)
        ConsoleNotifier(console).notify("Session restored", Severity.INFO)
        assert "Session restored" in console.export_text()

    def test_failing_sink_is_contained(self):
        class Broken:
            def notify(self, message, severity):
                raise RuntimeError("sink down")

        notify_safely(Broken(), "hello", Severity.WARNING)
