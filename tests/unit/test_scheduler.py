"""
Tests for the announcement scheduler and audio failure handling.

The scheduler is driven through a ManualTimerService; the state is started
by hand so the countdown plays no part here.
"""
import pytest

from kravtrainer.core.constants import MSG_AUDIO_FAILURE, MSG_MULTIPLE_AUDIO_FAILURES
from kravtrainer.core.models import SessionConfig
from kravtrainer.delivery.notifier import Severity
from kravtrainer.session.scheduler import AnnouncementScheduler, AudioFailureCounter
from kravtrainer.session.state import SessionState
from kravtrainer.session.strategies import RoundRobinStrategy


class Harness:
    def __init__(self, timers, audio, notifier, techniques, delay=2):
        self.state = SessionState()
        self.state.begin(600)
        self.escalations = 0
        self.announced = []
        self.config = SessionConfig(duration=10, delay=delay, techniques=techniques)
        self.scheduler = AnnouncementScheduler(
            self.state,
            timers,
            audio,
            notifier,
            strategy_provider=lambda: self.strategy,
            failures=AudioFailureCounter(3),
            on_escalate=self._escalate,
            on_announce=self.announced.append,
        )
        self.strategy = RoundRobinStrategy()
        self.scheduler.begin_session()

    def _escalate(self):
        self.escalations += 1
        self.scheduler.disarm()
        self.state.reset()


@pytest.fixture
def make_harness(timers, notifier, sample_techniques):
    def build(audio, delay=2, techniques=None):
        return Harness(timers, audio, notifier, techniques or sample_techniques, delay)

    return build


class TestAudioFailureCounter:
    def test_threshold(self):
        counter = AudioFailureCounter(3)
        counter.record_failure()
        counter.record_failure()
        assert not counter.threshold_reached
        counter.record_failure()
        assert counter.threshold_reached
        counter.reset()
        assert counter.count == 0


class TestCadence:
    @pytest.mark.asyncio
    async def test_first_announcement_immediate_then_every_delay(self, timers, audio, make_harness):
        h = make_harness(audio, delay=2)
        h.scheduler.arm(h.config, delay=0)

        await timers.run_pending()
        assert h.state.techniques_announced == 1

        await timers.advance(1)
        assert h.state.techniques_announced == 1

        await timers.advance(1)
        assert h.state.techniques_announced == 2

        await timers.advance(4)
        assert h.state.techniques_announced == 4

    @pytest.mark.asyncio
    async def test_announcement_updates_stats_and_listener(self, timers, audio, make_harness):
        h = make_harness(audio)
        h.scheduler.arm(h.config, delay=0)
        await timers.run_pending()

        assert h.state.current_technique.name == "Left Straight Punch"
        assert h.state.stats.total_techniques == 1
        assert [t.name for t in h.announced] == ["Left Straight Punch"]
        assert audio.played == ["left-punch.wav"]

    @pytest.mark.asyncio
    async def test_disarm_cancels_pending_announcement(self, timers, audio, make_harness):
        h = make_harness(audio)
        h.scheduler.arm(h.config, delay=0)
        await timers.run_pending()

        h.scheduler.disarm()
        await timers.advance(30)

        assert h.state.techniques_announced == 1
        assert timers.pending == 0

    @pytest.mark.asyncio
    async def test_not_armed_while_paused(self, timers, audio, make_harness):
        h = make_harness(audio)
        h.state.is_paused = True

        h.scheduler.arm(h.config, delay=0)
        await timers.advance(10)

        assert h.state.techniques_announced == 0

    @pytest.mark.asyncio
    async def test_empty_pool_skips_but_keeps_cadence(self, timers, audio, make_harness, sample_techniques):
        h = make_harness(audio)
        for technique in sample_techniques:
            technique.selected = False

        h.scheduler.arm(h.config, delay=0)
        await timers.advance(4)
        assert h.state.techniques_announced == 0
        assert h.state.current_technique is None

        sample_techniques[0].selected = True
        await timers.advance(2)
        assert h.state.techniques_announced == 1

    @pytest.mark.asyncio
    async def test_rearm_leaves_a_single_loop(self, timers, audio, make_harness):
        h = make_harness(audio, delay=2)
        h.scheduler.arm(h.config, delay=0)
        h.scheduler.arm(h.config, delay=0)
        await timers.run_pending()
        await timers.advance(2)

        assert h.state.techniques_announced == 2


class TestAudioFailures:
    @pytest.mark.asyncio
    async def test_three_failures_in_a_row_escalate(self, timers, audio_factory, notifier, make_harness):
        h = make_harness(audio_factory(default=False), delay=1)
        h.scheduler.arm(h.config, delay=0)

        await timers.advance(10)

        assert h.escalations == 1
        assert h.state.techniques_announced == 3
        assert h.state.is_idle
        errors = notifier.of(Severity.ERROR)
        assert errors[0] == f"{MSG_AUDIO_FAILURE} Left Straight Punch"
        assert errors[-1] == MSG_MULTIPLE_AUDIO_FAILURES
        assert len(errors) == 4

    @pytest.mark.asyncio
    async def test_success_resets_streak(self, timers, audio_factory, make_harness):
        audio = audio_factory(results=[False, False, True, False, False, True], default=True)
        h = make_harness(audio, delay=1)
        h.scheduler.arm(h.config, delay=0)

        await timers.advance(10)

        assert h.escalations == 0
        assert h.state.is_running
        assert h.scheduler.failures.count == 0

    @pytest.mark.asyncio
    async def test_exception_counts_as_failure(self, timers, audio_factory, make_harness):
        audio = audio_factory(results=[RuntimeError("device busy")] * 3)
        h = make_harness(audio, delay=1)
        h.scheduler.arm(h.config, delay=0)

        await timers.advance(5)

        assert h.escalations == 1

    @pytest.mark.asyncio
    async def test_non_true_result_counts_as_failure(self, timers, audio_factory, make_harness):
        audio = audio_factory(results=[None, "ok", 1], default=True)
        h = make_harness(audio, delay=1)
        h.scheduler.arm(h.config, delay=0)

        await timers.advance(5)

        assert h.escalations == 1

    @pytest.mark.asyncio
    async def test_result_after_new_session_is_ignored(self, timers, audio_factory, notifier, make_harness):
        audio = audio_factory(default=False)
        h = make_harness(audio, delay=1)
        h.scheduler.arm(h.config, delay=0)

        # A new session begins while the first playback is in flight
        original_play = audio.play

        async def play_then_restart(file_id):
            result = await original_play(file_id)
            h.scheduler.begin_session()
            return result

        audio.play = play_then_restart
        await timers.run_pending()

        assert h.scheduler.failures.count == 0
        assert notifier.of(Severity.ERROR) == []
