"""Tests for session snapshots and the restore window."""
import pytest
from pydantic import ValidationError

from kravtrainer.core.constants import SESSION_STATE_KEY
from kravtrainer.core.models import Technique, TechniqueCategory
from kravtrainer.session.persistence import SessionPersistence, SessionSnapshot
from kravtrainer.session.state import SessionState


@pytest.fixture
def persistence(store, clock):
    return SessionPersistence(store, clock=clock, restore_window_seconds=300)


def running_state():
    state = SessionState()
    state.begin(300, associated_list_id="evening")
    state.remaining_seconds = 240
    state.record_announcement(Technique("Jab", "jab.wav", TechniqueCategory.PUNCHES))
    return state


class TestSessionSnapshot:
    def test_stored_with_camel_case_keys(self, persistence, store):
        persistence.snapshot(running_state())

        raw = store.load(SESSION_STATE_KEY)
        assert raw["isActive"] is True
        assert raw["isPaused"] is False
        assert raw["remainingTimeSeconds"] == 240
        assert raw["totalDurationSeconds"] == 300
        assert raw["techniquesAnnouncedCount"] == 1
        assert raw["sessionStats"]["techniquesByCategory"]["Punches"] == 1
        assert raw["associatedListId"] == "evening"
        assert "savedAtEpochMillis" in raw

    def test_apply_to_restores_fields(self, clock):
        snapshot = SessionSnapshot.capture(running_state(), saved_at_ms=clock())
        state = SessionState()

        snapshot.apply_to(state)

        assert state.is_running
        assert state.remaining_seconds == 240
        assert state.total_seconds == 300
        assert state.techniques_announced == 1
        assert state.stats.total_techniques == 1
        assert state.associated_list_id == "evening"
        assert state.current_technique is None

    def test_stats_survive_a_store_round_trip(self, persistence, store):
        persistence.snapshot(running_state())

        snapshot = persistence.peek()
        stats = snapshot.session_stats.to_stats()

        assert stats.total_techniques == 1
        assert stats.techniques_by_category[TechniqueCategory.PUNCHES] == 1
        assert stats.techniques_by_category[TechniqueCategory.KICKS] == 0

    def test_remaining_above_total_rejected(self):
        with pytest.raises(ValidationError):
            SessionSnapshot(
                is_active=True,
                remaining_seconds=400,
                total_seconds=300,
                saved_at_ms=0,
            )

    def test_paused_requires_active(self):
        with pytest.raises(ValidationError):
            SessionSnapshot(
                is_active=False,
                is_paused=True,
                remaining_seconds=10,
                total_seconds=60,
                saved_at_ms=0,
            )


class TestRestoreWindow:
    def test_recent_snapshot_is_restorable(self, persistence, clock):
        persistence.snapshot(running_state())
        clock.advance(4 * 60)

        snapshot = persistence.load_restorable()

        assert snapshot is not None
        assert snapshot.remaining_seconds == 240

    def test_stale_snapshot_is_discarded(self, persistence, store, clock):
        persistence.snapshot(running_state())
        clock.advance(6 * 60)

        assert persistence.load_restorable() is None
        assert SESSION_STATE_KEY not in store

    def test_window_edge_is_exclusive(self, persistence, clock):
        persistence.snapshot(running_state())
        clock.advance(300)

        assert persistence.load_restorable() is None

    def test_inactive_snapshot_is_discarded(self, persistence, store):
        persistence.snapshot(SessionState())

        assert persistence.load_restorable() is None
        assert SESSION_STATE_KEY not in store

    def test_future_snapshot_is_not_restorable(self, persistence, clock):
        persistence.snapshot(running_state())
        clock.advance(-60)

        assert persistence.load_restorable() is None

    @pytest.mark.parametrize(
        "raw",
        [
            {"isActive": True},
            {"isActive": "maybe", "remainingTimeSeconds": 1, "totalDurationSeconds": 2,
             "savedAtEpochMillis": 0},
            ["not", "a", "snapshot"],
            "garbage",
        ],
    )
    def test_invalid_snapshot_is_discarded(self, persistence, store, raw):
        store.save(SESSION_STATE_KEY, raw)

        assert persistence.peek() is None
        assert SESSION_STATE_KEY not in store


    @pytest.mark.parametrize(
        "stats",
        [
            {"techniquesByCategory": {"Elbows": 2}},
            {"totalTechniques": "many"},
            {"techniquesByCategory": {"Punches": None}},
            {"techniquesByCategory": {"Punches": -1}},
            {"sessionDuration": -5},
            None,
        ],
    )
    def test_snapshot_with_bad_stats_is_discarded(self, persistence, store, clock, stats):
        raw = SessionSnapshot.capture(running_state(), saved_at_ms=clock()).to_dict()
        raw["sessionStats"] = stats
        store.save(SESSION_STATE_KEY, raw)

        assert persistence.load_restorable() is None
        assert SESSION_STATE_KEY not in store


class TestStoreFailures:
    def test_failures_are_swallowed(self, failing_store, clock):
        persistence = SessionPersistence(failing_store, clock=clock)

        assert persistence.snapshot(running_state()) is False
        persistence.clear()
        assert persistence.peek() is None
        assert persistence.load_restorable() is None
