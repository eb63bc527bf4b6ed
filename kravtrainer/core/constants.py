"""
Shared constants for the trainer.

Limits, defaults, storage keys and user-facing messages live here so the
engine, the CLI and the tests agree on the same values.
"""

from __future__ import annotations

# =============================================================================
# Session limits
# =============================================================================

MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 30
MIN_DELAY_SECONDS = 1
MAX_DELAY_SECONDS = 10
MIN_VOLUME = 0
MAX_VOLUME = 100

MAX_CONSECUTIVE_AUDIO_FAILURES = 3
SESSION_RESTORE_WINDOW_SECONDS = 5 * 60
SESSION_SAVE_INTERVAL_SECONDS = 30

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_DURATION_MINUTES = 5
DEFAULT_DELAY_SECONDS = 3
DEFAULT_VOLUME = 80

MIN_FIGHT_LIST_PRIORITY = 1
MAX_FIGHT_LIST_PRIORITY = 5

# =============================================================================
# Storage
# =============================================================================

SESSION_STATE_KEY = "kravMagaSessionState"

# =============================================================================
# Messages
# =============================================================================

MSG_SESSION_ALREADY_ACTIVE = "Session already active"
MSG_NO_TECHNIQUES_AVAILABLE = "No techniques available for selection"
MSG_NO_TECHNIQUES_SELECTED = "No techniques are selected"
MSG_NO_TECHNIQUES_IN_FIGHT_LIST = "Please select at least one technique in the fight list"
MSG_AUDIO_FAILURE = "Failed to play audio for technique"
MSG_MULTIPLE_AUDIO_FAILURES = (
    "Session stopped due to multiple audio failures. Please check your audio files."
)
MSG_DURATION_RANGE = (
    f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes"
)
MSG_DELAY_RANGE = f"Delay must be between {MIN_DELAY_SECONDS} and {MAX_DELAY_SECONDS} seconds"
MSG_VOLUME_RANGE = f"Volume must be between {MIN_VOLUME} and {MAX_VOLUME}"

MSG_SESSION_STARTED = "Session started successfully!"
MSG_SESSION_COMPLETED = "Session completed successfully!"
MSG_SESSION_PAUSED = "Session paused!"
MSG_SESSION_RESUMED = "Session resumed!"
MSG_SESSION_STOPPED = "Session stopped!"
MSG_PREVIOUS_SESSION_RESTORED = (
    "Previous session restored. You can resume or start a new session."
)
MSG_STRATEGY_CHANGED = "Technique selection strategy changed to:"
