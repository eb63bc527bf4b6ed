"""
Collaborators of the session engine.

Components:
- KeyValueStore: MemoryStore, JsonFileStore (snapshot persistence)
- AudioPlayer: SilentAudioPlayer, CommandAudioPlayer
- Notifier: ConsoleNotifier, LoggingNotifier, RecordingNotifier
- TechniqueCatalog: technique and fight list loading
"""

from .audio import AudioPlayer, CommandAudioPlayer, SilentAudioPlayer
from .catalog import TechniqueCatalog, load_fight_list
from .notifier import ConsoleNotifier, LoggingNotifier, Notifier, RecordingNotifier, Severity
from .store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    # Persistence
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    # Audio
    "AudioPlayer",
    "SilentAudioPlayer",
    "CommandAudioPlayer",
    # Notifications
    "Notifier",
    "Severity",
    "ConsoleNotifier",
    "LoggingNotifier",
    "RecordingNotifier",
    # Catalog
    "TechniqueCatalog",
    "load_fight_list",
]
