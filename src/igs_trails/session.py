from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from igs_trails.models import CodeEntry, CodeTable, Floorplan, Timeline, User, VideoSource
from igs_trails.video import VideoPlayer

LOGGER = logging.getLogger(__name__)

TOPICS = ("users", "codes", "timeline", "floorplan", "video")

Listener = Callable[[str, "Session"], None]


def normalize_name(value: str) -> str:
    return str(value).strip().lower()


@dataclass
class Session:
    """In-memory state for one visualization session.

    Ingestion functions receive the session explicitly; callers own its lifetime.
    """

    users: list[User] = field(default_factory=list)
    code_tables: list[CodeTable] = field(default_factory=list)
    code_entries: list[CodeEntry] = field(default_factory=list)
    max_time: float = 0.0
    max_stop_length: float = 0.0
    floorplan: Floorplan = field(default_factory=Floorplan)
    timeline: Timeline = field(default_factory=Timeline)
    video: VideoSource | None = None
    video_player: VideoPlayer | None = None
    _listeners: list[Listener] = field(default_factory=list, repr=False)

    @property
    def total_duration(self) -> float:
        return self.timeline.duration

    @property
    def has_codes(self) -> bool:
        return bool(self.code_tables)

    def find_user(self, name: str) -> User | None:
        key = normalize_name(name)
        for user in self.users:
            if user.name == key:
                return user
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, topic: str) -> None:
        if topic not in TOPICS:
            raise ValueError(f"Unknown session topic: {topic}")
        for listener in list(self._listeners):
            listener(topic, self)

    def set_video_player(self, player: VideoPlayer | None) -> None:
        if self.video_player is not None and self.video_player is not player:
            self.video_player.destroy()
        self.video_player = player
        self.notify("video")

    def clear_video(self) -> None:
        if self.video_player is not None:
            self.video_player.destroy()
        self.video_player = None
        self.video = None
        self.notify("video")

    def clear_data(self) -> None:
        LOGGER.info("Clearing existing data")
        self.users = []
        self.code_tables = []
        self.code_entries = []
        self.max_time = 0.0
        self.max_stop_length = 0.0
        self.timeline.reset(0.0)
        self.notify("users")
        self.notify("codes")
        self.notify("timeline")

    def clear_all(self) -> None:
        self.clear_video()
        self.floorplan = Floorplan()
        self.notify("floorplan")
        self.clear_data()
