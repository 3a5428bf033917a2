from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class VideoPlayer(Protocol):
    """Player collaborator driven alongside the timeline.

    Concrete players (embedded YouTube, local file) live in the rendering layer.
    """

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek_to(self, time: float) -> None: ...

    def get_current_time(self) -> float: ...

    def get_video_duration(self) -> float | None: ...

    def mute(self) -> None: ...

    def un_mute(self) -> None: ...

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def destroy(self) -> None: ...
