"""Exclusive playback state: at most one clip plays at a time."""

from enum import Enum


class PlaybackState(str, Enum):
    NONE_ACTIVE = "none_active"
    PLAYING = "playing"


class PlaybackController:
    """Single owner of "what is playing".

    Starting a clip implicitly stops the previous one; views ask
    ``is_playing(id)`` instead of keeping their own flags.
    """

    def __init__(self) -> None:
        self._active_id: str | None = None

    @property
    def state(self) -> PlaybackState:
        return PlaybackState.NONE_ACTIVE if self._active_id is None else PlaybackState.PLAYING

    @property
    def active_id(self) -> str | None:
        return self._active_id

    def is_playing(self, clip_id: str) -> bool:
        return self._active_id == clip_id

    def play(self, clip_id: str) -> None:
        self._active_id = clip_id

    def stop(self) -> None:
        self._active_id = None

    def toggle(self, clip_id: str) -> None:
        if self.is_playing(clip_id):
            self.stop()
        else:
            self.play(clip_id)

    def on_natural_end(self, clip_id: str | None = None) -> None:
        """Handle a clip reaching its end.

        An end event from a clip that has since been replaced is ignored.
        """
        if clip_id is None or clip_id == self._active_id:
            self._active_id = None

    def to_dict(self) -> dict:
        return {"state": self.state.value, "active_id": self._active_id}
