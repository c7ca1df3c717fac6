"""In-memory dive log: the dive table and the pictures attached to each dive.

Only the surface the picture model needs lives here. The log keeps the
selected ``current_dive`` and a separate ``displayed_dive`` copy that the UI
renders; edits go to the current dive and are copied over afterwards.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from .logger import get_logger

_logger = get_logger("dive")


@dataclass
class Picture:
    filename: str
    offset_seconds: int = 0
    hash: str | None = None


@dataclass
class Dive:
    number: int = 0
    pictures: list[Picture] = field(default_factory=list)

    def picture_count(self) -> int:
        return len(self.pictures)

    def find_picture(self, filename: str) -> Picture | None:
        for picture in self.pictures:
            if picture.filename == filename:
                return picture
        return None

    def add_picture(self, filename: str, offset_seconds: int = 0, hash: str | None = None) -> Picture:  # noqa: A002
        existing = self.find_picture(filename)
        if existing is not None:
            return existing
        picture = Picture(filename=filename, offset_seconds=int(offset_seconds), hash=hash)
        self.pictures.append(picture)
        return picture

    def remove_picture(self, filename: str) -> bool:
        picture = self.find_picture(filename)
        if picture is None:
            return False
        self.pictures.remove(picture)
        return True

    def copy(self) -> Dive:
        return copy.deepcopy(self)


class DiveLog:
    def __init__(self) -> None:
        self.dives: list[Dive] = []
        self.current_dive: Dive | None = None
        self.displayed_dive = Dive()
        self.changed = False

    def dive_count(self) -> int:
        return len(self.dives)

    def add_dive(self, dive: Dive) -> Dive:
        self.dives.append(dive)
        if self.current_dive is None:
            self.select_dive(dive)
        return dive

    def select_dive(self, dive: Dive) -> None:
        self.current_dive = dive
        self.copy_current_to_displayed()

    def copy_current_to_displayed(self) -> None:
        self.displayed_dive = self.current_dive.copy() if self.current_dive is not None else Dive()

    def remove_picture(self, filename: str) -> bool:
        if self.current_dive is None:
            return False
        removed = self.current_dive.remove_picture(filename)
        if not removed:
            _logger.debug("remove_picture: %s not attached to dive %s", filename, self.current_dive.number)
        return removed

    def mark_changed(self, changed: bool = True) -> None:
        self.changed = changed
