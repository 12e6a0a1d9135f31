# -*- coding: utf-8 -*-
########################
# pattern_models.py
########################
# Purpose:
# - Core data models for parsed note patterns.
# - Defines lanes, notes, rows, patterns, snaps and scroll direction.
#
# Design notes:
# - No Qt usage. Plain dataclasses and enums.
# - Rows compare as sets: note order and duplicates never matter, note kind and hold length do.
# - Rows reserved by a hold are a count on the holding Row, never materialized, so `[]x999999999`
#   costs one object.
# - The keymode is not known at parse time, so symbolic lanes stay symbolic until rendering.
#
########################
# Interfaces:
# Public exceptions:
# - class PatternError(Exception)
#
# Public enums:
# - class Direction(enum.Enum): LEFT | DOWN | UP | RIGHT
# - class NoteKind(enum.Enum): TAP | MINE | HOLD
# - class ScrollDirection(enum.Enum): UP | DOWN
# - class Snap(enum.Enum): 4th .. 192nd
#   - from_row(row_number: int) -> Snap
#   - texture_index() -> int
#
# Public dataclasses:
# - Note(lane: Lane, kind: NoteKind, hold_length: int)
# - Row(notes: tuple[Note, ...], reserved_rows: int)
# - Pattern(rows: list[Row])
#   - keymode_guess() -> int
#   - row_count() -> int
#   - note_count() -> int
#
# Public functions:
# - lane_column(lane: Lane, keymode: int) -> int
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Iterator, List, Tuple, Union


class PatternError(Exception):
    """Base error for everything that can go wrong between pattern text and image."""


class Direction(enum.Enum):
    LEFT = "left"
    DOWN = "down"
    UP = "up"
    RIGHT = "right"


# A lane is either a 0-based column index or a symbolic direction.
Lane = Union[int, Direction]


def lane_column(lane: Lane, keymode: int) -> int:
    if isinstance(lane, Direction):
        if lane is Direction.LEFT:
            return 0
        if lane is Direction.DOWN:
            return 1
        if lane is Direction.UP:
            return 2
        # in 3k it goes left-down-right
        return 2 if int(keymode) == 3 else 3
    return int(lane)


class NoteKind(enum.Enum):
    TAP = "tap"
    MINE = "mine"
    HOLD = "hold"


@dataclass(frozen=True)
class Note:
    lane: Lane
    kind: NoteKind = NoteKind.TAP
    hold_length: int = 0

    def as_hold(self, length: int) -> "Note":
        return Note(lane=self.lane, kind=NoteKind.HOLD, hold_length=int(length))

    def column(self, keymode: int) -> int:
        return lane_column(self.lane, keymode)


@dataclass(frozen=True, eq=False)
class Row:
    notes: Tuple[Note, ...] = ()
    # empty rows that follow this one, reserved by a hold suffix
    reserved_rows: int = 0

    def note_set(self) -> frozenset:
        return frozenset(self.notes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self.note_set() == other.note_set() and self.reserved_rows == other.reserved_rows

    def __hash__(self) -> int:
        return hash((self.note_set(), self.reserved_rows))

    def __len__(self) -> int:
        return len(self.notes)

    def __iter__(self) -> Iterator[Note]:
        return iter(self.notes)


@dataclass
class Pattern:
    """A note pattern without snap changes, one Row per time step plus its reserved rows."""

    rows: List[Row] = field(default_factory=list)

    def row_count(self) -> int:
        """Time steps covered, reserved hold rows included."""
        return sum(1 + row.reserved_rows for row in self.rows)

    def note_count(self) -> int:
        return sum(len(row) for row in self.rows)

    def is_visually_empty(self) -> bool:
        return self.note_count() == 0

    def highest_column(self, keymode: int = 4) -> int:
        """Highest resolved column, or -1 when the pattern holds no notes."""
        highest = -1
        for row in self.rows:
            for note in row:
                highest = max(highest, note.column(keymode))
        return highest

    def keymode_guess(self) -> int:
        # If someone writes `ldr`, was the highest column 3 or 4? The meaning of `r` depends on
        # the keymode we are trying to guess, so assume 4k. The result is clamped to 4k because
        # a pattern like `2323` is still meant to be 4k.
        return max(self.highest_column(4) + 1, 4)


class ScrollDirection(enum.Enum):
    UP = "up"
    DOWN = "down"


class Snap(enum.Enum):
    FOURTH = 4
    EIGHTH = 8
    TWELFTH = 12
    SIXTEENTH = 16
    TWENTY_FOURTH = 24
    THIRTY_SECOND = 32
    FORTY_EIGHTH = 48
    SIXTY_FOURTH = 64
    ONE_NINETY_SECOND = 192

    @property
    def snap_number(self) -> int:
        return int(self.value)

    @property
    def interval_192nd(self) -> int:
        return 192 // int(self.value)

    @classmethod
    def from_row(cls, row_number: int) -> "Snap":
        row_in_beat = int(row_number) % 192
        for snap in _SNAPS_COARSE_TO_FINE:
            if row_in_beat % snap.interval_192nd == 0:
                return snap
        return cls.ONE_NINETY_SECOND

    def texture_index(self) -> int:
        # 64ths and 192nds share the last sprite class
        if self is Snap.ONE_NINETY_SECOND:
            return 7
        return _SNAPS_COARSE_TO_FINE.index(self)


_SNAPS_COARSE_TO_FINE: Tuple[Snap, ...] = (
    Snap.FOURTH,
    Snap.EIGHTH,
    Snap.TWELFTH,
    Snap.SIXTEENTH,
    Snap.TWENTY_FOURTH,
    Snap.THIRTY_SECOND,
    Snap.FORTY_EIGHTH,
    Snap.SIXTY_FOURTH,
    Snap.ONE_NINETY_SECOND,
)
