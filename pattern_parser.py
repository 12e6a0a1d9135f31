# -*- coding: utf-8 -*-
########################
# pattern_parser.py
########################
# Purpose:
# - Parse the community pattern notation into pattern_models.Pattern.
#
# Notation:
# - `1234` four single-note rows, digits are 1-based lanes.
# - `[13]` one chord row. `(12)` a multi-digit lane (lane 12).
# - `L` `D` `U` `R` symbolic lanes (case-insensitive).
# - `0`, `[]` and `()` empty rows.
# - `m3` a mine in lane 3.
# - `3x4` a hold of four rows, `[13]x4` turns the whole chord into holds.
#   A hold reserves the rows it spans: `[]x10` is one empty row followed by nine more.
#   The reservation is stored as Row.reserved_rows, so huge lengths cost nothing to parse.
#
# Design notes:
# - No Qt usage.
# - Lenient: unknown characters are skipped so typos do not abort rendering.
# - Strict on delimiters: an opening `[` or `(` with nothing closing it aborts the whole parse.
#
########################
# Interfaces:
# Public exceptions:
# - class PatternParseError(PatternError)
# - class UnclosedBracketError(PatternParseError)
# - class UnclosedParenthesisError(PatternParseError)
#
# Public functions:
# - parse_pattern(text: str) -> Pattern
#
########################
# Smoke Tests:
#   - python pattern_parser.py
########################

from __future__ import annotations

from typing import List, Optional, Tuple, Type, Union

from pattern_models import Direction, Lane, Note, NoteKind, Pattern, PatternError, Row


class PatternParseError(PatternError):
    """Raised when the pattern text is structurally broken."""


class UnclosedBracketError(PatternParseError):
    def __init__(self) -> None:
        super().__init__("Missing closing bracket")


class UnclosedParenthesisError(PatternParseError):
    def __init__(self) -> None:
        super().__init__("Missing closing parenthesis")


class _EmptySlot:
    """Marker for `0`, `()` and friends: advances time but places nothing."""

    def __repr__(self) -> str:
        return "EMPTY"


_EMPTY = _EmptySlot()

_DECIMAL_DIGITS = "0123456789"

_DIRECTION_LETTERS = {
    "l": Direction.LEFT,
    "d": Direction.DOWN,
    "u": Direction.UP,
    "r": Direction.RIGHT,
}

# A parsed note slot: a real note, an explicit empty slot, or None for a skipped character.
_Slot = Union[Note, _EmptySlot, None]


def _pop_delimited(
    text: str,
    start: str,
    end: str,
    error_class: Type[PatternParseError],
) -> Optional[Tuple[str, str]]:
    """Pop a `start ... end` group off the front of text and return (rest, inside).

    The format has no nesting. If another opener shows up before the first closer,
    the group ends right before that opener and scanning resumes from it, so
    `[12[34]` reads as `[12]` followed by `[34]`.
    """
    if not text.startswith(start):
        return None
    body = text[len(start) :]
    start_index = body.find(start)
    end_index = body.find(end)

    if end_index >= 0 and (start_index < 0 or end_index < start_index):
        return (body[end_index + len(end) :], body[:end_index])
    if start_index >= 0:
        return (body[start_index:], body[:start_index])
    raise error_class()


def _pop_parenthesized_number(text: str) -> Optional[Tuple[str, Optional[int]]]:
    popped = _pop_delimited(text, "(", ")", UnclosedParenthesisError)
    if popped is None:
        return None
    rest, inside = popped
    inside = inside.strip()
    if inside and all(char in _DECIMAL_DIGITS for char in inside):
        return (rest, int(inside))
    return (rest, None)


def _pop_hold_suffix(text: str) -> Tuple[str, Optional[int]]:
    """Pop `x<number>` or `x(<number>)`. Text without a suffix is returned untouched."""
    if text[:1] not in ("x", "X"):
        return (text, None)
    after_x = text[1:]

    parenthesized = _pop_parenthesized_number(after_x)
    if parenthesized is not None:
        rest, length = parenthesized
    else:
        digit_count = 0
        while digit_count < len(after_x) and after_x[digit_count] in _DECIMAL_DIGITS:
            digit_count += 1
        if digit_count == 0:
            return (text, None)
        rest, length = after_x[digit_count:], int(after_x[:digit_count])

    if length is None or length < 1:
        # consumed, but a zero-length hold is no hold
        return (rest, None)
    return (rest, length)


def _pop_lane(text: str) -> Tuple[str, Union[Lane, _EmptySlot, None]]:
    parenthesized = _pop_parenthesized_number(text)
    if parenthesized is not None:
        rest, number = parenthesized
        if number is None or number == 0:
            return (rest, _EMPTY)
        return (rest, number - 1)

    char, rest = text[0], text[1:]
    if char in _DECIMAL_DIGITS:
        if char == "0":
            return (rest, _EMPTY)
        return (rest, int(char) - 1)
    direction = _DIRECTION_LETTERS.get(char.lower())
    if direction is not None:
        return (rest, direction)
    return (rest, None)


def _pop_note(text: str) -> Tuple[str, _Slot, int]:
    """Pop one note. Returns (rest, slot, hold_length) where hold_length is 0 for non-holds."""
    kind = NoteKind.TAP
    if text[:1] in ("m", "M"):
        text = text[1:]
        kind = NoteKind.MINE
        if not text or text.startswith("["):
            return (text, None, 0)

    text, lane = _pop_lane(text)
    text, hold_length = _pop_hold_suffix(text)

    if lane is None:
        return (text, None, 0)
    if isinstance(lane, _EmptySlot):
        return (text, _EMPTY, hold_length or 0)

    note = Note(lane=lane, kind=kind)
    if hold_length is not None:
        note = note.as_hold(hold_length)
        return (text, note, hold_length)
    return (text, note, 0)


def _reserved_rows(hold_length: int) -> int:
    return max(0, int(hold_length) - 1)


def _pop_row(text: str) -> Tuple[str, Optional[Row]]:
    """Pop one top-level token. Returns the row it produced, if any."""
    bracketed = _pop_delimited(text, "[", "]", UnclosedBracketError)
    if bracketed is not None:
        rest, inside = bracketed
        notes: List[Note] = []
        longest_hold = 0
        while inside:
            inside, slot, hold_length = _pop_note(inside)
            if isinstance(slot, Note):
                notes.append(slot)
            longest_hold = max(longest_hold, hold_length)

        rest, row_hold_length = _pop_hold_suffix(rest)
        if row_hold_length is not None:
            notes = [note.as_hold(row_hold_length) for note in notes]
            longest_hold = max(longest_hold, row_hold_length)

        return (rest, Row(tuple(notes), reserved_rows=_reserved_rows(longest_hold)))

    rest, slot, hold_length = _pop_note(text)
    if slot is None:
        return (rest, None)
    if isinstance(slot, _EmptySlot):
        return (rest, Row(reserved_rows=_reserved_rows(hold_length)))
    return (rest, Row((slot,), reserved_rows=_reserved_rows(hold_length)))


def parse_pattern(text: str) -> Pattern:
    remaining = str(text or "")
    rows: List[Row] = []
    while remaining:
        remaining, row = _pop_row(remaining)
        if row is not None:
            rows.append(row)
    return Pattern(rows=rows)


def _run_unit_tests() -> None:
    pattern = parse_pattern("[13]4[32]1")
    assert pattern.rows == [
        Row((Note(0), Note(2))),
        Row((Note(3),)),
        Row((Note(1), Note(2))),
        Row((Note(0),)),
    ]

    assert parse_pattern("[123]") == parse_pattern("[321]") == parse_pattern("[1123]")
    assert parse_pattern("[]x10").rows == [Row(reserved_rows=9)]
    assert parse_pattern("[]x10").row_count() == 10
    assert parse_pattern("(12)").rows == [Row((Note(11),))]
    assert parse_pattern("m3").rows == [Row((Note(2, NoteKind.MINE),))]

    try:
        parse_pattern("[12")
    except UnclosedBracketError:
        pass
    else:
        raise AssertionError("Expected UnclosedBracketError for '[12'")


if __name__ == "__main__":
    _run_unit_tests()
    print("pattern_parser.py: ok")
