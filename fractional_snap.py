# -*- coding: utf-8 -*-
########################
# fractional_snap.py
########################
# Purpose:
# - Converts a snap denominator (16 for 16ths) into row advances on the 192nd-row timeline.
# - Lets segments authored at different snaps share one absolute timeline without drift.
#
# Design notes:
# - Snaps that do not divide 192 (like 7ths) advance by floor(interval + carry) and keep the remainder.
# - Exact arithmetic with fractions.Fraction, so k steps always sum to floor(192 * k / n).
#
########################
# Interfaces:
# Public classes:
# - class FractionalSnap
#   - from_snap_number(snap_number: int) -> Optional[FractionalSnap]
#   - from_snap(snap: Snap) -> FractionalSnap
#   - snap_number() -> int
#   - iter_192nd_intervals() -> Interval192ndIterator
# - class Interval192ndIterator
#   - next_interval() -> int
#   - advance(steps: int) -> int
#
########################
# Smoke Tests:
#   - python fractional_snap.py
########################

from __future__ import annotations

from fractions import Fraction
from typing import Iterator, Optional

from pattern_models import Snap


class Interval192ndIterator:
    """Infinite iterator of whole 192nd-row steps for one snap."""

    def __init__(self, exact_interval: Fraction) -> None:
        self._exact_interval = exact_interval
        self._carry = Fraction(0)

    def next_interval(self) -> int:
        return self.advance(1)

    def advance(self, steps: int) -> int:
        """Sum of the next `steps` intervals, in constant time."""
        if steps <= 0:
            return 0
        total = self._exact_interval * int(steps) + self._carry
        whole = total.numerator // total.denominator
        self._carry = total - whole
        return whole

    def __iter__(self) -> Iterator[int]:
        return self

    def __next__(self) -> int:
        return self.next_interval()


class FractionalSnap:
    __slots__ = ("_snap_number",)

    def __init__(self, snap_number: int) -> None:
        if int(snap_number) < 1:
            raise ValueError(f"Snap number must be at least 1, got {snap_number!r}")
        self._snap_number = int(snap_number)

    @classmethod
    def from_snap_number(cls, snap_number: int) -> Optional["FractionalSnap"]:
        if int(snap_number) < 1:
            return None
        return cls(snap_number)

    @classmethod
    def from_snap(cls, snap: Snap) -> "FractionalSnap":
        return cls(snap.snap_number)

    def snap_number(self) -> int:
        return self._snap_number

    def iter_192nd_intervals(self) -> Interval192ndIterator:
        return Interval192ndIterator(Fraction(192, self._snap_number))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FractionalSnap):
            return NotImplemented
        return self._snap_number == other._snap_number

    def __hash__(self) -> int:
        return hash(self._snap_number)

    def __repr__(self) -> str:
        return f"FractionalSnap({self._snap_number})"


def _run_unit_tests() -> None:
    assert FractionalSnap.from_snap_number(0) is None

    sixteenths = FractionalSnap.from_snap(Snap.SIXTEENTH).iter_192nd_intervals()
    assert [sixteenths.next_interval() for _ in range(3)] == [12, 12, 12]

    sevenths = FractionalSnap(7).iter_192nd_intervals()
    steps = [sevenths.next_interval() for _ in range(7)]
    assert sum(steps) == 192
    assert set(steps) <= {27, 28}

    skipped = FractionalSnap(7).iter_192nd_intervals()
    assert skipped.advance(6) + skipped.next_interval() == 192


if __name__ == "__main__":
    _run_unit_tests()
    print("fractional_snap.py: ok")
