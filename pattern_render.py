# -*- coding: utf-8 -*-
########################
# pattern_render.py
########################
# Purpose:
# - Render one or more parsed pattern segments into a single image with a noteskin.
#
########################
# Key Logic:
# - Timeline:
#   - every segment brings its own snap; each row advances the 192nd-row cursor by one
#     FractionalSnap step, so mixed snaps ("16ths ... 12ths ...") line up without drift
# - Placement:
#   - receptors go first so notes are always drawn on top of them
#   - upscroll puts receptors at row 0; downscroll mirrors every y position around the last row
#   - tap sprites are chosen by the snap class of their absolute row, mines use the mine sprite
#   - mines are lane-checked like taps, so `m5` in 4k fails with InvalidLaneForKeymodeError
#     instead of drawing a mine outside the receptors
#   - rows reserved by a hold advance the cursor in one step (Interval192ndIterator.advance),
#     never one row at a time
# - Limits (checked before any canvas is allocated):
#   - sprite count against max_sprites
#   - canvas size against max_image_dimensions
# - Vertical spacing:
#   - scaled by the smallest snap number used in any segment times the requested zoom, so one
#     step of the coarsest snap is one sprite height at zoom 1 and finer segments pack tighter
#
########################
# Interfaces:
# Public exceptions:
# - class RenderError(PatternError)
# - class EmptyPatternError(RenderError)
# - class TooManySpritesError(RenderError)
# - class ImageTooLargeError(RenderError)
# - class HoldsAreUnsupportedError(RenderError)
# - class SpriteOutOfBoundsError(RuntimeError)
#
# Public dataclasses:
# - PatternRecipe(noteskin, scroll_direction, keymode, vertical_spacing_multiplier, pattern,
#                 max_image_dimensions, max_sprites)
# - PlacedSprite(lane: int, y_pos: int, image: QImage)
# - SpriteLayout(sprites, sprite_resolution, vertical_spacing_multiplier, highest_row)
#   - canvas_size() -> tuple[int, int]
#
# Public functions:
# - layout_pattern(recipe: PatternRecipe) -> SpriteLayout
# - render_layout(layout: SpriteLayout, max_image_dimensions: tuple[int, int]) -> QImage
# - draw_pattern(recipe: PatternRecipe) -> QImage
#
# Outputs:
# - Straight-alpha RGBA8888 QImage.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Sequence, Tuple

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QImage, QPainter

from fractional_snap import FractionalSnap
from noteskin import Noteskin
from pattern_models import NoteKind, Pattern, PatternError, Row, ScrollDirection, Snap

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGE_DIMENSIONS = (5000, 10000)
DEFAULT_MAX_SPRITES = 1000


class RenderError(PatternError):
    """Base error for pattern rendering."""


class EmptyPatternError(RenderError):
    def __init__(self) -> None:
        super().__init__("Given pattern is empty")


class TooManySpritesError(RenderError):
    def __init__(self, count: int, limit: int) -> None:
        self.count = int(count)
        self.limit = int(limit)
        super().__init__(
            f"{self.count} sprites would need to be rendered for this pattern, which exceeds the limit of {self.limit}"
        )


class ImageTooLargeError(RenderError):
    def __init__(self, width: int, height: int, max_width: int, max_height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        self.max_width = int(max_width)
        self.max_height = int(max_height)
        super().__init__(f"Rendered pattern would exceed the limit of {self.max_width}x{self.max_height}")


class HoldsAreUnsupportedError(RenderError):
    def __init__(self) -> None:
        super().__init__("Holds are not supported yet")


class SpriteOutOfBoundsError(RuntimeError):
    """A sprite was placed outside the canvas. Always a layout bug, never bad input."""


@dataclass(frozen=True)
class PatternRecipe:
    noteskin: Noteskin
    scroll_direction: ScrollDirection
    keymode: int
    vertical_spacing_multiplier: float
    # pattern segments and their snap
    pattern: Sequence[Tuple[Pattern, FractionalSnap]]
    max_image_dimensions: Tuple[int, int] = DEFAULT_MAX_IMAGE_DIMENSIONS
    max_sprites: int = DEFAULT_MAX_SPRITES


@dataclass(frozen=True)
class PlacedSprite:
    lane: int
    y_pos: int
    image: QImage


@dataclass(frozen=True)
class SpriteLayout:
    sprites: List[PlacedSprite]
    sprite_resolution: int
    vertical_spacing_multiplier: float
    highest_row: int

    def pixel_y(self, y_pos: int) -> int:
        # the epsilon keeps 36 rows at 1/12 spacing on 3 whole sprites instead of a hair below
        return int(y_pos * self.sprite_resolution * self.vertical_spacing_multiplier + 1e-6)

    def canvas_size(self) -> Tuple[int, int]:
        if not self.sprites:
            raise EmptyPatternError()
        max_lane = max(sprite.lane for sprite in self.sprites)
        max_y_pos = max(sprite.y_pos for sprite in self.sprites)
        width = self.sprite_resolution * (max_lane + 1)
        # + one sprite so the last row is drawn in full
        height = self.pixel_y(max_y_pos) + self.sprite_resolution
        return (width, height)


def _build_timeline(segments: Sequence[Tuple[Pattern, FractionalSnap]]) -> Tuple[List[Tuple[Row, int]], int]:
    """Returns ((row, absolute row number) for every parsed row, highest occupied row number)."""
    timeline: List[Tuple[Row, int]] = []
    row_number = 0
    highest_row = 0
    for pattern, snap in segments:
        intervals = snap.iter_192nd_intervals()
        for row in pattern.rows:
            timeline.append((row, row_number))
            highest_row = row_number
            row_number += intervals.next_interval()
            if row.reserved_rows > 0:
                # the last reserved row is reserved_rows - 1 steps past the first one
                highest_row = row_number + intervals.advance(row.reserved_rows - 1)
                row_number = highest_row + intervals.next_interval()
    return timeline, highest_row


def layout_pattern(recipe: PatternRecipe) -> SpriteLayout:
    noteskin = recipe.noteskin
    keymode = int(recipe.keymode)
    if keymode <= 0:
        raise ValueError(f"keymode must be positive, got {recipe.keymode!r}")
    if float(recipe.vertical_spacing_multiplier) <= 0.0:
        raise ValueError(f"vertical_spacing_multiplier must be positive, got {recipe.vertical_spacing_multiplier!r}")

    timeline, highest_row = _build_timeline(recipe.pattern)
    if all(len(row) == 0 for row, _ in timeline):
        raise EmptyPatternError()

    def y_pos_for(row_number: int) -> int:
        if recipe.scroll_direction is ScrollDirection.DOWN:
            return highest_row - row_number
        return row_number

    sprites: List[PlacedSprite] = []

    # receptors first, so they never cover a note
    receptor_y_pos = y_pos_for(0)
    for lane in range(keymode):
        sprites.append(PlacedSprite(lane=lane, y_pos=receptor_y_pos, image=noteskin.receptor(lane, keymode)))

    for row, row_number in timeline:
        for note in row:
            column = note.column(keymode)
            if note.kind is NoteKind.TAP:
                image = noteskin.note(column, keymode, Snap.from_row(row_number))
            elif note.kind is NoteKind.MINE:
                noteskin.check_lane(column, keymode)
                image = noteskin.mine()
            else:
                raise HoldsAreUnsupportedError()
            sprites.append(PlacedSprite(lane=column, y_pos=y_pos_for(row_number), image=image))

    if len(sprites) > int(recipe.max_sprites):
        raise TooManySpritesError(count=len(sprites), limit=int(recipe.max_sprites))

    smallest_snap_number = min(snap.snap_number() for _, snap in recipe.pattern)
    largest_192nd_interval = 192.0 / float(smallest_snap_number)

    return SpriteLayout(
        sprites=sprites,
        sprite_resolution=noteskin.sprite_resolution(),
        vertical_spacing_multiplier=(1.0 / largest_192nd_interval) * float(recipe.vertical_spacing_multiplier),
        highest_row=highest_row,
    )


def _new_canvas(width: int, height: int) -> QImage:
    canvas = QImage(int(width), int(height), QImage.Format.Format_ARGB32_Premultiplied)
    canvas.fill(Qt.GlobalColor.transparent)
    return canvas


def _check_sprite_bounds(canvas: QImage, sprite: QImage, x: int, y: int) -> None:
    if x < 0 or y < 0 or canvas.width() < sprite.width() + x or canvas.height() < sprite.height() + y:
        raise SpriteOutOfBoundsError(
            f"Sprite {sprite.width()}x{sprite.height()} at ({x}, {y}) does not fit a "
            f"{canvas.width()}x{canvas.height()} canvas"
        )


def render_layout(layout: SpriteLayout, max_image_dimensions: Tuple[int, int]) -> QImage:
    max_width, max_height = (int(value) for value in max_image_dimensions)
    width, height = layout.canvas_size()
    if width > max_width or height > max_height:
        raise ImageTooLargeError(width=width, height=height, max_width=max_width, max_height=max_height)

    logger.debug("Rendering %d sprites onto a %dx%d canvas", len(layout.sprites), width, height)
    canvas = _new_canvas(width, height)

    painter = QPainter(canvas)
    try:
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_SourceOver)
        for sprite in layout.sprites:
            x = sprite.lane * layout.sprite_resolution
            y = layout.pixel_y(sprite.y_pos)
            _check_sprite_bounds(canvas, sprite.image, x, y)
            painter.drawImage(x, y, sprite.image)
    finally:
        painter.end()

    return canvas.convertToFormat(QImage.Format.Format_RGBA8888)


def draw_pattern(recipe: PatternRecipe) -> QImage:
    layout = layout_pattern(recipe)
    return render_layout(layout, recipe.max_image_dimensions)
