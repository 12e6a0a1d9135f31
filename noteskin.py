# -*- coding: utf-8 -*-
########################
# noteskin.py
########################
# Purpose:
# - Load noteskin textures and hand out the right sprite for a lane, keymode and snap.
# - Supports four texture families:
#   - LDUR_6K:   8 snap colors x 6 orientations (L, D, U, R, up-left, up-right), keymodes 3/4/6/8
#   - LDUR_MONO: 4 explicit per-direction images, no snap colors, keymodes 3/4/8
#   - PUMP:      8 snap colors x 5 orientations (4 rotated corners + center), keymodes 5/10
#   - BAR:       8 snap colors, one receptor for every lane, any keymode
#
# Design notes:
# - Every sprite is a square QImage of side sprite_resolution(). Loaders scale stray sizes to fit.
# - Every family is stored in the same sprite table shape (receptors, notes[snap][orientation], mine),
#   so resize_sprites and turn_sprites_upside_down always reach every sprite.
# - Only the middle frame of animated texture maps is used.
# - Sprites are read-only after setup. QImage is implicitly shared, so handing one out does not copy it.
#
########################
# Interfaces:
# Public exceptions:
# - class NoteskinError(PatternError)
# - class NoteskinDoesntSupportKeymodeError(NoteskinError)
# - class InvalidLaneForKeymodeError(NoteskinError)
# - class NoteskinTextureMapTooSmallError(NoteskinError)
#
# Public enums:
# - class TextureFamily(enum.Enum): LDUR_6K | LDUR_MONO | PUMP | BAR
#
# Public classes:
# - class Noteskin
#   - read_ldur_with_6k(sprite_resolution, notes_path, receptor_path, mine_path) -> Noteskin
#   - read_ldur(sprite_resolution, left_note_path, left_receptor_path, ..., mine_path) -> Noteskin
#   - read_pump(sprite_resolution, center_notes_path, center_receptor_path,
#               corner_notes_path, corner_receptor_path, mine_path) -> Noteskin
#   - read_bar(sprite_resolution, notes_path, receptor_path, mine_path) -> Noteskin
#   - family() -> TextureFamily
#   - sprite_resolution() -> int
#   - supports_keymode(keymode: int) -> bool
#   - note(lane: int, keymode: int, snap: Snap) -> QImage
#   - receptor(lane: int, keymode: int) -> QImage
#   - mine() -> QImage
#   - iter_sprites() -> Iterator[QImage]
#   - resize_sprites(sprite_resolution: int) -> None
#   - turn_sprites_upside_down() -> None
#
# Inputs:
# - PNG texture maps from the asset directory.
#
# Outputs:
# - Square premultiplied ARGB QImage sprites for pattern_render.py.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from pathlib import Path
from typing import Callable, Iterator, List, Union

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QImage, QPainter, QTransform

from pattern_models import PatternError, Snap

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_SPRITE_FORMAT = QImage.Format.Format_ARGB32_Premultiplied
_SNAP_CLASS_COUNT = 8
_FALLBACK_IMAGE_SIZE = 64


class NoteskinError(PatternError):
    """Base error for noteskin loading and sprite lookup."""


class NoteskinDoesntSupportKeymodeError(NoteskinError):
    def __init__(self, keymode: int) -> None:
        self.keymode = int(keymode)
        super().__init__(f"{self.keymode}k not supported by selected noteskin")


class InvalidLaneForKeymodeError(NoteskinError):
    def __init__(self, human_readable_lane: int, keymode: int) -> None:
        self.human_readable_lane = int(human_readable_lane)
        self.keymode = int(keymode)
        super().__init__(f"Lane {self.human_readable_lane} is invalid in {self.keymode}k")


class NoteskinTextureMapTooSmallError(NoteskinError):
    def __init__(self) -> None:
        super().__init__("Noteskin's texture map doesn't contain all required textures")


class TextureFamily(enum.Enum):
    LDUR_6K = "ldur_6k"
    LDUR_MONO = "ldur_mono"
    PUMP = "pump"
    BAR = "bar"


def _keymode_is_supported(family: TextureFamily, keymode: int) -> bool:
    if family is TextureFamily.LDUR_6K:
        return keymode in (3, 4, 6, 8)
    if family is TextureFamily.LDUR_MONO:
        return keymode in (3, 4, 8)
    if family is TextureFamily.PUMP:
        return keymode in (5, 10)
    # A bar looks the same in every lane, and limiting it would leave no skin for 11k and up.
    return True


def _lane_to_sprite_index(family: TextureFamily, lane: int, keymode: int) -> int:
    if family is TextureFamily.LDUR_6K:
        if keymode == 6:
            # left, up-left, down, up, up-right, right
            return (0, 4, 1, 2, 5, 3)[lane]
        if keymode == 3:
            return (0, 1, 3)[lane]
        return lane % 4
    if family is TextureFamily.LDUR_MONO:
        if keymode == 3:
            return (0, 1, 3)[lane]
        return lane % 4
    if family is TextureFamily.PUMP:
        return lane % 5
    return 0


@dataclass
class _SpriteTable:
    receptors: List[QImage]
    notes: List[List[QImage]]  # [snap class][orientation]
    mine: QImage

    def iter_sprites(self) -> Iterator[QImage]:
        yield self.mine
        for snap_row in self.notes:
            yield from snap_row
        yield from self.receptors

    def mapped(self, transform: Callable[[QImage], QImage]) -> "_SpriteTable":
        return _SpriteTable(
            receptors=[transform(receptor) for receptor in self.receptors],
            notes=[[transform(note) for note in snap_row] for snap_row in self.notes],
            mine=transform(self.mine),
        )


def _blank_image(size: int) -> QImage:
    image = QImage(size, size, _SPRITE_FORMAT)
    image.fill(Qt.GlobalColor.transparent)
    return image


def _open_image(path: PathLike) -> QImage:
    image = QImage(str(path))
    if image.isNull():
        logger.warning("Failed to load noteskin image %s, using a blank sprite", path)
        return _blank_image(_FALLBACK_IMAGE_SIZE)
    return image.convertToFormat(_SPRITE_FORMAT)


def _iter_center_column(texture_map: QImage, sprite_resolution: int) -> Iterator[QImage]:
    """Yield the sprites of the middle column of a grid texture map, top to bottom."""
    if sprite_resolution <= 0:
        return
    column_count = texture_map.width() // sprite_resolution
    if column_count == 0:
        return
    center_column = (column_count - 1) // 2
    for row in range(texture_map.height() // sprite_resolution):
        yield texture_map.copy(
            center_column * sprite_resolution,
            row * sprite_resolution,
            sprite_resolution,
            sprite_resolution,
        )


def _open_middle_texture(path: PathLike) -> QImage:
    # The file is a single row of square animation frames.
    texture_map = _open_image(path)
    for frame in _iter_center_column(texture_map, texture_map.height()):
        return frame
    raise NoteskinTextureMapTooSmallError()


def _snap_classes_from_texture_map(path: PathLike, sprite_resolution: int) -> List[QImage]:
    frames = list(_iter_center_column(_open_image(path), sprite_resolution))
    if len(frames) < _SNAP_CLASS_COUNT:
        raise NoteskinTextureMapTooSmallError()
    return frames[:_SNAP_CLASS_COUNT]


def _conform(image: QImage, sprite_resolution: int) -> QImage:
    image = image.convertToFormat(_SPRITE_FORMAT)
    if image.width() == sprite_resolution and image.height() == sprite_resolution:
        return image
    return _resized(image, sprite_resolution)


def _resized(image: QImage, sprite_resolution: int) -> QImage:
    return image.scaled(
        sprite_resolution,
        sprite_resolution,
        Qt.AspectRatioMode.IgnoreAspectRatio,
        Qt.TransformationMode.SmoothTransformation,
    ).convertToFormat(_SPRITE_FORMAT)


def _rotated_quarter_turns(image: QImage, degrees: int) -> QImage:
    if degrees % 360 == 0:
        return image.copy()
    return image.transformed(QTransform().rotate(degrees)).convertToFormat(_SPRITE_FORMAT)


def _rotated_clockwise_by(image: QImage, degrees: float) -> QImage:
    """Rotate about the center, keeping the size and filling uncovered corners with transparency."""
    rotated = QImage(image.width(), image.height(), _SPRITE_FORMAT)
    rotated.fill(Qt.GlobalColor.transparent)

    half_width = image.width() / 2.0
    half_height = image.height() / 2.0
    painter = QPainter(rotated)
    try:
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        painter.translate(half_width, half_height)
        painter.rotate(float(degrees))
        painter.translate(-half_width, -half_height)
        painter.drawImage(0, 0, image)
    finally:
        painter.end()
    return rotated


def _ldur_6k_orientations(down_facing: QImage) -> List[QImage]:
    return [
        _rotated_quarter_turns(down_facing, 90),
        down_facing.copy(),
        _rotated_quarter_turns(down_facing, 180),
        _rotated_quarter_turns(down_facing, 270),
        _rotated_clockwise_by(down_facing, 135),  # down -> up-left
        _rotated_clockwise_by(down_facing, 225),  # down -> up-right
    ]


def _pump_orientations(center: QImage, corner: QImage) -> List[QImage]:
    return [
        corner.copy(),
        _rotated_quarter_turns(corner, 90),
        center.copy(),
        _rotated_quarter_turns(corner, 180),
        _rotated_quarter_turns(corner, 270),
    ]


class Noteskin:
    def __init__(self, *, family: TextureFamily, sprite_resolution: int, sprites: _SpriteTable) -> None:
        if int(sprite_resolution) <= 0:
            raise ValueError(f"sprite_resolution must be positive, got {sprite_resolution!r}")
        self._family = family
        self._sprite_resolution = int(sprite_resolution)
        self._sprites = sprites.mapped(lambda image: _conform(image, self._sprite_resolution))

    @classmethod
    def read_ldur_with_6k(
        cls,
        sprite_resolution: int,
        notes_path: PathLike,
        receptor_path: PathLike,
        mine_path: PathLike,
    ) -> "Noteskin":
        mine = _open_middle_texture(mine_path)
        receptor = _conform(_open_middle_texture(receptor_path), sprite_resolution)
        snap_classes = _snap_classes_from_texture_map(notes_path, sprite_resolution)

        return cls(
            family=TextureFamily.LDUR_6K,
            sprite_resolution=sprite_resolution,
            sprites=_SpriteTable(
                receptors=_ldur_6k_orientations(receptor),
                notes=[_ldur_6k_orientations(note) for note in snap_classes],
                mine=mine,
            ),
        )

    @classmethod
    def read_ldur(
        cls,
        sprite_resolution: int,
        left_note_path: PathLike,
        left_receptor_path: PathLike,
        down_note_path: PathLike,
        down_receptor_path: PathLike,
        up_note_path: PathLike,
        up_receptor_path: PathLike,
        right_note_path: PathLike,
        right_receptor_path: PathLike,
        mine_path: PathLike,
    ) -> "Noteskin":
        return cls(
            family=TextureFamily.LDUR_MONO,
            sprite_resolution=sprite_resolution,
            sprites=_SpriteTable(
                receptors=[
                    _open_image(left_receptor_path),
                    _open_image(down_receptor_path),
                    _open_image(up_receptor_path),
                    _open_image(right_receptor_path),
                ],
                notes=[
                    [
                        _open_image(left_note_path),
                        _open_image(down_note_path),
                        _open_image(up_note_path),
                        _open_image(right_note_path),
                    ]
                ],
                mine=_open_image(mine_path),
            ),
        )

    @classmethod
    def read_pump(
        cls,
        sprite_resolution: int,
        center_notes_path: PathLike,
        center_receptor_path: PathLike,
        corner_notes_path: PathLike,
        corner_receptor_path: PathLike,
        mine_path: PathLike,
    ) -> "Noteskin":
        mine = _open_middle_texture(mine_path)
        center_receptor = _conform(_open_middle_texture(center_receptor_path), sprite_resolution)
        corner_receptor = _conform(_open_middle_texture(corner_receptor_path), sprite_resolution)
        center_notes = _snap_classes_from_texture_map(center_notes_path, sprite_resolution)
        corner_notes = _snap_classes_from_texture_map(corner_notes_path, sprite_resolution)

        return cls(
            family=TextureFamily.PUMP,
            sprite_resolution=sprite_resolution,
            sprites=_SpriteTable(
                receptors=_pump_orientations(center_receptor, corner_receptor),
                notes=[
                    _pump_orientations(center_note, corner_note)
                    for center_note, corner_note in zip(center_notes, corner_notes)
                ],
                mine=mine,
            ),
        )

    @classmethod
    def read_bar(
        cls,
        sprite_resolution: int,
        notes_path: PathLike,
        receptor_path: PathLike,
        mine_path: PathLike,
    ) -> "Noteskin":
        return cls(
            family=TextureFamily.BAR,
            sprite_resolution=sprite_resolution,
            sprites=_SpriteTable(
                receptors=[_open_middle_texture(receptor_path)],
                notes=[[note] for note in _snap_classes_from_texture_map(notes_path, sprite_resolution)],
                mine=_open_middle_texture(mine_path),
            ),
        )

    def family(self) -> TextureFamily:
        return self._family

    def sprite_resolution(self) -> int:
        return self._sprite_resolution

    def supports_keymode(self, keymode: int) -> bool:
        return _keymode_is_supported(self._family, int(keymode))

    def _sprite_index(self, lane: int, keymode: int) -> int:
        lane = int(lane)
        keymode = int(keymode)
        if lane < 0 or lane >= keymode:
            raise InvalidLaneForKeymodeError(human_readable_lane=lane + 1, keymode=keymode)
        if not _keymode_is_supported(self._family, keymode):
            raise NoteskinDoesntSupportKeymodeError(keymode)
        return _lane_to_sprite_index(self._family, lane, keymode)

    def note(self, lane: int, keymode: int, snap: Snap) -> QImage:
        """The returned image is sprite_resolution() x sprite_resolution()."""
        sprite_index = self._sprite_index(lane, keymode)
        notes = self._sprites.notes
        if len(notes) == 1:
            # mono-snap skin
            return notes[0][sprite_index]
        return notes[snap.texture_index()][sprite_index]

    def receptor(self, lane: int, keymode: int) -> QImage:
        sprite_index = self._sprite_index(lane, keymode)
        receptors = self._sprites.receptors
        if len(receptors) == 1:
            return receptors[0]
        return receptors[sprite_index]

    def mine(self) -> QImage:
        return self._sprites.mine

    def check_lane(self, lane: int, keymode: int) -> None:
        self._sprite_index(lane, keymode)

    def iter_sprites(self) -> Iterator[QImage]:
        return self._sprites.iter_sprites()

    def resize_sprites(self, sprite_resolution: int) -> None:
        sprite_resolution = int(sprite_resolution)
        if sprite_resolution <= 0:
            raise ValueError(f"sprite_resolution must be positive, got {sprite_resolution!r}")
        # Smooth scaling is bilinear, the fastest filter that does not look garbage.
        self._sprites = self._sprites.mapped(lambda image: _resized(image, sprite_resolution))
        self._sprite_resolution = sprite_resolution

    def turn_sprites_upside_down(self) -> None:
        self._sprites = self._sprites.mapped(lambda image: _rotated_quarter_turns(image, 180))
