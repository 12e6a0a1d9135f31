from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import pytest
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor, QImage, QPainter

from noteskin import Noteskin

RGB = Tuple[int, int, int]

SPRITE_RESOLUTION = 16

# one color per snap class, 4ths first
SNAP_COLORS: List[RGB] = [
    (255, 0, 0),
    (0, 0, 255),
    (128, 0, 255),
    (255, 255, 0),
    (255, 0, 255),
    (255, 128, 0),
    (0, 255, 255),
    (0, 255, 0),
]
RECEPTOR_COLOR: RGB = (128, 128, 128)
CENTER_RECEPTOR_COLOR: RGB = (200, 200, 200)
MINE_COLOR: RGB = (40, 40, 40)
CENTER_TINT: RGB = (10, 10, 10)


def _blank(width: int, height: int) -> QImage:
    image = QImage(width, height, QImage.Format.Format_ARGB32)
    image.fill(Qt.GlobalColor.transparent)
    return image


def _fill(image: QImage, x: int, y: int, width: int, height: int, rgb: RGB) -> None:
    painter = QPainter(image)
    try:
        painter.fillRect(x, y, width, height, QColor(*rgb))
    finally:
        painter.end()


def write_strip(path: Path, resolution: int, rgb: RGB, frames: int = 3) -> Path:
    """A single row of square animation frames."""
    image = _blank(resolution * frames, resolution)
    _fill(image, 0, 0, resolution * frames, resolution, rgb)
    assert image.save(str(path), "PNG")
    return path


def write_grid(path: Path, resolution: int, row_colors: Sequence[RGB], columns: int = 3) -> Path:
    """A texture map with one row per snap class."""
    image = _blank(resolution * columns, resolution * len(row_colors))
    for row, rgb in enumerate(row_colors):
        _fill(image, 0, row * resolution, resolution * columns, resolution, rgb)
    assert image.save(str(path), "PNG")
    return path


def write_two_tone(path: Path, resolution: int, top: RGB, bottom: RGB) -> Path:
    image = _blank(resolution, resolution)
    _fill(image, 0, 0, resolution, resolution // 2, top)
    _fill(image, 0, resolution // 2, resolution, resolution - resolution // 2, bottom)
    assert image.save(str(path), "PNG")
    return path


def write_noteskin_assets(directory: Path, resolution: int = SPRITE_RESOLUTION) -> Dict[str, Path]:
    directory.mkdir(parents=True, exist_ok=True)
    files = {
        "notes": write_grid(directory / "notes.png", resolution, SNAP_COLORS),
        "receptor": write_strip(directory / "receptor.png", resolution, RECEPTOR_COLOR),
        "mine": write_strip(directory / "mine.png", resolution, MINE_COLOR),
        "center_notes": write_grid(
            directory / "center-notes.png",
            resolution,
            [tuple(min(255, channel + tint) for channel, tint in zip(rgb, CENTER_TINT)) for rgb in SNAP_COLORS],
        ),
        "center_receptor": write_strip(directory / "center-receptor.png", resolution, CENTER_RECEPTOR_COLOR),
        "short_notes": write_grid(directory / "short-notes.png", resolution, SNAP_COLORS[:4]),
    }
    for direction_index, direction in enumerate(("left", "down", "up", "right")):
        files[f"{direction}_note"] = write_strip(
            directory / f"note-{direction}.png", resolution, SNAP_COLORS[direction_index], frames=1
        )
        files[f"{direction}_receptor"] = write_strip(
            directory / f"receptor-{direction}.png", resolution, RECEPTOR_COLOR, frames=1
        )
    return files


def build_noteskin(family: str, files: Dict[str, Path], resolution: int = SPRITE_RESOLUTION) -> Noteskin:
    if family == "ldur_6k":
        return Noteskin.read_ldur_with_6k(resolution, files["notes"], files["receptor"], files["mine"])
    if family == "ldur_mono":
        return Noteskin.read_ldur(
            resolution,
            files["left_note"],
            files["left_receptor"],
            files["down_note"],
            files["down_receptor"],
            files["up_note"],
            files["up_receptor"],
            files["right_note"],
            files["right_receptor"],
            files["mine"],
        )
    if family == "pump":
        return Noteskin.read_pump(
            resolution,
            files["center_notes"],
            files["center_receptor"],
            files["notes"],
            files["receptor"],
            files["mine"],
        )
    return Noteskin.read_bar(resolution, files["notes"], files["receptor"], files["mine"])


def rgb_at(image: QImage, x: int, y: int) -> RGB:
    color = image.pixelColor(x, y)
    return (color.red(), color.green(), color.blue())


def alpha_at(image: QImage, x: int, y: int) -> int:
    return image.pixelColor(x, y).alpha()


@pytest.fixture(scope="session")
def noteskin_files(tmp_path_factory: pytest.TempPathFactory) -> Dict[str, Path]:
    return write_noteskin_assets(tmp_path_factory.mktemp("noteskin"))


@pytest.fixture
def ldur_skin(noteskin_files: Dict[str, Path]) -> Noteskin:
    return build_noteskin("ldur_6k", noteskin_files)


@pytest.fixture
def pump_skin(noteskin_files: Dict[str, Path]) -> Noteskin:
    return build_noteskin("pump", noteskin_files)


@pytest.fixture
def bar_skin(noteskin_files: Dict[str, Path]) -> Noteskin:
    return build_noteskin("bar", noteskin_files)


@pytest.fixture
def mono_skin(noteskin_files: Dict[str, Path]) -> Noteskin:
    return build_noteskin("ldur_mono", noteskin_files)
