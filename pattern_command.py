"""
pattern_command.py

Front-end for the `pattern` chat command and a matching command line tool.

Purpose
- Split the free-text command argument into modifier words and pattern text
- Parse every pattern segment, guess the keymode, choose a noteskin
- Render with the configured limits and hand back the image plus user-facing warnings

Modifier words (tried in this order, anything else is pattern text)
- snap:      16th, 12ths, 1st, 2nd, 3rds, 7ths ... starts a new segment at that snap
- noteskin:  dbz, wafles, lambda/default, delta-note, sbz, mbz, eobaner, rustmania
- zoom:      2x, 0.5x
- scroll:    up, down, reverse
- keymode:   4k, 6k, 7K

Standalone usage
python pattern_command.py "16ths [13]4[32]1 12ths 1234 down" -o pattern.png
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from PyQt6.QtCore import QBuffer, QByteArray, QIODevice
from PyQt6.QtGui import QImage

from config import AppConfig, get_config, load_config
from fractional_snap import FractionalSnap
from noteskin import Noteskin
from noteskin_library import NoteskinLibrary
from pattern_models import Pattern, PatternError, ScrollDirection
from pattern_parser import parse_pattern
from pattern_render import EmptyPatternError, PatternRecipe, draw_pattern

logger = logging.getLogger(__name__)

_SNAP_ENDINGS = ("st", "sts", "nd", "nds", "rd", "rds", "th", "ths")

HELP_TEXT = """Visualize a note pattern.

Lanes are digits (`1234`), `(12)` for lane 12, or `L` `D` `U` `R`. Put chords in brackets: `[13]4[32]1`.
`0` or `[]` is an empty row, `m3` is a mine.

Add any of these words anywhere:
- a snap like `16ths` or `12ths` (applies to everything after it)
- a noteskin: dbz, wafles, lambda, delta-note, sbz, mbz, eobaner, rustmania
- a zoom like `2x`
- `up` or `down` for the scroll direction
- a keymode like `6k`

Example: `16ths [12]34 24ths 1234 down 2x`"""


@dataclass
class PatternRequest:
    segments: List[Tuple[str, FractionalSnap]] = field(default_factory=list)
    noteskin: Optional[Noteskin] = None
    keymode: Optional[int] = None
    zoom: float = 1.0
    scroll_direction: ScrollDirection = ScrollDirection.UP
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CommandResult:
    image: Optional[QImage]
    warnings: List[str]
    keymode: int = 0
    help_text: Optional[str] = None


def _extract_snap(word: str) -> Tuple[bool, Optional[FractionalSnap]]:
    """Returns (user_intended, snap)."""
    lowered = word.lower()
    ending = next((ending for ending in _SNAP_ENDINGS if lowered.endswith(ending)), None)
    if ending is None:
        return (False, None)
    number_text = word[: len(word) - len(ending)]
    if not number_text.isdecimal():
        return (False, None)
    return (True, FractionalSnap.from_snap_number(int(number_text)))


def _extract_zoom(word: str) -> Tuple[bool, Optional[float]]:
    if not word.endswith("x"):
        return (False, None)
    try:
        zoom = float(word[:-1])
    except ValueError:
        return (False, None)
    if zoom > 0.0 and zoom != float("inf"):
        return (True, zoom)
    return (True, None)


def _extract_scroll_direction(word: str) -> Optional[ScrollDirection]:
    lowered = word.lower()
    if lowered == "up":
        return ScrollDirection.UP
    if lowered in ("down", "reverse"):
        return ScrollDirection.DOWN
    return None


def _extract_keymode(word: str) -> Tuple[bool, Optional[int]]:
    if not word.endswith(("k", "K")):
        return (False, None)
    number_text = word[:-1]
    if not number_text.isdecimal():
        return (False, None)
    keymode = int(number_text)
    if keymode > 0:
        return (True, keymode)
    return (True, None)


def parse_command_arguments(
    text: str,
    library: NoteskinLibrary,
    *,
    default_snap: int = 16,
    default_zoom: float = 1.0,
    default_scroll: ScrollDirection = ScrollDirection.UP,
) -> PatternRequest:
    snap = FractionalSnap.from_snap_number(default_snap) or FractionalSnap(16)
    request = PatternRequest(zoom=float(default_zoom), scroll_direction=default_scroll)
    pattern_buffer = ""

    for word in str(text or "").split():
        intended, new_snap = _extract_snap(word)
        if new_snap is not None:
            if pattern_buffer:
                request.segments.append((pattern_buffer, snap))
                pattern_buffer = ""
            snap = new_snap
            continue
        if intended:
            request.warnings.append(f'"{word}" is not a valid snap')

        noteskin = library.find(word)
        if noteskin is not None:
            request.noteskin = noteskin
            continue

        intended, zoom = _extract_zoom(word)
        if zoom is not None:
            request.zoom = zoom
            continue
        if intended:
            request.warnings.append(f'"{word}" is not a valid zoom option')

        scroll_direction = _extract_scroll_direction(word)
        if scroll_direction is not None:
            request.scroll_direction = scroll_direction
            continue

        intended, keymode = _extract_keymode(word)
        if keymode is not None:
            request.keymode = keymode
            continue
        if intended:
            request.warnings.append(f'"{word}" is not a valid keymode')

        pattern_buffer += word

    if pattern_buffer:
        request.segments.append((pattern_buffer, snap))
    return request


def guess_keymode(segments: List[Tuple[Pattern, FractionalSnap]]) -> int:
    highest_column = max((pattern.highest_column(4) for pattern, _ in segments), default=-1)
    if highest_column < 0:
        raise EmptyPatternError()
    return max(highest_column + 1, 4)


def render_command(text: str, library: NoteskinLibrary, app_config: AppConfig) -> CommandResult:
    # People are supposed to ask for help separately, but `pattern help` is common enough.
    if str(text or "").strip().lower() == "help":
        return CommandResult(image=None, warnings=[], help_text=HELP_TEXT)

    defaults = app_config.defaults
    request = parse_command_arguments(
        text,
        library,
        default_snap=defaults.snap,
        default_zoom=defaults.zoom,
        default_scroll=ScrollDirection(defaults.scroll),
    )

    segments = [(parse_pattern(pattern_text), snap) for pattern_text, snap in request.segments]
    keymode = request.keymode if request.keymode is not None else guess_keymode(segments)
    noteskin = request.noteskin if request.noteskin is not None else library.default_for_keymode(keymode)

    render_config = app_config.render
    image = draw_pattern(
        PatternRecipe(
            noteskin=noteskin,
            scroll_direction=request.scroll_direction,
            keymode=keymode,
            vertical_spacing_multiplier=request.zoom,
            pattern=segments,
            max_image_dimensions=(render_config.max_image_width, render_config.max_image_height),
            max_sprites=render_config.max_sprites,
        )
    )
    return CommandResult(image=image, warnings=list(request.warnings), keymode=keymode)


def encode_png(image: QImage) -> bytes:
    byte_array = QByteArray()
    buffer = QBuffer(byte_array)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    try:
        if not image.save(buffer, "PNG"):
            raise OSError("Failed to encode pattern image as PNG")
    finally:
        buffer.close()
    return bytes(byte_array.data())


def main() -> int:
    argument_parser = argparse.ArgumentParser(description="Render a note pattern to a PNG image")
    argument_parser.add_argument("pattern", nargs="+", help='Pattern text plus modifiers, e.g. "16ths [13]4[32]1 down"')
    argument_parser.add_argument("-o", "--output", default="pattern.png", help="Output PNG path.")
    argument_parser.add_argument("--config", default=None, help="Config file path (overrides the search order).")
    argument_parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parsed_args = argument_parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if parsed_args.config:
            app_config, _config_path = load_config(Path(parsed_args.config))
        else:
            app_config, _config_path = get_config()
    except Exception as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    library = NoteskinLibrary.load(app_config)

    try:
        result = render_command(" ".join(parsed_args.pattern), library, app_config)
    except PatternError as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    if result.help_text is not None:
        print(result.help_text)
        return 0

    output_path = Path(parsed_args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(encode_png(result.image))

    output_payload = {
        "ok": True,
        "output_path": str(output_path),
        "width": result.image.width(),
        "height": result.image.height(),
        "keymode": result.keymode,
        "warnings": result.warnings,
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
