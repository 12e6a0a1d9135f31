from typing import Sequence, Tuple

import pytest
from PyQt6.QtGui import QImage

import pattern_render
from fractional_snap import FractionalSnap
from noteskin import InvalidLaneForKeymodeError, Noteskin
from pattern_models import ScrollDirection
from pattern_parser import parse_pattern
from pattern_render import (
    EmptyPatternError,
    HoldsAreUnsupportedError,
    ImageTooLargeError,
    PatternRecipe,
    TooManySpritesError,
    draw_pattern,
    layout_pattern,
)
from tests.conftest import MINE_COLOR, RECEPTOR_COLOR, SNAP_COLORS, SPRITE_RESOLUTION, alpha_at, rgb_at

RES = SPRITE_RESOLUTION
HALF = RES // 2


def make_recipe(
    noteskin: Noteskin,
    segments: Sequence[Tuple[str, int]],
    *,
    keymode: int = 4,
    scroll_direction: ScrollDirection = ScrollDirection.UP,
    zoom: float = 1.0,
    **limits: object,
) -> PatternRecipe:
    return PatternRecipe(
        noteskin=noteskin,
        scroll_direction=scroll_direction,
        keymode=keymode,
        vertical_spacing_multiplier=zoom,
        pattern=[(parse_pattern(text), FractionalSnap(snap)) for text, snap in segments],
        **limits,
    )


def test_chord_pattern_layout(ldur_skin: Noteskin) -> None:
    layout = layout_pattern(make_recipe(ldur_skin, [("[13]4[32]1", 16)]))
    assert len(layout.sprites) == 10
    assert layout.highest_row == 36
    assert layout.canvas_size() == (4 * RES, 4 * RES)

    image = draw_pattern(make_recipe(ldur_skin, [("[13]4[32]1", 16)]))
    assert (image.width(), image.height()) == (64, 64)


def test_output_is_straight_rgba(ldur_skin: Noteskin) -> None:
    image = draw_pattern(make_recipe(ldur_skin, [("1234", 16)]))
    assert image.format() == QImage.Format.Format_RGBA8888


def test_notes_use_snap_colors_and_cover_receptors(ldur_skin: Noteskin) -> None:
    image = draw_pattern(make_recipe(ldur_skin, [("1234", 16)]))
    # rows 0, 12, 24, 36 are 4th, 16th, 8th, 16th
    expected = [SNAP_COLORS[0], SNAP_COLORS[3], SNAP_COLORS[1], SNAP_COLORS[3]]
    for lane, rgb in enumerate(expected):
        assert rgb_at(image, lane * RES + HALF, lane * RES + HALF) == rgb
    assert rgb_at(image, RES + HALF, HALF) == RECEPTOR_COLOR
    assert alpha_at(image, RES + HALF, 2 * RES + HALF) == 0


def test_mines_use_mine_sprite(ldur_skin: Noteskin) -> None:
    image = draw_pattern(make_recipe(ldur_skin, [("m12", 16)]))
    assert rgb_at(image, HALF, HALF) == MINE_COLOR
    assert rgb_at(image, RES + HALF, RES + HALF) == SNAP_COLORS[3]


def test_mines_check_lane(ldur_skin: Noteskin) -> None:
    with pytest.raises(InvalidLaneForKeymodeError):
        layout_pattern(make_recipe(ldur_skin, [("m5", 16)]))


def test_downscroll_mirrors_upscroll(ldur_skin: Noteskin) -> None:
    up = draw_pattern(make_recipe(ldur_skin, [("[13]4[32]1", 16)]))
    down = draw_pattern(make_recipe(ldur_skin, [("[13]4[32]1", 16)], scroll_direction=ScrollDirection.DOWN))
    assert (up.width(), up.height()) == (down.width(), down.height())
    assert up.mirrored(False, True) == down
    assert rgb_at(down, HALF, down.height() - HALF) == SNAP_COLORS[0]


def test_zoom_scales_vertical_spacing(ldur_skin: Noteskin) -> None:
    layout = layout_pattern(make_recipe(ldur_skin, [("1234", 16)], zoom=2.0))
    assert layout.canvas_size() == (4 * RES, 7 * RES)


def test_mixed_snaps_share_one_timeline(ldur_skin: Noteskin) -> None:
    layout = layout_pattern(make_recipe(ldur_skin, [("1234", 16), ("1234", 12)]))
    assert layout.highest_row == 48 + 3 * 16
    note_rows = sorted({sprite.y_pos for sprite in layout.sprites})
    assert note_rows == [0, 12, 24, 36, 48, 64, 80, 96]
    # spacing follows the smallest snap number, 12ths
    assert layout.pixel_y(16) == RES
    assert layout.pixel_y(12) == 12
    assert layout.canvas_size() == (4 * RES, 6 * RES + 16)


def test_mixed_snap_spacing_uses_smallest_snap_number(ldur_skin: Noteskin) -> None:
    layout = layout_pattern(make_recipe(ldur_skin, [("1234", 16), ("1234", 24)]))
    assert layout.vertical_spacing_multiplier == pytest.approx(16 / 192)
    assert layout.highest_row == 72
    assert layout.canvas_size() == (64, 112)


def test_reserved_hold_rows_extend_downscroll(ldur_skin: Noteskin) -> None:
    up = layout_pattern(make_recipe(ldur_skin, [("1[]x3", 16)]))
    down = layout_pattern(make_recipe(ldur_skin, [("1[]x3", 16)], scroll_direction=ScrollDirection.DOWN))
    assert up.highest_row == down.highest_row == 36
    assert up.canvas_size() == (4 * RES, RES)
    assert down.canvas_size() == (4 * RES, 4 * RES)


def test_reserved_hold_rows_shift_later_notes(ldur_skin: Noteskin) -> None:
    layout = layout_pattern(make_recipe(ldur_skin, [("[]x4 1", 16)]))
    assert layout.highest_row == 48
    assert layout.sprites[-1].y_pos == 48


def test_huge_hold_reservation_hits_image_limit(ldur_skin: Noteskin, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pattern_render, "_new_canvas", _forbid_canvas)
    for scroll_direction in ScrollDirection:
        with pytest.raises(ImageTooLargeError):
            draw_pattern(make_recipe(ldur_skin, [("[]x999999999 1", 16)], scroll_direction=scroll_direction))
    with pytest.raises(EmptyPatternError):
        draw_pattern(make_recipe(ldur_skin, [("[]x999999999", 16)]))
    with pytest.raises(HoldsAreUnsupportedError):
        draw_pattern(make_recipe(ldur_skin, [("1x999999999", 16)]))


def test_fractional_snap_segments(ldur_skin: Noteskin) -> None:
    layout = layout_pattern(make_recipe(ldur_skin, [("1234123", 7)]))
    assert layout.highest_row == (192 * 6) // 7
    image = draw_pattern(make_recipe(ldur_skin, [("1234123", 7)]))
    assert image.height() == layout.canvas_size()[1]


def test_empty_patterns(ldur_skin: Noteskin) -> None:
    with pytest.raises(EmptyPatternError, match="Given pattern is empty"):
        draw_pattern(make_recipe(ldur_skin, [("[]x10", 16)]))
    with pytest.raises(EmptyPatternError):
        draw_pattern(make_recipe(ldur_skin, []))


def test_holds_are_unsupported(ldur_skin: Noteskin) -> None:
    with pytest.raises(HoldsAreUnsupportedError):
        draw_pattern(make_recipe(ldur_skin, [("1x4", 16)]))


def test_rejects_bad_recipe_numbers(ldur_skin: Noteskin) -> None:
    with pytest.raises(ValueError):
        layout_pattern(make_recipe(ldur_skin, [("1", 16)], keymode=0))
    with pytest.raises(ValueError):
        layout_pattern(make_recipe(ldur_skin, [("1", 16)], zoom=0.0))


def _forbid_canvas(width: int, height: int) -> QImage:
    raise AssertionError("canvas must not be allocated")


def test_too_many_sprites_before_allocation(ldur_skin: Noteskin, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pattern_render, "_new_canvas", _forbid_canvas)
    with pytest.raises(TooManySpritesError) as error_info:
        draw_pattern(make_recipe(ldur_skin, [("[13]4[32]1", 16)], max_sprites=5))
    assert error_info.value.count == 10
    assert error_info.value.limit == 5


def test_image_too_large_before_allocation(ldur_skin: Noteskin, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pattern_render, "_new_canvas", _forbid_canvas)
    with pytest.raises(ImageTooLargeError, match="63x1000"):
        draw_pattern(make_recipe(ldur_skin, [("1234", 16)], max_image_dimensions=(63, 1000)))
    with pytest.raises(ImageTooLargeError):
        draw_pattern(make_recipe(ldur_skin, [("1234", 16)], max_image_dimensions=(1000, 63)))


def test_canvas_width_follows_keymode(bar_skin: Noteskin) -> None:
    image = draw_pattern(make_recipe(bar_skin, [("1", 16)], keymode=7))
    assert image.width() == 7 * RES
    assert image.height() == RES
