"""
config.py

Typed configuration loading and validation for the pattern renderer.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included, a missing file means all defaults)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If PATTERN_DRAW_CONFIG_PATH is set, that file is used.
- Otherwise these paths are searched in order and the first one that exists is used:
  1) ./pattern_draw_config.json (current working directory)
  2) <platformdirs user config dir for PatternDraw>/config.json

Example config file (pattern_draw_config.json)
{
  "render": {
    "max_image_width": 5000,
    "max_image_height": 10000,
    "max_sprites": 1000
  },
  "defaults": {
    "snap": 16,
    "zoom": 1.0,
    "scroll": "up"
  },
  "assets_dir": "assets/noteskin",
  "noteskins": [
    {
      "name": "dbz",
      "aliases": ["dividebyzero"],
      "family": "ldur_6k",
      "sprite_resolution": 64,
      "files": {"notes": "dbz-notes.png", "receptor": "dbz-receptor.png", "mine": "dbz-mine.png"}
    }
  ]
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


# Files each texture family needs, keyed by role.
FAMILY_FILE_ROLES: Dict[str, Tuple[str, ...]] = {
    "ldur_6k": ("notes", "receptor", "mine"),
    "ldur_mono": (
        "left_note",
        "left_receptor",
        "down_note",
        "down_receptor",
        "up_note",
        "up_receptor",
        "right_note",
        "right_receptor",
        "mine",
    ),
    "pump": ("center_notes", "center_receptor", "corner_notes", "corner_receptor", "mine"),
    "bar": ("notes", "receptor", "mine"),
}


class RenderConfig(BaseModel):
    max_image_width: int = Field(default=5000, ge=1, description="Widest image a render may produce, in pixels.")
    max_image_height: int = Field(default=10000, ge=1, description="Tallest image a render may produce, in pixels.")
    max_sprites: int = Field(default=1000, ge=1, description="Most receptors plus notes a render may place.")


class PatternDefaultsConfig(BaseModel):
    snap: int = Field(default=16, ge=1, description="Snap used until the pattern text names one.")
    zoom: float = Field(default=1.0, gt=0.0, description="Vertical spacing multiplier.")
    scroll: str = Field(default="up", description="up or down")

    @field_validator("scroll")
    @classmethod
    def validate_scroll(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        if normalized in {"up", "upscroll"}:
            return "up"
        if normalized in {"down", "downscroll", "reverse"}:
            return "down"
        raise ValueError("scroll must be one of: up, down")


class NoteskinEntryConfig(BaseModel):
    name: str
    aliases: List[str] = Field(default_factory=list)
    family: Literal["ldur_6k", "ldur_mono", "pump", "bar"]
    sprite_resolution: int = Field(ge=1)
    files: Dict[str, str]
    resize_to: Optional[int] = Field(default=None, ge=1, description="Resize every sprite after loading.")
    upside_down: bool = Field(default=False, description="Turn every sprite by 180 degrees after loading.")

    @model_validator(mode="after")
    def validate_files(self) -> "NoteskinEntryConfig":
        missing = [role for role in FAMILY_FILE_ROLES[self.family] if not self.files.get(role)]
        if missing:
            raise ValueError(f"noteskin {self.name!r} ({self.family}) is missing files: {', '.join(missing)}")
        return self


def _ldur_6k_entry(name: str, prefix: str, sprite_resolution: int, **extra: Any) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "name": name,
        "family": "ldur_6k",
        "sprite_resolution": sprite_resolution,
        "files": {
            "notes": f"{prefix}-notes.png",
            "receptor": f"{prefix}-receptor.png",
            "mine": f"{prefix}-mine.png",
        },
    }
    entry.update(extra)
    return entry


def _default_noteskins() -> List[NoteskinEntryConfig]:
    raw_entries: List[Dict[str, Any]] = [
        _ldur_6k_entry("dbz", "dbz", 64, aliases=["dividebyzero"]),
        _ldur_6k_entry("wafles", "wafles", 64, aliases=["wafles3"]),
        _ldur_6k_entry("lambda", "lambda", 128, aliases=["default"], resize_to=64),
        {
            "name": "delta-note",
            "aliases": ["delta"],
            "family": "pump",
            "sprite_resolution": 64,
            "files": {
                "center_notes": "deltanote-center-notes.png",
                "center_receptor": "deltanote-center-receptor.png",
                "corner_notes": "deltanote-corner-notes.png",
                "corner_receptor": "deltanote-corner-receptor.png",
                "mine": "deltanote-mine.png",
            },
        },
        {
            "name": "sbz",
            "aliases": ["subtractbyzero"],
            "family": "bar",
            "sprite_resolution": 64,
            "files": {"notes": "sbz-notes.png", "receptor": "sbz-receptor.png", "mine": "dbz-mine.png"},
        },
        {
            "name": "mbz",
            "aliases": ["multiplybyzero"],
            "family": "bar",
            "sprite_resolution": 64,
            "files": {"notes": "mbz-notes.png", "receptor": "mbz-receptor.png", "mine": "dbz-mine.png"},
        },
        {
            "name": "eobaner",
            "family": "ldur_mono",
            "sprite_resolution": 120,
            "files": {
                "left_note": "eobaner-note-left.png",
                "left_receptor": "eobaner-receptor-left.png",
                "down_note": "eobaner-note-down.png",
                "down_receptor": "eobaner-receptor-down.png",
                "up_note": "eobaner-note-up.png",
                "up_receptor": "eobaner-receptor-up.png",
                "right_note": "eobaner-note-right.png",
                "right_receptor": "eobaner-receptor-right.png",
                "mine": "eobaner-mine.png",
            },
        },
        # the source texture was drawn the wrong way round
        _ldur_6k_entry("rustmania", "rustmania", 224, upside_down=True),
    ]
    return [NoteskinEntryConfig.model_validate(entry) for entry in raw_entries]


class AppConfig(BaseModel):
    render: RenderConfig = Field(default_factory=RenderConfig)
    defaults: PatternDefaultsConfig = Field(default_factory=PatternDefaultsConfig)
    assets_dir: Optional[str] = Field(default=None, description="Noteskin image directory. Relative paths resolve from the app root.")
    noteskins: List[NoteskinEntryConfig] = Field(default_factory=_default_noteskins)

    @field_validator("assets_dir")
    @classmethod
    def normalize_assets_dir(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("PatternDraw", "PatternDraw"))
    return [
        Path.cwd() / "pattern_draw_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("PATTERN_DRAW_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path
    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - PATTERN_DRAW_MAX_IMAGE_WIDTH
    - PATTERN_DRAW_MAX_IMAGE_HEIGHT
    - PATTERN_DRAW_MAX_SPRITES
    - PATTERN_DRAW_DEFAULT_SCROLL
    - PATTERN_DRAW_ASSETS_DIR
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    render_section = ensure_nested(updated_config, "render")
    defaults_section = ensure_nested(updated_config, "defaults")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    override_int("PATTERN_DRAW_MAX_IMAGE_WIDTH", render_section, "max_image_width")
    override_int("PATTERN_DRAW_MAX_IMAGE_HEIGHT", render_section, "max_image_height")
    override_int("PATTERN_DRAW_MAX_SPRITES", render_section, "max_sprites")

    override_string("PATTERN_DRAW_DEFAULT_SCROLL", defaults_section, "scroll")

    override_string("PATTERN_DRAW_ASSETS_DIR", updated_config, "assets_dir")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "defaults"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": config.model_dump(),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
