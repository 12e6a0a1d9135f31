# -*- coding: utf-8 -*-
########################
# noteskin_library.py
########################
# Purpose:
# - Owns every loaded noteskin and resolves user-typed noteskin names.
# - Picks a default noteskin for a keymode.
#
# Design notes:
# - Built once at startup from config.AppConfig and passed to whoever renders. No module globals.
# - A skin that fails to load is logged and left out; the rest of the library still loads.
# - Skins are read-only after load() returns.
#
########################
# Interfaces:
# Public exceptions:
# - class NoNoteskinsLoadedError(NoteskinError)
#
# Public functions:
# - normalize_noteskin_name(name: str) -> str
# - load_noteskin(entry: NoteskinEntryConfig, assets_dir: pathlib.Path) -> Noteskin
#
# Public classes:
# - class NoteskinLibrary
#   - load(app_config: AppConfig) -> NoteskinLibrary
#   - add(name: str, noteskin: Noteskin, *, aliases: Iterable[str] = ()) -> None
#   - names() -> list[str]
#   - get(name: str) -> Noteskin
#   - find(name: str) -> Optional[Noteskin]
#   - default_for_keymode(keymode: int) -> Noteskin
#
########################

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from config import AppConfig, NoteskinEntryConfig
from noteskin import Noteskin, NoteskinError
import paths

logger = logging.getLogger(__name__)

# keymode -> noteskin name, anything else falls back to the bar skin
_DEFAULT_NOTESKIN_BY_KEYMODE = {
    3: "dbz",
    4: "dbz",
    6: "dbz",
    8: "dbz",
    5: "delta-note",
    10: "delta-note",
}
_FALLBACK_NOTESKIN = "sbz"


class NoNoteskinsLoadedError(NoteskinError):
    def __init__(self) -> None:
        super().__init__("No noteskins are loaded")


def normalize_noteskin_name(name: str) -> str:
    """Lowercase and drop every non-alphanumeric character: `Delta-Note` -> `deltanote`."""
    return "".join(char for char in str(name or "").lower() if char.isalnum())


def load_noteskin(entry: NoteskinEntryConfig, assets_dir: Path) -> Noteskin:
    files = {role: assets_dir / file_name for role, file_name in entry.files.items()}
    resolution = int(entry.sprite_resolution)

    if entry.family == "ldur_6k":
        noteskin = Noteskin.read_ldur_with_6k(resolution, files["notes"], files["receptor"], files["mine"])
    elif entry.family == "ldur_mono":
        noteskin = Noteskin.read_ldur(
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
    elif entry.family == "pump":
        noteskin = Noteskin.read_pump(
            resolution,
            files["center_notes"],
            files["center_receptor"],
            files["corner_notes"],
            files["corner_receptor"],
            files["mine"],
        )
    else:
        noteskin = Noteskin.read_bar(resolution, files["notes"], files["receptor"], files["mine"])

    if entry.resize_to is not None:
        noteskin.resize_sprites(int(entry.resize_to))
    if entry.upside_down:
        noteskin.turn_sprites_upside_down()
    return noteskin


class NoteskinLibrary:
    def __init__(self) -> None:
        self._noteskins: Dict[str, Noteskin] = {}
        self._lookup: Dict[str, str] = {}

    @classmethod
    def load(cls, app_config: AppConfig) -> "NoteskinLibrary":
        library = cls()
        assets_dir = paths.noteskin_assets_dir(app_config.assets_dir)
        for entry in app_config.noteskins:
            try:
                noteskin = load_noteskin(entry, assets_dir)
            except NoteskinError as exc:
                logger.warning("Skipping noteskin %r: %s", entry.name, exc)
                continue
            library.add(entry.name, noteskin, aliases=entry.aliases)
        logger.info("Loaded %d noteskins from %s", len(library.names()), assets_dir)
        return library

    def add(self, name: str, noteskin: Noteskin, *, aliases: Iterable[str] = ()) -> None:
        self._noteskins[name] = noteskin
        for lookup_name in [name, *aliases]:
            self._lookup[normalize_noteskin_name(lookup_name)] = name

    def names(self) -> List[str]:
        return list(self._noteskins)

    def get(self, name: str) -> Noteskin:
        return self._noteskins[name]

    def find(self, name: str) -> Optional[Noteskin]:
        canonical_name = self._lookup.get(normalize_noteskin_name(name))
        if canonical_name is None:
            return None
        return self._noteskins.get(canonical_name)

    def default_for_keymode(self, keymode: int) -> Noteskin:
        preferred = _DEFAULT_NOTESKIN_BY_KEYMODE.get(int(keymode), _FALLBACK_NOTESKIN)
        for candidate in (preferred, _FALLBACK_NOTESKIN):
            noteskin = self._noteskins.get(candidate)
            if noteskin is not None:
                return noteskin
        # a custom config without the stock skins: first one that fits, else the first one at all
        for noteskin in self._noteskins.values():
            if noteskin.supports_keymode(keymode):
                return noteskin
        if self._noteskins:
            return next(iter(self._noteskins.values()))
        raise NoNoteskinsLoadedError()
