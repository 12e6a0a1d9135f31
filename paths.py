# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Central filesystem path helpers for the app.
# - Defines where noteskin images live relative to the project root.
#
# Design notes:
# - Keep path derivation consistent across modules.
# - No Qt usage. Return pathlib.Path only.
#
########################
# Interfaces:
# Public functions:
# - app_root_dir() -> pathlib.Path
# - noteskin_assets_dir(assets_dir: Optional[str]) -> pathlib.Path
#
# Inputs:
# - Optional configured assets directory (config.AppConfig.assets_dir).
#
# Outputs:
# - Paths used by noteskin_library.py.
#
########################

from __future__ import annotations

from pathlib import Path
from typing import Optional


def app_root_dir() -> Path:
    """Return the directory that holds this project's modules and bundled assets."""
    return Path(__file__).resolve().parent


def noteskin_assets_dir(assets_dir: Optional[str] = None) -> Path:
    """Return the noteskin image directory (not created automatically).

    A configured relative path is resolved against the current working directory first,
    then against the app root.
    """
    if not assets_dir:
        return app_root_dir() / "assets" / "noteskin"

    configured = Path(assets_dir).expanduser()
    if configured.is_absolute():
        return configured

    cwd_candidate = Path.cwd() / configured
    if cwd_candidate.exists():
        return cwd_candidate
    return app_root_dir() / configured
