"""Patch version helpers."""

from __future__ import annotations

UNKNOWN_PATCH = "unknown"


def extract_patch(game_version: str | None) -> str:
    """Short patch name from a client version.

    The API reports season 2025 clients as ``15.x`` while the patches are
    published as ``25.x``; those are translated.

    >>> extract_patch("15.3.652.4213")
    '25.3'
    >>> extract_patch("14.24.1")
    '14.24'
    """
    if not game_version:
        return UNKNOWN_PATCH
    parts = game_version.split(".")
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        return UNKNOWN_PATCH
    major, minor = int(parts[0]), int(parts[1])
    if major == 15:
        major = 25
    return f"{major}.{minor}"


def is_patch_accepted(patch: str, accepted: list[str] | None) -> bool:
    """True when no allow-list is configured or ``patch`` is on it."""
    if patch == UNKNOWN_PATCH:
        return False
    return not accepted or patch in accepted
