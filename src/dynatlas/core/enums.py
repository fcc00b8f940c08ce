"""Enumerations shared by the lookup table and its builders."""

from __future__ import annotations

from enum import Enum


class TimeMode(str, Enum):
    """Which kind of sample a time-ordered label query keeps.

    Values:
        STATIC: Fixed embryos with a single timestamp.
        DYNAMIC: Live-imaged embryos with one timestamp per TIFF page.
    """

    STATIC = "static"
    DYNAMIC = "dynamic"
