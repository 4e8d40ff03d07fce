"""
Fathom terminal capabilities: width, colour profile and console construction.

Width resolution (first match wins, always clamped to MAX_WIDTH)
1. the FATHOM_WIDTH environment variable (a positive integer),
2. the size of the terminal behind the output stream,
3. DEFAULT_WIDTH.

Terminal instances cache what they measure (functools.cached_property), so
one render pass sees one width; create a new Terminal per pass, or inject a
fixed one in tests.
"""
import enum
import functools
import logging
import os
import sys

from rich.console import Console

from .utils import *

logger = logging.getLogger(__name__)

WIDTH_VARIABLE = "FATHOM_WIDTH"
DEFAULT_WIDTH = 120
MAX_WIDTH = 120


class ColorProfile(enum.IntEnum):
    """
    colour capability of an output stream, ordered from least to most capable.

    - NOTTY: not a terminal; no escape sequences at all.
    - ASCII: terminal without colour (NO_COLOR); attributes such as bold remain.
    - ANSI / ANSI256 / TRUECOLOR: 16, 256 and 24-bit colour.
    """
    NOTTY = 0
    ASCII = 1
    ANSI = 2
    ANSI256 = 3
    TRUECOLOR = 4


_SYSTEMS = {
    ColorProfile.NOTTY: None,
    ColorProfile.ASCII: "standard",
    ColorProfile.ANSI: "standard",
    ColorProfile.ANSI256: "256",
    ColorProfile.TRUECOLOR: "truecolor",
}

_PROFILES = {
    "standard": ColorProfile.ANSI,
    "windows": ColorProfile.ANSI,
    "256": ColorProfile.ANSI256,
    "truecolor": ColorProfile.TRUECOLOR,
}


def _isatty(stream):
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def detect_profile(stream, /, environ=Unset):
    """
    Detect the colour profile of `stream`.

    Not a terminal -> NOTTY; NO_COLOR set -> ASCII; otherwise the colour system rich
    detects for the stream.
    """
    environ = coalesce(environ, os.environ)
    if not _isatty(stream):
        return ColorProfile.NOTTY
    if environ.get("NO_COLOR"):
        return ColorProfile.ASCII
    system = Console(file=stream).color_system
    return _PROFILES.get(system, ColorProfile.ASCII)


class Terminal:
    """
    Request-scoped view of an output terminal.

    Parameters
    - stream: the stream output is written to (defaults to sys.stdout at creation).
    - environ: mapping consulted for overrides (defaults to os.environ).
    - width: fixed width, bypassing detection (still clamped).
    - profile: fixed ColorProfile, bypassing detection.
    """

    def __init__(self, stream=Unset, /, environ=Unset, *, width=Unset, profile=Unset):
        self._stream = coalesce(stream, sys.stdout)
        self._environ = coalesce(environ, os.environ)
        if width is not Unset:
            self.width = min(int(width), MAX_WIDTH)
        if profile is not Unset:
            self.profile = ColorProfile(profile)

    @functools.cached_property
    def width(self):
        if value := self._environ.get(WIDTH_VARIABLE):
            try:
                width = int(value)
            except ValueError:
                logger.debug("ignoring non-numeric %s=%r", WIDTH_VARIABLE, value)
            else:
                if width > 0:
                    return min(width, MAX_WIDTH)
                logger.debug("ignoring non-positive %s=%r", WIDTH_VARIABLE, value)
        try:
            columns = os.get_terminal_size(self._stream.fileno()).columns
        except (AttributeError, ValueError, OSError):
            logger.debug("terminal size unavailable, using %d columns", DEFAULT_WIDTH)
            return DEFAULT_WIDTH
        return min(columns, MAX_WIDTH)

    @functools.cached_property
    def profile(self):
        return detect_profile(self._stream, self._environ)

    def console(self, file=Unset, /):
        """
        A console writing to `file` (default: the terminal's stream) at this terminal's
        width and profile.
        """
        return console(coalesce(file, self._stream), self.profile, self.width)


def console(file, profile, width, /):
    """
    Build a rich Console bound to `file` for the given profile and width.

    Markup, highlighting and emoji are disabled and soft wrapping is on: the
    renderers hand over finished lines, the console only encodes styles.
    """
    return Console(
        file=file,
        width=width,
        color_system=_SYSTEMS[profile],
        no_color=profile is ColorProfile.ASCII,
        force_terminal=profile is not ColorProfile.NOTTY,
        markup=False,
        highlight=False,
        emoji=False,
        soft_wrap=True,
        legacy_windows=False,
    )


__all__ = (
    "WIDTH_VARIABLE",
    "DEFAULT_WIDTH",
    "MAX_WIDTH",
    "ColorProfile",
    "detect_profile",
    "Terminal",
    "console",
)
