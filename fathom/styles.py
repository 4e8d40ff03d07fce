"""
Fathom styles: colour schemes and the resolved style sheet.

Overview
- Scheme: the named colours of a theme (base, title, codeblock, program, flag, ...).
  Any colour may be None; build() falls back to the base colour.
- default_scheme(dark): the default palette, picking light/dark variants.
- Slot: an immutable style record (rich Style + left/right padding + uppercase).
  Slots compose with `base | override`; the override's set fields win and the
  styles are combined, so sibling renders never share mutable state.
- StyleSheet: every slot the renderers use, resolved once per render for a
  given terminal width.

Customization
- Define a mapping named __styles__ in __main__ to override any Scheme field,
  e.g. __styles__ = {"flag": "#FFD600", "title": "bold magenta"}.
"""
from collections import namedtuple

from rich.style import Style
from rich.text import Text

from .utils import *

# Named colours of the default palette.
_PALETTE = {
    "charcoal": "#3A3943",
    "ash": "#DFDBDD",
    "charple": "#6B50FF",
    "salt": "#F1EFEF",
    "pepper": "#2F2E36",
    "malibu": "#00A4FF",
    "squid": "#858392",
    "smoke": "#747282",
    "guac": "#00BC82",
    "julep": "#00FFB2",
    "pony": "#FF4FBF",
    "dolly": "#FF60FF",
    "coral": "#FF577D",
    "salmon": "#FF7F90",
    "butter": "#FFFAF1",
    "cherry": "#FF388B",
}

# Used when a scheme leaves the error header unset.
_ERROR_PAIR = ("#FFFFFF", "#D70000")


class Scheme(namedtuple("Scheme", (
        "base",
        "title",
        "codeblock",
        "program",
        "dimmed_argument",
        "comment",
        "flag",
        "command",
        "quoted_string",
        "argument",
        "help",
        "error_header",
        "error_details",
), defaults=(None,) * 13)):
    """
    named colours of a theme.

    every field is a rich colour string ("#RRGGBB", "magenta", "color(99)") or None.
    error_header is a (foreground, background) pair.
    """
    __slots__ = ()


def default_scheme(dark=True, /):
    """
    Return the default palette, using the dark-background variants when dark is true.
    """
    def pick(light, dark_):
        return _PALETTE[dark_ if dark else light]

    return Scheme(
        base=pick("charcoal", "ash"),
        title=_PALETTE["charple"],
        codeblock=pick("salt", "pepper"),
        program=_PALETTE["malibu"],
        dimmed_argument=_PALETTE["squid"],
        comment=pick("squid", "smoke"),
        flag=pick("guac", "julep"),
        command=pick("pony", "dolly"),
        quoted_string=pick("coral", "salmon"),
        argument=pick("charcoal", "ash"),
        error_header=(_PALETTE["butter"], _PALETTE["cherry"]),
    )


class Slot(namedtuple("Slot", ("style", "left", "right", "upper"), defaults=(Unset, Unset, Unset))):
    """
    immutable style record: a rich Style plus padding and an uppercase transform.

    composition
    - `base | override` combines the styles (override attributes win) and takes
      every padding/transform field the override sets; Unset fields are inherited.
    - copy.replace(slot, left=0) derives a variant without touching the original.

    rendering
    - render(text) returns a rich Text whose padding columns carry the same style,
      so background colours extend under the padding.
    """
    __slots__ = ()

    def __new__(cls, style=Unset, left=Unset, right=Unset, upper=Unset):
        if isinstance(style, str):
            style = Style.parse(style)
        return super().__new__(cls, coalesce(style, Style.null()), left, right, upper)

    def __or__(self, other, /):
        if not isinstance(other, Slot):
            return NotImplemented
        return Slot(
            self.style + other.style,
            coalesce(other.left, self.left),
            coalesce(other.right, self.right),
            coalesce(other.upper, self.upper),
        )

    def render(self, text="", /):
        text = str(text)
        if self.upper:
            text = text.upper()
        return Text(
            " " * coalesce(self.left, 0) + text + " " * coalesce(self.right, 0),
            style=self.style,
        )


Program = namedtuple("Program", (
    "name",
    "command",
    "flag",
    "argument",
    "dimmed_argument",
    "quoted_string",
))

Codeblock = namedtuple("Codeblock", (
    "base",
    "text",
    "comment",
    "program",
))

StyleSheet = namedtuple("StyleSheet", (
    "width",
    "dark",
    "text",
    "title",
    "span",
    "codeblock",
    "program",
    "flag_description",
    "flag_default",
    "error_header",
    "error_text",
))


def _resolve(scheme):
    # Apply host overrides, then fill every unset colour from the base colour.
    overrides = getattr(__import__("__main__"), "__styles__", {})
    scheme = scheme._replace(**{name: value for name, value in overrides.items() if name in Scheme._fields})
    base = scheme.base or "default"
    return scheme._replace(
        base=base,
        **{
            name: getattr(scheme, name) or base
            for name in Scheme._fields
            if name not in ("base", "codeblock", "error_header")
        },
        error_header=tuple(scheme.error_header or _ERROR_PAIR),
    )


def build(scheme=Unset, width=120, dark=True, /):
    """
    Resolve a colour scheme into the StyleSheet used by every renderer.

    Parameters
    - scheme: Scheme | Callable[[bool], Scheme] | Unset
      A scheme, a function of `dark` returning one, or Unset for default_scheme(dark).
    - width: the measured terminal width the sheet is built for.
    - dark: whether the terminal background is dark.

    Returns
    - StyleSheet: deterministic for equal inputs; performs no I/O.
    """
    if callable(scheme):
        scheme = scheme(dark)
    scheme = coalesce(scheme) or default_scheme(dark)
    if not isinstance(scheme, Scheme):
        raise TypeError("build() scheme must be a Scheme or a callable returning one")
    if not isinstance(width, int) or width < 1:
        raise ValueError("build() width must be a positive integer")

    scheme = _resolve(scheme)
    block = scheme.codeblock

    def on(color):
        return Style(color=color, bgcolor=block)

    return StyleSheet(
        width=width,
        dark=bool(dark),
        text=Slot(Style(color=scheme.base)),
        title=Slot(Style(color=scheme.title, bold=True), left=2, upper=True),
        span=Slot(Style(bgcolor=block)),
        codeblock=Codeblock(
            base=Slot(on(scheme.base)),
            text=Slot(Style(bgcolor=block)),
            comment=Slot(on(scheme.comment)),
            program=Program(
                name=Slot(on(scheme.program)),
                command=Slot(on(scheme.command)),
                flag=Slot(on(scheme.flag)),
                argument=Slot(on(scheme.argument)),
                dimmed_argument=Slot(on(scheme.dimmed_argument)),
                quoted_string=Slot(on(scheme.quoted_string)),
            ),
        ),
        program=Program(
            name=Slot(Style(color=scheme.program)),
            command=Slot(Style(color=scheme.command)),
            flag=Slot(Style(color=scheme.flag)),
            argument=Slot(Style(color=scheme.argument)),
            dimmed_argument=Slot(Style(color=scheme.dimmed_argument)),
            quoted_string=Slot(Style(color=scheme.quoted_string)),
        ),
        flag_description=Slot(Style(color=scheme.help)),
        flag_default=Slot(Style(color=scheme.dimmed_argument), left=1),
        error_header=Slot(
            Style(color=scheme.error_header[0], bgcolor=scheme.error_header[1], bold=True),
            left=1,
            right=1,
            upper=True,
        ),
        error_text=Slot(Style(color=scheme.error_details)),
    )


__all__ = (
    "Scheme",
    "default_scheme",
    "Slot",
    "Program",
    "Codeblock",
    "StyleSheet",
    "build",
)
