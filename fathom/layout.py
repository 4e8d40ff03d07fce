"""
Fathom layout engine: width math, truncation, wrapping and column alignment.

All measurements are display widths (terminal cells) as computed by rich:
wide characters count twice and styles are spans, never bytes, so nothing
here can cut through an escape sequence. Plain strings that already contain
ANSI escapes are parsed with Text.from_ansi before they are measured.

Constants
- MIN_SPACE: readability floor of the label column (commands/flags tables).
- GAP: columns between the widest label and its help text.
- INDENT: left indent of table rows.
- ELLIPSIS: glyph appended by truncate().
"""
import io

from rich.console import Console
from rich.text import Text

from .utils import *

MIN_SPACE = 10
GAP = 2
INDENT = 4
ELLIPSIS = "…"

# Narrowest help column worth wrapping into; below it rows overflow instead.
_MIN_HELP = 10

# Text.wrap() wants a console; the default justification never consults it.
_console = Console(file=io.StringIO(), color_system=None, legacy_windows=False)


def _text(block):
    if isinstance(block, Text):
        return block.copy()
    return Text.from_ansi(str(block))


def display_width(block, /):
    """
    Terminal columns occupied by the widest line of `block` (Text or str).
    """
    if not isinstance(block, Text):
        block = Text.from_ansi(str(block))
    return max((line.cell_len for line in block.split("\n", allow_blank=True)), default=0)


def compute_width(blocks, terminal_width, padding, /):
    """
    Width of a padded box able to hold every block, capped by the terminal.

    Returns min(terminal_width - padding, max(display_width(block)) + padding).
    """
    widest = max(map(display_width, blocks), default=0)
    return min(terminal_width - padding, widest + padding)


def truncate(block, max_width, /):
    """
    Cut `block` to at most `max_width` columns, ending in an ellipsis when cut.

    The cut lands on the last cell boundary that fits max_width - 1 columns; a wide
    character that would straddle the boundary is replaced by padding. Styles are
    kept on the surviving characters. The input is never modified.
    """
    text = _text(block)
    if max_width < 1:
        return Text("", style=text.style)
    text.truncate(max_width, overflow="ellipsis")
    return text


def compute_column_space(*label_sets):
    """
    Shared label-column width for one or more tables.

    Returns max(MIN_SPACE, widest label + GAP) over every label of every set, so the
    commands and flags tables align identically whether measured apart or together.
    """
    return max([MIN_SPACE, *(display_width(label) + GAP for labels in label_sets for label in labels)])


def _wrap(block, width):
    lines = _text(block).wrap(_console, max(width, 1), overflow="fold")
    for line in lines:
        line.rstrip()
    return lines


def wrap_and_pad(text, width, /, indent=0):
    """
    Word-wrap `text` to `width` columns and left-pad every line by `indent`.

    Words are never broken unless a single word is wider than `width`, in which case
    it is hard-broken. Explicit newlines start new paragraphs.
    """
    return Text("\n").join(Text(" " * indent) + line for line in _wrap(text, width))


def codeblock(lines, width, slot, /, padding=(1, 2), margin=2):
    """
    Render lines inside a padded box filled with the style of `slot`.

    Parameters
    - lines: Text/str lines; wider lines are truncated to the inner width.
    - width: box width including horizontal padding (see compute_width()).
    - slot: Slot providing the box style (background and base foreground).
    - padding: (vertical, horizontal) padding inside the box.
    - margin: unstyled columns left of the box.

    Returns
    - Text of the whole box, rows joined by newlines.
    """
    vertical, horizontal = padding
    inner = max(width - 2 * horizontal, 1)
    width = inner + 2 * horizontal

    blank = Text(" " * margin) + slot.render(" " * width)
    rows = [blank.copy() for _ in range(vertical)]
    for line in lines:
        body = Text(style=slot.style)
        body.append(truncate(line, inner))
        body.append(" " * (inner - body.cell_len))
        row = Text(" " * margin)
        row.append(slot.render(" " * horizontal))
        row.append(body)
        row.append(slot.render(" " * horizontal))
        rows.append(row)
    rows.extend(blank.copy() for _ in range(vertical))
    return Text("\n").join(rows)


def row(label, help, space, /, indent=INDENT, width=Unset):
    """
    One aligned table row: indent, label, padding up to `space`, help text.

    When `width` is given and the help text would overflow it, the help wraps with
    a hanging indent under its own column (provided that column is usable).
    """
    line = Text(" " * indent)
    line.append(_text(label))
    line.append(" " * (space - display_width(label)))

    available = coalesce(width, 0) - indent - space
    help = _text(help)
    if available < _MIN_HELP or help.cell_len <= available:
        line.append(help)
        return line

    lines = _wrap(help, available)
    line.append(lines[0])
    for rest in lines[1:]:
        line.append("\n" + " " * (indent + space))
        line.append(rest)
    return line


__all__ = (
    "MIN_SPACE",
    "GAP",
    "INDENT",
    "ELLIPSIS",
    "display_width",
    "compute_width",
    "truncate",
    "compute_column_space",
    "wrap_and_pad",
    "codeblock",
    "row",
)
