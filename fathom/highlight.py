"""
Fathom example highlighter: classified tokens -> styled rich Text.

Every token after the first carries one column of left padding rendered in its
own slot, so inter-token spacing keeps the codeblock background and never
bleeds the style of a closing quote into the next token. Glued tokens (the
value half of NAME=value) carry no padding.
"""
from rich.text import Text

from .styles import Slot
from .tokens import TokenKind, tokenize_block

_SLOTS = {
    TokenKind.PROGRAM: "name",
    TokenKind.SUBCOMMAND: "command",
    TokenKind.FLAG: "flag",
    TokenKind.FLAG_VALUE: "argument",
    TokenKind.QUOTED: "quoted_string",
    TokenKind.CONTINUATION: "dimmed_argument",
    TokenKind.ARGUMENT: "argument",
}


def highlight(tokens, sheet, /, indent=False):
    """
    Render one line of tokens with the codeblock slots of `sheet`.

    indent=True shifts the first token two columns right (the line continues a
    previous line that ended with a backslash).
    """
    program = sheet.codeblock.program
    line = Text()
    for index, token in enumerate(tokens):
        if token.kind is TokenKind.COMMENT:
            line.append(sheet.codeblock.comment.render(token.text))
            continue
        if index == 0:
            left = 2 if indent else 0
        else:
            left = 0 if token.glued else 1
        slot = getattr(program, _SLOTS[token.kind]) | Slot(left=left)
        line.append(slot.render(token.text))
    return line


def highlight_example(text, resolver, sheet, /):
    """
    Tokenize and highlight a raw example block; returns one Text per output line.
    """
    lines = []
    indent = False
    for line, tokens in tokenize_block(text, resolver):
        lines.append(highlight(tokens, sheet, indent))
        indent = len(line) > 1 and line.endswith("\\")
    return lines


__all__ = (
    "highlight",
    "highlight_example",
)
