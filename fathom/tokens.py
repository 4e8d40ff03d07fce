r"""
Fathom example tokenizer.

Splits shell-like example lines into classified tokens so the highlighter can
style them. Classification is best-effort: nothing here ever raises on odd
input, an unterminated quote simply stays open until the block ends.

Token kinds
- PROGRAM: the documented command's own name (first occurrence on a line).
- SUBCOMMAND: a word naming a child of the current command; the cursor then
  descends, so "example sub another" resolves both levels.
- FLAG: a dash-prefixed word, or the "NAME=" half of an assignment seen
  before the program name (environment variables).
- FLAG_VALUE: the word bound to a preceding non-boolean flag, or the value
  half of a leading assignment.
- QUOTED: every fragment of a double-quoted string, opening to closing.
- COMMENT: a whole line starting with "# ".
- CONTINUATION: a trailing lone backslash.
- ARGUMENT: anything else (including inline --flag=value values).

State
- TokenizerState(inside_quote, pending, continues) threads through a line.
  Between lines only inside_quote survives, and only when the previous line
  ended with a continuation marker; otherwise every line starts fresh.

Resolver protocol
- resolver.name: the program name.
- resolver.resolve_child(name) -> node | None
- resolver.resolve_flag(word) -> Flag | None (flag.boolean tells whether it takes a value)
"""
from collections import namedtuple
from enum import Enum


class TokenKind(Enum):
    PROGRAM = "program"
    SUBCOMMAND = "subcommand"
    FLAG = "flag"
    FLAG_VALUE = "flag-value"
    QUOTED = "quoted"
    COMMENT = "comment"
    CONTINUATION = "continuation"
    ARGUMENT = "argument"


Token = namedtuple("Token", ("text", "kind", "glued"), defaults=(False,))
Token.__doc__ = """one classified word; glued tokens continue the previous word without a separator."""

TokenizerState = namedtuple("TokenizerState", ("inside_quote", "pending", "continues"), defaults=(False, False, False))
TokenizerState.__doc__ = """cross-token state of the tokenizer (see module docstring)."""


def _closes(word):
    # A closing quote must not be escaped: `"` and `\\"` close, `\"` does not.
    if not word.endswith('"'):
        return False
    body = word[:-1]
    return (len(body) - len(body.rstrip("\\"))) % 2 == 0


def _opens(word):
    # A quote-prefixed word that is not also closed by itself.
    return not (len(word) > 1 and _closes(word))


def _value(text, kind):
    # Classify the right-hand side of an assignment, opening a quote when needed.
    if text.startswith('"'):
        return Token(text, TokenKind.QUOTED, True), _opens(text)
    return Token(text, kind, True), False


def _flag(resolver, cursor, word):
    if (flag := cursor.resolve_flag(word)) is None and cursor is not resolver:
        flag = resolver.resolve_flag(word)
    return flag


def tokenize(line, state=TokenizerState(), /, resolver=None):
    """
    Classify the whitespace-delimited words of one example line.

    Parameters
    - line: str, one physical line of an example block.
    - state: TokenizerState carried from the previous line (see tokenize_block()).
    - resolver: the documented command (name, resolve_child, resolve_flag); None
      disables program/subcommand/flag-kind recognition.

    Returns
    - (tokens, state): the tokens of the line and the state at its end.
    """
    if line.strip().startswith("# "):
        return [Token(line.strip(), TokenKind.COMMENT)], TokenizerState()

    inside_quote = state.inside_quote
    pending = False
    continues = False
    seen = False
    program = getattr(resolver, "name", None)
    cursor = resolver
    tokens = []

    words = line.split()
    for index, word in enumerate(words):
        if word == "\\" and index == len(words) - 1:
            tokens.append(Token(word, TokenKind.CONTINUATION))
            continues = True
            continue

        if inside_quote:
            tokens.append(Token(word, TokenKind.QUOTED))
            inside_quote = not _closes(word)
            continue

        if pending:
            pending = False
            if word.startswith('"'):
                tokens.append(Token(word, TokenKind.QUOTED))
                inside_quote = _opens(word)
            else:
                tokens.append(Token(word, TokenKind.FLAG_VALUE))
            continue

        if not seen:
            name, equals, value = word.partition("=")
            if equals:
                tokens.append(Token(name + equals, TokenKind.FLAG))
                if value:
                    token, inside_quote = _value(value, TokenKind.FLAG_VALUE)
                    tokens.append(token)
                continue
            if word == program:
                tokens.append(Token(word, TokenKind.PROGRAM))
                seen = True
                continue

        if cursor is not None and not word.startswith(('"', "-")):
            if (child := cursor.resolve_child(word)) is not None:
                tokens.append(Token(word, TokenKind.SUBCOMMAND))
                cursor = child
                continue

        if word.startswith('"'):
            tokens.append(Token(word, TokenKind.QUOTED))
            inside_quote = _opens(word)
            continue

        if word.startswith("-"):
            name, equals, value = word.partition("=")
            tokens.append(Token(name + equals, TokenKind.FLAG))
            if equals:
                if value:
                    token, inside_quote = _value(value, TokenKind.ARGUMENT)
                    tokens.append(token)
                continue
            if cursor is not None and (flag := _flag(resolver, cursor, word)) is not None:
                pending = not flag.boolean
            continue

        tokens.append(Token(word, TokenKind.ARGUMENT))

    return tokens, TokenizerState(inside_quote, pending, continues)


def tokenize_block(text, /, resolver=None):
    """
    Tokenize a raw multi-line example block.

    Leading and trailing blank lines are dropped; interior blank lines are kept
    as empty token lists. Lines are stripped before tokenizing.

    Returns
    - list of (line, tokens) pairs, one per output line.
    """
    lines = [line.strip() for line in text.splitlines()]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()

    result = []
    state = TokenizerState()
    for line in lines:
        # Only an open quote survives a continuation marker.
        state = TokenizerState(inside_quote=state.inside_quote) if state.continues else TokenizerState()
        tokens, state = tokenize(line, state, resolver)
        result.append((line, tokens))
    return result


__all__ = (
    "TokenKind",
    "Token",
    "TokenizerState",
    "tokenize",
    "tokenize_block",
)
