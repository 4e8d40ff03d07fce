"""
Fathom faults: usage errors, error classification and error rendering.

Scope
- CommandError and its subclasses: the errors the dispatcher raises. Their
  messages start with the conventional usage-error prefixes, so they classify
  as usage errors without any type checks.
- classify(): a pure string-prefix predicate (USAGE vs GENERAL) over any
  exception, so errors raised by application callbacks classify the same way.
- ErrorReport: a rich renderable for one error: an ERROR badge, the message,
  and, for usage errors only, a one-line "Try --help for usage." hint.
- default_handler(): prints an ErrorReport; hosts may pass their own handler
  with the same (console, sheet, error) signature.

Rendering never alters the error; callers re-raise it unchanged.
"""
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .layout import wrap_and_pad
from .styles import Slot

USAGE_PREFIXES = (
    "flag needs an argument:",
    "unknown flag:",
    "unknown shorthand flag:",
    "unknown command",
    "invalid argument",
)


class FaultKind(IntEnum):
    """
    binary error taxonomy consumed by the error renderer.

    - GENERAL: anything else; rendered without the help hint.
    - USAGE: the message starts with one of USAGE_PREFIXES; rendered with the hint.
    """
    GENERAL = 1
    USAGE = 2


def classify(error, /):
    """
    Return FaultKind.USAGE when str(error) starts with a known usage prefix.
    """
    return FaultKind.USAGE if str(error).startswith(USAGE_PREFIXES) else FaultKind.GENERAL


def is_usage_error(error, /):
    return classify(error) is FaultKind.USAGE


class CommandError(Exception):
    """
    base type of dispatcher errors; carries the message and the context options.
    """

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message


class UnknownFlagError(CommandError):
    def __init__(self, flag, /, **options):
        super().__init__(f"unknown flag: {flag}", flag=flag, **options)


class UnknownShorthandError(CommandError):
    def __init__(self, shorthand, word, /, **options):
        super().__init__(f"unknown shorthand flag: {shorthand!r} in {word}", flag=word, **options)


class FlagValueRequiredError(CommandError):
    def __init__(self, flag, /, **options):
        super().__init__(f"flag needs an argument: {flag}", flag=flag, **options)


class UnknownCommandError(CommandError):
    def __init__(self, name, command, /, **options):
        super().__init__(f"unknown command {name!r} for {command!r}".replace("'", '"'), name=name, **options)


class InvalidArgumentError(CommandError):
    def __init__(self, argument, command, /, **options):
        super().__init__(f"invalid argument {argument!r} for {command!r}".replace("'", '"'), argument=argument, **options)


class ErrorReport:
    """
    Rich renderable presenting one error with the slots of a StyleSheet.

    Layout
    - blank line, the ERROR badge (indented two columns), blank line
    - the message with a trailing period, wrapped to the sheet width, indented two columns
    - blank line
    - usage errors only: "Try --help for usage." followed by a blank line
    """

    def __init__(self, error, sheet, /):
        self.error = error
        self.sheet = sheet

    @property
    def kind(self):
        return classify(self.error)

    def __rich__(self):
        sheet = self.sheet
        message = str(self.error) or type(self.error).__name__

        renders = [
            Text(""),
            Text("  ") + sheet.error_header.render("error"),
            Text(""),
            wrap_and_pad(sheet.error_text.render(message + "."), sheet.width - 2, 2),
            Text(""),
        ]
        if self.kind is FaultKind.USAGE:
            hint = Text("  ")
            hint.append(sheet.error_text.render("Try"))
            hint.append((sheet.program.flag | Slot(left=1)).render("--help"))
            hint.append((sheet.error_text | Slot(left=1)).render("for usage."))
            renders.extend((hint, Text("")))
        return Group(*renders)


def default_handler(console, sheet, error, /):
    """
    Default error handler: print an ErrorReport for `error` on `console`.
    """
    console.print(ErrorReport(error, sheet))


__all__ = (
    "USAGE_PREFIXES",
    "FaultKind",
    "classify",
    "is_usage_error",
    "CommandError",
    "UnknownFlagError",
    "UnknownShorthandError",
    "FlagValueRequiredError",
    "UnknownCommandError",
    "InvalidArgumentError",
    "ErrorReport",
    "default_handler",
)
