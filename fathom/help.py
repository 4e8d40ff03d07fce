"""
Fathom help renderer.

Overview
- usage(): the styled usage line of a command. Bracketed placeholders are
  pulled out of the use string and re-appended, dimmed, in a fixed order:
  [command], [args], any other placeholder (in original order), [--flags].
- HelpRenderer: a rich renderable walking the stages
  PREAMBLE -> USAGE -> EXAMPLES -> GROUPS -> FLAGS -> DONE; a stage is
  skipped only when it has nothing to show.
- print_help() / format_help(): render a command's help to a sink or a string.

Layout notes
- The usage and examples codeblocks share one width: wide enough for the
  widest of them plus padding, never wider than the terminal allows.
- The commands and flags tables share one label column, so both tables
  align no matter which of them holds the widest label.
- Hidden commands and hidden flags appear nowhere, not even in the column
  width computation.

Policy
- lexical_groups: named command groups are listed by ascending id; when false
  they keep declaration order. The ungrouped "commands" table always comes first.
- quiet_defaults: suppress the default text of flags whose default is "",
  "false", "0" or "[]"; when false only empty defaults are suppressed.
- capitalize: upper-case the first letter of descriptions.
"""
import enum
import io
import re
import sys
from collections import namedtuple

from rich.console import Group
from rich.text import Text

from .highlight import highlight_example
from .layout import codeblock, compute_column_space, compute_width, row, truncate, wrap_and_pad
from .styles import Slot, build
from .terminal import ColorProfile, Terminal
from .utils import *

# Placeholders re-appended in a fixed position.
_KNOWN = ("[args]", "[flags]", "[--flags]", "[command]")

_PLACEHOLDER = re.compile(r"\[[^\[\]]*\]")

QUIET_DEFAULTS = frozenset(("", "false", "0", "[]"))

_PADDING = 4


class Stage(enum.Enum):
    PREAMBLE = enum.auto()
    USAGE = enum.auto()
    EXAMPLES = enum.auto()
    GROUPS = enum.auto()
    FLAGS = enum.auto()
    DONE = enum.auto()


Policy = namedtuple("Policy", ("lexical_groups", "quiet_defaults", "capitalize"), defaults=(True, True, False))
Policy.__doc__ = """product choices of the help output (see module docstring)."""


def usage(command, program, /, complete=True):
    """
    Styled usage line of `command`.

    Parameters
    - command: Command to describe.
    - program: Program slots (StyleSheet.program or StyleSheet.codeblock.program).
    - complete: use the full use line ("example sub [args]") styled as the program
      name; otherwise only the command's own use string, styled as a command.

    Returns
    - rich Text on a single line.
    """
    use = command.use_line if complete else command.use

    has_args = "[args]" in use
    has_flags = "[flags]" in use or "[--flags]" in use or bool(command.visible_flags)
    has_commands = "[command]" in use or bool(command.visible_children)
    for known in _KNOWN:
        use = use.replace(known, "")
    others = _PLACEHOLDER.findall(use)
    name = " ".join(_PLACEHOLDER.sub("", use).split())

    suffixes = []
    if has_commands:
        suffixes.append("[command]")
    if has_args:
        suffixes.append("[args]")
    suffixes.extend(others)
    if has_flags:
        suffixes.append("[--flags]")

    line = (program.name if complete else program.command).render(name)
    dimmed = program.dimmed_argument | Slot(left=1)
    for suffix in suffixes:
        line.append(dimmed.render(suffix))
    return line


class HelpRenderer:
    """
    Rich renderable producing the full help screen of one command.

    Parameters
    - command: the Command to document.
    - sheet: StyleSheet built for the target width.
    - policy: Policy, defaults to Policy().

    render() returns the list of lines/blocks; rendering is pure, so the same
    inputs always produce the same output.
    """

    def __init__(self, command, sheet, /, policy=Unset):
        self.command = command
        self.sheet = sheet
        self.policy = coalesce(policy) or Policy()

    def render(self):
        renders = []
        for stage in Stage:
            if stage is Stage.DONE:
                break
            renders.extend(getattr(self, "_" + stage.name.lower())())
        renders.append(Text(""))
        return renders

    def __rich__(self):
        return Group(*self.render())

    def _sentence(self, text):
        if self.policy.capitalize:
            return text[:1].upper() + text[1:]
        return text

    def _title(self, name):
        return [Text(""), self.sheet.title.render(name), Text("")]

    def _usage_line(self):
        return usage(self.command, self.sheet.codeblock.program)

    def _block_width(self):
        blocks = [self._usage_line()]
        if self.command.example.strip():
            blocks.extend(highlight_example(self.command.example, self.command, self.sheet))
        return compute_width(blocks, self.sheet.width, _PADDING)

    def _preamble(self):
        description = self.command.long or self.command.short
        if not description:
            return []
        text = self.sheet.text.render(self._sentence(description))
        return [Text(""), wrap_and_pad(text, self.sheet.width - 2, 2)]

    def _usage(self):
        width = self._block_width()
        lines = wrap_and_pad(self._usage_line(), width - _PADDING).split("\n")
        return [*self._title("usage"), codeblock(lines, width, self.sheet.codeblock.base)]

    def _examples(self):
        if not self.command.example.strip():
            return []
        width = self._block_width()
        lines = [
            truncate(line, width - _PADDING)
            for line in highlight_example(self.command.example, self.command, self.sheet)
        ]
        return [*self._title("examples"), codeblock(lines, width, self.sheet.codeblock.base)]

    def _command_groups(self):
        # Ordered (title, children) pairs; ungrouped children come first.
        known = {group.id: group for group in self.command.groups}
        buckets = {None: []}
        for child in self.command.visible_children:
            buckets.setdefault(child.group if child.group in known else None, []).append(child)

        groups = list(self.command.groups)
        if self.policy.lexical_groups:
            groups.sort(key=lambda group: group.id)
        ordered = [("commands", buckets[None])]
        ordered.extend((group.title.rstrip(":"), buckets.get(group.id, [])) for group in groups)
        return [(title, children) for title, children in ordered if children]

    def _command_rows(self, children):
        rows = [
            (usage(child, self.sheet.program, complete=False), self.sheet.text.render(self._sentence(child.short)))
            for child in children
        ]
        return sorted(rows, key=lambda pair: pair[0].plain)

    def _flag_rows(self):
        rows = []
        for flag in sorted(self.command.visible_flags, key=lambda flag: flag.name):
            label = self.sheet.program.flag.render(" ".join(flag.names))
            help = self.sheet.flag_description.render(self._sentence(flag.usage))
            quiet = QUIET_DEFAULTS if self.policy.quiet_defaults else ("",)
            if flag.default not in quiet:
                help.append(self.sheet.flag_default.render(f"({flag.default})"))
            rows.append((label, help))
        return rows

    def _space(self):
        labels = [label for _, children in self._command_groups() for label, _ in self._command_rows(children)]
        return compute_column_space(labels, [label for label, _ in self._flag_rows()])

    def _table(self, title, rows, space):
        return [*self._title(title), *(row(label, help, space, width=self.sheet.width) for label, help in rows)]

    def _groups(self):
        space = self._space()
        renders = []
        for title, children in self._command_groups():
            renders.extend(self._table(title, self._command_rows(children), space))
        return renders

    def _flags(self):
        if not (rows := self._flag_rows()):
            return []
        return self._table("flags", rows, self._space())


def print_help(
        command,
        sink=Unset,
        /,
        *,
        terminal=Unset,
        width=Unset,
        profile=Unset,
        scheme=Unset,
        dark=True,
        policy=Unset
):
    """
    Render the help of `command` to `sink` (default: sys.stdout).

    A Terminal may be injected; otherwise one is created for the sink, honouring
    the fixed `width` and `profile` when given.
    """
    terminal = coalesce(terminal) or Terminal(coalesce(sink, sys.stdout), width=width, profile=profile)
    sheet = build(scheme, terminal.width, dark)
    terminal.console(sink).print(HelpRenderer(command, sheet, policy))


def format_help(command, /, **options):
    """
    Return the help of `command` as a string (no escape codes unless a profile is given).
    """
    sink = io.StringIO()
    options.setdefault("profile", ColorProfile.NOTTY)
    print_help(command, sink, **options)
    return sink.getvalue()


__all__ = (
    "QUIET_DEFAULTS",
    "Stage",
    "Policy",
    "usage",
    "HelpRenderer",
    "print_help",
    "format_help",
)
