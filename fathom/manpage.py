"""
Fathom man pages: a roff rendering of a command tree.

The page documents the given command: NAME, SYNOPSIS, DESCRIPTION, OPTIONS,
COMMANDS (every visible descendant, by full path) and EXAMPLES. Sections
without content are left out.
"""
from .help import QUIET_DEFAULTS, usage
from .styles import Program, Slot

_PLAIN = Program(*[Slot()] * len(Program._fields))


def escape(text, /):
    """
    Escape free text for roff: backslashes, dashes, and control characters at line start.
    """
    lines = []
    for line in text.replace("\\", "\\e").replace("-", "\\-").splitlines():
        if line.startswith((".", "'")):
            line = "\\&" + line
        lines.append(line)
    return "\n".join(lines)


def _descendants(command):
    for child in command.visible_children:
        yield child
        yield from _descendants(child)


def manpage(command, /, version=None):
    """
    Return the roff source of the man page of `command`.

    Parameters
    - command: Command to document (usually the root).
    - version: version text shown in the page footer.
    """
    title = "-".join(step.name for step in command.path)
    page = [f'.TH "{title.upper()}" "1" "" "{escape(version or "")}" "{escape(command.root.name)} manual"']

    page += [".SH NAME", escape(f"{title} - {command.short}" if command.short else title)]
    page += [".SH SYNOPSIS", f"\\fB{escape(usage(command, _PLAIN).plain)}\\fR"]

    if description := command.long or command.short:
        page += [".SH DESCRIPTION", escape(description)]

    if flags := sorted(command.visible_flags, key=lambda flag: flag.name):
        page.append(".SH OPTIONS")
        for flag in flags:
            help = flag.usage
            if flag.default not in QUIET_DEFAULTS:
                help += f" (default {flag.default})"
            page += [".TP", ", ".join(f"\\fB{escape(name)}\\fR" for name in flag.names), escape(help)]

    if children := list(_descendants(command)):
        page.append(".SH COMMANDS")
        prefix = len(command.path) - 1
        for child in children:
            path = " ".join(step.name for step in child.path[prefix + 1:])
            page += [".TP", f"\\fB{escape(path)}\\fR", escape(child.short)]

    if command.example.strip():
        page += [".SH EXAMPLES", ".nf", escape(command.example.strip("\n")), ".fi"]

    return "\n".join(page) + "\n"


__all__ = (
    "escape",
    "manpage",
)
