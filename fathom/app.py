"""
Fathom program wiring: dispatch argv through a command tree with styled output.

execute(root, argv, **options)
1. Installs, once per tree, the built-ins a finished CLI is expected to have:
   - "-v/--version" on the root (versioned=False opts out),
   - a "completion [shell]" command (completions=False opts out),
   - a hidden "man" command printing a roff page (manpage=False opts out),
   - a "help [command]" command whenever the root has children.
2. Walks argv: leading words naming children descend the tree; flags resolve
   through the command chain ("--name=v", "--name v", "-abc", "-nv", "-n v",
   "-a=false"); "--" ends flag parsing; everything else is a positional argument.
3. Acts: positional words reaching a command that has children but no run
   callback are an unknown command; -h/--help prints help, --version prints the
   version, a command without a run callback prints its help, otherwise
   run(invocation) is called and its result returned.

Any exception raised along the way is rendered through the error handler on
stderr and re-raised unchanged.

Options
- stdout, stderr: output streams (default: sys.stdout / sys.stderr).
- scheme, dark, policy: forwarded to the style sheet and help renderer.
- width, profile: fixed terminal width / ColorProfile for both streams.
- version, commit: version text; the first seven characters of commit are appended.
- completions, manpage, versioned: opt out of the built-ins above.
- handler: callable(console, sheet, error) replacing faults.default_handler.
"""
import logging
import sys
from collections import namedtuple
from types import MappingProxyType

from rich.text import Text

from .commands import Command, Flag
from .completion import SHELLS, completion
from .faults import (
    FlagValueRequiredError,
    InvalidArgumentError,
    UnknownCommandError,
    UnknownFlagError,
    UnknownShorthandError,
    default_handler,
)
from .help import print_help
from .manpage import manpage
from .styles import build
from .terminal import Terminal
from .utils import *

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown (built from source)"

_TRUE = ("1", "t", "T", "true", "TRUE", "True")
_FALSE = ("0", "f", "F", "false", "FALSE", "False")

Invocation = namedtuple(
    "Invocation",
    ("command", "args", "flags", "stdout", "stderr", "version", "rendering"),
    defaults=(UNKNOWN_VERSION, MappingProxyType({})),
)
Invocation.__doc__ = """
what a run callback receives.

- command: the Command being run.
- args: tuple of positional arguments.
- flags: read-only mapping of flag name to value (bool for boolean flags, str otherwise),
  defaults included.
- stdout, stderr: the output streams of this execution.
- version: the resolved version text.
- rendering: read-only print_help() options of this execution (terminal, scheme,
  dark, policy), so callbacks printing help match the built-in output.
"""


def version_text(version=Unset, commit=Unset, /):
    """
    Return `version` (or UNKNOWN_VERSION), followed by " (<commit[:7]>)" when a commit is given.
    """
    text = coalesce(version) or UNKNOWN_VERSION
    if commit := coalesce(commit):
        text += f" ({commit[:7]})"
    return text


def _run_completion(invocation):
    if not invocation.args:
        return print_help(invocation.command, invocation.stdout, **invocation.rendering)
    invocation.stdout.write(completion(invocation.command, invocation.args[0]))


def _run_manpage(invocation):
    invocation.stdout.write(manpage(invocation.command.root, invocation.version))


def _run_help(invocation):
    command = invocation.command.root
    for name in invocation.args:
        if (child := command.resolve_child(name)) is None:
            raise UnknownCommandError(name, " ".join(step.name for step in command.path))
        command = child
    print_help(command, invocation.stdout, **invocation.rendering)


def install(root, /, *, completions=True, manpage=True, versioned=True):
    """
    Attach the built-in flags and commands to `root`; already present ones are kept.
    """
    if versioned and root.resolve_flag("--version") is None:
        short = Unset if root.resolve_flag("-v") else "v"
        root.add_flag(Flag("version", short, f"version for {root.name}", False))
    if completions and root.resolve_child("completion") is None:
        root.command(
            "completion [shell]",
            "Generate the autocompletion script for the specified shell",
            f"Generate the autocompletion script for {root.name} for one of: {', '.join(SHELLS)}.",
            run=_run_completion,
        )
    if manpage and root.resolve_child("man") is None:
        root.command("man", "Generates manpages", hidden=True, run=_run_manpage)
    if root.children and root.resolve_child("help") is None:
        root.command(
            "help [command]",
            "Help about any command",
            f"Help provides help for any command in the application.\n"
            f"Simply type {root.name} help [path to command] for full details.",
            run=_run_help,
        )


def _boolean(flag, value):
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise InvalidArgumentError(value, "--" + flag.name)


def parse(root, argv, /):
    """
    Walk `argv` from `root`.

    Returns
    - (command, args, values): the target Command, its positional arguments and the
      mapping of flag name to parsed value for the flags given on the command line.

    Errors
    - UnknownFlagError, UnknownShorthandError, FlagValueRequiredError, InvalidArgumentError.
    """
    command = root
    args = []
    values = {}
    words = list(argv)
    index = 0
    terminated = False

    def take(label):
        nonlocal index
        if index >= len(words):
            raise FlagValueRequiredError(label)
        index += 1
        return words[index - 1]

    while index < len(words):
        word = words[index]
        index += 1

        if terminated or word == "-" or not word.startswith("-"):
            if not terminated and not args and (child := command.resolve_child(word)) is not None:
                logger.debug("descending into %r", child.name)
                command = child
            else:
                args.append(word)
            continue

        if word == "--":
            terminated = True
            continue

        if word.startswith("--"):
            name, equals, value = word[2:].partition("=")
            if (flag := command.resolve_flag("--" + name)) is None:
                raise UnknownFlagError("--" + name)
            if flag.boolean:
                values[flag.name] = _boolean(flag, value) if equals else True
            else:
                values[flag.name] = value if equals else take("--" + name)
            continue

        letters = word[1:]
        for position, letter in enumerate(letters):
            if (flag := command.resolve_flag("-" + letter)) is None:
                raise UnknownShorthandError(letter, word)
            if flag.boolean:
                if letters[position + 1:].startswith("="):
                    values[flag.name] = _boolean(flag, letters[position + 2:])
                    break
                values[flag.name] = True
                continue
            rest = letters[position + 1:].removeprefix("=")
            values[flag.name] = rest or take(f"{letter!r} in -{letter}")
            break

    return command, args, values


def _flags(command, values):
    flags = {}
    for flag in (*command.visible_flags, *(flag for flag in command.flags if flag.hidden)):
        flags[flag.name] = flag.default == "true" if flag.boolean else flag.default
    flags.update(values)
    return MappingProxyType(flags)


def execute(
        root,
        argv=Unset,
        /,
        *,
        stdout=Unset,
        stderr=Unset,
        scheme=Unset,
        dark=True,
        profile=Unset,
        width=Unset,
        policy=Unset,
        version=Unset,
        commit=Unset,
        completions=True,
        manpage=True,
        versioned=True,
        handler=Unset
):
    """
    Dispatch `argv` (default: sys.argv[1:]) through the tree rooted at `root`.

    Returns
    - the value returned by the target's run callback, or None when help or the
      version was printed.

    Errors
    - every exception is rendered on stderr through `handler`, then re-raised unchanged.
    """
    if not isinstance(root, Command):
        raise TypeError("execute() root must be a Command")
    stdout = coalesce(stdout, sys.stdout)
    stderr = coalesce(stderr, sys.stderr)
    argv = coalesce(argv, sys.argv[1:])
    text = version_text(coalesce(version, root.version), commit)

    install(root, completions=completions, manpage=manpage, versioned=versioned)
    output = Terminal(stdout, width=width, profile=profile)
    rendering = MappingProxyType(dict(terminal=output, scheme=scheme, dark=dark, policy=policy))

    try:
        command, args, values = parse(root, argv)
        if command.children and args and command.run is None:
            raise UnknownCommandError(args[0], " ".join(step.name for step in command.path))

        if values.get("help"):
            logger.debug("help requested for %r", command.name)
            return print_help(command, stdout, **rendering)
        if command is root and versioned and values.get("version"):
            output.console().print(Text(f"{root.name} version {text}"))
            return None
        if command.run is None:
            logger.debug("%r has no run callback, printing help", command.name)
            return print_help(command, stdout, **rendering)

        invocation = Invocation(command, tuple(args), _flags(command, values), stdout, stderr, text, rendering)
        logger.debug("running %r with %d argument(s)", command.name, len(args))
        return command.run(invocation)
    except Exception as error:
        errors = Terminal(stderr, width=width, profile=profile)
        coalesce(handler, default_handler)(errors.console(), build(scheme, errors.width, dark), error)
        raise


def main(root, /, **options):
    """
    Run `root` with sys.argv[1:]; exit with status 1 when execution fails.
    """
    try:
        return execute(root, sys.argv[1:], **options)
    except Exception:
        logger.debug("execution failed", exc_info=True)
        sys.exit(1)


__all__ = (
    "UNKNOWN_VERSION",
    "Invocation",
    "version_text",
    "install",
    "parse",
    "execute",
    "main",
)
