"""
Fathom command layer: the read-only tree the renderers consume.

What this module provides
- Flag: one named flag (long name, optional one-letter shorthand, usage text,
  default-value text, value kind, visibility).
- Group: a titled bucket subcommands can be assigned to in help listings.
- Command: a node of the command tree with its use string, descriptions,
  example block, flags, children and groups.

Core ideas
- Metadata is validated on construction and exposed through read-only
  properties; the renderers never mutate a tree.
- Lookups go through two small capabilities, resolve_child() and
  resolve_flag(), so the tokenizer and the dispatcher do not depend on how
  the tree is stored.
- Every command carries a built-in "-h/--help" flag unless one is declared.

Quick start
    from fathom import Command, Flag

    root = Command("example [args]", "Short help", example="example --name=Carlos")
    root.flag("name", usage="the name")
    root.flag("async", "a", usage="async?", default=False)
    sub = root.command("sub", "a sub command")
"""
import re
from collections.abc import Iterable
from enum import Enum

from .utils import *

_FLAG_NAME = re.compile(r"[^\W_][\w-]*")


class FlagKind(Enum):
    """
    value kind of a flag.

    - BOOL: presence-only switch; the next word never binds to it.
    - VALUE: the next word binds as its value unless given inline (--name=value).
    """
    BOOL = "bool"
    VALUE = "value"


def _default_text(value):
    # Mirrors how defaults read on the command line.
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case list() | tuple() | set() | frozenset():
            return "[" + ",".join(map(str, value)) + "]"
        case _:
            return str(value)


class Flag:
    """
    A named flag of a command.

    Parameters
    - name: long name, with or without the leading "--".
    - short: optional single-character shorthand, with or without the leading "-".
    - usage: one-line help text.
    - default: default value; rendered as text (bools as true/false, sequences as [a,b]).
    - kind: FlagKind; inferred as BOOL when default is a bool, VALUE otherwise.
    - persistent: inherited by every descendant command.
    - hidden: excluded from help output.
    """
    __slots__ = ("_name", "_short", "_usage", "_default", "_kind", "_persistent", "_hidden")

    name = mirror("name")
    short = mirror("short")
    usage = mirror("usage")
    default = mirror("default")
    kind = mirror("kind")
    persistent = mirror("persistent")
    hidden = mirror("hidden")

    def __init__(
            self,
            name,
            /,
            short=Unset,
            usage="",
            default=Unset,
            *,
            kind=Unset,
            persistent=False,
            hidden=False
    ):
        if not isinstance(name, str):
            raise TypeError("Flag 'name' must be a string")
        elif not _FLAG_NAME.fullmatch(name := name.removeprefix("--")):
            raise ValueError(f"Flag 'name' must be a valid flag name, got {name!r}")
        if not isinstance(short, str | UnsetType):
            raise TypeError("Flag 'short' must be a string")
        elif short and len(short := short.removeprefix("-")) != 1:
            raise ValueError(f"Flag 'short' must be a single character, got {short!r}")
        if not isinstance(usage, str):
            raise TypeError("Flag 'usage' must be a string")
        if not isinstance(kind, FlagKind | UnsetType):
            raise TypeError("Flag 'kind' must be a FlagKind")

        kind = coalesce(kind, FlagKind.BOOL if isinstance(default, bool) else FlagKind.VALUE)
        self._name = name
        self._short = coalesce(short) or None
        self._usage = usage.strip()
        self._default = _default_text(coalesce(default, False if kind is FlagKind.BOOL else None))
        self._kind = kind
        self._persistent = bool(persistent)
        self._hidden = bool(hidden)

    @property
    def boolean(self):
        return self._kind is FlagKind.BOOL

    @property
    def names(self):
        """
        Spelled-out names, shorthand first: ("-s", "--surname") or ("--name",).
        """
        if self._short:
            return ("-" + self._short, "--" + self._name)
        return ("--" + self._name,)

    def __repr__(self):
        return f"Flag({' '.join(self.names)}, kind={self._kind.name}, default={self._default!r})"


class Group:
    """
    A titled bucket of subcommands, referenced by id from Command.group.
    """
    __slots__ = ("_id", "_title")

    id = mirror("id")
    title = mirror("title")

    def __init__(self, id, title, /):
        if not isinstance(id, str) or not isinstance(title, str):
            raise TypeError("Group 'id' and 'title' must be strings")
        elif not (id := id.strip()):
            raise ValueError("Group 'id' cannot be empty")
        self._id = id
        self._title = title.strip() or id

    def __repr__(self):
        return f"Group({self._id!r}, {self._title!r})"


class Command:
    """
    A node of the command tree.

    Responsibilities
    - Identity: name (first word of the use string), use string, use line.
    - Help metadata: short and long descriptions, the raw example block.
    - Composition: ordered children, titled groups, parent link.
    - Lookups: resolve_child(name) and resolve_flag(word) for tokenizers and dispatchers.

    Parameters
    - use: use string, e.g. "sub2 [args]"; its first word is the command name.
    - short, long: one-line and long descriptions.
    - example: free-form example text (shell-like lines, "# " comments).
    - flags: iterable of Flag.
    - group: id of the Group of the parent this command is listed under.
    - hidden: excluded from help listings.
    - run: callable invoked by the dispatcher with an Invocation.
    - version: version string shown by -v/--version on a root command.

    Errors
    - TypeError/ValueError on invalid metadata, duplicate flag names or duplicate children.
    """

    name = mirror("name")
    use = mirror("use")
    short = mirror("short")
    long = mirror("long")
    example = mirror("example")
    flags = mirror("flags")
    children = mirror("children")
    groups = mirror("groups")
    group = mirror("group")
    hidden = mirror("hidden")
    parent = mirror("parent")
    run = mirror("run")
    version = mirror("version")

    def __init__(
            self,
            use,
            /,
            short="",
            long="",
            example="",
            *,
            flags=(),
            group=Unset,
            hidden=False,
            run=Unset,
            version=Unset
    ):
        for name, object in (("use", use), ("short", short), ("long", long), ("example", example)):
            if not isinstance(object, str):
                raise TypeError(f"Command {name!r} must be a string")
        if not (use := use.strip()):
            raise ValueError("Command 'use' cannot be empty")
        if not isinstance(flags, Iterable):
            raise TypeError("Command 'flags' must be an iterable of flags")
        if not isinstance(group, str | UnsetType):
            raise TypeError("Command 'group' must be a string")
        if run is not Unset and not callable(run):
            raise TypeError("Command 'run' must be callable")

        self._name = use.split()[0]
        self._use = use
        self._short = short.strip()
        self._long = long.strip()
        self._example = example
        self._flags = []
        self._children = []
        self._groups = []
        self._group = coalesce(group) or None
        self._hidden = bool(hidden)
        self._parent = None
        self._run = coalesce(run)
        self._version = coalesce(version)

        for flag in flags:
            self.add_flag(flag)

        # Ensure the built-in help flag exists unless the user provided one.
        if self._lookup("help") is None:
            short = Unset if self._lookup_short("h") else "h"
            self.add_flag(Flag("help", short, f"help for {self._name}", False))

    @property
    def root(self):
        """
        Return the topmost command in the hierarchy.
        """
        child, parent = self, self._parent
        while parent:
            child, parent = parent, parent._parent
        return child

    @property
    def path(self):
        """
        Return the full ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while command._parent:
            path.append(command := command._parent)
        return tuple(reversed(path))

    @property
    def use_line(self):
        """
        The use string prefixed with the names of every ancestor ("example sub another [args]").
        """
        return " ".join([*(step.name for step in self.path[:-1]), self._use])

    @property
    def visible_children(self):
        return tuple(child for child in self._children if not child.hidden)

    @property
    def visible_flags(self):
        """
        Non-hidden flags that apply to this command: its own, then persistent ones of its ancestors.
        """
        seen = set()
        flags = []
        for command in (self, *reversed(self.path[:-1])):
            for flag in command._flags:
                if flag.hidden or flag.name in seen or (command is not self and not flag.persistent):
                    continue
                seen.add(flag.name)
                flags.append(flag)
        return tuple(flags)

    def add_flag(self, flag, /):
        if not isinstance(flag, Flag):
            raise TypeError("Command flags must be Flag instances")
        if self._lookup(flag.name) is not None:
            raise ValueError(f"Command {self._name!r} flag '--{flag.name}' is already in use")
        if flag.short and self._lookup_short(flag.short) is not None:
            raise ValueError(f"Command {self._name!r} shorthand '-{flag.short}' is already in use")
        self._flags.append(flag)
        return flag

    def flag(self, name, /, *args, **kwargs):
        """
        Build a Flag from the given arguments, attach it and return it.
        """
        return self.add_flag(Flag(name, *args, **kwargs))

    def add_group(self, id, title, /):
        if any(group.id == id for group in self._groups):
            raise ValueError(f"Command {self._name!r} group {id!r} is already in use")
        self._groups.append(group := Group(id, title))
        return group

    def add(self, *commands):
        """
        Attach commands as children, enforcing unique names. Returns self.
        """
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError("Command children must be commands")
            elif command._parent is not None:
                raise ValueError(f"Command {command.name!r} already has a parent")
            elif self.resolve_child(command.name) is not None:
                typeof = "subcommand" if self._parent else "command"
                raise ValueError(f"Command {typeof} name {command.name!r} is already in use")
            command._parent = self
            self._children.append(command)
        return self

    def command(self, use, /, *args, **kwargs):
        """
        Build a child Command from the given arguments, attach it and return it.
        """
        self.add(child := Command(use, *args, **kwargs))
        return child

    def resolve_child(self, name, /):
        """
        Return the direct child called `name`, or None.
        """
        for child in self._children:
            if child.name == name:
                return child
        return None

    def resolve_flag(self, word, /):
        """
        Resolve a flag-shaped word ("--name", "--name=value", "-s") to a Flag, or None.

        Own flags win; persistent flags of ancestors are searched next.
        """
        if word.startswith("--"):
            name, lookup = word[2:].partition("=")[0], Command._lookup
        elif word.startswith("-") and len(word) == 2:
            name, lookup = word[1], Command._lookup_short
        else:
            return None
        for command in (self, *reversed(self.path[:-1])):
            flag = lookup(command, name)
            if flag is not None and (command is self or flag.persistent):
                return flag
        return None

    def _lookup(self, name):
        return next((flag for flag in self._flags if flag.name == name), None)

    def _lookup_short(self, short):
        return next((flag for flag in self._flags if flag.short == short), None)

    def __repr__(self):
        return f"Command({self.use_line!r}, children={[child.name for child in self._children]!r})"


__all__ = (
    "FlagKind",
    "Flag",
    "Group",
    "Command",
)
