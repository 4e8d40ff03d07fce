"""
Fathom shell completion scripts.

Scripts are static: they enumerate the visible commands and flags of the
tree at generation time. Supported shells are listed in SHELLS.
"""
import re

from .faults import InvalidArgumentError

SHELLS = ("bash", "fish")


def _walk(command):
    yield command
    for child in command.visible_children:
        yield from _walk(child)


def _path(command):
    return " ".join(step.name for step in command.path[1:])


def _quote(text):
    return "'" + text.replace("'", "'\\''") + "'"


def bash(root, /):
    function = "_" + re.sub(r"\W", "_", root.name)
    lines = [
        f"# bash completion for {root.name}",
        f"{function}() {{",
        '    local cur="${COMP_WORDS[COMP_CWORD]}" path="" word',
        '    for word in "${COMP_WORDS[@]:1:COMP_CWORD-1}"; do',
        "        case \"$word\" in",
        "            -*) ;;",
        '            *) path="${path:+$path }$word" ;;',
        "        esac",
        "    done",
        '    case "$path" in',
    ]
    for command in _walk(root):
        words = [child.name for child in command.visible_children]
        words.extend(name for flag in command.visible_flags for name in flag.names)
        lines.append(f'        "{_path(command)}") COMPREPLY=($(compgen -W "{" ".join(words)}" -- "$cur")) ;;')
    lines += [
        "    esac",
        "}",
        f"complete -F {function} {root.name}",
    ]
    return "\n".join(lines) + "\n"


def fish(root, /):
    lines = [f"# fish completion for {root.name}", f"complete -c {root.name} -f"]
    for command in _walk(root):
        if command is root:
            condition = "__fish_use_subcommand"
        else:
            condition = f"__fish_seen_subcommand_from {command.name}"
        for child in command.visible_children:
            lines.append(f"complete -c {root.name} -n {_quote(condition)} -a {child.name} -d {_quote(child.short)}")
        for flag in command.visible_flags:
            line = f"complete -c {root.name}"
            if command is not root:
                line += f" -n {_quote(condition)}"
            line += f" -l {flag.name}"
            if flag.short:
                line += f" -s {flag.short}"
            if not flag.boolean:
                line += " -r"
            lines.append(line + f" -d {_quote(flag.usage)}")
    return "\n".join(lines) + "\n"


def completion(command, shell, /):
    """
    Return the completion script of the tree rooted at `command` for `shell`.

    Errors
    - InvalidArgumentError when `shell` is not one of SHELLS.
    """
    match shell:
        case "bash":
            return bash(command.root)
        case "fish":
            return fish(command.root)
    raise InvalidArgumentError(shell, f"{command.root.name} completion")


__all__ = (
    "SHELLS",
    "bash",
    "fish",
    "completion",
)
