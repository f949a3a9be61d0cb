"""
Command Line Tokenizer
======================

Two independent lexical passes over a plain command line:

    call sip-address=sip:alice@example.org
    join-conference sip-address=sip:conf@example.org conference-id="weekly sync"
    ^^^^^^^^^^^^^^^ ^^^^^^^^^^^ ^^^^^^^^^^^^^^^^^^^^ ^^^^^^^^^^^^^ ^^^^^^^^^^^^^
    function name   key         unquoted value       key           quoted value

parse_function_name() takes the leading run of word characters and
hyphens. parse_args() scans what follows, left to right with no
overlap, for key=value pairs. Quoted values may contain spaces and
backslash escapes (\\" and \\\\).

Both passes check names against the registry / command scheme they
are given and log a warning on failure. Neither raises.

Bare Tokens
-----------
A token with no "=value" (e.g. "call alice") is not a key/value pair.
By default it is skipped with a debug message. With strict=True any
leftover text between pairs aborts the parse instead. Treating bare
tokens as boolean flags is not supported.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from softphone_commands.dispatcher import Command, CommandRegistry


logger = logging.getLogger(__name__)


# ─── Patterns ───────────────────────────────────────────────────────

# Groups: (name)
FUNCTION_NAME_PATTERN = re.compile(r'^\s*([\w-]+)')

# Groups: (key)(quoted value)(unquoted value)
ARGUMENT_PATTERN = re.compile(
    r'([\w-]+)\s*=\s*(?:"((?:[^"\\]|\\.)*)"|(\S+))'
)

_ESCAPE_PATTERN = re.compile(r'\\(.)')


def unescape(value: str) -> str:
    """Drop the backslash from each escaped character in a quoted value."""
    return _ESCAPE_PATTERN.sub(r'\1', value)


# ─── Function name ──────────────────────────────────────────────────

def parse_function_name(command: str, registry: CommandRegistry) -> str:
    """Extract the command name from the start of a command line.

    Parameters
    ----------
    command : str
        Raw command line.
    registry : CommandRegistry
        Used to reject names that aren't registered.

    Returns
    -------
    str
        The registered command name, or "" after logging why not.
    """
    match = FUNCTION_NAME_PATTERN.match(command)
    if match is None:
        logger.warning(f"Unable to parse function name of command: `{command}`.")
        return ""

    function_name = match.group(1)
    if registry.lookup(function_name) is None:
        logger.warning(f"This command doesn't exist: `{function_name}`.")
        return ""

    return function_name


# ─── Key/value arguments ────────────────────────────────────────────

def parse_args(text: str, command: Command, strict: bool = False) -> Optional[dict[str, str]]:
    """Extract key=value pairs for a resolved command.

    Parameters
    ----------
    text : str
        The command line after the function name.
    command : Command
        Resolved command; every key must be declared in its scheme.
    strict : bool
        Reject bare tokens instead of skipping them.

    Returns
    -------
    dict or None
        The extracted pairs, or None if any key is unknown (or, in
        strict mode, if stray text is found). None means nothing may run.
    """
    args: dict[str, str] = {}
    pos = 0

    for match in ARGUMENT_PATTERN.finditer(text):
        if not _check_gap(text[pos:match.start()], command, strict):
            return None
        pos = match.end()

        key, quoted, unquoted = match.groups()
        if not command.arg_name_exists(key):
            logger.warning(f"Command with invalid argument(s): `{command.name} ({key})`.")
            return None

        args[key] = unescape(quoted) if quoted is not None else unquoted

    if not _check_gap(text[pos:], command, strict):
        return None

    return args


def _check_gap(gap: str, command: Command, strict: bool) -> bool:
    stray = gap.split()
    if not stray:
        return True

    if strict:
        logger.warning(f"Command with argument(s) missing a value: `{command.name} ({' '.join(stray)})`.")
        return False

    logger.debug(f"Ignoring bare token(s) for `{command.name}`: {stray}")
    return True
