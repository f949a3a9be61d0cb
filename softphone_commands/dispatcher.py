"""
Command Dispatcher
==================

The routing table for softphone commands, and the one entry point
that turns raw input into at most one handler call.

Role in the System
------------------
Commands reach the softphone from three places: the terminal, an
external "open this URL" request (desktop launchers, browser links)
and the startup command line. All of them end up in
CommandDispatcher.execute_command(), and there are two grammars:

    User types: "call sip-address=sip:alice@example.org"
                  ↓
    interpret_url() → None (not "scheme:...") → plain command line
                  ↓
    parse_function_name() → "call"   parse_args() → {"sip-address": ...}
                  ↓
    Command.execute({"method": "call", "sip-address": ...})

    Launcher opens: "sip:conf@example.org?method=join-conference&conference-id=42"
                  ↓
    interpret_url() → SipAddress(scheme="sip") → recognized scheme
                  ↓
    method header "join-conference" → registry lookup
                  ↓
    Command.execute_from_address(address)

Address detection always runs first. A string that parses as an
address with some other scheme ("tel:12345", "http://...") is
rejected outright. It is not re-read as a plain command.

Design Decisions
----------------
- Nothing here raises to the caller and nothing is returned. Every
  failure is a logged warning followed by an early return.
- A handler runs only after every required argument is present.
  Both entry points on Command build one argument mapping and share
  the same validate-and-invoke step.
- Registering a name twice keeps the first registration and logs a
  warning. That is a startup wiring mistake, not a runtime failure.
- Argument keys the scheme doesn't declare abort the whole parse.
  No command ever runs with a partial argument set.

Reserved Argument Keys
----------------------
    method       Always set to the resolved command name.
    sip-address  Set to the full address string on the address path.

Classes
-------
Argument
    One entry of a command's argument scheme (optional or required).

Command
    Name, description, handler and scheme, plus the two entry points.

CommandRegistry
    Name → Command mapping with first-registration-wins semantics.

CommandDispatcher
    Classifies, tokenizes, validates and invokes.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from softphone_commands.address import SipAddress, interpret_url
from softphone_commands.tokenizer import parse_args, parse_function_name


logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, str]], None]

METHOD_KEY = "method"
SIP_ADDRESS_KEY = "sip-address"


@dataclass(frozen=True)
class Argument:
    """One declared argument of a command."""
    is_optional: bool = False


@dataclass(frozen=True)
class Command:
    """A registered command.

    Attributes
    ----------
    name : str
        Registry key, also what the user types.
    description : str
        One-line text for help listings. No effect on dispatch.
    handler : callable
        Receives the validated argument mapping.
    args_scheme : dict
        Argument name → Argument. Keys not listed here are rejected
        by the plain-text tokenizer.
    """
    name: str
    description: str
    handler: Handler
    args_scheme: dict[str, Argument] = field(default_factory=dict)

    def arg_name_exists(self, name: str) -> bool:
        return name in self.args_scheme

    def execute(self, args: dict[str, str]) -> None:
        """Run the handler with already-extracted arguments.

        Extra keys not declared in the scheme are passed through.
        """
        self._invoke(dict(args))

    def execute_from_address(self, address: SipAddress) -> None:
        """Run the handler with arguments read from address headers.

        The full address string becomes "sip-address"; every other
        scheme key is looked up as a header of the same name. Empty
        headers are kept as "" for optional keys and left out for
        required ones, so validation reports them as missing.
        """
        args = {
            METHOD_KEY: self.name,
            SIP_ADDRESS_KEY: address.as_string(),
        }
        for arg_name, argument in self.args_scheme.items():
            if arg_name in (METHOD_KEY, SIP_ADDRESS_KEY):
                continue
            value = address.get_header(arg_name)
            if value or argument.is_optional:
                args[arg_name] = value

        self._invoke(args)

    def _invoke(self, args: dict[str, str]) -> None:
        for arg_name, argument in self.args_scheme.items():
            if arg_name not in args and not argument.is_optional:
                logger.warning(f"Missing argument for command: `{self.name} ({arg_name})`.")
                return

        try:
            self.handler(args)
        except Exception:
            logger.exception(f"Command `{self.name}` failed.")


class CommandRegistry:
    """Name → Command mapping.

    Registration happens during startup, before any dispatching.
    After that the registry is only read.
    """

    def __init__(self):
        self._commands: dict[str, Command] = {}

    def register(
        self,
        name: str,
        description: str,
        handler: Handler,
        args_scheme: Optional[dict[str, Argument]] = None,
    ) -> None:
        """Register a command. A name that's already taken keeps its
        original record and a warning is logged."""
        if name in self._commands:
            logger.warning(f"Command already exists: `{name}`.")
            return

        self._commands[name] = Command(
            name=name,
            description=description,
            handler=handler,
            args_scheme=dict(args_scheme or {}),
        )

    def lookup(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def list_commands(self) -> list[tuple[str, str]]:
        """Return (name, description) for all registered commands,
        sorted by name."""
        return sorted(
            ((cmd.name, cmd.description) for cmd in self._commands.values()),
            key=lambda x: x[0],
        )


class CommandDispatcher:
    """Turns raw input into zero or one handler invocation.

    Thread Safety
    -------------
    execute_command() serializes callers with a lock. The terminal
    loop and external URL delivery can run on different threads, and
    handlers touch shared application state. The lock is reentrant,
    so a handler running on the dispatching thread may call
    execute_command() again.

    Usage
    -----
        registry = CommandRegistry()
        registry.register("show", "Show the main window", show_handler)
        dispatcher = CommandDispatcher(registry)

        dispatcher.execute_command("show")
        dispatcher.execute_command("sip:alice@example.org?method=call")
    """

    def __init__(
        self,
        registry: CommandRegistry,
        primary_scheme: str = "sip",
        alias_scheme: str = "sip-linphone",
        default_method: str = "call",
        strict_arguments: bool = False,
    ):
        self.registry = registry
        self.schemes = (primary_scheme.lower(), alias_scheme.lower())
        self.default_method = default_method
        self.strict_arguments = strict_arguments
        # Reentrant: handlers may dispatch further commands
        self._lock = threading.RLock()

    def execute_command(self, command: str) -> None:
        """Dispatch one raw input line or URI. Never raises."""
        with self._lock:
            address = interpret_url(command)
            if address is not None:
                self._dispatch_address(address)
                return

            self._dispatch_plain(command)

    def _dispatch_address(self, address: SipAddress) -> None:
        if address.scheme not in self.schemes:
            logger.warning(
                f"Bad uri protocol, different from {' or '.join(self.schemes)}: `{address.scheme}`."
            )
            return

        method_name = address.get_header(METHOD_KEY) or self.default_method
        command = self.registry.lookup(method_name) if method_name else None
        if command is None:
            logger.warning(f"Unknown method: `{method_name}`.")
            return

        command.execute_from_address(address)

    def _dispatch_plain(self, command: str) -> None:
        function_name = parse_function_name(command, self.registry)
        if not function_name:
            return

        resolved = self.registry.lookup(function_name)
        remainder = command.lstrip()[len(function_name):]
        args = parse_args(remainder, resolved, strict=self.strict_arguments)
        if args is None:
            return

        resolved.execute({**args, METHOD_KEY: function_name})
