"""
Softphone Command System
========================

The command interpreter of the softphone. It accepts either a typed
command line or a SIP address carrying a method header, resolves it
to a registered command, checks its arguments and calls the bound
handler.

Architecture Overview
---------------------

    ┌──────────────────┐     ┌──────────────────────┐     ┌─────────────────┐
    │  Terminal input   │────►│  CommandDispatcher   │────►│  Command        │
    │  Opened URLs      │     │  execute_command()   │     │  handler(args)  │
    │  Startup argument │     └──────────┬───────────┘     └────────┬────────┘
    └──────────────────┘                │                          │
                              ┌─────────▼─────────┐       ┌────────▼────────┐
                              │ address.py        │       │ SoftphoneCore   │
                              │ tokenizer.py      │       │ (calls, windows,│
                              └───────────────────┘       │  conferences)   │
                                                          └─────────────────┘

Input that parses as a sip: or sip-linphone: address takes the
address path and reads its arguments from URI headers. Anything
without a scheme is a plain command line:

    show
    call sip-address=sip:alice@example.org
    join-conference sip-address=sip:conf@example.org conference-id="weekly sync"
    sip:alice@example.org
    sip:conf@example.org?method=join-conference&conference-id=42

Failures (unknown command, unknown argument, missing argument, foreign
URI scheme) are logged as warnings and nothing runs. execute_command()
never raises and returns nothing.

Integration
-----------
Build one dispatcher at startup and hand it to every input source:

    from softphone_commands import create_dispatcher

    dispatcher = create_dispatcher(core, config)
    dispatcher.execute_command(line)

Extending the Command System
----------------------------
Register extra commands on dispatcher.registry before any input is
delivered:

    from softphone_commands import Argument

    def transfer(args):
        core.transfer_call(args["sip-address"])

    dispatcher.registry.register(
        "transfer",
        "Transfer the current call: transfer sip-address=<uri>",
        transfer,
        {"sip-address": Argument()},
    )

Module Structure
----------------
    softphone_commands/
    ├── __init__.py     ← This file. create_dispatcher().
    ├── dispatcher.py   ← Argument, Command, CommandRegistry, CommandDispatcher.
    ├── tokenizer.py    ← Function-name and key=value patterns.
    ├── address.py      ← SipAddress and interpret_url().
    └── builtins.py     ← show, call, join-conference, initiate-conference.
"""

from softphone_commands.address import SipAddress, interpret_url
from softphone_commands.builtins import Conference, SoftphoneCore, register_builtin_commands
from softphone_commands.dispatcher import Argument, Command, CommandDispatcher, CommandRegistry


def create_dispatcher(core: SoftphoneCore, config=None) -> CommandDispatcher:
    """Build a registry with the built-in commands and a dispatcher over it.

    Parameters
    ----------
    core : SoftphoneCore
        Receives the effects of the built-in commands.
    config : SoftphoneConfig, optional
        Supplies address schemes, the default method and the bare-token
        policy. Defaults apply when omitted.
    """
    registry = CommandRegistry()
    register_builtin_commands(registry, core)

    if config is None:
        return CommandDispatcher(registry)

    return CommandDispatcher(
        registry,
        primary_scheme=config.addresses.primary_scheme,
        alias_scheme=config.addresses.alias_scheme,
        default_method=config.addresses.default_method,
        strict_arguments=config.parser.strict_arguments,
    )


__all__ = [
    'Argument',
    'Command',
    'CommandDispatcher',
    'CommandRegistry',
    'Conference',
    'SipAddress',
    'SoftphoneCore',
    'create_dispatcher',
    'interpret_url',
]
