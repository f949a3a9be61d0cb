"""
Built-in Commands
=================

The commands every softphone build ships with:

    show                                      Bring the main window forward
    call sip-address=<uri>                    Place an audio call
    join-conference sip-address=<uri> conference-id=<id>
                                              Join a conference by calling its focus
    initiate-conference sip-address=<uri> conference-id=<id>
                                              Create and enter a local conference

The handlers never touch the call engine directly. They talk to a
SoftphoneCore, which the application supplies (the real engine, the
terminal stand-in in softphone.py, or a fake in tests).

Conference Initiation
---------------------
initiate-conference only acts when the requested sip-address, once
cleaned of params and headers, is this station's own identity. If
the requested conference is already running it is left alone. A
different running conference is terminated before the new one is
created. A conference that can't be entered is logged but kept.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from softphone_commands.address import interpret_url
from softphone_commands.dispatcher import (
    SIP_ADDRESS_KEY,
    Argument,
    CommandRegistry,
    Handler,
)


logger = logging.getLogger(__name__)

CONFERENCE_ID_KEY = "conference-id"


@dataclass
class Conference:
    """A local conference as seen by the command layer."""
    id: str


class SoftphoneCore(ABC):
    """What the built-in commands need from the application.

    Required Methods
    ----------------
    show_main_window()
    is_started() -> bool
    launch_audio_call(sip_address)
    get_identity() -> str
    get_conference() -> Conference or None
    terminate_conference()
    create_conference(conference_id) -> Conference
    enter_conference() -> bool
    """

    @abstractmethod
    def show_main_window(self) -> None:
        ...

    @abstractmethod
    def is_started(self) -> bool:
        ...

    @abstractmethod
    def launch_audio_call(self, sip_address: str) -> None:
        ...

    @abstractmethod
    def get_identity(self) -> str:
        """Local identity address, e.g. "sip:alice@example.org"."""
        ...

    @abstractmethod
    def get_conference(self) -> Optional[Conference]:
        ...

    @abstractmethod
    def terminate_conference(self) -> None:
        ...

    @abstractmethod
    def create_conference(self, conference_id: str) -> Conference:
        ...

    @abstractmethod
    def enter_conference(self) -> bool:
        """Join the current conference. False if that failed."""
        ...


# ─── Handlers ───────────────────────────────────────────────────────

def make_show_handler(core: SoftphoneCore) -> Handler:
    def show(args: dict[str, str]) -> None:
        core.show_main_window()
    return show


def make_call_handler(core: SoftphoneCore) -> Handler:
    def call(args: dict[str, str]) -> None:
        if not core.is_started():
            logger.warning("Core not instantiated.")
            return
        core.launch_audio_call(args[SIP_ADDRESS_KEY])
    return call


def make_join_conference_handler(core: SoftphoneCore) -> Handler:
    def join_conference(args: dict[str, str]) -> None:
        core.launch_audio_call(args[SIP_ADDRESS_KEY])
    return join_conference


def _clean_address(text: str) -> str:
    address = interpret_url(text)
    return address.clean().as_string() if address is not None else text


def make_initiate_conference_handler(core: SoftphoneCore) -> Handler:
    def initiate_conference(args: dict[str, str]) -> None:
        identity = _clean_address(core.get_identity())
        sip_address = _clean_address(args[SIP_ADDRESS_KEY])
        if sip_address != identity:
            logger.warning(f"Received different sip address from identity: `{identity} != {sip_address}`.")
            return

        conference_id = args[CONFERENCE_ID_KEY]
        conference = core.get_conference()
        if conference is not None:
            if conference.id == conference_id:
                logger.info(f"The conference `{conference_id}` already exists.")
                return

            logger.info(f"There is already a conference: `{conference.id}`.")
            logger.info(f"Deleting conference: `{conference.id}`.")
            core.terminate_conference()

        core.create_conference(conference_id)
        logger.info(f"Conference created with id: `{conference_id}`.")
        if not core.enter_conference():
            logger.warning(f"Unable to join the created conference: `{conference_id}`.")
    return initiate_conference


# ─── Registration ───────────────────────────────────────────────────

def register_builtin_commands(registry: CommandRegistry, core: SoftphoneCore) -> None:
    conference_scheme = {
        SIP_ADDRESS_KEY: Argument(),
        CONFERENCE_ID_KEY: Argument(),
    }

    registry.register(
        "show",
        "Show the main window",
        make_show_handler(core),
    )
    registry.register(
        "call",
        "Call a SIP address: call sip-address=<uri>",
        make_call_handler(core),
        {SIP_ADDRESS_KEY: Argument()},
    )
    registry.register(
        "join-conference",
        "Join a conference: join-conference sip-address=<uri> conference-id=<id>",
        make_join_conference_handler(core),
        conference_scheme,
    )
    registry.register(
        "initiate-conference",
        "Create and enter a conference: initiate-conference sip-address=<identity> conference-id=<id>",
        make_initiate_conference_handler(core),
        conference_scheme,
    )
