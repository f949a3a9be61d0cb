#!/usr/bin/env python3
"""
Softphone command interpreter
- Typed commands and SIP addresses share one dispatcher
- Externally opened URLs wait until the core has started
- Optional startup command from the command line
- Operator configuration in YAML

Terminal Input → TerminalCommandInterface → SoftphoneApp.execute_command() → CommandDispatcher
Opened URL     → SoftphoneApp.open_url() → (pending until core started) → CommandDispatcher

Class Organization

1. Foundation "What do we need?"

DebugConfig - Logging level and console output helpers

2. Core stand-in "What do commands act on?"

TerminalSoftphone - SoftphoneCore that reports effects on the terminal

3. Application "How does it all come together?"

SoftphoneApp - Owns the dispatcher and the pending external URL
TerminalCommandInterface - Reads commands from the terminal
"""

import sys
import threading
import logging
from typing import Optional

from config_manager import SoftphoneConfig, setup_configuration
from softphone_commands import Conference, SoftphoneCore, create_dispatcher


logger = logging.getLogger(__name__)


# ===================================================================
# 1. FOUNDATION
# ===================================================================

class DebugConfig:
	"""Centralized debug configuration"""
	VERBOSE = False
	QUIET = False

	@classmethod
	def set_mode(cls, verbose=False, quiet=False):
		cls.VERBOSE = verbose
		cls.QUIET = quiet

		if verbose:
			logging.basicConfig(level=logging.DEBUG, format='🐛 %(message)s')
		elif quiet:
			logging.basicConfig(level=logging.WARNING, format='⚠️  %(message)s')
		else:
			logging.basicConfig(level=logging.INFO, format='ℹ️  %(message)s')

	@classmethod
	def user_print(cls, message):
		"""Print user-facing messages (always shown unless quiet)"""
		if not cls.QUIET:
			print(message)


# ===================================================================
# 2. CORE STAND-IN
# ===================================================================

class TerminalSoftphone(SoftphoneCore):
	"""SoftphoneCore without a call engine: effects are reported, not performed"""

	def __init__(self, identity: str):
		self.identity = identity
		self.started = False
		self.conference: Optional[Conference] = None
		self.calls: list[str] = []

	def start(self):
		self.started = True

	def show_main_window(self) -> None:
		DebugConfig.user_print("🪟 Main window shown")

	def is_started(self) -> bool:
		return self.started

	def launch_audio_call(self, sip_address: str) -> None:
		self.calls.append(sip_address)
		DebugConfig.user_print(f"📞 Calling {sip_address}")

	def get_identity(self) -> str:
		return self.identity

	def get_conference(self) -> Optional[Conference]:
		return self.conference

	def terminate_conference(self) -> None:
		DebugConfig.user_print(f"🛑 Conference {self.conference.id} terminated")
		self.conference = None

	def create_conference(self, conference_id: str) -> Conference:
		self.conference = Conference(id=conference_id)
		return self.conference

	def enter_conference(self) -> bool:
		if self.conference is None:
			return False
		DebugConfig.user_print(f"👥 Entered conference {self.conference.id}")
		return True


# ===================================================================
# 3. APPLICATION
# ===================================================================

class SoftphoneApp:
	"""Owns the dispatcher and routes every input source into it"""

	def __init__(self, core: SoftphoneCore, config: Optional[SoftphoneConfig] = None):
		self.core = core
		self.config = config or SoftphoneConfig()
		self.dispatcher = create_dispatcher(core, self.config)
		self.core_started = False
		self.pending_url = ""
		self._state_lock = threading.Lock()

	def execute_command(self, command: str):
		self.dispatcher.execute_command(command)

	def open_url(self, url: str):
		"""
		Handle a URL opened from outside (launcher, browser, file-open event)

		Before the core has started, the first URL is kept and run by
		on_core_started(). Later ones are dropped with a warning.
		"""
		with self._state_lock:
			if not self.core_started:
				if self.pending_url:
					logger.warning(f"Ignoring URL opened before startup, `{self.pending_url}` is already pending: `{url}`")
				else:
					self.pending_url = url
				return

		self.execute_command(url)

	def on_core_started(self):
		"""Mark the core as running and flush the pending URL"""
		with self._state_lock:
			self.core_started = True
			url, self.pending_url = self.pending_url, ""

		if url:
			self.execute_command(url)


class TerminalCommandInterface:
	"""Reads command lines from the terminal until 'quit'"""

	def __init__(self, app: SoftphoneApp, stream=None):
		self.app = app
		self.stream = stream or sys.stdin
		self.running = False

	def _show_prompt(self):
		print(f"[{self.app.config.station.identity}]> ", end='', flush=True)

	def _show_help(self):
		DebugConfig.user_print("\nAvailable commands:")
		for name, description in self.app.dispatcher.registry.list_commands():
			DebugConfig.user_print(f"  {name:<22} {description}")
		DebugConfig.user_print("  help                   Show this list")
		DebugConfig.user_print("  quit                   Exit\n")

	def run(self):
		"""Input loop; returns on 'quit' or end of input"""
		self.running = True
		while self.running:
			self._show_prompt()
			line = self.stream.readline()
			if not line:
				break

			line = line.strip()
			if not line:
				continue

			if line.lower() == 'quit':
				break

			if line.lower() == 'help':
				self._show_help()
				continue

			self.app.execute_command(line)

		self.running = False


def main(argv=None) -> int:
	config, should_exit, config_manager, args = setup_configuration(argv)
	if should_exit:
		return 0 if args.create_config and config_manager is not None else 1

	DebugConfig.set_mode(verbose=config.console.verbose, quiet=config.console.quiet)

	core = TerminalSoftphone(config.station.identity)
	app = SoftphoneApp(core, config)

	# The startup command behaves like a URL opened before the core is up
	if args.command:
		app.open_url(args.command)

	core.start()
	app.on_core_started()

	if args.no_interactive:
		return 0

	print("\n" + "="*60)
	print("📟 SOFTPHONE COMMANDS READY")
	print("⌨️  Type 'help' for commands, 'quit' to exit")
	print("="*60)

	try:
		TerminalCommandInterface(app).run()
	except KeyboardInterrupt:
		print("\n🛑 Shutting down...")

	return 0


if __name__ == "__main__":
	sys.exit(main())
