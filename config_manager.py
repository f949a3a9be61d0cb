#!/usr/bin/env python3
"""
Configuration system for the softphone command interpreter
Supports YAML files, CLI overrides, and programmatic access
"""

import yaml
import argparse
import re
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from copy import deepcopy
import logging

from softphone_commands.address import interpret_url


# Same token class the tokenizer accepts for command names
COMMAND_NAME_PATTERN = re.compile(r'^[\w-]+$')
SCHEME_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*$')


@dataclass
class StationConfig:
	"""Local station identity"""
	identity: str = "sip:nobody@localhost"

	def to_dict(self) -> Dict[str, Any]:
		return {
			'identity': self.identity
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'StationConfig':
		return cls(
			identity=data.get('identity', 'sip:nobody@localhost')
		)


@dataclass
class AddressConfig:
	"""Which URI schemes are treated as commands, and the fallback method"""
	primary_scheme: str = "sip"
	alias_scheme: str = "sip-linphone"
	default_method: str = "call"  # "" disables the fallback

	def to_dict(self) -> Dict[str, Any]:
		"""Convert to dictionary for YAML serialization"""
		return {
			'primary_scheme': self.primary_scheme,
			'alias_scheme': self.alias_scheme,
			'default_method': self.default_method
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'AddressConfig':
		"""Create from dictionary (YAML loading)"""
		default_method = data.get('default_method', 'call')
		return cls(
			primary_scheme=data.get('primary_scheme', 'sip'),
			alias_scheme=data.get('alias_scheme', 'sip-linphone'),
			default_method='' if default_method is None else str(default_method)
		)


@dataclass
class ParserConfig:
	"""Plain command line parsing policy"""
	strict_arguments: bool = False  # reject bare tokens like "call alice"

	def to_dict(self) -> Dict[str, Any]:
		return {
			'strict_arguments': self.strict_arguments
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'ParserConfig':
		return cls(
			strict_arguments=bool(data.get('strict_arguments', False))
		)


@dataclass
class ConsoleConfig:
	"""Console messages logging level configuration"""
	verbose: bool = False
	quiet: bool = False

	def to_dict(self) -> Dict[str, Any]:
		return {
			'verbose': self.verbose,
			'quiet': self.quiet
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'ConsoleConfig':
		return cls(
			verbose=bool(data.get('verbose', False)),
			quiet=bool(data.get('quiet', False))
		)


@dataclass
class SoftphoneConfig:
	"""Complete configuration for the softphone command interpreter"""
	station: StationConfig = field(default_factory=StationConfig)
	addresses: AddressConfig = field(default_factory=AddressConfig)
	parser: ParserConfig = field(default_factory=ParserConfig)
	console: ConsoleConfig = field(default_factory=ConsoleConfig)

	# Metadata
	config_version: str = "1.0"
	description: str = "Softphone Configuration"

	def to_dict(self) -> Dict[str, Any]:
		"""Convert to dictionary for YAML serialization"""
		return {
			'config_version': self.config_version,
			'description': self.description,
			'station': self.station.to_dict(),
			'addresses': self.addresses.to_dict(),
			'parser': self.parser.to_dict(),
			'console': self.console.to_dict(),
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'SoftphoneConfig':
		"""Create from dictionary (YAML loading); missing sections keep defaults"""
		config = cls()

		if 'config_version' in data:
			config.config_version = str(data['config_version'])
		if 'description' in data:
			config.description = data['description']

		if isinstance(data.get('station'), dict):
			config.station = StationConfig.from_dict(data['station'])
		if isinstance(data.get('addresses'), dict):
			config.addresses = AddressConfig.from_dict(data['addresses'])
		if isinstance(data.get('parser'), dict):
			config.parser = ParserConfig.from_dict(data['parser'])
		if isinstance(data.get('console'), dict):
			config.console = ConsoleConfig.from_dict(data['console'])

		return config


class ConfigurationManager:
	"""
	Manages configuration loading, merging, and validation
	"""

	def __init__(self):
		self.config = SoftphoneConfig()
		self.config_file_path = None

		self.logger = logging.getLogger(__name__)

		# Standard config file locations (in order of preference)
		self.config_search_paths = [
			Path.cwd() / "softphone.yaml",  # Current directory
			Path.cwd() / "config" / "softphone.yaml",  # Config subdirectory
			Path.home() / ".config" / "softphone" / "config.yaml",  # User config
			Path("/etc/softphone/config.yaml"),  # System config (Linux)
		]

	def load_config(self, config_file: Optional[str] = None) -> SoftphoneConfig:
		"""
		Load configuration from file with fallback chain

		Args:
			config_file: Specific config file path, or None for auto-discovery

		Returns:
			Loaded configuration object (defaults if nothing usable was found)
		"""
		if config_file:
			config_path = Path(config_file)
			if config_path.exists():
				self.config = self._load_yaml_file(config_path)
				self.config_file_path = config_path
				self.logger.info(f"Loaded config from: {config_path}")
			else:
				self.logger.warning(f"Config file not found: {config_path}")
				self.logger.info("Using default configuration")
				self.config = SoftphoneConfig()
		else:
			for path in self.config_search_paths:
				if path.exists():
					self.config = self._load_yaml_file(path)
					self.config_file_path = path
					self.logger.info(f"Auto-discovered config: {path}")
					break
			else:
				self.logger.info("No config file found, using defaults")
				self.config = SoftphoneConfig()

		return self.config

	def _load_yaml_file(self, file_path: Path) -> SoftphoneConfig:
		"""Load configuration from YAML file"""
		try:
			with open(file_path, 'r', encoding='utf-8') as f:
				yaml_data = yaml.safe_load(f) or {}

			if not isinstance(yaml_data, dict):
				self.logger.error(f"Config file {file_path} is not a mapping, using defaults")
				return SoftphoneConfig()

			return SoftphoneConfig.from_dict(yaml_data)

		except (OSError, yaml.YAMLError) as e:
			self.logger.error(f"Error loading config file {file_path}: {e}")
			return SoftphoneConfig()

	def merge_cli_args(self, args: argparse.Namespace) -> SoftphoneConfig:
		"""
		Merge CLI arguments into configuration (CLI takes precedence)

		Args:
			args: Parsed command line arguments

		Returns:
			Updated configuration
		"""
		if hasattr(args, 'identity') and args.identity:
			self.config.station.identity = args.identity

		if hasattr(args, 'default_method') and args.default_method is not None:
			self.config.addresses.default_method = args.default_method

		if hasattr(args, 'strict_args') and args.strict_args:
			self.config.parser.strict_arguments = True

		if hasattr(args, 'verbose') and args.verbose:
			self.config.console.verbose = True
		if hasattr(args, 'quiet') and args.quiet:
			self.config.console.quiet = True

		return self.config

	def save_config(self, file_path: Optional[str] = None) -> bool:
		"""
		Save current configuration to YAML file

		Args:
			file_path: Target file path, or None to use loaded file path

		Returns:
			True if saved successfully
		"""
		if file_path:
			target_path = Path(file_path)
		elif self.config_file_path:
			target_path = self.config_file_path
		else:
			target_path = Path("softphone.yaml")

		try:
			target_path.parent.mkdir(parents=True, exist_ok=True)

			with open(target_path, 'w', encoding='utf-8') as f:
				f.write("# Softphone Configuration\n")
				f.write("# Generated configuration file\n")
				f.write(f"# Version: {self.config.config_version}\n\n")

				yaml.dump(self.config.to_dict(), f,
						 default_flow_style=False,
						 sort_keys=False,
						 indent=2)

			self.logger.info(f"Configuration saved to: {target_path}")
			return True

		except OSError as e:
			self.logger.error(f"Error saving config to {target_path}: {e}")
			return False

	def create_sample_config(self, file_path: str = "softphone_sample.yaml") -> bool:
		"""Create a sample configuration file with comments"""
		try:
			with open(file_path, 'w', encoding='utf-8') as f:
				f.write(self._generate_sample_yaml())
			self.logger.info(f"Sample configuration created: {file_path}")
			return True

		except OSError as e:
			self.logger.error(f"Error creating sample config: {e}")
			return False

	def _generate_sample_yaml(self) -> str:
		"""Generate sample YAML with comments"""
		return """# Softphone Configuration File

# =============================================================================
# STATION SETTINGS
# =============================================================================
station:
  identity: "sip:nobody@localhost"   # Local SIP identity (used by initiate-conference)

# =============================================================================
# ADDRESS COMMANDS
# =============================================================================
addresses:
  primary_scheme: "sip"              # URIs with these schemes are commands
  alias_scheme: "sip-linphone"
  default_method: "call"             # Used when the URI has no method header
                                     #   "" = reject URIs without a method

# =============================================================================
# COMMAND LINE PARSING
# =============================================================================
parser:
  strict_arguments: false            # true: reject bare tokens like "call alice"

# =============================================================================
# CONSOLE MESSAGES LOGGING LEVEL
# =============================================================================
console:
  verbose: false                     # Verbose output (more detail)
  quiet: false                       # Quiet mode (warnings only)

config_version: "1.0"
description: "Softphone Configuration"
"""

	def validate_config(self) -> tuple[bool, list[str]]:
		"""
		Validate configuration for common issues

		Returns:
			(is_valid, list_of_errors)
		"""
		errors = []
		addresses = self.config.addresses

		for label, scheme in (("primary", addresses.primary_scheme), ("alias", addresses.alias_scheme)):
			if not scheme or not SCHEME_PATTERN.match(scheme):
				errors.append(f"Invalid {label} scheme: '{scheme}'")

		if addresses.primary_scheme and addresses.primary_scheme.lower() == addresses.alias_scheme.lower():
			errors.append("Primary and alias scheme cannot be the same")

		if addresses.default_method and not COMMAND_NAME_PATTERN.match(addresses.default_method):
			errors.append(f"Invalid default method: '{addresses.default_method}'")

		identity = interpret_url(self.config.station.identity)
		if identity is None:
			errors.append(f"Invalid identity: '{self.config.station.identity}'")
		elif identity.scheme not in (addresses.primary_scheme.lower(), addresses.alias_scheme.lower()):
			errors.append(f"Identity scheme '{identity.scheme}' is not a recognized scheme")

		if self.config.console.verbose and self.config.console.quiet:
			errors.append("Console cannot be both verbose and quiet")

		return len(errors) == 0, errors

	def get_config(self) -> SoftphoneConfig:
		"""Get current configuration"""
		return deepcopy(self.config)


def create_argument_parser():
	"""Argument parser for the softphone entry point"""
	parser = argparse.ArgumentParser(
		description='Softphone command interpreter',
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Examples:
  %(prog)s                                          # Interactive command prompt
  %(prog)s show                                     # Run one command, then prompt
  %(prog)s "call sip-address=sip:alice@example.org" # Place a call at startup
  %(prog)s "sip:alice@example.org?method=call"      # Same, as an address
  %(prog)s -c my_config.yaml                        # Use specific config file
  %(prog)s --create-config sample.yaml              # Create sample config file

Configuration:
  Configuration is loaded in this order (later overrides earlier):
  1. Built-in defaults
  2. Configuration file (YAML)
  3. Command line arguments

  Config file search order:
  - softphone.yaml (current directory)
  - config/softphone.yaml
  - ~/.config/softphone/config.yaml
  - /etc/softphone/config.yaml
		"""
	)

	# Positional arguments
	parser.add_argument(
		'command',
		nargs='?',
		help='Command line or SIP address to execute once the core has started'
	)

	# Configuration file handling
	config_group = parser.add_argument_group('Configuration')
	config_group.add_argument(
		'-c', '--config',
		type=str,
		help='Configuration file path (YAML format)'
	)
	config_group.add_argument(
		'--create-config',
		type=str,
		metavar='FILE',
		help='Create sample configuration file and exit'
	)
	config_group.add_argument(
		'--save-config',
		type=str,
		metavar='FILE',
		help='Save current configuration to file'
	)

	# Command settings
	command_group = parser.add_argument_group('Commands')
	command_group.add_argument(
		'--identity',
		type=str,
		help='Local SIP identity (e.g. sip:alice@example.org)'
	)
	command_group.add_argument(
		'--default-method',
		type=str,
		metavar='NAME',
		help='Command used for addresses without a method header ("" to disable)'
	)
	command_group.add_argument(
		'--strict-args',
		action='store_true',
		help='Reject arguments without a value instead of ignoring them'
	)
	command_group.add_argument(
		'--no-interactive',
		action='store_true',
		help='Run the startup command and exit without a prompt'
	)

	# Debug settings
	debug_group = parser.add_argument_group('Debug Options')
	debug_group.add_argument(
		'-v', '--verbose',
		action='store_true',
		help='Enable verbose debug output'
	)
	debug_group.add_argument(
		'-q', '--quiet',
		action='store_true',
		help='Quiet mode (warnings only)'
	)

	return parser


def setup_configuration(argv=None) -> tuple[Optional[SoftphoneConfig], bool, Optional[ConfigurationManager], argparse.Namespace]:
	"""
	Setup configuration system with CLI integration

	Args:
		argv: Command line arguments (None for sys.argv)

	Returns:
		(config_object, should_exit, config_manager, parsed_args)
		With --create-config, config_manager is set only if the sample
		file was written.
	"""
	parser = create_argument_parser()
	args = parser.parse_args(argv)

	# Handle special commands first
	if args.create_config:
		manager = ConfigurationManager()
		if not manager.create_sample_config(args.create_config):
			print(f"Could not create sample configuration: {args.create_config}")
			return None, True, None, args
		print(f"Sample configuration created: {args.create_config}")
		print(f"Edit the file and run again with: -c {args.create_config}")
		return None, True, manager, args

	manager = ConfigurationManager()
	manager.load_config(args.config)

	# CLI overrides config file
	config = manager.merge_cli_args(args)

	is_valid, errors = manager.validate_config()
	if not is_valid:
		print("Configuration errors:")
		for error in errors:
			print(f"  ✗ {error}")
		return None, True, None, args

	if args.save_config:
		if manager.save_config(args.save_config):
			print(f"Configuration saved to: {args.save_config}")

	return config, False, manager, args
