"""
Configuration tests for the softphone

Run with:  python -m pytest test_config_manager.py -v
"""

import pytest
import yaml

from config_manager import (
    ConfigurationManager,
    SoftphoneConfig,
    create_argument_parser,
    setup_configuration,
)


class TestConfigLoading:
    """Loading, fallbacks and the save/load cycle"""

    @pytest.fixture
    def config_dir(self, tmp_path):
        (tmp_path / "corrupted.yaml").write_text('station: {identity: "unterminated\n')
        (tmp_path / "empty.yaml").write_text("")
        (tmp_path / "list.yaml").write_text("- just\n- a list\n")
        (tmp_path / "partial.yaml").write_text(yaml.dump({
            "station": {"identity": "sip:alice@example.org"},
        }))
        (tmp_path / "full.yaml").write_text(yaml.dump({
            "config_version": "1.0",
            "station": {"identity": "sip:bob@example.org"},
            "addresses": {
                "primary_scheme": "sip",
                "alias_scheme": "softphone",
                "default_method": None,
            },
            "parser": {"strict_arguments": True},
            "console": {"verbose": True, "quiet": False},
        }))
        return tmp_path

    def test_missing_config_file(self, config_dir, caplog):
        manager = ConfigurationManager()
        config = manager.load_config(str(config_dir / "nonexistent.yaml"))
        assert config == SoftphoneConfig()
        assert "Config file not found" in caplog.text

    def test_corrupted_yaml_handling(self, config_dir, caplog):
        manager = ConfigurationManager()
        config = manager.load_config(str(config_dir / "corrupted.yaml"))
        assert config == SoftphoneConfig()
        assert "Error loading config file" in caplog.text

    def test_empty_config_file(self, config_dir):
        config = ConfigurationManager().load_config(str(config_dir / "empty.yaml"))
        assert config == SoftphoneConfig()

    def test_non_mapping_config_file(self, config_dir, caplog):
        config = ConfigurationManager().load_config(str(config_dir / "list.yaml"))
        assert config == SoftphoneConfig()
        assert "not a mapping" in caplog.text

    def test_partial_config_completion(self, config_dir):
        config = ConfigurationManager().load_config(str(config_dir / "partial.yaml"))
        assert config.station.identity == "sip:alice@example.org"
        assert config.addresses.primary_scheme == "sip"
        assert config.addresses.default_method == "call"
        assert config.parser.strict_arguments is False

    def test_full_config(self, config_dir):
        config = ConfigurationManager().load_config(str(config_dir / "full.yaml"))
        assert config.station.identity == "sip:bob@example.org"
        assert config.addresses.alias_scheme == "softphone"
        assert config.addresses.default_method == ""
        assert config.parser.strict_arguments is True
        assert config.console.verbose is True

    def test_auto_discovery(self, config_dir):
        manager = ConfigurationManager()
        manager.config_search_paths = [config_dir / "missing.yaml", config_dir / "partial.yaml"]
        config = manager.load_config()
        assert config.station.identity == "sip:alice@example.org"
        assert manager.config_file_path == config_dir / "partial.yaml"

    def test_no_config_found_uses_defaults(self, config_dir):
        manager = ConfigurationManager()
        manager.config_search_paths = [config_dir / "missing.yaml"]
        assert manager.load_config() == SoftphoneConfig()

    def test_config_save_load_roundtrip(self, tmp_path):
        manager = ConfigurationManager()
        manager.config.station.identity = "sip:carol@example.org"
        manager.config.addresses.default_method = "show"
        manager.config.parser.strict_arguments = True

        target = tmp_path / "nested" / "saved.yaml"
        assert manager.save_config(str(target))
        assert target.read_text().startswith("# Softphone Configuration")

        loaded = ConfigurationManager().load_config(str(target))
        assert loaded == manager.config

    def test_sample_config_is_loadable(self, tmp_path):
        sample = tmp_path / "sample.yaml"
        manager = ConfigurationManager()
        assert manager.create_sample_config(str(sample))

        loaded = ConfigurationManager().load_config(str(sample))
        assert loaded == SoftphoneConfig()

    def test_get_config_is_a_copy(self):
        manager = ConfigurationManager()
        copy = manager.get_config()
        copy.station.identity = "sip:other@example.org"
        assert manager.config.station.identity == "sip:nobody@localhost"


class TestConfigValidation:
    """validate_config() error reporting"""

    @pytest.fixture
    def manager(self):
        return ConfigurationManager()

    def test_defaults_are_valid(self, manager):
        assert manager.validate_config() == (True, [])

    def test_invalid_identity(self, manager):
        manager.config.station.identity = "not an address"
        is_valid, errors = manager.validate_config()
        assert not is_valid
        assert any("identity" in error.lower() for error in errors)

    def test_identity_with_foreign_scheme(self, manager):
        manager.config.station.identity = "tel:12345"
        is_valid, errors = manager.validate_config()
        assert not is_valid
        assert any("tel" in error for error in errors)

    def test_invalid_scheme(self, manager):
        manager.config.addresses.alias_scheme = "sip linphone"
        is_valid, errors = manager.validate_config()
        assert not is_valid
        assert any("alias scheme" in error for error in errors)

    def test_identical_schemes(self, manager):
        manager.config.addresses.alias_scheme = "SIP"
        is_valid, errors = manager.validate_config()
        assert not is_valid
        assert any("cannot be the same" in error for error in errors)

    def test_invalid_default_method(self, manager):
        manager.config.addresses.default_method = "call now"
        is_valid, errors = manager.validate_config()
        assert not is_valid
        assert any("default method" in error for error in errors)

    def test_empty_default_method_is_valid(self, manager):
        manager.config.addresses.default_method = ""
        assert manager.validate_config()[0]

    def test_verbose_and_quiet(self, manager):
        manager.config.console.verbose = True
        manager.config.console.quiet = True
        is_valid, errors = manager.validate_config()
        assert not is_valid
        assert any("verbose" in error for error in errors)


class TestCliIntegration:
    """Argument parsing and CLI overrides"""

    def test_cli_overrides_file(self, tmp_path):
        config_file = tmp_path / "softphone.yaml"
        config_file.write_text(yaml.dump({"station": {"identity": "sip:alice@example.org"}}))

        args = create_argument_parser().parse_args([
            "-c", str(config_file),
            "--identity", "sip:bob@example.org",
            "--default-method", "",
            "--strict-args",
            "-q",
        ])
        manager = ConfigurationManager()
        manager.load_config(args.config)
        config = manager.merge_cli_args(args)

        assert config.station.identity == "sip:bob@example.org"
        assert config.addresses.default_method == ""
        assert config.parser.strict_arguments is True
        assert config.console.quiet is True

    def test_unset_flags_keep_file_values(self):
        args = create_argument_parser().parse_args([])
        manager = ConfigurationManager()
        manager.config.addresses.default_method = "show"
        assert manager.merge_cli_args(args).addresses.default_method == "show"

    def test_positional_command(self):
        args = create_argument_parser().parse_args(["sip:alice@example.org?method=call"])
        assert args.command == "sip:alice@example.org?method=call"

    def test_setup_configuration(self, tmp_path):
        config, should_exit, manager, args = setup_configuration(
            ["-c", str(tmp_path / "none.yaml"), "show"]
        )
        assert not should_exit
        assert config == manager.config
        assert args.command == "show"

    def test_setup_configuration_invalid(self, tmp_path, capsys):
        config, should_exit, manager, args = setup_configuration(
            ["-c", str(tmp_path / "none.yaml"), "--identity", "bogus"]
        )
        assert should_exit
        assert config is None
        assert "Configuration errors" in capsys.readouterr().out

    def test_create_config_exits(self, tmp_path):
        target = tmp_path / "sample.yaml"
        config, should_exit, manager, args = setup_configuration(["--create-config", str(target)])
        assert should_exit
        assert manager is not None
        assert target.exists()

    def test_create_config_failure_has_no_manager(self, tmp_path, capsys):
        target = tmp_path / "no-such-dir" / "sample.yaml"
        config, should_exit, manager, args = setup_configuration(["--create-config", str(target)])
        assert should_exit
        assert manager is None
        assert "Could not create sample configuration" in capsys.readouterr().out

    def test_save_config_flag(self, tmp_path):
        target = tmp_path / "saved.yaml"
        setup_configuration([
            "-c", str(tmp_path / "none.yaml"),
            "--identity", "sip:dave@example.org",
            "--save-config", str(target),
        ])
        loaded = ConfigurationManager().load_config(str(target))
        assert loaded.station.identity == "sip:dave@example.org"
