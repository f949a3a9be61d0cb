"""
Application-level tests: deferred URLs, startup command, terminal loop

Run with:  python -m pytest test_softphone.py -v
"""

import io

import pytest

from config_manager import SoftphoneConfig
from softphone import SoftphoneApp, TerminalCommandInterface, TerminalSoftphone, main


@pytest.fixture
def core():
    return TerminalSoftphone("sip:alice@example.org")


@pytest.fixture
def app(core):
    config = SoftphoneConfig()
    config.station.identity = "sip:alice@example.org"
    return SoftphoneApp(core, config)


class TestDeferredUrl:
    """URLs opened before the core is up wait for on_core_started()"""

    def test_url_waits_for_core(self, core, app):
        app.open_url("sip:bob@example.org")
        assert core.calls == []

        core.start()
        app.on_core_started()
        assert core.calls == ["sip:bob@example.org"]

    def test_pending_url_runs_once(self, core, app):
        app.open_url("sip:bob@example.org")
        core.start()
        app.on_core_started()
        app.on_core_started()
        assert core.calls == ["sip:bob@example.org"]

    def test_second_early_url_is_dropped(self, core, app, caplog):
        app.open_url("sip:bob@example.org")
        app.open_url("sip:carol@example.org")
        core.start()
        app.on_core_started()
        assert core.calls == ["sip:bob@example.org"]
        assert "sip:carol@example.org" in caplog.text

    def test_url_after_start_runs_immediately(self, core, app):
        core.start()
        app.on_core_started()
        app.open_url("sip:bob@example.org")
        app.open_url("call sip-address=sip:carol@example.org")
        assert core.calls == ["sip:bob@example.org", "sip:carol@example.org"]

    def test_nothing_pending(self, core, app):
        core.start()
        app.on_core_started()
        assert core.calls == []


class TestTerminalSoftphone:
    """The terminal stand-in for the call engine"""

    def test_conference_lifecycle(self, core, app):
        core.start()
        app.on_core_started()
        app.execute_command("initiate-conference sip-address=sip:alice@example.org conference-id=7")
        assert core.get_conference().id == "7"

        app.execute_command("initiate-conference sip-address=sip:alice@example.org conference-id=8")
        assert core.get_conference().id == "8"

    def test_enter_without_conference(self, core):
        assert core.enter_conference() is False


class TestTerminalCommandInterface:
    """The interactive input loop"""

    def test_commands_until_quit(self, core, app, capsys):
        core.start()
        app.on_core_started()
        stream = io.StringIO("\nshow\ncall sip-address=sip:bob@example.org\nquit\nshow\n")
        TerminalCommandInterface(app, stream).run()

        assert core.calls == ["sip:bob@example.org"]
        assert capsys.readouterr().out.count("Main window shown") == 1

    def test_help_lists_commands(self, app, capsys):
        TerminalCommandInterface(app, io.StringIO("help\n")).run()
        out = capsys.readouterr().out
        for name in ("show", "call", "join-conference", "initiate-conference"):
            assert name in out

    def test_end_of_input_stops(self, app):
        interface = TerminalCommandInterface(app, io.StringIO(""))
        interface.run()
        assert interface.running is False


class TestMain:
    """The command line entry point"""

    def test_startup_command(self, tmp_path, capsys):
        code = main([
            "-c", str(tmp_path / "none.yaml"),
            "--no-interactive",
            "call sip-address=sip:bob@example.org",
        ])
        assert code == 0
        assert "Calling sip:bob@example.org" in capsys.readouterr().out

    def test_invalid_configuration(self, tmp_path):
        assert main(["-c", str(tmp_path / "none.yaml"), "--identity", "bogus"]) == 1

    def test_create_config_failure(self, tmp_path):
        target = tmp_path / "no-such-dir" / "sample.yaml"
        assert main(["--create-config", str(target)]) == 1
        assert not target.exists()

    def test_create_config(self, tmp_path):
        target = tmp_path / "sample.yaml"
        assert main(["--create-config", str(target)]) == 0
        assert target.exists()
