"""
Brief: Tests for homeblocker.main startup sequence and CLI entry.

Inputs:
  - None

Outputs:
  - None
"""

import pytest

import homeblocker.main as main_mod
from homeblocker.blocking import DecisionEngine
from homeblocker.main import main

GOOD_CONFIG = """\
port: 5353
host: 127.0.0.1
upstream: 1.1.1.1:5300
timeout_ms: 900
logging:
  level: debug
blocks:
  social:
    domains: [facebook.com]
    schedule: |
      * * * * * off
      * 18-20 * * * on
"""


class RecordingServer:
    """Stand-in for DNSServer that records its arguments instead of binding."""

    instances = []

    def __init__(self, host, port, upstream, engine, timeout_ms=2000):
        self.args = (host, port, upstream, engine, timeout_ms)
        self.served = False
        RecordingServer.instances.append(self)

    def serve_forever(self):
        self.served = True


@pytest.fixture(autouse=True)
def logging_cfgs(monkeypatch):
    """
    Brief: Record init_logging calls so caplog keeps its root handler.

    Inputs:
      - monkeypatch: pytest fixture

    Outputs:
      - list: logging config mappings passed by main()
    """
    seen = []
    monkeypatch.setattr(main_mod, "init_logging", seen.append)
    return seen


@pytest.fixture
def config_file(tmp_path):
    def _write(text):
        path = tmp_path / "homeblocker.yml"
        path.write_text(text)
        return str(path)

    return _write


@pytest.fixture
def recording_server(monkeypatch):
    RecordingServer.instances = []
    monkeypatch.setattr(main_mod, "DNSServer", RecordingServer)
    return RecordingServer


def test_main_starts_server_with_config(config_file, recording_server, logging_cfgs):
    """
    Brief: A valid config builds the engine and hands everything to DNSServer.

    Inputs:
      - config_file: YAML with listen, upstream and one block

    Outputs:
      - None: Asserts server arguments and exit code
    """
    rc = main(["--config", config_file(GOOD_CONFIG)])
    assert rc == 0
    (server,) = recording_server.instances
    host, port, upstream, engine, timeout_ms = server.args
    assert (host, port, timeout_ms) == ("127.0.0.1", 5353, 900)
    assert upstream == {"host": "1.1.1.1", "port": 5300}
    assert isinstance(engine, DecisionEngine)
    assert engine.registry.names() == ["social"]
    assert server.served is True
    assert logging_cfgs == [{"level": "debug"}]


def test_main_check_only_does_not_bind(config_file, recording_server):
    assert main(["--config", config_file(GOOD_CONFIG), "--check"]) == 0
    assert recording_server.instances == []


def test_main_bad_schedule_is_fatal_before_binding(config_file, recording_server, caplog):
    bad = GOOD_CONFIG.replace("* 18-20 * * * on", "* 18-20 * * * maybe")
    assert main(["--config", config_file(bad)]) == 1
    assert recording_server.instances == []
    assert "Invalid block configuration" in caplog.text
    assert "block 'social'" in caplog.text


def test_main_short_schedule_line_is_fatal(config_file, recording_server):
    bad = GOOD_CONFIG.replace("* * * * * off", "* * * * off")
    assert main(["--config", config_file(bad)]) == 1
    assert recording_server.instances == []


def test_main_invalid_config_prints_error(config_file, recording_server, capsys):
    assert main(["--config", config_file("port: 53\n")]) == 1
    assert "upstream" in capsys.readouterr().out
    assert recording_server.instances == []


def test_main_missing_config_file(tmp_path, recording_server, capsys):
    assert main(["--config", str(tmp_path / "nope.yml")]) == 1
    assert "nope.yml" in capsys.readouterr().out


def test_main_bind_failure_returns_1(config_file, monkeypatch, caplog):
    def fail(*args, **kwargs):
        raise OSError("Address already in use")

    monkeypatch.setattr(main_mod, "DNSServer", fail)
    assert main(["--config", config_file(GOOD_CONFIG)]) == 1
    assert "Failed to set udp listener 127.0.0.1:5353" in caplog.text


def test_main_misspelled_block_key_is_fatal(config_file, recording_server, capsys):
    bad = GOOD_CONFIG.replace("    schedule: |", "    shedule: |")
    assert main(["--config", config_file(bad), "--check"]) == 1
    assert "shedule" in capsys.readouterr().out
    assert recording_server.instances == []
