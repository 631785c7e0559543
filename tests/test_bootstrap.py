"""Tests for configuration loading and the bootstrap wiring."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from RelayBot.cli.main import cli
from RelayBot.config import ConfigManager, build_default_config
from RelayBot.exceptions import ConfigError, MessengerError
from RelayBot.gateway.base import MessengerStatus
from RelayBot.kernel.bootstrap import Bootstrap

from conftest import FakeMessenger


def write_config(tmp_path: Path, **overrides) -> Path:
    config = build_default_config()
    config["log"]["file"] = ""
    config["store"]["db_path"] = str(tmp_path / "bot.db")
    for section, values in overrides.items():
        config[section].update(values)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return path


@pytest.mark.asyncio
async def test_config_merges_defaults_without_overwriting(tmp_path: Path):
    path = tmp_path / "conf" / "relaybot.json"
    path.parent.mkdir()
    path.write_text(json.dumps({"store": {"db_path": "custom.db"}}), encoding="utf-8")

    manager = ConfigManager(defaults=build_default_config(), config_path=str(path))
    await manager.load()

    assert manager.get("store.db_path") == "custom.db"
    assert manager.get("store.case_sensitive_like") is False
    assert manager.get("messenger.type") == "console"
    assert manager.get("missing.key", "fallback") == "fallback"
    # merged config is written back
    assert json.loads(path.read_text(encoding="utf-8"))["messenger"]["type"] == "console"


@pytest.mark.asyncio
async def test_config_falls_back_to_defaults_on_bad_json(tmp_path: Path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    manager = ConfigManager(defaults=build_default_config(), config_path=str(path))
    await manager.load()
    manager.set("packs.reply_prefix.prefix", "> ")

    assert manager.get("packs.reply_prefix.prefix") == "> "
    assert manager.as_dict()["dispatch"] == {"stage_timeout": None}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "section, values",
    [
        ("messenger", {"history_size": 0}),
        ("messenger", {"type": ""}),
        ("dispatch", {"stage_timeout": "soon"}),
        ("store", {"db_path": 42}),
    ],
)
async def test_config_rejects_invalid_values(tmp_path: Path, section, values):
    path = write_config(tmp_path, **{section: values})

    manager = ConfigManager(defaults=build_default_config(), config_path=str(path))
    with pytest.raises(ConfigError):
        await manager.load()

    bootstrap = Bootstrap(config_path=str(path), messenger=FakeMessenger())
    with pytest.raises(ConfigError):
        await bootstrap.start()


@pytest.mark.asyncio
async def test_config_rejects_non_object_section(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"store": "bot.db"}), encoding="utf-8")

    manager = ConfigManager(defaults=build_default_config(), config_path=str(path))
    with pytest.raises(ConfigError):
        await manager.load()
    # the broken file is left as it was
    assert json.loads(path.read_text(encoding="utf-8")) == {"store": "bot.db"}

@pytest.mark.asyncio
async def test_bootstrap_wires_stages_and_dispatches(tmp_path: Path):
    path = write_config(tmp_path, packs={"reply_prefix": {"prefix": "> "}})
    messenger = FakeMessenger()
    bootstrap = Bootstrap(config_path=str(path), messenger=messenger)

    assert await bootstrap.start() is True

    await messenger.submit_event(messenger.message("say hello", user="gina"))
    await bootstrap.dispatcher.drain(timeout=1)

    assert messenger.sent == [("#test", "> hello", False)]
    seen = await bootstrap.stores.get_store("seen")
    assert await seen.get_all_keys() == {"gina"}

    await bootstrap.shutdown()
    assert messenger.status.name == "STOPPED"


@pytest.mark.asyncio
async def test_bootstrap_stays_inert_when_connect_fails(tmp_path: Path, caplog):
    path = write_config(tmp_path)
    messenger = FakeMessenger(connect_result=False)
    bootstrap = Bootstrap(config_path=str(path), messenger=messenger)

    assert await bootstrap.start() is False

    await messenger.submit_event(messenger.message("say hello"))
    assert bootstrap.dispatcher.pending == 0
    assert messenger.sent == []

    await bootstrap.shutdown()


@pytest.mark.asyncio
async def test_fatal_messenger_report_ends_run_forever(tmp_path: Path):
    path = write_config(tmp_path)
    messenger = FakeMessenger()
    bootstrap = Bootstrap(config_path=str(path), messenger=messenger)
    await bootstrap.start()

    runner = asyncio.create_task(bootstrap.run_forever())
    await asyncio.sleep(0)
    await messenger.report_fatal(MessengerError("transport lost"))

    await asyncio.wait_for(runner, timeout=2)
    assert messenger.status.name == "STOPPED"


def test_cli_version_and_init(tmp_path: Path):
    runner = CliRunner()
    config_path = tmp_path / "cfg" / "relaybot.json"

    version = runner.invoke(cli, ["version"])
    created = runner.invoke(cli, ["init", "--config", str(config_path)])
    shown = runner.invoke(cli, ["conf", "show", "messenger.type", "--config", str(config_path)])

    assert version.exit_code == 0 and "RelayBot v" in version.output
    assert created.exit_code == 0 and config_path.exists()
    assert shown.exit_code == 0 and '"console"' in shown.output


def test_cli_store_keys_and_count(tmp_path: Path):
    path = write_config(tmp_path)
    runner = CliRunner()

    empty = runner.invoke(cli, ["store", "keys", "notes", "--config", str(path)])
    count = runner.invoke(cli, ["store", "count", "notes", "%", "--config", str(path)])

    assert empty.exit_code == 0
    assert count.exit_code == 0 and count.output.strip() == "0"


class ClosingMessenger(FakeMessenger):
    """Refuses to send once disconnected, like a real network transport."""

    async def send_message(self, channel: str, text: str, action: bool = False) -> None:
        if self.status == MessengerStatus.STOPPED:
            raise MessengerError("not connected")
        await super().send_message(channel, text, action)


@pytest.mark.asyncio
async def test_shutdown_delivers_in_flight_replies_before_disconnecting(tmp_path: Path):
    path = write_config(tmp_path)
    messenger = ClosingMessenger()
    bootstrap = Bootstrap(config_path=str(path), messenger=messenger)
    await bootstrap.start()

    await messenger.submit_event(messenger.message("say still here"))
    await bootstrap.shutdown()

    assert messenger.sent == [("#test", "still here", False)]
    assert messenger.status == MessengerStatus.STOPPED


def test_cli_conf_set_validates_before_saving(tmp_path: Path):
    runner = CliRunner()
    config_path = tmp_path / "relaybot.json"
    runner.invoke(cli, ["init", "--config", str(config_path)])

    changed = runner.invoke(cli, ["conf", "set", "dispatch.stage_timeout", "2.5", "--config", str(config_path)])
    prefix = runner.invoke(cli, ["conf", "set", "packs.reply_prefix.prefix", "bot:", "--config", str(config_path)])
    rejected = runner.invoke(cli, ["conf", "set", "messenger.history_size", "0", "--config", str(config_path)])

    saved = json.loads(config_path.read_text(encoding="utf-8"))
    assert changed.exit_code == 0
    assert prefix.exit_code == 0
    assert rejected.exit_code == 1 and "history_size" in rejected.output
    assert saved["dispatch"]["stage_timeout"] == 2.5
    assert saved["packs"]["reply_prefix"]["prefix"] == "bot:"
    assert saved["messenger"]["history_size"] == 200
