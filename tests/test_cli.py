"""Tests for the stlink-tool command line front end."""

import importlib.util
from pathlib import Path

import pytest

from stlinkdfu.DfuState import DfuState
from stlinkdfu.StlinkDevice import StlinkDevice
from stlinkdfu.StlinkErrors import TransportError

from fakes import FakeTransport, StatusTransport, fake_cipher, status_reply, v2_info_replies


SCRIPT = Path(__file__).resolve().parent.parent / "stlink-tool.py"


@pytest.fixture
def cli():
    spec = importlib.util.spec_from_file_location("stlink_tool", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def fake_device(cli, monkeypatch, transport):
    dev = StlinkDevice(transport, fake_cipher)
    monkeypatch.setattr(cli, "open_device", lambda args: dev)
    return dev


def probe_replies():
    return [bytes([0x00, 0x00])] + v2_info_replies() + [status_reply(DfuState.DFU_IDLE)]


def test_probe_prints_infos_without_flashing(cli, monkeypatch, capsys) -> None:
    transport = FakeTransport(probe_replies())
    fake_device(cli, monkeypatch, transport)

    cli.main(["--probe"])

    out = capsys.readouterr().out
    assert "Current mode: DFU" in out
    assert "Firmware version: V2J37S7" in out
    assert "STLink ID: 08090A0B0C0D0E0F10111213" in out
    assert "DFU state: dfuIDLE" in out
    assert not any(w[:2] == b'\xf3\x01' for w in transport.writes)
    assert transport.closed


def test_flash_writes_image_and_leaves_bootloader(cli, monkeypatch, capsys, tmp_path, no_sleep) -> None:
    image = tmp_path / "firmware.bin"
    image.write_bytes(bytes(range(100)))
    transport = StatusTransport(probe_replies())
    fake_device(cli, monkeypatch, transport)

    cli.main([str(image), "--chunk-size", "64"])

    out = capsys.readouterr().out
    assert "size: 100 bytes" in out
    assert "Flashing at 0x08004000" in out
    assert "Done !" in out
    data_blocks = [h for h, _ in transport.downloads() if h[2:4] == b'\x02\x00']
    assert len(data_blocks) == 2
    assert transport.writes[-1] == b'\xf3\x07' + bytes(14)


def test_no_exit_keeps_bootloader(cli, monkeypatch, tmp_path, no_sleep) -> None:
    image = tmp_path / "firmware.bin"
    image.write_bytes(bytes(16))
    transport = StatusTransport(probe_replies())
    fake_device(cli, monkeypatch, transport)

    cli.main([str(image), "--no-exit", "--address", "0x08008000"])

    assert transport.writes[-1][:2] != b'\xf3\x07'
    addresses = [sent for h, sent in transport.downloads() if h[2:4] == b'\x00\x00' and sent[:1] == b'\x21']
    assert addresses == [b'\x21\x00\x80\x00\x08']


def test_empty_image_exits_with_error(cli, monkeypatch, capsys, tmp_path) -> None:
    image = tmp_path / "empty.bin"
    image.write_bytes(b"")
    fake_device(cli, monkeypatch, FakeTransport(probe_replies()))

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(image)])
    assert excinfo.value.code == -1
    assert "could not be read" in capsys.readouterr().err


def test_missing_probe_exits_with_error(cli, monkeypatch, capsys) -> None:
    def no_device(args):
        raise TransportError("No STLink device found")

    monkeypatch.setattr(cli, "open_device", no_device)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--probe"])
    assert excinfo.value.code == -1
    assert "No STLink device found" in capsys.readouterr().err


def test_firmware_required_without_probe(cli) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 2
