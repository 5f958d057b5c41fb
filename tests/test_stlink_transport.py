"""Tests for the pyusb bulk transport, against a mocked usb device."""

from unittest.mock import MagicMock

import pytest
import usb.core

from stlinkdfu.StlinkErrors import TransportError
from stlinkdfu.StlinkTransport import EP_IN, EP_OUT, STLINK_VID, UsbTransport, find_stlink


def make_transport(timeout=5000):
    device = MagicMock()
    return device, UsbTransport(device, timeout=timeout)


def test_open_sets_configuration() -> None:
    device, _ = make_transport()
    device.__getitem__.assert_called_with(0)
    device.__getitem__.return_value.set.assert_called_once()


def test_write_uses_out_endpoint_and_timeout() -> None:
    device, transport = make_transport(timeout=1234)
    device.write.return_value = 16
    assert transport.write(bytes(16)) == 16
    device.write.assert_called_once_with(EP_OUT, bytes(16), 1234)


def test_short_write_is_an_error() -> None:
    device, transport = make_transport()
    device.write.return_value = 8
    with pytest.raises(TransportError):
        transport.write(bytes(16))


def test_read_returns_bytes() -> None:
    device, transport = make_transport()
    device.read.return_value = [1, 2, 3, 4, 5, 6]
    assert transport.read(6) == b"\x01\x02\x03\x04\x05\x06"
    device.read.assert_called_once_with(EP_IN, 6, 5000)


def test_short_read_is_an_error() -> None:
    device, transport = make_transport()
    device.read.return_value = [1, 2]
    with pytest.raises(TransportError):
        transport.read(6)


def test_usb_errors_become_transport_errors() -> None:
    device, transport = make_transport()
    device.write.side_effect = usb.core.USBError("Operation timed out")
    device.read.side_effect = usb.core.USBError("Pipe error")
    with pytest.raises(TransportError, match="timed out"):
        transport.write(bytes(16))
    with pytest.raises(TransportError, match="Pipe error"):
        transport.read(6)


def test_find_stlink_tries_known_product_ids(monkeypatch) -> None:
    probe = object()
    calls = []

    def fake_find(idVendor, idProduct):
        calls.append(idProduct)
        return probe if idProduct == 0x374b else None

    monkeypatch.setattr(usb.core, "find", fake_find)
    assert find_stlink() is probe
    assert calls == [0x3748, 0x374b]


def test_find_stlink_without_device(monkeypatch) -> None:
    monkeypatch.setattr(usb.core, "find", lambda idVendor, idProduct: None)
    with pytest.raises(TransportError):
        find_stlink(STLINK_VID)
