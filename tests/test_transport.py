"""Tests for bridge URI and serial delivery."""

from __future__ import annotations

import asyncio
import base64

from struk.hardware.base import DispatchStatus
from struk.hardware.bridge import GUARD, BridgeTransport, build_bridge_uri
from struk.hardware.serial_port import SerialTransport


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------


class TestBridgeUri:
    def test_guard_prefixed(self) -> None:
        uri = build_bridge_uri(b"\x1b@hello")
        assert uri.startswith("rawbt:base64,")
        decoded = base64.b64decode(uri.split(",", 1)[1])
        assert decoded == b"\x1bd\x00" + b"\x1b@hello"
        assert GUARD == b"\x1bd\x00"

    def test_custom_scheme(self) -> None:
        assert build_bridge_uri(b"", scheme="escpos").startswith("escpos:base64,")

    def test_empty_payload_is_guard_only(self) -> None:
        assert build_bridge_uri(b"") == "rawbt:base64," + base64.b64encode(GUARD).decode()


class TestBridgeTransport:
    def test_dispatch_opens_uri(self) -> None:
        opened = []
        transport = BridgeTransport(opener=lambda uri: opened.append(uri) or True)

        result = asyncio.run(transport.dispatch(b"abc"))

        assert opened == [build_bridge_uri(b"abc")]
        assert result.status is DispatchStatus.DISPATCHED
        assert result.dispatched
        assert result.payload_size == 3
        assert result.target == "rawbt"
        assert not result.acknowledged

    def test_opener_reports_failure(self) -> None:
        transport = BridgeTransport(opener=lambda uri: False)
        result = asyncio.run(transport.dispatch(b"abc"))
        assert result.status is DispatchStatus.LAUNCH_FAILED
        assert result.error

    def test_opener_raises(self) -> None:
        def broken(uri: str) -> bool:
            raise RuntimeError("no handler")

        result = asyncio.run(BridgeTransport(opener=broken).dispatch(b"abc"))
        assert not result.dispatched
        assert result.error == "no handler"


# ---------------------------------------------------------------------------
# Serial
# ---------------------------------------------------------------------------


class FakePort:
    def __init__(self, fail_after: int = -1) -> None:
        self.writes: list[bytes] = []
        self.closed = False
        self.fail_after = fail_after

    def write(self, data: bytes) -> int:
        if len(self.writes) == self.fail_after:
            raise OSError("write timeout")
        self.writes.append(data)
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True


class TestSerialTransport:
    def test_writes_in_chunks(self) -> None:
        port = FakePort()
        opened = []

        def factory(path: str, baud: int) -> FakePort:
            opened.append((path, baud))
            return port

        transport = SerialTransport(port="/dev/ttyUSB0", baud=19200, serial_factory=factory)
        assert not transport.is_ready()

        payload = bytes(range(256)) * 3 + b"tail"
        result = asyncio.run(transport.dispatch(payload))

        assert opened == [("/dev/ttyUSB0", 19200)]
        assert result.dispatched
        assert result.target == "/dev/ttyUSB0"
        assert [len(w) for w in port.writes] == [256, 256, 256, 4]
        assert b"".join(port.writes) == payload
        assert transport.is_ready()

    def test_port_reused(self) -> None:
        ports = []

        def factory(path: str, baud: int) -> FakePort:
            ports.append(FakePort())
            return ports[-1]

        transport = SerialTransport(serial_factory=factory)
        asyncio.run(transport.dispatch(b"one"))
        asyncio.run(transport.dispatch(b"two"))
        assert len(ports) == 1
        assert ports[0].writes == [b"one", b"two"]

    def test_write_failure_closes_port(self) -> None:
        port = FakePort(fail_after=1)
        transport = SerialTransport(serial_factory=lambda path, baud: port)

        result = asyncio.run(transport.dispatch(b"x" * 600))

        assert result.status is DispatchStatus.LAUNCH_FAILED
        assert result.error == "write timeout"
        assert port.closed
        assert not transport.is_ready()

    def test_open_failure(self) -> None:
        def factory(path: str, baud: int) -> FakePort:
            raise OSError("could not open port")

        result = asyncio.run(SerialTransport(serial_factory=factory).dispatch(b"x"))
        assert not result.dispatched
        assert "could not open port" in result.error
