"""Text form of the cross-platform configuration protocol ("set" and "get")."""

from __future__ import annotations

import errno
import ipaddress
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Union

KEY_SIZE = 32
_NS_PER_SECOND = 1_000_000_000

_HEX_KEY = re.compile(r"[0-9a-fA-F]{%d}" % (KEY_SIZE * 2))
_DECIMAL = re.compile(r"[0-9]+")

Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class IpcErrorCode(IntEnum):
    """Status codes reported back to configuration clients as ``errno=``."""

    IO = -errno.EIO
    PROTOCOL = -errno.EPROTO
    INVALID = -errno.EINVAL
    PORT_IN_USE = -errno.EADDRINUSE
    UNKNOWN = -55  # ENOANO


class IPCError(Exception):
    """A configuration-protocol failure carrying the status code to report."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message)
        self.code = int(code)
        self.message = message

    def error_code(self) -> int:
        """The (negative) status code for the ``errno=`` reply line."""
        return self.code

    def __str__(self) -> str:
        return f"IPC error {self.code}: {self.message}"


@dataclass
class PeerConfig:
    """Settings for one peer, as given to or reported by the protocol."""

    public_key: bytes
    update_only: bool = False
    remove: bool = False
    preshared_key: Optional[bytes] = None
    endpoint: Optional[str] = None
    persistent_keepalive_interval: Optional[int] = None
    replace_allowed_ips: bool = False
    allowed_ips: List[Network] = field(default_factory=list)
    last_handshake_time_ns: int = 0
    tx_bytes: int = 0
    rx_bytes: int = 0


@dataclass
class DeviceConfig:
    """Device-wide settings followed by the peers they apply to."""

    private_key: Optional[bytes] = None
    listen_port: Optional[int] = None
    fwmark: Optional[int] = None
    replace_peers: bool = False
    peers: List[PeerConfig] = field(default_factory=list)


def _invalid(message: str) -> IPCError:
    return IPCError(IpcErrorCode.INVALID, message)


def _parse_key(value: str) -> bytes:
    if not _HEX_KEY.fullmatch(value):
        raise ValueError("hex string does not fit the slice")
    return bytes.fromhex(value)


def _parse_uint(value: str, bits: int) -> int:
    if not _DECIMAL.fullmatch(value):
        raise ValueError(f"parsing {value!r}: invalid syntax")
    number = int(value)
    if number >= 1 << bits:
        raise ValueError(f"parsing {value!r}: value out of range")
    return number


def _parse_endpoint(value: str) -> str:
    if value.startswith("["):
        host, sep, port = value[1:].partition("]:")
        if not sep:
            raise ValueError(f"invalid endpoint {value!r}")
        addr = ipaddress.IPv6Address(host)
    else:
        host, sep, port = value.rpartition(":")
        if not sep or ":" in host:
            raise ValueError(f"invalid endpoint {value!r}")
        addr = ipaddress.IPv4Address(host)
    number = _parse_uint(port, 16)
    if addr.version == 6:
        return f"[{addr.compressed}]:{number}"
    return f"{addr}:{number}"


def _parse_prefix(value: str) -> Network:
    addr, sep, bits = value.partition("/")
    if not sep or not _DECIMAL.fullmatch(bits):
        raise ValueError(f"netip.ParsePrefix({value!r}): bad bits")
    return ipaddress.ip_network(f"{ipaddress.ip_address(addr)}/{int(bits)}", strict=False)


def _require_true(value: str, what: str) -> None:
    if value != "true":
        raise _invalid(f"failed to {what}, invalid value: {value}")


def _device_line(config: DeviceConfig, key: str, value: str) -> None:
    if key == "private_key":
        try:
            config.private_key = _parse_key(value)
        except ValueError as exc:
            raise _invalid(f"failed to set private_key: {exc}") from exc
    elif key == "listen_port":
        try:
            config.listen_port = _parse_uint(value, 16)
        except ValueError as exc:
            raise _invalid(f"failed to parse listen_port: {exc}") from exc
    elif key == "fwmark":
        try:
            config.fwmark = _parse_uint(value, 32)
        except ValueError as exc:
            raise _invalid(f"invalid fwmark: {exc}") from exc
    elif key == "replace_peers":
        _require_true(value, "set replace_peers")
        config.replace_peers = True
    else:
        raise _invalid(f"invalid UAPI device key: {key}")


def _peer_line(peer: PeerConfig, key: str, value: str) -> None:
    if key == "update_only":
        _require_true(value, "set update only")
        peer.update_only = True
    elif key == "remove":
        _require_true(value, "set remove")
        peer.remove = True
    elif key == "preshared_key":
        try:
            peer.preshared_key = _parse_key(value)
        except ValueError as exc:
            raise _invalid(f"failed to set preshared key: {exc}") from exc
    elif key == "endpoint":
        try:
            peer.endpoint = _parse_endpoint(value)
        except ValueError as exc:
            raise _invalid(f"failed to set endpoint {value}: {exc}") from exc
    elif key == "persistent_keepalive_interval":
        try:
            peer.persistent_keepalive_interval = _parse_uint(value, 16)
        except ValueError as exc:
            raise _invalid(f"failed to set persistent keepalive interval: {exc}") from exc
    elif key == "replace_allowed_ips":
        _require_true(value, "replace allowedips")
        peer.replace_allowed_ips = True
    elif key == "allowed_ip":
        try:
            peer.allowed_ips.append(_parse_prefix(value))
        except ValueError as exc:
            raise _invalid(f"failed to set allowed ip: {exc}") from exc
    elif key == "protocol_version":
        if value != "1":
            raise _invalid(f"invalid protocol version: {value}")
    else:
        raise _invalid(f"invalid UAPI peer key: {key}")


def parse_set(text: str) -> DeviceConfig:
    """Parse the body of a ``set=1`` operation; a blank line ends it."""
    config = DeviceConfig()
    peer: Optional[PeerConfig] = None
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    for raw in lines:
        line = raw[:-1] if raw.endswith("\r") else raw
        if line == "":
            break
        key, sep, value = line.partition("=")
        if not sep:
            raise IPCError(IpcErrorCode.PROTOCOL, f"failed to parse line {line!r}")
        if key == "public_key":
            try:
                peer = PeerConfig(public_key=_parse_key(value))
            except ValueError as exc:
                raise _invalid(f"failed to get peer by public key: {exc}") from exc
            config.peers.append(peer)
        elif peer is None:
            _device_line(config, key, value)
        else:
            _peer_line(peer, key, value)
    return config


def format_get(device: DeviceConfig) -> str:
    """Render the reply body of a ``get=1`` operation for ``device``."""
    out: List[str] = []
    if device.private_key and any(device.private_key):
        out.append(f"private_key={device.private_key.hex()}")
    if device.listen_port:
        out.append(f"listen_port={device.listen_port}")
    if device.fwmark:
        out.append(f"fwmark={device.fwmark}")
    for peer in device.peers:
        out.append(f"public_key={peer.public_key.hex()}")
        preshared = peer.preshared_key or bytes(KEY_SIZE)
        out.append(f"preshared_key={preshared.hex()}")
        out.append("protocol_version=1")
        if peer.endpoint is not None:
            out.append(f"endpoint={peer.endpoint}")
        secs, nano = divmod(peer.last_handshake_time_ns, _NS_PER_SECOND)
        out.append(f"last_handshake_time_sec={secs}")
        out.append(f"last_handshake_time_nsec={nano}")
        out.append(f"tx_bytes={peer.tx_bytes}")
        out.append(f"rx_bytes={peer.rx_bytes}")
        out.append(
            f"persistent_keepalive_interval={peer.persistent_keepalive_interval or 0}"
        )
        out.extend(f"allowed_ip={prefix}" for prefix in peer.allowed_ips)
    return "".join(line + "\n" for line in out)