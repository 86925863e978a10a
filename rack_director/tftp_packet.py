"""TFTP packet encoding and decoding."""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass
from typing import Union

log = logging.getLogger(__name__)

_U16 = struct.Struct(">H")


class PacketError(ValueError):
    """Raised when bytes cannot be decoded as a TFTP packet."""


class ErrorCode(enum.IntEnum):
    """Error codes defined by the TFTP protocol."""

    UNDEFINED = 0
    FILE_NOT_FOUND = 1
    ACCESS_VIOLATION = 2
    DISK_FULL = 3
    ILLEGAL_OPERATION = 4
    UNKNOWN_TRANSFER_ID = 5
    FILE_ALREADY_EXISTS = 6
    NO_SUCH_USER = 7


Code = Union[ErrorCode, int]


def error_code(value: int) -> Code:
    """Map a wire value to an ErrorCode, keeping unknown codes as plain ints."""
    try:
        return ErrorCode(value)
    except ValueError:
        return int(value)


def error_code_value(code: Code) -> int:
    """Return the wire value of an error code."""
    return int(code)


class Opcode(enum.IntEnum):
    RRQ = 1
    WRQ = 2
    DATA = 3
    ACK = 4
    ERROR = 5


def read_u16(data: bytes) -> tuple[int, bytes]:
    """Read a big-endian u16 from the front of ``data``."""
    if len(data) < _U16.size:
        raise PacketError("packet not long enough for reading u16")
    (value,) = _U16.unpack_from(data)
    return value, bytes(data[_U16.size:])


def read_string(data: bytes) -> tuple[str, bytes]:
    """Read a NUL-terminated string from the front of ``data``."""
    end = bytes(data).find(b"\0")
    if end < 0:
        raise PacketError("packet missing null terminator reading string")
    text = bytes(data[:end]).decode("utf-8", errors="replace")
    return text, bytes(data[end + 1:])


def _u16(value: int) -> bytes:
    return _U16.pack(value)


def _string(value: str) -> bytes:
    return value.encode("utf-8") + b"\0"


@dataclass(frozen=True)
class Rrq:
    """Read request."""

    filename: str
    mode: str

    def to_bytes(self) -> bytes:
        return _u16(Opcode.RRQ) + _string(self.filename) + _string(self.mode)


@dataclass(frozen=True)
class Wrq:
    """Write request."""

    filename: str
    mode: str

    def to_bytes(self) -> bytes:
        return _u16(Opcode.WRQ) + _string(self.filename) + _string(self.mode)


@dataclass(frozen=True)
class Data:
    """A block of file data."""

    block: int
    data: bytes

    def to_bytes(self) -> bytes:
        return _u16(Opcode.DATA) + _u16(self.block) + bytes(self.data)


@dataclass(frozen=True)
class Ack:
    """Acknowledgement of a data block."""

    block: int

    def to_bytes(self) -> bytes:
        return _u16(Opcode.ACK) + _u16(self.block)


@dataclass(frozen=True)
class ErrorPacket:
    """An error report."""

    code: Code
    message: str

    def to_bytes(self) -> bytes:
        return (
            _u16(Opcode.ERROR)
            + _u16(error_code_value(self.code))
            + _string(self.message)
        )


Packet = Union[Rrq, Wrq, Data, Ack, ErrorPacket]


def _warn_trailing(remainder: bytes, kind: str) -> None:
    if remainder:
        log.warning("TFTP bytes remaining after parsing %s packet", kind)


def _parse_request(data: bytes, kind: str) -> tuple[str, str]:
    filename, remainder = read_string(data)
    mode, remainder = read_string(remainder)
    _warn_trailing(remainder, kind)
    return filename, mode


def parse_packet(data: bytes) -> Packet:
    """Decode a TFTP packet."""
    opcode, body = read_u16(data)
    if opcode == Opcode.RRQ:
        return Rrq(*_parse_request(body, "RRQ"))
    if opcode == Opcode.WRQ:
        return Wrq(*_parse_request(body, "WRQ"))
    if opcode == Opcode.DATA:
        block, payload = read_u16(body)
        return Data(block, payload)
    if opcode == Opcode.ACK:
        block, remainder = read_u16(body)
        _warn_trailing(remainder, "ACK")
        return Ack(block)
    if opcode == Opcode.ERROR:
        code, remainder = read_u16(body)
        message, remainder = read_string(remainder)
        _warn_trailing(remainder, "ERROR")
        return ErrorPacket(error_code(code), message)
    raise PacketError(f"unknown opcode {opcode}")