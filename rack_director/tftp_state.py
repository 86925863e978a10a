"""State machine for a single TFTP read transfer."""

from __future__ import annotations

import abc
import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from rack_director.tftp_packet import (
    Ack,
    Data,
    ErrorCode,
    ErrorPacket,
    Packet,
    Rrq,
)

log = logging.getLogger(__name__)

BLOCK_SIZE = 512


class Reader(abc.ABC):
    """Source of file data, read one block at a time."""

    @abc.abstractmethod
    async def read(self) -> bytes:
        """Return the next block of data."""


class Handler(abc.ABC):
    """Opens readers for requested files."""

    @abc.abstractmethod
    async def create_reader(self, filename: str) -> Reader:
        """Return a reader for ``filename``, raising if it cannot be served."""


@dataclass(frozen=True)
class Continue:
    """Send ``packet`` and keep the transfer open."""

    packet: Packet


@dataclass(frozen=True)
class Closed:
    """End the transfer, sending ``packet`` first if there is one."""

    packet: Optional[Packet] = None


ControlFlow = Union[Continue, Closed]


class _Phase(enum.Enum):
    UNINITIALIZED = enum.auto()
    READING = enum.auto()
    COMPLETE = enum.auto()


class _UnexpectedAck(Exception):
    pass


class Session:
    """Tracks one client's read transfer and answers its packets."""

    def __init__(self, addr: Any, handler: Handler) -> None:
        self.addr = addr
        self.handler = handler
        self._phase = _Phase.UNINITIALIZED
        self._filename = ""
        self._mode = ""
        self._block = 0
        self._reader: Optional[Reader] = None
        self._data = b""

    async def handle(self, packet: Packet) -> ControlFlow:
        """Handle a packet from the client and say what to send back."""
        try:
            if self._phase is _Phase.UNINITIALIZED:
                if isinstance(packet, Rrq):
                    return await self._read_request(packet)
                return self._error(None)
            if self._phase is _Phase.READING:
                if isinstance(packet, Ack):
                    return await self._ack(packet.block)
                if isinstance(packet, ErrorPacket):
                    log.info(
                        "TFTP: Received error packet for %s: %r - %s",
                        self.addr,
                        packet.code,
                        packet.message,
                    )
                    return self._close()
                return self._error(self._filename)
            return self._error(None)
        except Exception as exc:
            log.error("TFTP: Error occured for %s: %r", self.addr, exc)
            return Closed(ErrorPacket(ErrorCode.UNDEFINED, "internal error occured"))

    async def handle_timeout(self) -> ControlFlow:
        """Decide what to do when the client has gone quiet."""
        log.debug("TFTP: Timeout for %s", self.addr)
        if self._phase is _Phase.READING:
            return Continue(Data(self._block, self._data))
        state = "Uninitialized" if self._phase is _Phase.UNINITIALIZED else "Complete"
        log.warning("TFTP: Timeout in %s state for %s", state, self.addr)
        return Closed()

    async def _read_request(self, packet: Rrq) -> ControlFlow:
        reader = await self.handler.create_reader(packet.filename)
        data = await reader.read()
        self._phase = _Phase.READING
        self._filename = packet.filename
        self._mode = packet.mode
        self._block = 0
        self._reader = reader
        self._data = data
        return Continue(Data(0, data))

    async def _ack(self, acked_block: int) -> ControlFlow:
        if acked_block == self._block:
            if len(self._data) < BLOCK_SIZE:
                log.debug("TFTP: Transfer complete for block %d", acked_block)
                self._phase = _Phase.COMPLETE
                return Closed()
            assert self._reader is not None
            data = await self._reader.read()
            self._block = (self._block + 1) & 0xFFFF
            self._data = data
        elif acked_block != (self._block - 1) & 0xFFFF:
            raise _UnexpectedAck(f"Unexpected ACK block number: {acked_block}")
        return Continue(Data((acked_block + 1) & 0xFFFF, self._data))

    def _error(self, filename: Optional[str]) -> ControlFlow:
        log.debug(
            "TFTP: Returning error %r to %s reading %s",
            ErrorCode.ILLEGAL_OPERATION,
            self.addr,
            filename if filename is not None else "[n/a]",
        )
        self._phase = _Phase.COMPLETE
        return Closed(ErrorPacket(ErrorCode.ILLEGAL_OPERATION, ""))

    def _close(self) -> ControlFlow:
        log.debug("TFTP: Closing connection for %s", self.addr)
        self._phase = _Phase.COMPLETE
        return Closed()