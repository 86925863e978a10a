"""A single TFTP transfer served from its own UDP port."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Union

from rack_director.tftp_packet import Packet, PacketError, parse_packet
from rack_director.tftp_state import Closed, ControlFlow, Handler, Session

log = logging.getLogger(__name__)

RECV_TIMEOUT = 0.1


class ConnectionError(Exception):
    """A transfer failed because a packet could not be sent or parsed."""


class _Inbox(asyncio.DatagramProtocol):
    def __init__(self) -> None:
        self.queue: asyncio.Queue[Union[bytes, Exception]] = asyncio.Queue()

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self.queue.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        self.queue.put_nowait(exc)


class Connection:
    """Sends a session's replies to its client over a connected transport."""

    def __init__(self, addr: Any, transport: Any, session: Session) -> None:
        self.addr = addr
        self._transport = transport
        self._session = session

    async def handle(self, packet: Packet) -> bool:
        """Answer ``packet``; return False once the transfer is over."""
        return self._apply(await self._session.handle(packet))

    async def timeout(self) -> bool:
        """Answer a silent client; return False once the transfer is over."""
        log.debug("Handling timeout for connection %s", self.addr)
        return self._apply(await self._session.handle_timeout())

    def _apply(self, flow: ControlFlow) -> bool:
        if flow.packet is not None:
            self._send(flow.packet)
        return not isinstance(flow, Closed)

    def _send(self, packet: Packet) -> None:
        try:
            self._transport.sendto(packet.to_bytes())
        except OSError as exc:
            raise ConnectionError(f"Failed to send packet: {exc}") from exc


async def accept(handler: Handler, addr: Any, packet: Packet) -> None:
    """Serve a transfer that ``packet`` started, from a fresh UDP port."""
    loop = asyncio.get_running_loop()
    try:
        transport, inbox = await loop.create_datagram_endpoint(
            _Inbox, remote_addr=addr
        )
    except OSError as exc:
        raise ConnectionError(f"Failed to send packet: {exc}") from exc
    log.debug("Accepted connection from %s", addr)

    connection = Connection(addr, transport, Session(addr, handler))
    try:
        if not await connection.handle(packet):
            log.debug("Connection closed for %s", addr)
            return
        while True:
            try:
                item = await asyncio.wait_for(inbox.queue.get(), RECV_TIMEOUT)
            except asyncio.TimeoutError:
                if not await connection.timeout():
                    log.debug("Connection closed for %s", addr)
                    return
                continue
            if isinstance(item, Exception):
                log.debug("Error receiving packet: %s", item)
                raise ConnectionError(f"Failed to send packet: {item}") from item
            try:
                incoming = parse_packet(item)
            except PacketError as exc:
                raise ConnectionError(f"Failed to parse packet: {exc}") from exc
            if not await connection.handle(incoming):
                log.debug("Connection closed for %s", addr)
                return
    except ConnectionError as exc:
        log.debug("Error handling packet: %s", exc)
        raise
    finally:
        transport.close()