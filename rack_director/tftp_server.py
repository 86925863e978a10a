"""TFTP listener that hands each request to its own connection."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Union

from rack_director.tftp_connection import accept
from rack_director.tftp_packet import parse_packet
from rack_director.tftp_state import Handler

log = logging.getLogger(__name__)

DEFAULT_ADDRESS = "0.0.0.0:69"


class _Listener(asyncio.DatagramProtocol):
    def __init__(self) -> None:
        self.queue: asyncio.Queue[Union[tuple[bytes, Any], Exception]] = (
            asyncio.Queue()
        )

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self.queue.put_nowait((data, addr))

    def error_received(self, exc: Exception) -> None:
        self.queue.put_nowait(exc)


def _log_outcome(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.debug("TFTP connection ended with error: %s", exc)


async def serve_socket(sock: socket.socket, handler: Handler) -> None:
    """Accept TFTP requests on a bound UDP socket until an error occurs."""
    loop = asyncio.get_running_loop()
    transport, listener = await loop.create_datagram_endpoint(_Listener, sock=sock)
    connections: set[asyncio.Task[None]] = set()
    try:
        while True:
            item = await listener.queue.get()
            if isinstance(item, Exception):
                raise item
            data, addr = item
            packet = parse_packet(data)
            task = asyncio.create_task(accept(handler, addr, packet))
            connections.add(task)
            task.add_done_callback(connections.discard)
            task.add_done_callback(_log_outcome)
    finally:
        transport.close()


class Server:
    """A TFTP server listening on ``address`` given as ``host:port``."""

    def __init__(self, handler: Handler, address: str = DEFAULT_ADDRESS) -> None:
        self.handler = handler
        self.address = address

    async def serve(self) -> None:
        """Bind the address and serve requests."""
        host, sep, port = self.address.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid address: {self.address}")
        family, kind, proto, _, sockaddr = socket.getaddrinfo(
            host.strip("[]"), int(port), type=socket.SOCK_DGRAM
        )[0]
        sock = socket.socket(family, kind, proto)
        try:
            sock.bind(sockaddr)
        except OSError:
            sock.close()
            raise
        await serve_socket(sock, self.handler)