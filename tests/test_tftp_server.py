import asyncio
import socket

import pytest

from rack_director.tftp_packet import Ack, Data, PacketError, Rrq, parse_packet
from rack_director.tftp_server import Server, serve_socket
from rack_director.tftp_state import Handler, Reader


class ChunkReader(Reader):
    def __init__(self, chunks):
        self._chunks = iter(chunks)

    async def read(self):
        return next(self._chunks)


class ChunkHandler(Handler):
    def __init__(self, data):
        self.data = data

    async def create_reader(self, filename):
        chunks = [self.data[i:i + 512] for i in range(0, len(self.data), 512)]
        return ChunkReader(chunks)


class Client(asyncio.DatagramProtocol):
    def __init__(self):
        self.queue = asyncio.Queue()

    def datagram_received(self, data, addr):
        self.queue.put_nowait((data, addr))


def bound_socket():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    return sock


async def open_client():
    loop = asyncio.get_running_loop()
    return await loop.create_datagram_endpoint(Client, local_addr=("127.0.0.1", 0))


@pytest.mark.asyncio
async def test_serve_socket_transfers_from_new_port():
    sock = bound_socket()
    server_addr = sock.getsockname()
    server_task = asyncio.create_task(serve_socket(sock, ChunkHandler(bytes(513))))
    transport, client = await open_client()
    try:
        transport.sendto(Rrq("file", "octet").to_bytes(), server_addr)
        data, conn_addr = await asyncio.wait_for(client.queue.get(), 2)
        assert parse_packet(data) == Data(0, bytes(512))
        assert conn_addr[1] != server_addr[1]

        transport.sendto(Ack(0).to_bytes(), conn_addr)
        data, _ = await asyncio.wait_for(client.queue.get(), 2)
        assert parse_packet(data) == Data(1, bytes(1))
        transport.sendto(Ack(1).to_bytes(), conn_addr)
        assert not server_task.done()
    finally:
        transport.close()
        server_task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await server_task


@pytest.mark.asyncio
async def test_serve_socket_stops_on_unparseable_request():
    sock = bound_socket()
    server_addr = sock.getsockname()
    server_task = asyncio.create_task(serve_socket(sock, ChunkHandler(b"")))
    transport, _ = await open_client()
    try:
        transport.sendto(b"\x00\x09", server_addr)
        with pytest.raises(PacketError) as excinfo:
            await asyncio.wait_for(server_task, 2)
        assert "unknown opcode 9" in str(excinfo.value)
        assert server_task.done()
        assert server_task.exception() is excinfo.value
    finally:
        transport.close()


@pytest.mark.asyncio
async def test_server_rejects_address_without_port():
    server = Server(ChunkHandler(b""), "localhost")
    with pytest.raises(ValueError, match="invalid address"):
        await server.serve()


def test_server_default_address():
    server = Server(ChunkHandler(b""))
    assert server.address == "0.0.0.0:69"