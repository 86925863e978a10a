import pytest

from rack_director.director import (
    CHUNK_SIZE,
    DirectorTftpHandler,
    DirectorTftpReader,
)


@pytest.mark.asyncio
async def test_reader_pads_short_file(tmp_path):
    content = b"boot loader bytes"
    path = tmp_path / "ipxe.efi"
    path.write_bytes(content)
    with DirectorTftpReader(path) as reader:
        chunk = await reader.read()
    assert len(chunk) == CHUNK_SIZE == 512
    assert chunk.startswith(content)
    assert chunk[len(content):] == b"\0" * (CHUNK_SIZE - len(content))


@pytest.mark.asyncio
async def test_reader_reads_successive_chunks(tmp_path):
    content = bytes(range(256)) * 3
    path = tmp_path / "undionly.kpxe"
    path.write_bytes(content)
    reader = DirectorTftpReader(path)
    try:
        first = await reader.read()
        second = await reader.read()
        third = await reader.read()
    finally:
        reader.close()
    assert first == content[:CHUNK_SIZE]
    assert second.startswith(content[CHUNK_SIZE:])
    assert third == b"\0" * CHUNK_SIZE


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["ipxe.efi", "undionly.kpxe"])
async def test_handler_serves_known_files(tmp_path, name):
    (tmp_path / name).write_bytes(name.encode())
    handler = DirectorTftpHandler(tmp_path)
    reader = await handler.create_reader(name)
    try:
        chunk = await reader.read()
    finally:
        reader.close()
    assert chunk.startswith(name.encode())


@pytest.mark.asyncio
async def test_handler_rejects_other_files(tmp_path):
    (tmp_path / "secret.txt").write_bytes(b"x")
    handler = DirectorTftpHandler(tmp_path)
    with pytest.raises(ValueError, match="Unsupported file: secret.txt"):
        await handler.create_reader("secret.txt")


@pytest.mark.asyncio
async def test_handler_missing_file(tmp_path):
    handler = DirectorTftpHandler(tmp_path)
    with pytest.raises(FileNotFoundError):
        await handler.create_reader("ipxe.efi")