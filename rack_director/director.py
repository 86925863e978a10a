"""TFTP handler serving the iPXE boot loaders."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Union

from rack_director.tftp_state import Handler, Reader

CHUNK_SIZE = 512
SERVED_FILES = frozenset({"ipxe.efi", "undionly.kpxe"})


class DirectorTftpReader(Reader):
    """Reads a file in fixed 512-byte chunks, zero-padded at the end."""

    def __init__(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self._file = open(path, "rb")

    async def read(self) -> bytes:
        chunk = await asyncio.to_thread(self._file.read, CHUNK_SIZE)
        return chunk.ljust(CHUNK_SIZE, b"\0")

    def close(self) -> None:
        """Close the underlying file."""
        self._file.close()

    def __enter__(self) -> "DirectorTftpReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class DirectorTftpHandler(Handler):
    """Serves the boot loader files found under ``root``."""

    def __init__(self, root: Union[str, "os.PathLike[str]"]) -> None:
        self.root = Path(root)

    async def create_reader(self, filename: str) -> DirectorTftpReader:
        if filename not in SERVED_FILES:
            raise ValueError(f"Unsupported file: {filename}")
        return DirectorTftpReader(self.root / filename)