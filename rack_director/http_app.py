"""HTTP interface: index page and iPXE command-and-control."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from rack_director import database

log = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

_BOOT_LOCAL_SCRIPT = """#!ipxe
# Boot to local disk for known device
sanboot --no-describe --drive 0x80
"""

_INTAKE_SCRIPT = """#!ipxe
# Boot custom linux image for new device intake
kernel http://rack-director/intake/vmlinuz
initrd http://rack-director/intake/initrd.gz
boot
"""


@dataclass
class AppState:
    """Shared state: the database and the lock that serialises its use."""

    db: sqlite3.Connection
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def generate_boot_local_script() -> str:
    """iPXE script that boots a known device from its local disk."""
    return _BOOT_LOCAL_SCRIPT


def generate_intake_script() -> str:
    """iPXE script that boots a new device into the intake image."""
    return _INTAKE_SCRIPT


def create_app(state: AppState) -> Starlette:
    """Build the web application around ``state``."""

    async def index(request: Request) -> Response:
        return PlainTextResponse("Hello, world!")

    async def ipxe(request: Request) -> Response:
        uuid = request.query_params.get("uuid")
        if not uuid:
            return Response(status_code=400)

        async with state.lock:
            try:
                known = database.is_device_known(state.db, uuid)
            except sqlite3.Error as exc:
                log.error("Failed to check device: %s", exc)
                return Response(status_code=500)
            if not known:
                try:
                    database.register_device(state.db, uuid)
                except sqlite3.Error as exc:
                    log.error("Failed to register device: %s", exc)
                    return Response(status_code=500)

        script = generate_boot_local_script() if known else generate_intake_script()
        return Response(script, headers={"content-type": "text/plain"})

    return Starlette(
        routes=[
            Route("/", index, methods=["GET"]),
            Route("/cnc/ipxe", ipxe, methods=["GET"]),
        ]
    )


async def start(
    db: sqlite3.Connection, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT
) -> None:
    """Serve the web application until the server shuts down."""
    app = create_app(AppState(db))
    log.info("Starting http server on %s:%d", host, port)
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_config=None))
    await server.serve()