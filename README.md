# rack-director

rack-director hands out network boot instructions to the machines in a rack.
It runs two services side by side:

- a **TFTP server** on UDP port 69 (all interfaces) that serves the iPXE boot
  loaders `ipxe.efi` and `undionly.kpxe` from a directory;
- an **HTTP server** on port 3000 (all interfaces) that answers iPXE's chain
  request with a boot script chosen per machine.

When a machine asks for `GET /cnc/ipxe?uuid=<system uuid>`, rack-director looks
the UUID up in its SQLite database:

- an unknown machine is registered (its `last_seen_at` is stamped) and receives
  an intake script that loads a kernel and initrd from
  `http://rack-director/intake/`;
- a known machine receives a script that boots from its local disk
  (`sanboot --no-describe --drive 0x80`).

A request without a UUID, or with an empty one, is answered with
`400 Bad Request`; a database failure with `500`. `GET /` answers
`Hello, world!` and can serve as a liveness check.

## Installing

```
pip install .
```

## Running

```
rack-director --db-path /var/lib/rack-director/db.sqlite --tftp-path /usr/lib/rack-director/tftp
```

Both options may be left out; they default to the paths shown above. The
database file is opened (created if missing) and its schema migrated on start.
Put `ipxe.efi` and `undionly.kpxe` into the TFTP directory; a request for any
other file name is answered with a TFTP error. Binding UDP port 69 usually
needs elevated privileges.

Point your DHCP server's boot file at one of the loaders, and have iPXE chain to
`http://<this host>:3000/cnc/ipxe?uuid=${uuid}`.

## TFTP behaviour

- Only read requests are served; a write request, or any packet that does not
  fit the transfer's state, is answered with an "illegal operation" error and
  ends the transfer.
- Each transfer runs on its own UDP port. The first data block is numbered 0.
- Files are sent in 512-byte blocks; `DirectorTftpReader` pads every block,
  including the last, with zero bytes to 512 bytes.
- When the client is silent for 100 ms the current block is sent again; there
  is no limit on retries.
- An error packet from the client ends the transfer quietly.

## Using it as a library

- `rack_director.tftp_packet` parses and encodes TFTP packets
  (`parse_packet`, and the packet classes `Rrq`, `Wrq`, `Data`, `Ack`,
  `ErrorPacket`, each with `to_bytes()`); malformed input raises `PacketError`.
- `rack_director.tftp_state.Session` is the per-transfer state machine; subclass
  `Handler` and `Reader` to serve your own files.
- `rack_director.tftp_server.Server(handler, address="0.0.0.0:69")` runs a TFTP
  server around any `Handler`; `serve_socket` does the same on a bound socket.
- `rack_director.director.DirectorTftpHandler` is the handler serving the boot
  loaders from a directory.
- `rack_director.database` opens the device database (`open_database`) and
  records devices (`is_device_known`, `register_device`).
- `rack_director.http_app.create_app(AppState(db))` builds the ASGI
  application; `start(db, host, port)` serves it with uvicorn.

## What it does not do

- It does not serve the intake kernel and initrd the intake script points to;
  something else must answer at `http://rack-director/intake/`.
- The web side has no pages for listing, editing or removing devices.
- The command has no options for the HTTP or TFTP listening addresses; use the
  library functions above to choose them.

## Running the tests

```
pip install ".[test]"
pytest
```