"""TCP server speaking RESP, with periodic and shutdown persistence."""

from __future__ import annotations

import signal
import socket
import sys
import threading
import time
from collections.abc import Sequence
from typing import Optional

from tinyredis.commands import CommandHandler
from tinyredis.database import Database, _parse_int

DEFAULT_PORT = 6379
DUMP_FILE = "dump.my_rdb"
SAVE_INTERVAL = 300
_BACKLOG = 10
_RECV_SIZE = 1023
_ACCEPT_POLL = 0.2


def _save_snapshot() -> None:
    try:
        Database.instance().dump(DUMP_FILE)
    except OSError:
        print("Error dumping database", file=sys.stderr, flush=True)
    else:
        print(f"Database dumped successfully to {DUMP_FILE}", flush=True)


class RedisServer:
    """Accepts clients and answers each received chunk as one command."""

    def __init__(self, port: int) -> None:
        self.port = port
        self.ready = threading.Event()
        self._running = True
        self._socket: Optional[socket.socket] = None

    def shutdown(self) -> None:
        """Stop accepting clients and close the listening socket."""
        self._running = False
        if self._socket is not None:
            self._socket.close()
        print("Server shutdown Complete!", flush=True)

    def run(self) -> None:
        """Serve until shut down, then wait for clients and dump the database.

        Raises OSError if the port cannot be bound or listened on.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket = sock
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", self.port))
            sock.listen(_BACKLOG)
        except OSError:
            sock.close()
            raise
        self.port = sock.getsockname()[1]
        sock.settimeout(_ACCEPT_POLL)
        print(f"Redis Server Listening on port {self.port}", flush=True)
        self.ready.set()

        handler = CommandHandler(Database.instance())
        workers: list[threading.Thread] = []
        try:
            while self._running:
                try:
                    conn, _ = sock.accept()
                except TimeoutError:
                    continue
                except OSError:
                    if self._running:
                        print("Error Accepting Client Connection", file=sys.stderr, flush=True)
                    break
                worker = threading.Thread(
                    target=self._serve_client, args=(conn, handler), daemon=True
                )
                worker.start()
                workers.append(worker)
        finally:
            sock.close()

        for worker in workers:
            worker.join()
        _save_snapshot()

    @staticmethod
    def _serve_client(conn: socket.socket, handler: CommandHandler) -> None:
        with conn:
            while True:
                try:
                    data = conn.recv(_RECV_SIZE)
                except OSError:
                    break
                if not data:
                    break
                try:
                    response = handler.process_command(data.decode("latin-1"))
                except ValueError:
                    break
                try:
                    conn.sendall(response.encode("latin-1", errors="replace"))
                except OSError:
                    break


def _save_periodically() -> None:
    while True:
        time.sleep(SAVE_INTERVAL)
        _save_snapshot()


def _install_interrupt_handler(server: RedisServer) -> None:
    def handle(signum, frame):
        print(f"Received signal {signum}, shutting down server...", flush=True)
        server.shutdown()
        sys.exit(signum)

    signal.signal(signal.SIGINT, handle)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the server on the port given as the first argument (default 6379)."""
    args = list(sys.argv[1:] if argv is None else argv)
    port = _parse_int(args[0]) if args else DEFAULT_PORT
    server = RedisServer(port)
    _install_interrupt_handler(server)
    threading.Thread(target=_save_periodically, daemon=True).start()
    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())