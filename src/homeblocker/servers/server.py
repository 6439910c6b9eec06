import logging
import socketserver
from typing import Dict, Union

from ..blocking.registry import DecisionEngine
from .udp_server import DNSUDPHandler

logger = logging.getLogger("homeblocker.server")


class DNSServer:
    """A threaded UDP DNS server: one handler thread per inbound query.

    Example use:
        >>> from homeblocker.blocking import BlockRegistry, DecisionEngine
        >>> import threading
        >>> server = DNSServer("127.0.0.1", 5355, {"host": "1.1.1.1", "port": 53},
        ...                    DecisionEngine(BlockRegistry()))
        >>> t = threading.Thread(target=server.serve_forever, daemon=True)
        >>> t.start()
        >>> server.stop()
    """

    def __init__(
        self,
        host: str,
        port: int,
        upstream: Dict[str, Union[str, int]],
        engine: DecisionEngine,
        timeout_ms: int = 2000,
    ) -> None:
        """Initialize a UDP DNSServer.

        Inputs:
            host: The host to listen on.
            port: The port to listen on.
            upstream: Upstream resolver mapping {'host', 'port'}.
            engine: DecisionEngine built from the startup registry.
            timeout_ms: The timeout for upstream queries (milliseconds).
        """
        try:
            self.server = socketserver.ThreadingUDPServer((host, port), DNSUDPHandler)
        except PermissionError as e:
            logger.error(
                "Permission denied when binding to %s:%d. Try a port >1024 or run with elevated privileges. Original error: %s",
                host,
                port,
                e,
            )
            raise

        # Handlers read these through self.server, so each server keeps its own.
        self.server.upstream = dict(upstream)
        self.server.engine = engine
        self.server.timeout_ms = int(timeout_ms)
        # Request threads must not block shutdown.
        self.server.daemon_threads = True
        logger.debug("DNS UDP server bound to %s:%d", host, port)

    def serve_forever(self) -> None:
        """Run the UDP server loop until stop() or KeyboardInterrupt."""
        try:
            self.server.serve_forever()
        except KeyboardInterrupt:
            pass

    def stop(self) -> None:
        """Request shutdown and close the UDP socket."""
        self.server.shutdown()
        self.server.server_close()
