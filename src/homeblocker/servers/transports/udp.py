import socket


class UDPError(Exception):
    """
    Brief: DNS-over-UDP transport error.

    Inputs:
    - message: description

    Outputs:
    - Exception instance
    """


def udp_query(
    host: str,
    port: int,
    query: bytes,
    *,
    timeout_ms: int = 2000,
) -> bytes:
    """
    Brief: Send one wire-format query to an upstream resolver and wait for the reply.

    Inputs:
    - host: upstream resolver host/IP (IPv4, IPv6 or name)
    - port: upstream UDP port
    - query: wire-format DNS query bytes
    - timeout_ms: socket timeout in milliseconds

    Outputs:
    - bytes: wire-format DNS response

    Raises:
    - UDPError: on resolution, send, receive or timeout failures
    """
    try:
        family, _, _, _, addr = socket.getaddrinfo(
            host, int(port), type=socket.SOCK_DGRAM
        )[0]
        with socket.socket(family, socket.SOCK_DGRAM) as s:
            s.settimeout(timeout_ms / 1000.0)
            s.sendto(query, addr)
            data, _ = s.recvfrom(4096)
            return data
    except OSError as e:
        raise UDPError(f"UDP error talking to {host}:{port}: {e}") from e
