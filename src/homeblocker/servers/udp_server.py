import logging
import socketserver
from typing import Optional

from dnslib import QTYPE, DNSRecord
from dnslib.dns import DNSError

from .transports.udp import UDPError, udp_query

logger = logging.getLogger("homeblocker.server")


def _set_response_id(wire: bytes, req_id: int) -> bytes:
    """Ensure the response DNS ID matches the request ID.

    Inputs:
      - wire: DNS response bytes
      - req_id: int request ID to set in the first two bytes
    Outputs:
      - bytes: response with corrected ID

    The ID lives in the first two bytes (big-endian), so it is rewritten
    without re-packing the upstream answer.
    """
    if len(wire) < 2:
        return bytes(wire)
    return bytes([(req_id >> 8) & 0xFF, req_id & 0xFF]) + bytes(wire[2:])


class DNSUDPHandler(socketserver.BaseRequestHandler):
    """
    Handles UDP DNS requests.
    This class is instantiated for each incoming DNS query. The upstream,
    engine and timeout are read from the owning server instance, which
    DNSServer configures.

    Type A questions for names covered by an active block get an empty
    authoritative answer. Everything else is relayed to the upstream resolver
    untouched.
    """

    def _make_blocked_response(self, request: DNSRecord) -> bytes:
        reply = request.reply(ra=0, aa=1)
        return reply.pack()

    def _make_empty_response(self, request: DNSRecord) -> bytes:
        """
        Create an answerless NOERROR reply, sent when the upstream fails.

        Inputs:
            - request (DNSRecord): Original DNS request.

        Outputs:
            - response_wire (bytes): reply wire data.
        """
        return request.reply(aa=0).pack()

    def _forward(self, request: DNSRecord, data: bytes, qname: str) -> bytes:
        """
        Relay the original query bytes to the upstream resolver.

        Inputs:
            - request: parsed request, used for the reply ID and fallbacks
            - data: original wire query
            - qname: query name for logging

        Outputs:
            - bytes: upstream response with the client's ID, or an empty reply
              when the upstream cannot be reached
        """
        upstream = self.server.upstream
        host = str(upstream["host"])
        port = int(upstream["port"])
        logger.debug("Forwarding %s to %s:%d", qname, host, port)
        try:
            wire = udp_query(host, port, data, timeout_ms=self.server.timeout_ms)
        except UDPError as e:
            logger.error("Error resolving domain %s: %s", qname, e)
            return self._make_empty_response(request)
        return _set_response_id(wire, request.header.id)

    def resolve(self, data: bytes, client_ip: str) -> Optional[bytes]:
        """Brief: Answer one wire-format query.

        Inputs:
          - data: wire-format DNS query
          - client_ip: peer address for logging

        Outputs:
          - bytes to send back, or None when the datagram is not a DNS message
        """
        try:
            request = DNSRecord.parse(data)
        except DNSError as e:
            logger.warning("Dropping malformed query from %s: %s", client_ip, e)
            return None

        qname = str(request.q.qname) if request.questions else "."
        if request.questions and request.q.qtype == QTYPE.A:
            logger.info(
                "Resolving type A request from %s for domain %s", client_ip, qname
            )
            rules = self.server.engine.blocking_rules(qname)
            if rules:
                logger.info("...Blocked (%s)", ", ".join(rules))
                return self._make_blocked_response(request)

        return self._forward(request, data, qname)

    def handle(self):
        data, sock = self.request
        client_ip = self.client_address[0]
        wire = self.resolve(data, client_ip)
        if wire:
            sock.sendto(wire, self.client_address)
