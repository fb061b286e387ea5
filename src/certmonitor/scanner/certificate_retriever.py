"""
Certificate retriever that captures the served leaf certificate during the
TLS handshake, regardless of whether the chain is trusted.
"""
import logging
import select
import socket
import time
from typing import Callable, NamedTuple, Optional

from cryptography.hazmat.primitives.serialization import Encoding
from OpenSSL import SSL

from ..core.certificate_parser import parse_certificate_der
from ..core.exceptions import RetrievalError
from ..core.models import CertificateRecord
from ..core.utils import DEFAULT_HTTPS_PORT, EndpointAddress, parse_endpoint

RECV_BUFFER_SIZE = 4096


class PeerCertificate(NamedTuple):
    """A certificate presented by the peer, as seen by the verify callback."""
    der: bytes
    depth: int
    preverified: bool


PeerCertificateHook = Callable[[PeerCertificate], None]


class _LeafCapture:
    """Verify callback that records the leaf and accepts every chain."""

    def __init__(self, on_peer_certificate: Optional[PeerCertificateHook] = None):
        self.on_peer_certificate = on_peer_certificate
        self.leaf_der: Optional[bytes] = None
        self.chain_trusted = True

    def verify(self, connection, x509_cert, errno, depth, preverify_ok) -> bool:
        peer = PeerCertificate(
            der=x509_cert.to_cryptography().public_bytes(Encoding.DER),
            depth=depth,
            preverified=bool(preverify_ok),
        )

        if self.on_peer_certificate is not None:
            self.on_peer_certificate(peer)

        if not peer.preverified:
            self.chain_trusted = False
        if peer.depth == 0 and self.leaf_der is None:
            self.leaf_der = peer.der

        # Inspection only: always let the handshake complete
        return True


class CertificateRetriever:
    """Retrieves the leaf certificate served by an HTTPS endpoint."""

    def __init__(self, config, logger: Optional[logging.Logger] = None):
        """Initialize the certificate retriever.

        Args:
            config: Application configuration object
            logger: Logger to report through, defaults to the module logger
        """
        self.config = config.retriever
        self.timeout = self.config.timeout
        self.user_agent = self.config.user_agent
        self.ca_file = self.config.ca_file
        self.logger = logger or logging.getLogger(__name__)

    def retrieve(self, endpoint: str,
                 on_peer_certificate: Optional[PeerCertificateHook] = None) -> Optional[CertificateRecord]:
        """Retrieve the certificate for an endpoint.

        Args:
            endpoint: HTTPS URL or ``host[:port]``
            on_peer_certificate: Called with every certificate the peer presents

        Returns:
            CertificateRecord, or None if no certificate could be obtained
        """
        try:
            return self.fetch_peer_certificate(endpoint, on_peer_certificate)
        except RetrievalError as e:
            self.logger.error(f"Error retrieving certificate for {endpoint}: {e.message}")
            return None

    def fetch_peer_certificate(self, endpoint: str,
                               on_peer_certificate: Optional[PeerCertificateHook] = None) -> CertificateRecord:
        """Handshake with the endpoint and return its leaf certificate.

        Raises:
            RetrievalError: If the connection, handshake or request fails, or
                the peer presented no certificate
        """
        try:
            address = parse_endpoint(endpoint)
        except ValueError as e:
            raise RetrievalError(f"Invalid endpoint: {e}", endpoint=endpoint) from e

        capture = _LeafCapture(on_peer_certificate)
        context = self._create_context(capture.verify)

        self.logger.debug(f"Sending request to {endpoint}")
        try:
            with socket.create_connection((address.host, address.port), timeout=self.timeout) as sock:
                deadline = time.monotonic() + self.timeout
                connection = SSL.Connection(context, sock)
                if not address.is_ip:
                    connection.set_tlsext_host_name(address.host.encode('idna'))
                connection.set_connect_state()

                self._until_done(sock, deadline, connection.do_handshake)
                try:
                    self._send_request(connection, sock, address, deadline)
                except (SSL.Error, OSError):
                    if capture.leaf_der is not None:
                        self.logger.debug(f"Certificate captured for {endpoint} but the request failed")
                    raise
        except (SSL.Error, OSError, UnicodeError) as e:
            raise RetrievalError(f"{type(e).__name__}: {e}", endpoint=endpoint) from e

        if capture.leaf_der is None:
            raise RetrievalError("Failed to retrieve a valid certificate", endpoint=endpoint)

        self.logger.debug(f"Captured certificate for {endpoint} (chain trusted: {capture.chain_trusted})")
        return parse_certificate_der(capture.leaf_der, chain_trusted=capture.chain_trusted)

    def _create_context(self, verify_callback) -> SSL.Context:
        """Create a client context whose verify callback sees every peer certificate."""
        context = SSL.Context(SSL.TLS_CLIENT_METHOD)
        # Trust anchors only feed the informational chain verdict
        context.set_default_verify_paths()
        if self.ca_file:
            context.load_verify_locations(self.ca_file)
        context.set_verify(SSL.VERIFY_PEER, verify_callback)
        return context

    def _send_request(self, connection, sock, address: EndpointAddress, deadline: float) -> None:
        """Send a minimal GET and discard the first chunk of the response."""
        host = f'[{address.host}]' if ':' in address.host else address.host
        if address.port != DEFAULT_HTTPS_PORT:
            host = f'{host}:{address.port}'

        payload = (
            f"GET {address.path} HTTP/1.1\r\n"
            f"Host: {host}\r\n"
            f"User-Agent: {self.user_agent}\r\n"
            "Accept: */*\r\n"
            "Connection: close\r\n"
            "\r\n"
        ).encode('utf-8')

        while payload:
            sent = self._until_done(sock, deadline, connection.send, payload)
            payload = payload[sent:]

        try:
            response = self._until_done(sock, deadline, connection.recv, RECV_BUFFER_SIZE)
        except SSL.ZeroReturnError:
            response = b""

        status_line = response.split(b"\r\n", 1)[0].decode('latin-1')
        self.logger.debug(f"Response from {address.host}:{address.port}: {status_line or '<empty>'}")

    def _until_done(self, sock, deadline: float, operation, *args):
        """Run a pyOpenSSL operation on a non-blocking socket until it completes."""
        while True:
            try:
                return operation(*args)
            except SSL.WantReadError:
                self._wait_for_socket(sock, deadline, for_write=False)
            except SSL.WantWriteError:
                self._wait_for_socket(sock, deadline, for_write=True)

    def _wait_for_socket(self, sock, deadline: float, for_write: bool) -> None:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TimeoutError(f"Timed out after {self.timeout}s")

        if for_write:
            _, ready, _ = select.select([], [sock], [], remaining)
        else:
            ready, _, _ = select.select([sock], [], [], remaining)

        if not ready:
            raise TimeoutError(f"Timed out after {self.timeout}s")
