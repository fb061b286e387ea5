"""
Common utility functions.
"""
import ipaddress
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import NamedTuple
from urllib.parse import urlparse

DEFAULT_HTTPS_PORT = 443

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class EndpointAddress(NamedTuple):
    """Network location of an HTTPS endpoint."""
    host: str
    port: int
    path: str
    is_ip: bool


def parse_endpoint(endpoint: str) -> EndpointAddress:
    """Split an endpoint string into host, port and request path.

    A bare ``host[:port]`` is treated as an https URL.

    Raises:
        ValueError: If the endpoint is empty, not https, or has no host
    """
    if not endpoint or not endpoint.strip():
        raise ValueError("Endpoint is empty")

    endpoint = endpoint.strip()
    if '://' not in endpoint:
        endpoint = f'https://{endpoint}'

    parsed = urlparse(endpoint)
    if parsed.scheme.lower() != 'https':
        raise ValueError(f"Unsupported scheme '{parsed.scheme}', expected https")

    host = parsed.hostname
    if not host:
        raise ValueError(f"No host in endpoint: {endpoint}")

    # .port raises ValueError for out of range values
    port = parsed.port or DEFAULT_HTTPS_PORT

    path = parsed.path or '/'
    if parsed.query:
        path = f'{path}?{parsed.query}'

    return EndpointAddress(host=host, port=port, path=path, is_ip=is_ip_address(host))


def is_ip_address(host: str) -> bool:
    """Check whether a host is an IPv4 or IPv6 literal."""
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return False


def format_hex(data: bytes, separator: str = '-') -> str:
    """Render bytes as upper-case hex pairs, e.g. ``30-82-01-0A``."""
    return separator.join(f'{byte:02X}' for byte in data)


def setup_logging(config) -> None:
    """Set up console and daily rotating file logging."""
    log_level = getattr(logging, config.logging.level)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = TimedRotatingFileHandler(
            log_path,
            when='midnight',
            backupCount=config.logging.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
