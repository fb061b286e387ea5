#!/usr/bin/env python3
"""
Main entry point for the certmonitor application.
"""
import argparse
import logging
import sys
from typing import List, Optional

from .core.config import load_config
from .core.exceptions import ConfigurationError
from .core.models import CheckStatus
from .core.utils import LOG_FORMAT, setup_logging
from .scanner.certificate_reporter import CertificateReporter
from .scanner.certificate_retriever import CertificateRetriever

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog='certmonitor',
        description='certmonitor - log the TLS certificates served by HTTPS endpoints'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration file (YAML or JSON)'
    )
    parser.add_argument(
        '--url',
        dest='urls',
        action='append',
        metavar='URL',
        help='Endpoint to check; repeat to check several (replaces configured URLs)'
    )
    parser.add_argument(
        '--log-level',
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Set the logging level'
    )
    parser.add_argument(
        '--timeout',
        type=_positive_float,
        help='Connection and handshake timeout in seconds'
    )
    parser.add_argument(
        '--max-workers',
        type=_positive_int,
        help='Number of endpoints checked concurrently'
    )
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """Run a certificate check and return the process exit status."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger('certmonitor')

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logging.basicConfig(format=LOG_FORMAT)
        logger.critical(f"Configuration error: {e.message}")
        return EXIT_CONFIG_ERROR

    # Command line overrides
    if args.urls:
        config.urls_to_check = args.urls
    if args.log_level:
        config.logging.level = args.log_level
    if args.timeout:
        config.retriever.timeout = args.timeout
    if args.max_workers:
        config.retriever.max_workers = args.max_workers

    try:
        setup_logging(config)
        logger.info("Starting certificate monitor")

        retriever = CertificateRetriever(config)
        reporter = CertificateReporter(retriever, config)
        outcomes = reporter.check_all(config.urls_to_check)

        failed = sum(1 for outcome in outcomes if outcome.status != CheckStatus.OK)
        logger.info(f"Certificate monitor finished: {len(outcomes) - failed} of {len(outcomes)} endpoints reported")
        return EXIT_OK

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.critical(f"Application terminated unexpectedly: {e}", exc_info=True)
        return EXIT_FAILURE


def main():
    """Main entry point for the application."""
    status = run()
    logging.shutdown()
    sys.exit(status)


if __name__ == "__main__":
    main()
