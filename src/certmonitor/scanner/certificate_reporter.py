"""
Certificate reporter: checks a batch of endpoints and logs the certificate
fields of each one, isolating failures per endpoint and per extension.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..core.certificate_parser import EXTENSION_NAMES, decode_extension
from ..core.models import (
    OID_CERTIFICATE_POLICIES,
    OID_EXTENDED_KEY_USAGE,
    OID_KEY_USAGE,
    OID_SUBJECT_ALT_NAME,
    CertificateRecord,
    CheckOutcome,
    CheckStatus,
)
from ..core.utils import format_hex

# Report order of the decoded extensions
REPORTED_EXTENSIONS = (
    OID_SUBJECT_ALT_NAME,
    OID_EXTENDED_KEY_USAGE,
    OID_KEY_USAGE,
    OID_CERTIFICATE_POLICIES,
)

RetrievalResult = Tuple[Optional[CertificateRecord], Optional[Exception]]


class CertificateReporter:
    """Checks endpoints and reports their certificate details."""

    def __init__(self, retriever, config=None, logger: Optional[logging.Logger] = None):
        """Initialize the reporter.

        Args:
            retriever: CertificateRetriever used for each endpoint
            config: Application configuration object; ``retriever.max_workers``
                bounds concurrent retrievals (sequential when omitted)
            logger: Logger to report through, defaults to the module logger
        """
        self.retriever = retriever
        self.max_workers = config.retriever.max_workers if config is not None else 1
        self.logger = logger or logging.getLogger(__name__)

    def check_all(self, endpoints: Optional[Iterable[Optional[str]]]) -> List[CheckOutcome]:
        """Check every endpoint and return one outcome per endpoint, in order.

        Args:
            endpoints: Endpoint strings to check

        Returns:
            List of outcomes; empty when there was nothing to check
        """
        endpoints = list(endpoints) if endpoints is not None else []
        if not endpoints:
            self.logger.error("No URLs provided to check, nothing to check.")
            return []

        self.logger.info(f"Starting certificate check of {len(endpoints)} endpoints")

        outcomes = []
        workers = min(self.max_workers, len(endpoints))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order
            results = executor.map(self._retrieve, endpoints)
            for endpoint, (record, error) in zip(endpoints, results):
                outcomes.append(self._report(endpoint, record, error))

        self._log_summary(outcomes)
        return outcomes

    def _retrieve(self, endpoint: Optional[str]) -> RetrievalResult:
        """Run one retrieval, capturing any failure for the reporting loop."""
        if not endpoint or not endpoint.strip():
            return None, None

        try:
            return self.retriever.retrieve(endpoint), None
        except Exception as e:
            return None, e

    def _report(self, endpoint: Optional[str], record: Optional[CertificateRecord],
                error: Optional[Exception]) -> CheckOutcome:
        """Turn one retrieval result into a logged outcome."""
        if not endpoint or not endpoint.strip():
            self.logger.error(f"Skipping empty endpoint entry: {endpoint!r}")
            return CheckOutcome(endpoint=endpoint, status=CheckStatus.ERROR, error="Endpoint is empty")

        self.logger.info(f"Checking certificate for: {endpoint}")

        if error is not None:
            self.logger.error(
                f"An error occurred while checking the certificate for {endpoint}: "
                f"{type(error).__name__}: {error}",
                exc_info=error,
            )
            return CheckOutcome(
                endpoint=endpoint,
                status=CheckStatus.ERROR,
                error=f"{type(error).__name__}: {error}",
            )

        if record is None:
            self.logger.warning(f"No certificate retrieved for {endpoint}.")
            return CheckOutcome(endpoint=endpoint, status=CheckStatus.NO_CERTIFICATE)

        try:
            fields, warnings = self.extract_fields(endpoint, record)
        except Exception as e:
            self.logger.error(
                f"An error occurred while logging certificate details for {endpoint}: {e}",
                exc_info=True,
            )
            return CheckOutcome(
                endpoint=endpoint,
                status=CheckStatus.ERROR,
                record=record,
                error=f"{type(e).__name__}: {e}",
            )

        return CheckOutcome(
            endpoint=endpoint,
            status=CheckStatus.OK,
            record=record,
            fields=fields,
            warnings=warnings,
        )

    def extract_fields(self, endpoint: str, record: CertificateRecord,
                       now: Optional[datetime] = None) -> Tuple[List[Tuple[str, str]], List[str]]:
        """Log the certificate fields in report order.

        Args:
            endpoint: Endpoint the record was retrieved from
            record: Retrieved certificate
            now: Reference time for days until expiration

        Returns:
            Tuple of (reported label/value pairs, extension warnings)
        """
        fields: List[Tuple[str, str]] = []
        warnings: List[str] = []

        def emit(label: str, value) -> None:
            value = '' if value is None else str(value)
            fields.append((label, value))
            self.logger.info(f"{label}: {value}")

        emit("Issuer", record.issuer)
        emit("Subject", record.subject)
        emit("Valid from", record.not_before.isoformat())
        emit("Valid until", record.not_after.isoformat())
        emit("Serial Number", format_hex(record.serial_number, separator=''))
        emit("Thumbprint", format_hex(record.fingerprint, separator=''))
        emit("Signature Algorithm", record.signature_algorithm)
        emit("Public Key Algorithm", record.public_key_algorithm)
        emit("Public Key", format_hex(record.public_key))
        emit("Friendly Name", record.display_name)
        emit("Days until expiration", record.days_until_expiry(now))

        for oid in REPORTED_EXTENSIONS:
            blob = record.get_extension(oid)
            if blob is None:
                continue

            label = EXTENSION_NAMES[oid]
            try:
                value = decode_extension(oid, blob)
            except Exception as e:
                message = f"Failed to parse {label} for {endpoint}: {e}"
                self.logger.warning(message)
                warnings.append(message)
                continue

            if isinstance(value, list):
                for item in value:
                    emit(label, item)
            else:
                emit(label, value)

        if record.chain_trusted is not None:
            emit("Chain Trusted", record.chain_trusted)

        return fields, warnings

    def _log_summary(self, outcomes: List[CheckOutcome]) -> None:
        counts = {status: 0 for status in CheckStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1

        self.logger.info(
            f"Certificate check completed: {len(outcomes)} endpoints, "
            f"{counts[CheckStatus.OK]} retrieved, "
            f"{counts[CheckStatus.NO_CERTIFICATE]} without certificate, "
            f"{counts[CheckStatus.ERROR]} errors"
        )
