"""
Models for retrieved certificates and per-endpoint check outcomes.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Extension OIDs surfaced by the reporter
OID_SUBJECT_ALT_NAME = "2.5.29.17"
OID_EXTENDED_KEY_USAGE = "2.5.29.37"
OID_KEY_USAGE = "2.5.29.15"
OID_CERTIFICATE_POLICIES = "2.5.29.32"


class CertificateRecord(BaseModel):
    """Leaf certificate captured from an endpoint during the TLS handshake."""
    model_config = ConfigDict(frozen=True)

    issuer: str
    subject: str
    not_before: datetime
    not_after: datetime
    serial_number: bytes
    fingerprint: bytes
    signature_algorithm: str
    public_key_algorithm: str
    public_key: bytes
    display_name: Optional[str] = None
    extensions: Dict[str, bytes] = Field(default_factory=dict)
    der: bytes = b""
    chain_trusted: Optional[bool] = None

    def days_until_expiry(self, now: Optional[datetime] = None) -> int:
        """Whole days until ``not_after``, floored; negative once expired."""
        now = now or datetime.now(timezone.utc)
        return (self.not_after - now).days

    def get_extension(self, oid: str) -> Optional[bytes]:
        """Return the DER value of the extension with the given dotted OID."""
        return self.extensions.get(oid)


class CheckStatus(str, Enum):
    """Result of checking one endpoint."""
    OK = "ok"
    NO_CERTIFICATE = "no_certificate"
    ERROR = "error"


class CheckOutcome(BaseModel):
    """Outcome of checking a single endpoint."""
    endpoint: Optional[str]
    status: CheckStatus
    record: Optional[CertificateRecord] = None
    error: Optional[str] = None
    fields: List[Tuple[str, str]] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def get_field(self, label: str) -> Optional[str]:
        """Return the first reported value for ``label``."""
        for name, value in self.fields:
            if name == label:
                return value
        return None

    def get_fields(self, label: str) -> List[str]:
        """Return every reported value for ``label`` in report order."""
        return [value for name, value in self.fields if name == label]
