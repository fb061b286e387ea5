"""
Core models, configuration and certificate parsing.
"""
from .exceptions import (
    CertificateParseError,
    CertMonitorError,
    ConfigurationError,
    ExtensionDecodeError,
    RetrievalError,
)
from .models import CertificateRecord, CheckOutcome, CheckStatus

__all__ = [
    'CertMonitorError',
    'CertificateParseError',
    'ConfigurationError',
    'ExtensionDecodeError',
    'RetrievalError',
    'CertificateRecord',
    'CheckOutcome',
    'CheckStatus',
]
