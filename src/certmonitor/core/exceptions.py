"""
Custom exceptions for certmonitor.
"""
from typing import Any, Dict, Optional


class CertMonitorError(Exception):
    """Base exception for all certmonitor errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CertMonitorError):
    """Raised when configuration is missing or invalid."""
    pass


class RetrievalError(CertMonitorError):
    """Raised when a certificate cannot be retrieved from an endpoint."""

    def __init__(self, message: str, endpoint: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.endpoint = endpoint


class CertificateParseError(CertMonitorError):
    """Raised when certificate DER data cannot be decoded."""
    pass


class ExtensionDecodeError(CertMonitorError):
    """Raised when a single certificate extension cannot be decoded."""

    def __init__(self, message: str, oid: str,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.oid = oid
