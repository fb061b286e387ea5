"""
Scanner module for retrieving and reporting endpoint certificates.
"""
from .certificate_reporter import CertificateReporter
from .certificate_retriever import CertificateRetriever, PeerCertificate

__all__ = ['CertificateReporter', 'CertificateRetriever', 'PeerCertificate']
