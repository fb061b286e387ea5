"""
Shared fixtures: in-process generated certificates and configuration.
"""
import ipaddress
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from certmonitor.core.config import AppConfig

CPS_URL = "https://cps.example.com"
POLICY_OID = "2.23.140.1.2.1"


def build_certificate(common_name="example.com", key=None, serial_number=0x0A1B2C,
                      not_before=None, not_after=None,
                      dns_names=("example.com", "www.example.com"), ip_addresses=(),
                      key_purposes=(ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH),
                      key_usage=True, policies=True):
    """Build a signed certificate with the requested extensions."""
    key = key or ec.generate_private_key(ec.SECP256R1())
    now = datetime.now(timezone.utc)

    subject_attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Org")]
    if common_name is not None:
        subject_attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    subject = x509.Name(subject_attributes)
    issuer = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, "Example Issuing CA"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Org"),
    ])

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(serial_number)
        .not_valid_before(not_before or now - timedelta(days=1))
        .not_valid_after(not_after or now + timedelta(days=90))
    )

    names = [x509.DNSName(name) for name in dns_names]
    names += [x509.IPAddress(ipaddress.ip_address(address)) for address in ip_addresses]
    if names:
        builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=False)

    if key_purposes:
        builder = builder.add_extension(x509.ExtendedKeyUsage(list(key_purposes)), critical=False)

    if key_usage:
        builder = builder.add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )

    if policies:
        builder = builder.add_extension(
            x509.CertificatePolicies([
                x509.PolicyInformation(x509.ObjectIdentifier(POLICY_OID), [CPS_URL]),
            ]),
            critical=False,
        )

    return builder.sign(key, hashes.SHA256())


def to_der(cert) -> bytes:
    return cert.public_bytes(Encoding.DER)


@pytest.fixture
def certificate():
    """EC certificate carrying every reported extension."""
    return build_certificate()


@pytest.fixture
def rsa_certificate():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return build_certificate(common_name="rsa.example.com", key=key)


@pytest.fixture
def app_config():
    """Configuration without a log file."""
    return AppConfig(
        urls_to_check=["https://example.com"],
        retriever={'timeout': 2.0, 'max_workers': 2},
        logging={'file': None},
    )
