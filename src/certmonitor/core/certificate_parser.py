"""
Certificate parsing and extension decoding utilities.
"""
import hashlib
import logging
from typing import Callable, Dict, List, Optional, Union

from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.x509.oid import NameOID

from .exceptions import CertificateParseError, ExtensionDecodeError
from .models import (
    OID_CERTIFICATE_POLICIES,
    OID_EXTENDED_KEY_USAGE,
    OID_KEY_USAGE,
    OID_SUBJECT_ALT_NAME,
    CertificateRecord,
)

logger = logging.getLogger(__name__)

ExtensionValue = Union[str, List[str]]

EXTENSION_NAMES = {
    OID_SUBJECT_ALT_NAME: 'Subject Alternative Names',
    OID_EXTENDED_KEY_USAGE: 'Enhanced Key Usage',
    OID_KEY_USAGE: 'Key Usage',
    OID_CERTIFICATE_POLICIES: 'Certificate Policies',
}

PUBLIC_KEY_ALGORITHM_NAMES = {
    'rsa': 'RSA',
    'rsassa_pss': 'RSASSA-PSS',
    'dsa': 'DSA',
    'ec': 'ECC',
    'ed25519': 'Ed25519',
    'ed448': 'Ed448',
}

GENERAL_NAME_LABELS = {
    'dns_name': 'DNS Name',
    'ip_address': 'IP Address',
    'rfc822_name': 'RFC822 Name',
    'uniform_resource_identifier': 'URL',
    'directory_name': 'Directory Address',
    'registered_id': 'Registered ID',
    'other_name': 'Other Name',
}

# RFC 5280 bit order
KEY_USAGE_LABELS = (
    ('digital_signature', 'DigitalSignature'),
    ('non_repudiation', 'NonRepudiation'),
    ('key_encipherment', 'KeyEncipherment'),
    ('data_encipherment', 'DataEncipherment'),
    ('key_agreement', 'KeyAgreement'),
    ('key_cert_sign', 'KeyCertSign'),
    ('crl_sign', 'CrlSign'),
    ('encipher_only', 'EncipherOnly'),
    ('decipher_only', 'DecipherOnly'),
)

KEY_PURPOSE_NAMES = {
    'server_auth': 'Server Authentication',
    'client_auth': 'Client Authentication',
    'code_signing': 'Code Signing',
    'email_protection': 'Secure Email',
    'time_stamping': 'Time Stamping',
    'ocsp_signing': 'OCSP Signing',
    'any_extended_key_usage': 'Any Purpose',
}


def decode_subject_alt_names(blob: bytes) -> str:
    """Render a SubjectAltName value as ``DNS Name=a, IP Address=b``."""
    rendered = []
    for general_name in asn1_x509.GeneralNames.load(blob, strict=True):
        label = GENERAL_NAME_LABELS.get(general_name.name, general_name.name)
        if general_name.name == 'directory_name':
            value = general_name.chosen.human_friendly
        else:
            value = str(general_name.native)
        rendered.append(f"{label}={value}")
    return ", ".join(rendered)


def decode_extended_key_usage(blob: bytes) -> List[str]:
    """Render each key purpose by friendly name, or dotted OID when unknown."""
    usages = []
    for purpose in asn1_x509.ExtKeyUsageSyntax.load(blob, strict=True):
        usages.append(KEY_PURPOSE_NAMES.get(purpose.native, purpose.dotted))
    return usages


def decode_key_usage(blob: bytes) -> str:
    """Render the asserted key usage bits in bit order."""
    asserted = asn1_x509.KeyUsage.load(blob, strict=True).native
    labels = [label for name, label in KEY_USAGE_LABELS if name in asserted]
    return ", ".join(labels) if labels else "None"


def decode_certificate_policies(blob: bytes) -> str:
    """Render each policy as its dotted OID with any CPS / notice qualifiers."""
    rendered = []
    for policy in asn1_x509.CertificatePolicies.load(blob, strict=True):
        qualifiers = []
        for qualifier in policy['policy_qualifiers'].native or []:
            qualifier_id = qualifier['policy_qualifier_id']
            value = qualifier['qualifier']
            if qualifier_id == 'certification_practice_statement':
                qualifiers.append(f"CPS: {value}")
            elif qualifier_id == 'user_notice' and value.get('explicit_text'):
                qualifiers.append(f"User Notice: {value['explicit_text']}")
            else:
                qualifiers.append(f"{qualifier_id}: {value}")

        identifier = policy['policy_identifier'].dotted
        if qualifiers:
            rendered.append(f"{identifier} ({', '.join(qualifiers)})")
        else:
            rendered.append(identifier)
    return "; ".join(rendered)


EXTENSION_DECODERS: Dict[str, Callable[[bytes], ExtensionValue]] = {
    OID_SUBJECT_ALT_NAME: decode_subject_alt_names,
    OID_EXTENDED_KEY_USAGE: decode_extended_key_usage,
    OID_KEY_USAGE: decode_key_usage,
    OID_CERTIFICATE_POLICIES: decode_certificate_policies,
}


def decoder_for(oid: str) -> Optional[Callable[[bytes], ExtensionValue]]:
    """Return the typed decoder for an extension OID, if there is one."""
    return EXTENSION_DECODERS.get(oid)


def decode_extension(oid: str, blob: bytes) -> Optional[ExtensionValue]:
    """Decode an extension value.

    Args:
        oid: Dotted extension OID
        blob: DER encoded extension value

    Returns:
        Rendered value, or None when no decoder exists for the OID

    Raises:
        ExtensionDecodeError: If the value is malformed
    """
    decoder = decoder_for(oid)
    if decoder is None:
        return None

    try:
        return decoder(blob)
    except (ValueError, TypeError, KeyError) as e:
        name = EXTENSION_NAMES.get(oid, oid)
        raise ExtensionDecodeError(f"Malformed {name} extension: {e}", oid=oid) from e


class CertificateParser:
    """Builds CertificateRecord values from DER certificates."""

    def parse_certificate_der(self, der: bytes, chain_trusted: Optional[bool] = None) -> CertificateRecord:
        """Parse a DER certificate into an immutable record.

        Args:
            der: DER encoded certificate
            chain_trusted: Trust store verdict observed during the handshake

        Returns:
            CertificateRecord

        Raises:
            CertificateParseError: If the certificate cannot be decoded
        """
        try:
            cert = x509.load_der_x509_certificate(der)
            asn1_cert = asn1_x509.Certificate.load(der)
            tbs = asn1_cert['tbs_certificate']
            spki = tbs['subject_public_key_info']

            return CertificateRecord(
                issuer=cert.issuer.rfc4514_string(),
                subject=cert.subject.rfc4514_string(),
                not_before=cert.not_valid_before_utc,
                not_after=cert.not_valid_after_utc,
                serial_number=tbs['serial_number'].contents,
                fingerprint=hashlib.sha1(der).digest(),
                signature_algorithm=self._parse_signature_algorithm(cert),
                public_key_algorithm=self._parse_public_key_algorithm(spki),
                # Strip the BIT STRING unused-bits octet
                public_key=spki['public_key'].contents[1:],
                display_name=self._parse_display_name(cert),
                extensions=self._parse_extensions(tbs),
                der=der,
                chain_trusted=chain_trusted,
            )
        except (ValueError, TypeError) as e:
            raise CertificateParseError(f"Unable to decode certificate: {e}") from e

    def _parse_signature_algorithm(self, cert) -> str:
        """Parse the signature algorithm name."""
        oid = cert.signature_algorithm_oid
        name = getattr(oid, '_name', None)
        if not name or name == 'Unknown OID':
            return oid.dotted_string
        return name

    def _parse_public_key_algorithm(self, spki) -> str:
        """Parse the subject public key algorithm name."""
        algorithm = spki['algorithm']['algorithm']
        return PUBLIC_KEY_ALGORITHM_NAMES.get(algorithm.native, algorithm.dotted)

    def _parse_display_name(self, cert) -> Optional[str]:
        """Use the subject common name as the display name."""
        try:
            common_names = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        except ValueError as e:
            logger.debug(f"Error reading subject common name: {e}")
            return None
        return str(common_names[0].value) if common_names else None

    def _parse_extensions(self, tbs) -> Dict[str, bytes]:
        """Collect raw extension values keyed by dotted OID."""
        extensions = {}

        extension_list = tbs['extensions']
        if not isinstance(extension_list, asn1_x509.Extensions):
            return extensions

        for extension in extension_list:
            oid = extension['extn_id'].dotted
            if oid in extensions:
                logger.debug(f"Ignoring duplicate extension {oid}")
                continue
            extensions[oid] = extension['extn_value'].contents

        return extensions


# Global parser instance
certificate_parser = CertificateParser()


def parse_certificate_der(der: bytes, chain_trusted: Optional[bool] = None) -> CertificateRecord:
    """Parse a DER certificate using the global parser."""
    return certificate_parser.parse_certificate_der(der, chain_trusted)
