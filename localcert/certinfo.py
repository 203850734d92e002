"""Read back generated certificates for the end-of-run summary."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, rsa


def load_certificate(cert_path: Path) -> x509.Certificate:
    cert_data = Path(cert_path).read_bytes()
    return x509.load_pem_x509_certificate(cert_data)


def subject_alt_names(cert: x509.Certificate) -> List[str]:
    """DNS names and IP addresses from the SAN extension, in order"""
    try:
        extension = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return []
    names = []
    for general_name in extension.value:
        if isinstance(general_name, x509.IPAddress):
            names.append(str(general_name.value))
        else:
            names.append(general_name.value)
    return names


def describe_certificate(cert_path: Path) -> Dict[str, Any]:
    """Get detailed information about a certificate"""
    cert = load_certificate(cert_path)

    not_after = cert.not_valid_after_utc
    days_until_expiry = (not_after - datetime.now(timezone.utc)).days

    public_key = cert.public_key()
    if isinstance(public_key, rsa.RSAPublicKey):
        key_info = f"RSA {public_key.key_size}"
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        key_info = f"ECDSA {public_key.curve.name}"
    else:
        key_info = 'Unknown'

    return {
        'subject': cert.subject.rfc4514_string(),
        'issuer': cert.issuer.rfc4514_string(),
        'serial_number': str(cert.serial_number),
        'not_before': cert.not_valid_before_utc,
        'not_after': not_after,
        'days_until_expiry': days_until_expiry,
        'key': key_info,
        'subject_alt_names': subject_alt_names(cert),
        'fingerprint': cert.fingerprint(hashes.SHA256()).hex(),
        'file_path': str(cert_path),
    }
