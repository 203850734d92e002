"""
Local CA and domain certificate generation

Drives openssl through the fixed sequence: CA key, self-signed CA
certificate, domain key, CSR, extension file, CA-signed domain certificate,
combined PEM and PKCS#12 bundle.
"""

import os
import ipaddress
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from cryptography import x509

from localcert.config import CertConfig, ensure_directory
from localcert.errors import OpenSSLError
from localcert.openssl import OpenSSL

logger = logging.getLogger(__name__)

CA_KEY_NAME = 'rootCA.key'
CA_CERT_NAME = 'rootCA.pem'

PRIVATE_MODE = 0o600
PUBLIC_MODE = 0o644


@dataclass(frozen=True)
class CertificateArtifacts:
    """Files written into the output directory for one domain"""
    output_dir: Path
    domain: str

    def _path(self, name: str) -> Path:
        return self.output_dir / name

    @property
    def ca_key(self) -> Path:
        return self._path(CA_KEY_NAME)

    @property
    def ca_cert(self) -> Path:
        return self._path(CA_CERT_NAME)

    @property
    def key(self) -> Path:
        return self._path(f'{self.domain}.key')

    @property
    def cert(self) -> Path:
        return self._path(f'{self.domain}.crt')

    @property
    def combined_pem(self) -> Path:
        return self._path(f'{self.domain}.pem')

    @property
    def p12(self) -> Path:
        return self._path(f'{self.domain}.p12')

    @property
    def csr(self) -> Path:
        return self._path(f'{self.domain}.csr')

    @property
    def ext(self) -> Path:
        return self._path(f'{self.domain}.ext')

    @property
    def private_files(self) -> List[Path]:
        return [self.ca_key, self.key, self.p12]

    @property
    def public_files(self) -> List[Path]:
        return [self.ca_cert, self.cert, self.combined_pem]

    @property
    def persistent_files(self) -> List[Path]:
        return [self.ca_key, self.ca_cert, self.key, self.cert, self.combined_pem, self.p12]

    @property
    def transient_files(self) -> List[Path]:
        return [self.csr, self.ext]


def subject_alt_names(domain: str) -> List[str]:
    """The four names every domain certificate is issued for"""
    return [domain, f'*.{domain}', 'localhost', '127.0.0.1']


def _is_ip_address(address: str) -> bool:
    """Check if string is an IP address"""
    try:
        ipaddress.ip_address(address)
        return True
    except ValueError:
        return False


def build_extension_config(san_list: List[str]) -> str:
    """Render the x509 extension file used when signing the domain CSR"""
    san_entries = []
    dns_count = 1
    ip_count = 1

    for san in san_list:
        if _is_ip_address(san):
            san_entries.append(f"IP.{ip_count} = {san}")
            ip_count += 1
        else:
            san_entries.append(f"DNS.{dns_count} = {san}")
            dns_count += 1

    lines = [
        'authorityKeyIdentifier=keyid,issuer',
        'basicConstraints=CA:FALSE',
        'keyUsage = digitalSignature, nonRepudiation, keyEncipherment, dataEncipherment',
        'subjectAltName = @alt_names',
        '',
        '[alt_names]',
    ] + san_entries
    return '\n'.join(lines) + '\n'


class CertificateGenerator:
    """Creates the local CA and a CA-signed certificate for one domain"""

    def __init__(self, config: CertConfig, openssl: Optional[OpenSSL] = None):
        self.config = config
        self.openssl = openssl or OpenSSL(config.openssl_bin)
        self.artifacts = CertificateArtifacts(Path(config.output_dir), config.domain)

    def create(self) -> CertificateArtifacts:
        """
        Run the whole pipeline

        Any failing openssl step raises OpenSSLError and the remaining steps
        are skipped; files already written are left in place.

        Returns:
            The artifacts that were written
        """
        config = self.config
        files = self.artifacts
        ensure_directory(files.output_dir)

        logger.info(f"Creating certificates for {config.domain} in {files.output_dir}")

        try:
            self.openssl.genrsa(files.ca_key)
            logger.info(f"Generated CA private key: {files.ca_key}")

            self.openssl.self_signed_certificate(
                files.ca_key, files.ca_cert, config.ca_subject, config.valid_days
            )
            logger.info(f"Generated CA certificate: {files.ca_cert}")

            self.openssl.genrsa(files.key)
            logger.info(f"Generated domain private key: {files.key}")

            self.openssl.signing_request(files.key, files.csr, config.subject)
            logger.debug(f"Generated CSR: {files.csr}")

            files.ext.write_text(build_extension_config(subject_alt_names(config.domain)))

            self.openssl.sign_request(
                files.csr, files.ca_cert, files.ca_key, files.cert,
                config.valid_days, files.ext, x509.random_serial_number()
            )
            logger.info(f"Signed domain certificate: {files.cert}")

            self._write_combined_pem()

            logger.info("Creating PKCS12 file for browser import...")
            self.openssl.export_pkcs12(
                files.key, files.cert, files.ca_cert, files.p12, config.p12_password
            )

            self._apply_permissions()
        except OpenSSLError as e:
            logger.error(f"Failed to create certificates: {e}")
            raise
        finally:
            self._remove_transient_files()

        logger.info("Certificate creation complete!")
        return files

    def _write_combined_pem(self) -> None:
        files = self.artifacts
        with open(files.combined_pem, 'wb') as out:
            out.write(files.cert.read_bytes())
            out.write(files.ca_cert.read_bytes())
        logger.debug(f"Combined PEM written: {files.combined_pem}")

    def _apply_permissions(self) -> None:
        for path in self.artifacts.private_files:
            os.chmod(path, PRIVATE_MODE)
        for path in self.artifacts.public_files:
            os.chmod(path, PUBLIC_MODE)

    def _remove_transient_files(self) -> None:
        for path in self.artifacts.transient_files:
            if path.exists():
                path.unlink()

    def verify(self) -> bool:
        return self.openssl.verify(self.artifacts.cert, self.artifacts.ca_cert)


def file_listing(artifacts: CertificateArtifacts) -> List[Dict[str, str]]:
    """Describe each persistent artifact for the summary table"""
    labels = {
        artifacts.ca_key: 'CA private key',
        artifacts.ca_cert: 'CA certificate',
        artifacts.key: 'Private key',
        artifacts.cert: 'Certificate',
        artifacts.combined_pem: 'Combined PEM',
        artifacts.p12: 'PKCS12 file',
    }
    listing = []
    for path in artifacts.persistent_files:
        mode = oct(path.stat().st_mode & 0o777) if path.exists() else 'missing'
        listing.append({'name': labels[path], 'path': str(path), 'mode': mode})
    return listing
