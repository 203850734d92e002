"""
Thin wrapper around the openssl command line tool

Every call is a blocking subprocess; a non-zero exit status is turned into
an OpenSSLError carrying the command and its stderr.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from localcert.errors import OpenSSLError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

RSA_KEY_SIZE = 2048


class OpenSSL:
    """Runs openssl subcommands used by the certificate pipeline"""

    def __init__(self, openssl_bin: str = 'openssl'):
        self.openssl_bin = openssl_bin

    def run(self, args: List[str], input_data: Optional[str] = None) -> str:
        """Execute an OpenSSL command and return its stdout"""
        cmd = [self.openssl_bin] + [str(arg) for arg in args]
        logger.debug(f"Executing: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                input=input_data,
                text=True,
                capture_output=True,
                check=True
            )
        except FileNotFoundError:
            raise OpenSSLError(f"OpenSSL binary not found: {self.openssl_bin}", command=cmd)
        except subprocess.CalledProcessError as e:
            logger.debug(f"OpenSSL stderr: {e.stderr}")
            raise OpenSSLError(
                f"Command failed: {' '.join(cmd)}\nError: {(e.stderr or '').strip()}",
                command=cmd,
                stderr=e.stderr or ''
            )
        return result.stdout

    def version(self) -> str:
        return self.run(['version']).strip()

    def genrsa(self, key_path: PathLike, key_size: int = RSA_KEY_SIZE) -> None:
        self.run(['genrsa', '-out', key_path, str(key_size)])

    def self_signed_certificate(self, key_path: PathLike, cert_path: PathLike,
                                subject: str, validity_days: int) -> None:
        """Self-sign a CA certificate for an existing private key"""
        self.run([
            'req', '-x509', '-new', '-nodes',
            '-key', key_path,
            '-sha256',
            '-days', str(validity_days),
            '-out', cert_path,
            '-subj', subject
        ])

    def signing_request(self, key_path: PathLike, csr_path: PathLike, subject: str) -> None:
        self.run([
            'req', '-new', '-sha256',
            '-key', key_path,
            '-subj', subject,
            '-out', csr_path
        ])

    def sign_request(self, csr_path: PathLike, ca_cert_path: PathLike, ca_key_path: PathLike,
                     cert_path: PathLike, validity_days: int, ext_path: PathLike,
                     serial: int) -> None:
        """Sign a CSR with the CA, applying the extension file"""
        self.run([
            'x509', '-req',
            '-in', csr_path,
            '-CA', ca_cert_path,
            '-CAkey', ca_key_path,
            '-set_serial', str(serial),
            '-out', cert_path,
            '-days', str(validity_days),
            '-sha256',
            '-extfile', ext_path
        ])

    def export_pkcs12(self, key_path: PathLike, cert_path: PathLike, ca_cert_path: PathLike,
                      p12_path: PathLike, password: str) -> None:
        self.run([
            'pkcs12', '-export',
            '-inkey', key_path,
            '-in', cert_path,
            '-certfile', ca_cert_path,
            '-out', p12_path,
            '-passout', f'pass:{password}'
        ])

    def verify(self, cert_path: PathLike, ca_cert_path: PathLike) -> bool:
        """
        Verify certificate against CA

        Returns:
            True if valid, False otherwise
        """
        try:
            self.run(['verify', '-CAfile', ca_cert_path, cert_path])
            logger.info(f"Certificate verification successful: {cert_path}")
            return True
        except OpenSSLError as e:
            logger.error(f"Certificate verification failed: {cert_path} ({e.stderr.strip()})")
            return False
