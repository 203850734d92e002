"""Exception hierarchy shared by the CLI, pipeline and trust store code."""


class LocalCertError(Exception):
    """Base class for all local-ssl-cert failures"""
    exit_code = 1


class ConfigurationError(LocalCertError):
    """Invalid or incomplete command line / configuration file input"""
    exit_code = 2


class OpenSSLError(LocalCertError):
    """Custom exception for OpenSSL operations"""

    def __init__(self, message: str, command=None, stderr: str = ''):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class TrustStoreError(LocalCertError):
    """A trust store copy, removal or refresh command failed"""
