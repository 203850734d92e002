"""
Local development certificate authority tooling
Creates a self-signed CA plus a domain certificate and manages its trust
"""

__version__ = "1.0.0"
__author__ = "local-ssl-cert contributors"
__description__ = "Local development SSL certificate generator"
