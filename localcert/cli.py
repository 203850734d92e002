#!/usr/bin/env python3
"""
Local development SSL certificate tool
Creates a local CA plus a domain certificate and optionally trusts the CA
system-wide

Version: 1.0.0
License: MIT
"""

import os
import sys
import argparse
import logging
import traceback
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from tabulate import tabulate

from localcert import console
from localcert.certinfo import describe_certificate
from localcert.config import (CONFIG_FILE_NAME, DEFAULTS, CertConfig, build_config,
                              default_cert_dir, ensure_directory, load_defaults)
from localcert.errors import ConfigurationError, OpenSSLError, TrustStoreError
from localcert.generator import CertificateArtifacts, CertificateGenerator, file_listing
from localcert.hostos import read_os_name
from localcert.truststore import CommandRunner, select_trust_store

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(debug: bool = False) -> None:
    """Configure root logging once; --debug lowers the level"""
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)


class CertArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad operands as ConfigurationError"""

    def error(self, message):
        raise ConfigurationError(message)


def positive_days(value: str) -> int:
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of days: {value!r}")
    if days <= 0:
        raise argparse.ArgumentTypeError(f"number of days must be positive: {value!r}")
    return days


def build_parser() -> argparse.ArgumentParser:
    parser = CertArgumentParser(
        prog='local-ssl-cert',
        description="Create or uninstall a local development SSL certificate.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog="""
Examples:
  %(prog)s --domain mysite.local --install
  %(prog)s --uninstall
        """
    )

    parser.add_argument('-d', '--domain', metavar='DOMAIN',
                        help=f"Set custom domain (default: {DEFAULTS['domain']})")
    parser.add_argument('-o', '--output-dir', metavar='DIR', dest='output_dir',
                        help='Set output directory (default: ${XDG_CONFIG_HOME}/local-certs)')
    parser.add_argument('-v', '--valid-days', metavar='DAYS', dest='valid_days', type=positive_days,
                        help=f"Set certificate validity in days (default: {DEFAULTS['valid_days']})")
    parser.add_argument('-i', '--install', action='store_true',
                        help='Install the root certificate system-wide')
    parser.add_argument('-u', '--uninstall', action='store_true',
                        help='Uninstall the root certificate')
    parser.add_argument('-p', '--password', metavar='PASS', dest='p12_password',
                        help=f"Set PKCS12 export password (default: {DEFAULTS['p12_password']})")
    parser.add_argument('--country', metavar='CODE',
                        help=f"Set country code (default: {DEFAULTS['country']})")
    parser.add_argument('--state', metavar='STATE',
                        help=f"Set state/province (default: {DEFAULTS['state']})")
    parser.add_argument('--locality', metavar='LOCALITY',
                        help=f"Set locality/city (default: {DEFAULTS['locality']})")
    parser.add_argument('--org', metavar='ORGANIZATION', dest='organization',
                        help=f"Set organization (default: {DEFAULTS['organization']})")
    parser.add_argument('--org-unit', metavar='UNIT', dest='organizational_unit',
                        help=f"Set organizational unit (default: {DEFAULTS['organizational_unit']})")
    parser.add_argument('--email', metavar='EMAIL',
                        help=f"Set email address (default: {DEFAULTS['email']})")

    parser.add_argument('--config', metavar='FILE',
                        help=f'YAML file with default values (default: ${{XDG_CONFIG_HOME}}/local-certs/{CONFIG_FILE_NAME})')
    parser.add_argument('--openssl-bin', metavar='PATH', dest='openssl_bin',
                        help='OpenSSL binary path')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser


def options_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Keep only the values that map onto CertConfig fields"""
    options = vars(args).copy()
    options.pop('config', None)
    options.pop('debug', None)
    return options


def print_summary(config: CertConfig, artifacts: CertificateArtifacts) -> None:
    """Print generated files, certificate details and next steps"""
    console.success(f"Generated files are in: {artifacts.output_dir}")
    rows = [[item['name'], item['path'], item['mode']] for item in file_listing(artifacts)]
    console.plain(tabulate(rows, headers=['File', 'Path', 'Mode'], tablefmt='grid'))

    info = describe_certificate(artifacts.cert)
    details = [
        ['Subject', info['subject']],
        ['Issuer', info['issuer']],
        ['Subject Alt Names', ', '.join(info['subject_alt_names'])],
        ['Valid until', info['not_after'].strftime('%Y-%m-%d %H:%M:%S UTC')],
        ['Key', info['key']],
        ['SHA-256', info['fingerprint']],
    ]
    console.plain(tabulate(details, tablefmt='grid'))

    console.plain()
    console.success("Next steps:")
    if not config.install:
        console.hint("1. To install the certificate system-wide, run this script with the --install option")
    console.heading("2. Use these files in your development environment:")
    console.plain(f"   - Private key: {artifacts.key}")
    console.plain(f"   - Certificate: {artifacts.cert}")
    console.plain(f"   - Combined PEM: {artifacts.combined_pem}")
    console.plain(f"   - PKCS12 file: {artifacts.p12} (password: {config.p12_password})")
    console.plain()
    console.success("For browsers:")
    console.hint(f"Import the {config.domain}.p12 file:")
    console.plain("- Chrome: Settings > Privacy and security > Security > Manage certificates > Import")
    console.plain("- Firefox: Preferences > Privacy & Security > View Certificates > Import")


def run(config: CertConfig, os_root: str = '/', runner: Optional[CommandRunner] = None) -> int:
    """
    Execute one invocation: uninstall, or create (and optionally install)

    Returns:
        Process exit status
    """
    if config.uninstall:
        os_name = read_os_name(os_root)
        console.heading(f"Detected OS: {os_name}")
        select_trust_store(os_name, runner=runner).uninstall()
        return 0

    console.heading("Creating certificates...")
    generator = CertificateGenerator(config)
    artifacts = generator.create()
    generator.verify()

    if config.install:
        os_name = read_os_name(os_root)
        console.heading(f"Detected OS: {os_name}")
        select_trust_store(os_name, runner=runner).install(artifacts.ca_cert)

    console.plain()
    print_summary(config, artifacts)
    return 0


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None,
         os_root: str = '/', runner: Optional[CommandRunner] = None) -> int:
    """Main CLI interface"""
    setup_logging()
    env = os.environ if environ is None else environ
    cert_dir = ensure_directory(default_cert_dir(env))

    parser = build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except ConfigurationError as e:
        console.warning(f"Configuration error: {e}")
        console.hint(f"Run '{parser.prog} --help' for usage.")
        return ConfigurationError.exit_code

    if unknown:
        console.warning(f"Unknown option: {unknown[0]}")
        parser.print_help()
        return 1

    setup_logging(args.debug)

    try:
        config_file = Path(args.config).expanduser() if args.config else cert_dir / CONFIG_FILE_NAME
        defaults = load_defaults(config_file)
        config = build_config(options_from_args(args), defaults, env)
        return run(config, os_root=os_root, runner=runner)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return e.exit_code
    except OpenSSLError as e:
        logger.error(f"OpenSSL error: {e}")
        return e.exit_code
    except TrustStoreError as e:
        logger.error(f"Trust store error: {e}")
        return e.exit_code
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
