"""
Configuration handling for local-ssl-cert

Values are resolved in three layers: built-in defaults, an optional YAML
file (``config.yaml`` in the certificate directory or ``--config``) and
finally the command line flags.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from localcert.errors import ConfigurationError

logger = logging.getLogger(__name__)

CERT_DIR_NAME = 'local-certs'
CONFIG_FILE_NAME = 'config.yaml'

DEFAULTS: Dict[str, Any] = {
    'domain': 'localhost',
    'valid_days': 365,
    'output_dir': None,
    'country': 'US',
    'state': 'California',
    'locality': 'San Francisco',
    'organization': 'Local Development',
    'organizational_unit': 'Development',
    'email': 'dev@localhost',
    'p12_password': 'p12pass',
    'openssl_bin': 'openssl',
}


def config_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return $XDG_CONFIG_HOME, falling back to ~/.config"""
    env = os.environ if environ is None else environ
    value = env.get('XDG_CONFIG_HOME')
    if value:
        return Path(value)
    home = env.get('HOME')
    return (Path(home) if home else Path.home()) / '.config'


def default_cert_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    return config_home(environ) / CERT_DIR_NAME


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if it does not exist yet"""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Directory ensured: {path}")
    return path


def _merge_configs(default: Dict[str, Any], user: Mapping[str, Any]) -> Dict[str, Any]:
    """Overlay known keys from a user mapping onto the defaults"""
    merged = dict(default)
    for key, value in user.items():
        key = str(key).replace('-', '_')
        if key not in default:
            logger.warning(f"Ignoring unknown configuration key: {key}")
            continue
        if value is None:
            logger.warning(f"Ignoring empty configuration value for: {key}")
            continue
        merged[key] = value
    return merged


def load_defaults(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load default values, optionally overridden by a YAML file

    Args:
        config_file: YAML file path; a missing file is not an error

    Returns:
        Dictionary keyed like DEFAULTS
    """
    defaults = dict(DEFAULTS)
    if config_file is None or not Path(config_file).exists():
        return defaults

    try:
        with open(config_file, 'r') as f:
            user_config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Error loading config file {config_file}: {e}, using defaults")
        return defaults

    if user_config is None:
        return defaults
    if not isinstance(user_config, dict):
        logger.warning(f"Config file {config_file} is not a mapping, using defaults")
        return defaults

    logger.debug(f"Loaded configuration from {config_file}")
    return _merge_configs(defaults, user_config)


def _escape_rdn(value: str) -> str:
    return value.replace('\\', '\\\\').replace('/', '\\/').replace('+', '\\+')


@dataclass(frozen=True)
class CertConfig:
    """Everything a single run needs, fixed once parsing is done"""
    domain: str
    valid_days: int
    output_dir: Path
    country: str
    state: str
    locality: str
    organization: str
    organizational_unit: str
    email: str
    p12_password: str
    install: bool = False
    uninstall: bool = False
    openssl_bin: str = 'openssl'

    def __post_init__(self):
        if not self.domain or '/' in self.domain or self.domain in ('.', '..'):
            raise ConfigurationError(f"Invalid domain: {self.domain!r}")
        if isinstance(self.valid_days, bool) or not isinstance(self.valid_days, int):
            raise ConfigurationError(f"Validity must be a whole number of days, got {self.valid_days!r}")
        if self.valid_days <= 0:
            raise ConfigurationError(f"Validity must be a positive number of days, got {self.valid_days}")

    @property
    def subject(self) -> str:
        """Leaf distinguished name in the form accepted by ``openssl req -subj``"""
        return self.distinguished_name(self.domain)

    @property
    def ca_subject(self) -> str:
        return self.distinguished_name(f"{self.organization} Root CA")

    def distinguished_name(self, common_name: str) -> str:
        parts = [
            ('C', self.country),
            ('ST', self.state),
            ('L', self.locality),
            ('O', self.organization),
            ('OU', self.organizational_unit),
            ('CN', common_name),
            ('emailAddress', self.email),
        ]
        return ''.join(f"/{key}={_escape_rdn(str(value))}" for key, value in parts)


def build_config(options: Mapping[str, Any], defaults: Optional[Mapping[str, Any]] = None,
                 environ: Optional[Mapping[str, str]] = None) -> CertConfig:
    """
    Combine parsed command line options with defaults into a CertConfig

    Options set to None fall back to the defaults; the output directory
    falls back to the XDG certificate directory.
    """
    values = dict(DEFAULTS if defaults is None else defaults)
    for key, value in options.items():
        if value is not None:
            values[key] = value

    output_dir = values.get('output_dir')
    output_dir = Path(output_dir).expanduser() if output_dir else default_cert_dir(environ)

    valid_days = values['valid_days']
    if isinstance(valid_days, str) and valid_days.strip().isdigit():
        valid_days = int(valid_days)

    return CertConfig(
        domain=str(values['domain']),
        valid_days=valid_days,
        output_dir=output_dir,
        country=str(values['country']),
        state=str(values['state']),
        locality=str(values['locality']),
        organization=str(values['organization']),
        organizational_unit=str(values['organizational_unit']),
        email=str(values['email']),
        p12_password=str(values['p12_password']),
        install=bool(values.get('install', False)),
        uninstall=bool(values.get('uninstall', False)),
        openssl_bin=str(values['openssl_bin']),
    )
