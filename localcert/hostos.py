"""Host distribution detection."""

import shlex
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Union

logger = logging.getLogger(__name__)

OS_RELEASE = 'etc/os-release'
DEBIAN_VERSION = 'etc/debian_version'
REDHAT_RELEASE = 'etc/redhat-release'

UNKNOWN_OS = 'Unknown'


class OSFamily(Enum):
    DEBIAN = 'debian'
    REDHAT = 'redhat'
    UNSUPPORTED = 'unsupported'


FAMILY_MARKERS = {
    OSFamily.DEBIAN: ('Ubuntu', 'Debian', 'Linux Mint'),
    OSFamily.REDHAT: ('Fedora', 'RedHat', 'Red Hat', 'CentOS'),
}


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release KEY=value lines, honouring shell quoting"""
    values = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, _, raw = line.partition('=')
        try:
            parts = shlex.split(raw)
        except ValueError:
            logger.debug(f"Unparseable os-release line: {line}")
            continue
        values[key.strip()] = ' '.join(parts)
    return values


def read_os_name(root: Union[str, Path] = '/') -> str:
    """
    Identify the running distribution

    Uses NAME from os-release, then the Debian and Red Hat marker files.

    Args:
        root: filesystem root to look under (tests point this elsewhere)

    Returns:
        Distribution name, or "Unknown"
    """
    root = Path(root)
    os_release = root / OS_RELEASE
    if os_release.is_file():
        name = parse_os_release(os_release.read_text(errors='replace')).get('NAME')
        return name or UNKNOWN_OS
    if (root / DEBIAN_VERSION).is_file():
        return 'Debian'
    if (root / REDHAT_RELEASE).is_file():
        return 'RedHat'
    return UNKNOWN_OS


def classify(os_name: str) -> OSFamily:
    for family, markers in FAMILY_MARKERS.items():
        if any(marker in os_name for marker in markers):
            return family
    return OSFamily.UNSUPPORTED
