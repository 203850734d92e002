"""
System trust store integration

One strategy per supported distribution family; each knows where CA
anchors live and which command refreshes the system bundle.
"""

import os
import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from localcert import console
from localcert.errors import TrustStoreError
from localcert.hostos import OSFamily, classify

logger = logging.getLogger(__name__)

CommandRunner = Callable[[List[str]], None]

DEBIAN_ANCHOR_DIR = Path('/usr/local/share/ca-certificates')
REDHAT_ANCHOR_DIR = Path('/etc/pki/ca-trust/source/anchors')


def privileged(cmd: List[str]) -> List[str]:
    """Prefix a command with sudo unless already running as root"""
    if os.geteuid() != 0:
        return ['sudo'] + cmd
    return cmd


def run_command(cmd: List[str]) -> None:
    """Run a system command, raising TrustStoreError on failure"""
    cmd = privileged([str(part) for part in cmd])
    logger.debug(f"Executing: {' '.join(cmd)}")
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
    except FileNotFoundError:
        raise TrustStoreError(f"Command not found: {cmd[0]}")
    except subprocess.CalledProcessError as e:
        raise TrustStoreError(f"Command failed: {' '.join(cmd)}\nError: {(e.stderr or '').strip()}")


class TrustStore:
    """Base strategy: install or remove the local CA system-wide"""

    label = ''
    anchor_name = 'rootCA.pem'

    def __init__(self, os_name: str, runner: Optional[CommandRunner] = None,
                 anchor_dir: Optional[Path] = None):
        self.os_name = os_name
        self.runner = runner or run_command
        if anchor_dir is not None:
            self.anchor_dir = Path(anchor_dir)

    @property
    def anchor_path(self) -> Path:
        return self.anchor_dir / self.anchor_name

    def install(self, ca_cert: Path) -> bool:
        """Copy the CA certificate into the anchor directory and refresh"""
        console.success(f"Installing certificate for {self.label}...")
        self.runner(['cp', str(ca_cert), str(self.anchor_path)])
        self.runner(self.refresh_command(removing=False))
        logger.info(f"Root certificate installed: {self.anchor_path}")
        return True

    def uninstall(self) -> bool:
        """Remove the CA certificate from the anchor directory and refresh"""
        console.success(f"Uninstalling certificate for {self.label}...")
        self.runner(['rm', '-f', str(self.anchor_path)])
        self.runner(self.refresh_command(removing=True))
        logger.info(f"Root certificate removed: {self.anchor_path}")
        return True

    def refresh_command(self, removing: bool) -> List[str]:
        raise NotImplementedError


class DebianTrustStore(TrustStore):
    label = 'Ubuntu/Debian'
    anchor_dir = DEBIAN_ANCHOR_DIR
    # update-ca-certificates only picks up *.crt files
    anchor_name = 'rootCA.crt'

    def refresh_command(self, removing: bool) -> List[str]:
        if removing:
            return ['update-ca-certificates', '--fresh']
        return ['update-ca-certificates']


class RedHatTrustStore(TrustStore):
    label = 'Fedora/RedHat/CentOS'
    anchor_dir = REDHAT_ANCHOR_DIR

    def refresh_command(self, removing: bool) -> List[str]:
        return ['update-ca-trust', 'extract']


class UnsupportedTrustStore(TrustStore):
    """No automatic integration; only tells the user what to do"""

    label = 'unsupported'
    anchor_dir = Path('.')

    def install(self, ca_cert: Path) -> bool:
        console.warning(f"Warning: Automatic installation not supported for your OS ({self.os_name})")
        console.hint(f"Please manually install the root certificate ({ca_cert})")
        return False

    def uninstall(self) -> bool:
        console.warning(f"Warning: Automatic uninstallation not supported for your OS ({self.os_name})")
        console.hint("Please manually remove the root certificate from your system's certificate store")
        return False


STRATEGIES = {
    OSFamily.DEBIAN: DebianTrustStore,
    OSFamily.REDHAT: RedHatTrustStore,
    OSFamily.UNSUPPORTED: UnsupportedTrustStore,
}


def select_trust_store(os_name: str, runner: Optional[CommandRunner] = None) -> TrustStore:
    """Pick the trust store strategy matching a distribution name"""
    family = classify(os_name)
    logger.debug(f"OS family for {os_name!r}: {family.value}")
    return STRATEGIES[family](os_name, runner=runner)
