import shutil
from pathlib import Path

import pytest

from localcert.config import build_config

requires_openssl = pytest.mark.skipif(
    shutil.which('openssl') is None, reason='openssl binary not available'
)


class RecordingRunner:
    """Collects trust store commands instead of executing them"""

    def __init__(self):
        self.commands = []

    def __call__(self, cmd):
        self.commands.append(list(cmd))


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def environ(tmp_path):
    return {'XDG_CONFIG_HOME': str(tmp_path / 'xdg'), 'HOME': str(tmp_path / 'home')}


@pytest.fixture
def cert_dir(environ):
    return Path(environ['XDG_CONFIG_HOME']) / 'local-certs'


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides):
        options = {'output_dir': str(tmp_path / 'out')}
        options.update(overrides)
        return build_config(options)
    return _make


def write_os_release(root, content):
    etc = Path(root) / 'etc'
    etc.mkdir(parents=True, exist_ok=True)
    (etc / 'os-release').write_text(content)
    return root
