from pathlib import Path

import pytest

from localcert.config import (DEFAULTS, CertConfig, build_config, config_home,
                              default_cert_dir, ensure_directory, load_defaults)
from localcert.errors import ConfigurationError


def test_config_home_prefers_xdg():
    assert config_home({'XDG_CONFIG_HOME': '/srv/xdg', 'HOME': '/home/dev'}) == Path('/srv/xdg')


def test_config_home_falls_back_to_home_dot_config():
    assert config_home({'HOME': '/home/dev'}) == Path('/home/dev/.config')
    assert config_home({'XDG_CONFIG_HOME': '', 'HOME': '/home/dev'}) == Path('/home/dev/.config')


def test_default_cert_dir():
    assert default_cert_dir({'XDG_CONFIG_HOME': '/srv/xdg'}) == Path('/srv/xdg/local-certs')


def test_ensure_directory_is_idempotent(tmp_path):
    target = tmp_path / 'a' / 'b'
    ensure_directory(target)
    ensure_directory(target)
    assert target.is_dir()


def test_build_config_defaults(environ):
    config = build_config({}, environ=environ)
    assert config.domain == 'localhost'
    assert config.valid_days == 365
    assert config.p12_password == 'p12pass'
    assert config.output_dir == Path(environ['XDG_CONFIG_HOME']) / 'local-certs'
    assert not config.install
    assert not config.uninstall


def test_build_config_ignores_unset_options(environ):
    config = build_config({'domain': None, 'country': 'DE'}, environ=environ)
    assert config.domain == 'localhost'
    assert config.country == 'DE'


def test_config_is_immutable(make_config):
    config = make_config()
    with pytest.raises(AttributeError):
        config.domain = 'other'


@pytest.mark.parametrize('days', [0, -5, 'soon'])
def test_invalid_validity_is_rejected(make_config, days):
    with pytest.raises(ConfigurationError):
        make_config(valid_days=days)


@pytest.mark.parametrize('domain', ['', '../etc', 'a/b'])
def test_invalid_domain_is_rejected(make_config, domain):
    with pytest.raises(ConfigurationError):
        make_config(domain=domain)


def test_subject_contains_all_fields(make_config):
    config = make_config(domain='example.test')
    assert config.subject == (
        '/C=US/ST=California/L=San Francisco/O=Local Development'
        '/OU=Development/CN=example.test/emailAddress=dev@localhost'
    )


def test_subject_escapes_slashes(make_config):
    config = make_config(organization='R/D')
    assert '/O=R\\/D/' in config.subject


def test_subject_escapes_plus(make_config):
    config = make_config(email='dev+certs@localhost')
    assert config.subject.endswith('/emailAddress=dev\\+certs@localhost')
    assert '/emailAddress=dev\\+certs@localhost' in config.ca_subject


def test_load_defaults_without_file(tmp_path):
    assert load_defaults(tmp_path / 'missing.yaml') == DEFAULTS
    assert load_defaults(None) == DEFAULTS


def test_yaml_defaults_are_overridden_by_options(tmp_path, environ):
    config_file = tmp_path / 'config.yaml'
    config_file.write_text(
        'organization: Acme Labs\n'
        'domain: from-file.test\n'
        'valid-days: 90\n'
        'unknown_key: 1\n'
    )
    defaults = load_defaults(config_file)
    assert 'unknown_key' not in defaults

    config = build_config({'domain': 'from-cli.test'}, defaults, environ)
    assert config.organization == 'Acme Labs'
    assert config.valid_days == 90
    assert config.domain == 'from-cli.test'


def test_broken_yaml_falls_back_to_defaults(tmp_path, caplog):
    config_file = tmp_path / 'config.yaml'
    config_file.write_text('domain: [unclosed\n')
    assert load_defaults(config_file) == DEFAULTS
    assert 'Error loading config file' in caplog.text


def test_non_mapping_yaml_falls_back_to_defaults(tmp_path):
    config_file = tmp_path / 'config.yaml'
    config_file.write_text('- just\n- a list\n')
    assert load_defaults(config_file) == DEFAULTS


def test_install_and_uninstall_can_both_be_set(make_config):
    config = make_config(install=True, uninstall=True)
    assert isinstance(config, CertConfig)
    assert config.uninstall


def test_ca_subject_uses_organization_common_name(make_config):
    config = make_config(domain='example.test', organization='Acme')
    assert config.ca_subject.endswith('/CN=Acme Root CA/emailAddress=dev@localhost')
    assert config.ca_subject != config.subject


def test_empty_yaml_value_keeps_default(tmp_path, environ, caplog):
    config_file = tmp_path / 'config.yaml'
    config_file.write_text('domain:\norganization: Acme Labs\n')
    defaults = load_defaults(config_file)
    assert defaults['domain'] == 'localhost'
    assert defaults['organization'] == 'Acme Labs'
    assert 'Ignoring empty configuration value for: domain' in caplog.text

    config = build_config({}, defaults, environ)
    assert config.domain == 'localhost'
    assert 'None' not in config.subject
