"""
Tests for the apibundle command line.

Commands run in-process through click's CliRunner against catalogs
under tmp_path; APIBUNDLE_CONFIG points each command at its catalog.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from apibundle import __version__
from apibundle.cli import cli
from apibundle.exit_codes import DATA_ERROR, NOT_FOUND, REGISTRATION_ERROR, USAGE_ERROR
from apibundle.infra.catalog_store import icon_ref
from apibundle.infra.local_store import LocalCatalogStore

from conftest import PNG_BYTES, WEATHER


def json_lines(output):
    """Parse the JSON objects a command printed, ignoring progress lines."""
    return [json.loads(line) for line in output.splitlines() if line.startswith('{')]


def write_config(path, catalog, work):
    path.write_text(json.dumps({
        'workspace': {'base_dir': str(work)},
        'catalog': {'path': str(catalog)},
    }))
    return path


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def source_config(tmp_path, weather_store, monkeypatch):
    """Point the CLI at the populated Weather catalog."""
    path = write_config(tmp_path / 'source.json', weather_store.root, tmp_path / 'work')
    monkeypatch.setenv('APIBUNDLE_CONFIG', str(path))
    return path


@pytest.fixture
def exported_archive(runner, source_config, tmp_path):
    """Weather-1.0.zip exported through the CLI."""
    target = tmp_path / 'out' / 'Weather-1.0.zip'
    result = runner.invoke(cli, ['export', 'Weather', '1.0', 'acme', '-o', str(target)])
    assert result.exit_code == 0, result.output
    return target


@pytest.fixture
def target_config(tmp_path, monkeypatch):
    """Point the CLI at an empty target catalog."""
    path = write_config(tmp_path / 'target.json', tmp_path / 'target', tmp_path / 'work')
    monkeypatch.setenv('APIBUNDLE_CONFIG', str(path))
    return path


class TestExportCommand:
    """Tests for `apibundle export`."""

    def test_export_writes_archive(self, runner, source_config, tmp_path):
        target = tmp_path / 'weather.zip'

        result = runner.invoke(cli, ['export', 'Weather', '1.0', 'acme', '-o', str(target)])

        assert result.exit_code == 0, result.output
        assert target.is_file()
        summary = json_lines(result.output)[-1]
        assert summary['type'] == 'export'
        assert summary['archive'] == str(target)
        assert summary['documents'] == 2
        assert summary['sequences'] == 1

    def test_workspace_removed(self, runner, source_config, tmp_path):
        runner.invoke(cli, ['export', 'Weather', '1.0', 'acme', '-o', str(tmp_path / 'w.zip')])

        assert list((tmp_path / 'work').iterdir()) == []

    def test_keep_workspace(self, runner, source_config, tmp_path):
        runner.invoke(cli, ['export', 'Weather', '1.0', 'acme', '-o', str(tmp_path / 'w.zip'),
                            '--keep-workspace'])

        assert len(list((tmp_path / 'work').iterdir())) == 1

    def test_default_output_in_cwd(self, runner, source_config):
        with runner.isolated_filesystem() as cwd:
            result = runner.invoke(cli, ['export', 'Weather', '1.0', 'acme'])

            assert result.exit_code == 0, result.output
            assert (Path(cwd) / 'Weather-1.0.zip').is_file()

    def test_pretty_output(self, runner, source_config, tmp_path):
        result = runner.invoke(cli, ['export', 'Weather', '1.0', 'acme',
                                     '-o', str(tmp_path / 'w.zip'), '--pretty'])

        assert result.exit_code == 0, result.output
        assert 'Export Summary' in result.output

    def test_missing_api(self, runner, source_config, tmp_path):
        result = runner.invoke(cli, ['export', 'Storm', '1.0', 'acme',
                                     '-o', str(tmp_path / 's.zip')])

        assert result.exit_code == NOT_FOUND
        error = json_lines(result.output)[-1]
        assert error['type'] == 'APINotFoundError'
        assert error['exit_code'] == NOT_FOUND

    def test_empty_identity_field(self, runner, source_config):
        result = runner.invoke(cli, ['export', '', '1.0', 'acme'])

        assert result.exit_code == USAGE_ERROR


class TestImportCommand:
    """Tests for `apibundle import`."""

    def test_import_registers_api(self, runner, exported_archive, target_config, tmp_path):
        result = runner.invoke(cli, ['import', str(exported_archive)])

        assert result.exit_code == 0, result.output
        summary = json_lines(result.output)[-1]
        assert summary['type'] == 'import'
        assert summary['phase'] == 'done'
        assert summary['api_id'] == WEATHER.key

        store = LocalCatalogStore(tmp_path / 'target')
        assert store.get_api(WEATHER).in_sequence == 'log_in'
        assert store.content.read(icon_ref(WEATHER)) == PNG_BYTES

    def test_import_as_user(self, runner, exported_archive, target_config, tmp_path):
        result = runner.invoke(cli, ['import', str(exported_archive), '--user', 'bob@example.com'])

        assert result.exit_code == 0, result.output
        store = LocalCatalogStore(tmp_path / 'target')
        assert store.created_by(WEATHER.key) == 'bob@example.com'

    def test_duplicate_import(self, runner, exported_archive, target_config):
        runner.invoke(cli, ['import', str(exported_archive)])

        result = runner.invoke(cli, ['import', str(exported_archive)])

        assert result.exit_code == REGISTRATION_ERROR
        error = json_lines(result.output)[-1]
        assert error['type'] == 'RegistrationError'
        assert error['phase'] == 'registered'

    def test_corrupt_archive(self, runner, target_config, tmp_path):
        bogus = tmp_path / 'bogus.zip'
        bogus.write_bytes(b'not a zip file')

        result = runner.invoke(cli, ['import', str(bogus)])

        assert result.exit_code == DATA_ERROR
        assert json_lines(result.output)[-1]['type'] == 'ArchiveCorruptError'

    def test_archive_must_exist(self, runner, target_config, tmp_path):
        result = runner.invoke(cli, ['import', str(tmp_path / 'missing.zip')])

        assert result.exit_code == 2

    def test_pretty_output(self, runner, exported_archive, target_config):
        result = runner.invoke(cli, ['import', str(exported_archive), '--pretty'])

        assert result.exit_code == 0, result.output
        assert 'Import Summary' in result.output


class TestConfigCommand:
    """Tests for `apibundle config`."""

    def test_show_path(self, runner, target_config):
        result = runner.invoke(cli, ['config', 'show', '--path'])

        assert result.exit_code == 0
        assert json.loads(result.output) == {'config_path': str(target_config)}

    def test_show_merges_defaults(self, runner, target_config, tmp_path):
        result = runner.invoke(cli, ['config', 'show'])

        config = json.loads(result.output)
        assert config['catalog']['path'] == str(tmp_path / 'target')
        assert config['actor']['username'] == 'admin'

    def test_init_refuses_to_overwrite(self, runner, target_config):
        before = target_config.read_text()

        result = runner.invoke(cli, ['config', 'init'])

        assert result.exit_code == 0
        assert 'already exists' in result.output
        assert target_config.read_text() == before

    def test_init_force(self, runner, target_config):
        result = runner.invoke(cli, ['config', 'init', '--force'])

        assert result.exit_code == 0
        assert json.loads(target_config.read_text())['actor']['username'] == 'admin'


def test_version(runner):
    result = runner.invoke(cli, ['--version'])

    assert result.exit_code == 0
    assert __version__ in result.output
