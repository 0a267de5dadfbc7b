"""Tests for CLI module."""

import io
import json

import pytest
from PIL import Image

from thumbgen.cli import EXIT_CANCELLED, EXIT_FATAL, EXIT_OK, create_parser, main


@pytest.fixture
def config_file(tmp_path):
    """Fixture providing a config file for a local-to-local run."""
    originals = tmp_path / 'originals'
    originals.mkdir()
    for name in ('a.png', 'b.png'):
        buffer = io.BytesIO()
        Image.new('RGB', (64, 64), color='red').save(buffer, format='PNG')
        (originals / name).write_bytes(buffer.getvalue())

    data = {
        'input': {
            'storage': {'type': 'local', 'config': {'root_path': str(originals)}},
            'known_extensions': ['png'],
            'cache_path': str(tmp_path / 'cache.csv'),
        },
        'converters': [
            {
                'type': 'webp',
                'config': {'quality': 75, 'size': {'max_width': 32, 'max_height': 32}},
                'output': {'storage': {'type': 'local', 'config': {'root_path': str(tmp_path / 'thumbs')}}},
            },
        ],
        'max_queue_threads': 2,
        'max_process_threads': 1,
    }
    path = tmp_path / 'config.json'
    path.write_text(json.dumps(data))
    return str(path)


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_run_command(self):
        """Test run command parsing."""
        parser = create_parser()
        args = parser.parse_args(['run', '-c', 'my.json', '--dry-run', '--limit', '3'])

        assert args.command == 'run'
        assert args.config == 'my.json'
        assert args.dry_run is True
        assert args.force_rewrite is False
        assert args.limit == 3

    def test_run_defaults(self):
        args = create_parser().parse_args(['run'])
        assert args.config == 'config.json'
        assert args.quiet is False
        assert args.show_files is False

    def test_check_command(self):
        args = create_parser().parse_args(['check', '-c', 'my.json'])
        assert args.command == 'check'

    def test_cache_command(self):
        args = create_parser().parse_args(['cache'])
        assert args.command == 'cache'


class TestMain:
    """Tests for main entry point."""

    def test_no_command(self):
        """Test running without command shows help."""
        assert main([]) == EXIT_FATAL

    def test_missing_config(self, tmp_path):
        assert main(['run', '-q', '-c', str(tmp_path / 'missing.json')]) == EXIT_FATAL

    def test_invalid_config(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'input': {'storage': {'type': 'local', 'config': {}}}}))
        assert main(['check', '-c', str(path)]) == EXIT_FATAL


class TestCmdRun:
    """Tests for the run command."""

    def test_run_then_rerun(self, config_file, tmp_path, capsys):
        assert main(['run', '-c', config_file]) == EXIT_OK
        assert 'CONVERSION RUN SUMMARY' in capsys.readouterr().out
        assert (tmp_path / 'thumbs' / 'a.webp').is_file()
        assert (tmp_path / 'thumbs' / 'a.webp.provenance.json').is_file()
        assert Image.open(tmp_path / 'thumbs' / 'b.webp').size == (32, 32)
        first_mtime = (tmp_path / 'thumbs' / 'a.webp').stat().st_mtime_ns

        assert main(['run', '-q', '-c', config_file]) == EXIT_OK
        assert (tmp_path / 'thumbs' / 'a.webp').stat().st_mtime_ns == first_mtime

    def test_dry_run(self, config_file, tmp_path):
        assert main(['run', '-q', '-n', '-c', config_file]) == EXIT_OK
        assert not (tmp_path / 'thumbs').exists()

    def test_unit_errors_still_succeed(self, config_file, tmp_path):
        (tmp_path / 'originals' / 'broken.png').write_bytes(b'garbage')
        assert main(['run', '-q', '-c', config_file]) == EXIT_OK
        assert (tmp_path / 'thumbs' / 'a.webp').is_file()

    def test_malformed_cache_is_fatal(self, config_file, tmp_path):
        (tmp_path / 'cache.csv').write_text('a,b,c\n')
        assert main(['run', '-q', '-c', config_file]) == EXIT_FATAL

    def test_cancelled_exit_code(self, config_file, mocker):
        def cancelled_token():
            from thumbgen.cancellation import CancellationToken
            token = CancellationToken()
            token.cancel('SIGTERM')
            return token

        mocker.patch('thumbgen.cli.CancellationToken', side_effect=cancelled_token)
        assert main(['run', '-q', '-c', config_file]) == EXIT_CANCELLED


class TestCmdCheckAndCache:
    """Tests for the check and cache commands."""

    def test_check(self, config_file, capsys):
        assert main(['check', '-c', config_file]) == EXIT_OK
        out = capsys.readouterr().out
        assert 'CONFIGURATION' in out
        assert 'webp q=75 32x32' in out

    def test_cache_after_run(self, config_file, capsys):
        main(['run', '-q', '-c', config_file])
        capsys.readouterr()

        assert main(['cache', '-c', config_file]) == EXIT_OK
        out = capsys.readouterr().out
        assert 'SKIP CACHE' in out
        assert 'configured' in out

    def test_cache_malformed(self, config_file, tmp_path):
        (tmp_path / 'cache.csv').write_text('a,b,c\n')
        assert main(['cache', '-c', config_file]) == EXIT_FATAL
