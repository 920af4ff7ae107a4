import datetime
import json
import os
import tempfile
from unittest import TestCase, mock

from data_connections import get_populated_params
from lebu import cli
from lebu.__main__ import get_params_from_config
from lebu.display import format_size, format_relative_time, format_modify_time
from lebu.params import LebuParams, load_config_properties


class TestCommandLineInterface(TestCase):
    def test_command_and_args(self):
        self.assertEqual(cli.command_and_args_from_cmd('list --format json'), ('list', '--format json'))
        self.assertEqual(cli.command_and_args_from_cmd('list'), ('list', ''))

    def test_do_command_alias(self):
        params = get_populated_params()
        report = json.loads(cli.do_command(params, 'ls --format json'))
        self.assertEqual(len(report), 3)

        with mock.patch('builtins.print') as mock_print:
            cli.do_command(params, 'unknown')
            mock_print.assert_called()

    def test_runcommands_error_number(self):
        params = get_populated_params()
        with mock.patch('builtins.print'):
            self.assertEqual(cli.runcommands(params, ['list'], quiet=True), 0)
        with mock.patch('logging.error') as mock_error:
            self.assertEqual(cli.runcommands(params, ['remove --force nope'], quiet=True), 1)
            mock_error.assert_called()

    def test_batch_loop_stops_on_error(self):
        params = get_populated_params()
        params.batch_mode = True
        params.commands = ['rm --force pg', 'rm --force nope', 'rm --force web', 'q']
        with mock.patch('logging.error'):
            self.assertEqual(cli.loop(params), 1)
        self.assertIsNone(params.registry.find('pg'))
        self.assertIsNotNone(params.registry.find('web'))

    def test_toggle_debug(self):
        params = LebuParams()
        cli.toggle_debug(params)
        self.assertTrue(params.debug)
        cli.toggle_debug(params)
        self.assertFalse(params.debug)


class TestConfiguration(TestCase):
    def setUp(self):
        self.folder = tempfile.TemporaryDirectory()
        self.config_filename = os.path.join(self.folder.name, 'config.json')

    def tearDown(self):
        self.folder.cleanup()

    def test_load_config(self):
        with open(self.config_filename, 'w') as f:
            json.dump({
                'connections_file': os.path.join(self.folder.name, 'connections.json'),
                'sample_limit': 25,
                'debug': 'yes',
                'commands': ['list', 5],
            }, f)
        with mock.patch('logging.warning') as mock_warning:
            params = get_params_from_config(self.config_filename)
            mock_warning.assert_called_once()
        self.assertEqual(params.sample_limit, 25)
        self.assertFalse(params.debug)
        self.assertEqual(params.commands, ['list'])
        self.assertEqual(params.registry.storage.filename, os.path.join(self.folder.name, 'connections.json'))

    def test_missing_config(self):
        params = get_params_from_config(self.config_filename)
        self.assertEqual(params.config, {})
        self.assertEqual(params.sample_limit, 50)

    def test_config_from_environment(self):
        with open(self.config_filename, 'w') as f:
            json.dump({'sftp_start_path': '/srv'}, f)
        with mock.patch.dict(os.environ, {'LEBU_CONFIG_FILE': self.config_filename}):
            params = get_params_from_config()
        self.assertEqual(params.sftp_start_path, '/srv')

    def test_invalid_config(self):
        with open(self.config_filename, 'w') as f:
            f.write('{not json')
        with mock.patch('builtins.input') as mock_input, mock.patch('logging.error'):
            mock_input.return_value = 'n'
            with self.assertRaises(ValueError):
                get_params_from_config(self.config_filename)
            self.assertTrue(os.path.isfile(self.config_filename))

            mock_input.return_value = 'y'
            params = get_params_from_config(self.config_filename)
        self.assertEqual(params.config, {})
        self.assertFalse(os.path.isfile(self.config_filename))

    def test_config_properties(self):
        params = LebuParams(config={'batch_mode': True, 'sample_limit': 0, 'download_dir': ''})
        with mock.patch('logging.warning') as mock_warning:
            load_config_properties(params)
            self.assertEqual(mock_warning.call_count, 2)
        self.assertTrue(params.batch_mode)
        self.assertEqual(params.sample_limit, 50)
        self.assertEqual(params.download_dir, '.')


class TestDisplay(TestCase):
    def test_format_size(self):
        self.assertEqual(format_size(0), '0 B')
        self.assertEqual(format_size(512), '512 B')
        self.assertEqual(format_size(1024), '1 KB')
        self.assertEqual(format_size(1536), '1.5 KB')
        self.assertEqual(format_size(5 * 1024 * 1024), '5 MB')

    def test_format_relative_time(self):
        now = datetime.datetime(2024, 5, 10, 12, 0, tzinfo=datetime.timezone.utc)
        self.assertEqual(format_relative_time(None, now), 'never')
        self.assertEqual(format_relative_time('2024-05-10T11:59:40+00:00', now), 'just now')
        self.assertEqual(format_relative_time('2024-05-10T11:15:00+00:00', now), '45m ago')
        self.assertEqual(format_relative_time('2024-05-10T07:00:00Z', now), '5h ago')
        self.assertEqual(format_relative_time('2024-05-07T12:00:00+00:00', now), '3d ago')
        self.assertEqual(format_relative_time('garbage', now), 'never')

    def test_format_modify_time(self):
        now = datetime.datetime(2024, 5, 10, 12, 0)
        self.assertEqual(format_modify_time(None, now), '')
        self.assertEqual(format_modify_time(datetime.datetime(2024, 5, 10, 9, 30), now), '09:30')
        self.assertEqual(format_modify_time(datetime.datetime(2024, 5, 8, 9, 30), now), '2d ago')
        self.assertEqual(format_modify_time(datetime.datetime(2024, 1, 3, 9, 30), now), 'Jan 03')
