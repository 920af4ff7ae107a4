#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import argparse
import logging
from typing import Any

from .base import Command, ConnectionMixin, choose_option
from .connect import connect_sftp
from ..connection import SHELL, FILESYSTEM
from ..error import CommandError
from ..params import LebuParams
from ..sftp.client import SftpClient
from ..sftp.console import ConsoleNavigatorUI
from ..sftp.navigator import FilesystemNavigator, NavigatorState


def register_commands(commands):
    commands['sftp'] = SftpCommand()


def register_command_info(aliases, command_info):
    command_info[sftp_parser.prog] = sftp_parser.description


sftp_parser = argparse.ArgumentParser(prog='sftp', description='Browse remote files over SFTP')
sftp_parser.add_argument('--path', dest='path', action='store', help='start directory')
sftp_parser.add_argument('--native', dest='native', action='store_true', help='open system "sftp" client instead')
sftp_parser.add_argument('name', nargs='?', type=str, action='store', help='SSH or SFTP connection name')


class SftpCommand(Command, ConnectionMixin):
    def get_parser(self):
        return sftp_parser

    def execute(self, params, **kwargs):    # type: (LebuParams, ...) -> Any
        name = kwargs.get('name')
        if not name:
            if params.batch_mode:
                raise CommandError('sftp', 'Connection name is required')
            connections = [x for x in params.registry.list() if x.kind in (FILESYSTEM, SHELL)]
            if not connections:
                logging.info('No SSH or SFTP connections found.')
                return
            name = choose_option('Select connection:', [(x.name, f'{x.name:<20} {x.endpoint}') for x in connections])

        connection = self.resolve_connection(params, name, 'sftp', kinds=[FILESYSTEM, SHELL], with_secret=True)
        if kwargs.get('native'):
            connect_sftp(params, connection)
            return

        if params.batch_mode:
            raise CommandError('sftp', 'File browser requires interactive mode. Use "--native" option')

        client = SftpClient.from_connection(connection)
        logging.info('Connecting to %s ...', connection.name)
        with client:
            logging.info('Connected to %s', connection.name)
            params.registry.touch_last_used(connection.name)
            navigator = FilesystemNavigator(client, ConsoleNavigatorUI(connection.name),
                                            start_path=params.sftp_start_path, download_dir=params.download_dir)
            start_path = kwargs.get('path')
            navigator.run(NavigatorState(start_path) if start_path else None)
        logging.info('Disconnected.')
