#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""Hands a stored connection over to the native client program.

   Passwords are passed through the environment of the child process,
   never on its command line.
"""

import argparse
import logging
import os
import shutil
import subprocess
from typing import List, Dict, Tuple, Any

from .base import Command, ConnectionMixin
from ..connection import Connection, SHELL, DATABASE, FILESYSTEM, POSTGRES, MYSQL, MONGODB, REDIS, AUTH_KEY
from ..error import CommandError
from ..params import LebuParams


def register_commands(commands):
    commands['ssh'] = ConnectSshCommand()
    commands['db'] = ConnectDatabaseCommand()


def register_command_info(aliases, command_info):
    for p in [ssh_parser, db_parser]:
        command_info[p.prog] = p.description


ssh_parser = argparse.ArgumentParser(prog='ssh', description='Open SSH session to a stored connection')
ssh_parser.add_argument('name', type=str, action='store', help='connection name')
ssh_parser.add_argument('command', nargs='*', type=str, action='store', help='remote command')

db_parser = argparse.ArgumentParser(prog='db', description='Open native database client for a stored connection')
db_parser.add_argument('name', type=str, action='store', help='database connection name')


def get_ssh_options(connection, port_flag='-p'):    # type: (Connection, str) -> List[str]
    details = connection.details
    args = []
    if details.auto_accept_fingerprint:
        args.extend(('-o', 'StrictHostKeyChecking=accept-new'))
    if connection.port and connection.port != 22:
        args.extend((port_flag, str(connection.port)))
    if details.auth_method == AUTH_KEY and details.key_path:
        args.extend(('-i', os.path.expanduser(details.key_path)))
    return args


def build_ssh_command(connection, remote_command=None):    # type: (Connection, List[str]) -> List[str]
    args = ['ssh']
    args.extend(get_ssh_options(connection))
    args.append(f'{connection.details.user}@{connection.host}')
    if remote_command:
        args.append('--')
        args.extend(remote_command)
    return args


def build_sftp_command(connection):    # type: (Connection) -> List[str]
    args = ['sftp']
    args.extend(get_ssh_options(connection, port_flag='-P'))
    args.append(f'{connection.details.user}@{connection.host}')
    return args


def build_database_command(connection):    # type: (Connection) -> Tuple[List[str], Dict[str, str]]
    details = connection.details
    secret = connection.secret
    env = {}
    engine = details.engine
    if engine == POSTGRES:
        args = ['psql', '-h', connection.host, '-p', str(connection.port or 5432)]
        if details.user:
            args.extend(('-U', details.user))
        if details.database:
            args.extend(('-d', details.database))
        if secret:
            env['PGPASSWORD'] = secret
    elif engine == MYSQL:
        args = ['mysql', '-h', connection.host, '-P', str(connection.port or 3306)]
        if details.user:
            args.extend(('-u', details.user))
        if details.database:
            args.append(details.database)
        if secret:
            env['MYSQL_PWD'] = secret
    elif engine == MONGODB:
        args = ['mongosh', f'mongodb://{connection.host}:{connection.port or 27017}/{details.database}']
        if details.user:
            args.extend(('--username', details.user))
            if secret:
                logging.info('mongosh will ask for the password')
    elif engine == REDIS:
        args = ['redis-cli', '-h', connection.host, '-p', str(connection.port or 6379)]
        if details.database and details.database.isdigit():
            args.extend(('-n', details.database))
        if details.user:
            args.extend(('--user', details.user))
        if secret:
            env['REDISCLI_AUTH'] = secret
    else:
        raise CommandError('db', f'Unsupported database engine "{engine}"')
    return args, env


def run_native_client(args, env=None):    # type: (List[str], Dict[str, str]) -> int
    program = args[0]
    if not shutil.which(program):
        raise CommandError('', f'"{program}" not found. Please install it first.')
    child_env = dict(os.environ)
    if env:
        child_env.update(env)
    logging.debug('Executing "%s" ...', program)
    completed = subprocess.run(args, env=child_env)
    if completed.returncode != 0:
        logging.warning('%s exited with code %d', program, completed.returncode)
    return completed.returncode


class ConnectSshCommand(Command, ConnectionMixin):
    def get_parser(self):
        return ssh_parser

    def execute(self, params, **kwargs):    # type: (LebuParams, ...) -> Any
        connection = self.resolve_connection(params, kwargs.get('name'), 'ssh', kinds=[SHELL])
        params.registry.touch_last_used(connection.name)
        logging.info('Connecting to %s ...', connection.name)
        run_native_client(build_ssh_command(connection, kwargs.get('command')))


class ConnectDatabaseCommand(Command, ConnectionMixin):
    def get_parser(self):
        return db_parser

    def execute(self, params, **kwargs):    # type: (LebuParams, ...) -> Any
        connection = self.resolve_connection(params, kwargs.get('name'), 'db', kinds=[DATABASE], with_secret=True)
        args, env = build_database_command(connection)
        params.registry.touch_last_used(connection.name)
        logging.info('Connecting to %s ...', connection.name)
        run_native_client(args, env)


def connect_sftp(params, connection):    # type: (LebuParams, Connection) -> None
    if connection.kind not in (SHELL, FILESYSTEM):
        raise CommandError('sftp', f'"{connection.name}" is not an SSH or SFTP connection')
    params.registry.touch_last_used(connection.name)
    logging.info('Connecting to %s via SFTP ...', connection.name)
    run_native_client(build_sftp_command(connection))
