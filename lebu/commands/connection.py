#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import argparse
import getpass
import logging
import os
import time
from typing import Optional, List, Tuple, Any

from .base import (Command, ConnectionMixin, dump_report_data, field_to_title, report_output_parser, user_choice,
                   prompt_input, choose_option)
from ..connection import (Connection, RemoteLoginDetails, DatabaseDetails, CONNECTION_KINDS, DATABASE_ENGINES,
                          SHELL, DATABASE, FILESYSTEM, POSTGRES, MYSQL, MONGODB, REDIS, AUTH_KEY, AUTH_PASSWORD,
                          AUTH_METHODS, get_default_port, is_valid_connection_name)
from ..display import format_relative_time
from ..error import CommandError, NotFoundError
from ..params import LebuParams


def register_commands(commands):
    commands['add'] = ConnectionAddCommand()
    commands['list'] = ConnectionListCommand()
    commands['remove'] = ConnectionRemoveCommand()


def register_command_info(aliases, command_info):
    aliases['ls'] = 'list'
    aliases['rm'] = 'remove'
    for p in [add_parser, list_parser, remove_parser]:
        command_info[p.prog] = p.description


add_parser = argparse.ArgumentParser(prog='add', description='Add a new connection')
add_parser.add_argument('--kind', dest='kind', action='store', choices=CONNECTION_KINDS, help='connection kind')
add_parser.add_argument('--host', dest='host', action='store', help='host name or IP address')
add_parser.add_argument('--port', dest='port', action='store', type=int, help='port number')
add_parser.add_argument('--user', dest='user', action='store', help='login name')
add_parser.add_argument('--engine', dest='engine', action='store', choices=DATABASE_ENGINES,
                        help='database engine. database connections only')
add_parser.add_argument('--database', dest='database', action='store', help='database name. database connections only')
add_parser.add_argument('--auth', dest='auth_method', action='store', choices=AUTH_METHODS,
                        help='authentication method. shell and filesystem connections only')
add_parser.add_argument('--key-path', dest='key_path', action='store', help='path to SSH private key file')
add_parser.add_argument('--auto-accept', dest='auto_accept', action='store_true',
                        help='accept unknown host fingerprint on first connect')
add_parser.add_argument('--tags', dest='tags', action='store', help='comma separated tags')
add_parser.add_argument('name', nargs='?', type=str, action='store', help='connection name')

list_parser = argparse.ArgumentParser(prog='list', description='Display stored connections', parents=[report_output_parser])
list_parser.add_argument('--kind', dest='kind', action='store', choices=CONNECTION_KINDS, help='filter by kind')
list_parser.add_argument('--tag', dest='tag', action='store', help='filter by tag')

remove_parser = argparse.ArgumentParser(prog='remove', description='Remove a stored connection')
remove_parser.add_argument('-f', '--force', dest='force', action='store_true', help='do not prompt for confirmation')
remove_parser.add_argument('name', nargs='?', type=str, action='store', help='connection name')


KIND_TITLES = {
    SHELL: 'SSH',
    DATABASE: 'Database',
    FILESYSTEM: 'SFTP',
}

ENGINE_TITLES = {
    POSTGRES: 'PostgreSQL',
    MYSQL: 'MySQL',
    MONGODB: 'MongoDB',
    REDIS: 'Redis',
}

SSH_DIR = os.path.join('~', '.ssh')
NOT_KEY_FILES = {'known_hosts', 'known_hosts.old', 'config', 'authorized_keys'}


def parse_tags(text):    # type: (Optional[str]) -> List[str]
    return [x.strip() for x in (text or '').split(',') if x.strip()]


def is_private_key_name(name):    # type: (str) -> bool
    if not name or name.endswith('.pub') or name in NOT_KEY_FILES:
        return False
    return name.startswith('id_') or 'key' in name or '.' not in name


def find_private_keys(ssh_dir=SSH_DIR):    # type: (str) -> List[str]
    ssh_dir = os.path.expanduser(ssh_dir)
    if not os.path.isdir(ssh_dir):
        return []
    try:
        names = sorted(os.listdir(ssh_dir))
    except OSError as e:
        logging.debug('Cannot read %s: %s', ssh_dir, e)
        return []
    return [os.path.join(ssh_dir, x) for x in names
            if is_private_key_name(x) and os.path.isfile(os.path.join(ssh_dir, x))]


def save_private_key(key_material, ssh_dir=SSH_DIR):    # type: (str, str) -> str
    ssh_dir = os.path.expanduser(ssh_dir)
    if not os.path.isdir(ssh_dir):
        os.makedirs(ssh_dir, mode=0o700, exist_ok=True)
    key_path = os.path.join(ssh_dir, f'lebu_key_{int(time.time() * 1000)}')
    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, 'w') as f:
        f.write(key_material.strip() + '\n')
    os.chmod(key_path, 0o600)
    return key_path


def read_multiline_input():    # type: () -> str
    lines = []
    while True:
        try:
            line = input()
        except EOFError:
            break
        if not line:
            if lines:
                break
            continue
        lines.append(line)
    return '\n'.join(lines)


class ConnectionAddCommand(Command):
    def get_parser(self):
        return add_parser

    def execute(self, params, **kwargs):    # type: (LebuParams, ...) -> Any
        interactive = not params.batch_mode
        registry = params.registry

        kind = kwargs.get('kind')
        if not kind:
            if not interactive:
                raise CommandError('add', '"--kind" parameter is required')
            kind = choose_option('Connection type:', [(x, KIND_TITLES[x]) for x in CONNECTION_KINDS], SHELL)

        name = kwargs.get('name') or ''
        if not name and interactive:
            name = prompt_input('Connection name', required=True)
        if not name:
            raise CommandError('add', 'Connection name is required')
        if not is_valid_connection_name(name):
            raise CommandError('add', f'Invalid connection name "{name}". '
                                      'Use only letters, numbers, dashes and underscores')
        if registry.find(name):
            raise CommandError('add', f'Connection with name "{name}" already exists')

        host = kwargs.get('host') or ''
        if not host and interactive:
            host = prompt_input('Host', required=True)
        if not host:
            raise CommandError('add', '"--host" parameter is required')

        if kind == DATABASE:
            details, port, secret = self.get_database_details(interactive, **kwargs)
        else:
            details, port, secret = self.get_remote_login_details(interactive, **kwargs)

        tags = kwargs.get('tags')
        if tags is None and interactive:
            tags = prompt_input('Tags (comma separated, optional)')

        connection = Connection.new(kind, name, host, port=port, details=details, tags=parse_tags(tags))
        registry.save(connection, secret)
        if secret:
            logging.info('Connection "%s" saved. Password is stored in the system key store.', name)
        else:
            logging.info('Connection "%s" saved.', name)

    @staticmethod
    def get_port(interactive, default_port, port=None):    # type: (bool, int, Optional[int]) -> int
        if port:
            return port
        if interactive:
            answer = prompt_input('Port', str(default_port))
            try:
                return int(answer)
            except ValueError:
                logging.warning('Invalid port "%s". Using %d', answer, default_port)
        return default_port

    def get_database_details(self, interactive, **kwargs):
        # type: (bool, ...) -> Tuple[DatabaseDetails, int, Optional[str]]
        engine = kwargs.get('engine')
        if not engine:
            if not interactive:
                raise CommandError('add', '"--engine" parameter is required')
            engine = choose_option('Database type:', [(x, ENGINE_TITLES[x]) for x in DATABASE_ENGINES], POSTGRES)
        port = self.get_port(interactive, get_default_port(DATABASE, engine), kwargs.get('port'))

        user = kwargs.get('user')
        if user is None and interactive:
            user = prompt_input('Username', required=engine != REDIS)
        secret = None
        if interactive:
            secret = getpass.getpass(prompt='Password: ', stream=None) or None
        database = kwargs.get('database')
        if database is None and interactive:
            database = prompt_input('Database name', '0' if engine == REDIS else '', required=engine != REDIS)
        return DatabaseDetails(engine, user or '', database or ''), port, secret

    def get_remote_login_details(self, interactive, **kwargs):
        # type: (bool, ...) -> Tuple[RemoteLoginDetails, int, Optional[str]]
        user = kwargs.get('user')
        if not user and interactive:
            user = prompt_input('Username', required=True)
        if not user:
            raise CommandError('add', '"--user" parameter is required')
        port = self.get_port(interactive, get_default_port(SHELL), kwargs.get('port'))

        key_path = kwargs.get('key_path')
        auth_method = kwargs.get('auth_method') or (AUTH_KEY if key_path or not interactive else None)
        if not auth_method:
            auth_method = choose_option('Authentication method:', [(AUTH_KEY, 'SSH Key'), (AUTH_PASSWORD, 'Password')],
                                        AUTH_KEY)

        secret = None
        if auth_method == AUTH_KEY:
            if key_path:
                if not os.path.isfile(os.path.expanduser(key_path)):
                    raise CommandError('add', f'File not found: {key_path}')
            elif interactive:
                key_path = self.select_private_key()
        elif interactive:
            secret = getpass.getpass(prompt='Password: ', stream=None) or None

        auto_accept = kwargs.get('auto_accept') is True
        if not auto_accept and interactive:
            answer = user_choice('Auto-accept host fingerprint on first connect?', 'yn', 'y')
            auto_accept = answer.lower() == 'y'

        return RemoteLoginDetails(user, auth_method, key_path, auto_accept), port, secret

    @staticmethod
    def select_private_key():    # type: () -> Optional[str]
        available_keys = find_private_keys()
        methods = []
        if available_keys:
            methods.append(('select', f'Select from {SSH_DIR}'))
        methods.append(('path', 'Enter file path'))
        methods.append(('paste', 'Paste key content'))
        method = choose_option('How would you like to provide the SSH key?', methods, methods[0][0])

        if method == 'select':
            return choose_option('Select SSH key:', [(x, x) for x in available_keys], available_keys[0])

        if method == 'path':
            while True:
                key_path = prompt_input('SSH Key path', os.path.join(SSH_DIR, 'id_rsa'))
                if os.path.isfile(os.path.expanduser(key_path)):
                    return key_path
                logging.error('File not found: %s', key_path)

        while True:
            print('Paste your private key below. Press Enter on an empty line when done:')
            key_material = read_multiline_input()
            if 'PRIVATE KEY' in key_material:
                key_path = save_private_key(key_material)
                logging.info('Key saved to %s', key_path)
                return key_path
            logging.error('This does not look like a valid private key')


class ConnectionListCommand(Command):
    def get_parser(self):
        return list_parser

    def execute(self, params, **kwargs):    # type: (LebuParams, ...) -> Any
        connections = params.registry.list(kind=kwargs.get('kind'), tag=kwargs.get('tag'))
        fmt = kwargs.get('format') or 'table'
        if len(connections) == 0:
            if fmt == 'json':
                return '[]'
            logging.info('No connections found.')
            return

        connections.sort(key=lambda x: x.name.lower())
        headers = ['name', 'kind', 'host', 'port', 'user', 'tags', 'last_used']
        table = []
        for connection in connections:
            kind = KIND_TITLES.get(connection.kind, connection.kind)
            if connection.engine:
                kind = f'{kind} ({ENGINE_TITLES.get(connection.engine, connection.engine)})'
            tags = sorted(connection.tags)
            if fmt == 'table':
                last_used = format_relative_time(connection.last_used_at)
                tags = ', '.join(tags) or '-'
            else:
                last_used = connection.last_used_at
            table.append([connection.name, kind, connection.host, connection.port, connection.user or '-', tags,
                          last_used])

        if fmt == 'table':
            headers = [field_to_title(x) for x in headers]
        title = f'Connections ({len(connections)} total)' if fmt == 'table' else None
        return dump_report_data(table, headers, title=title, fmt=fmt, filename=kwargs.get('output'))


class ConnectionRemoveCommand(Command, ConnectionMixin):
    def get_parser(self):
        return remove_parser

    def execute(self, params, **kwargs):    # type: (LebuParams, ...) -> Any
        name = kwargs.get('name')
        if not name:
            if params.batch_mode:
                raise CommandError('remove', 'Connection name is required')
            connections = params.registry.list()
            if not connections:
                logging.info('No connections to delete.')
                return
            options = [(x.name, f'{x.name:<20} {x.kind:<10} {x.host}') for x in connections]
            options.append(('', 'Back'))
            name = choose_option('Select connection to delete:', options)
            if not name:
                return

        connection = self.resolve_connection(params, name, 'remove')
        if not kwargs.get('force'):
            answer = user_choice(f'Delete connection "{name}" ({connection.kind} - {connection.host})?', 'yn', 'n')
            if answer.lower() != 'y':
                logging.info('Cancelled.')
                return

        if not params.registry.delete(name):
            raise NotFoundError(f'Connection "{name}" not found')
        if connection.has_secret:
            logging.info('Connection "%s" deleted. Password is removed from the system key store.', name)
        else:
            logging.info('Connection "%s" deleted.', name)
