from lebu.connection import (Connection, DatabaseDetails, RemoteLoginDetails, SHELL, DATABASE, FILESYSTEM,
                             POSTGRES, AUTH_KEY, AUTH_PASSWORD)
from lebu.params import LebuParams
from lebu.storage.in_memory import InMemoryConnectionStorage, InMemorySecretStorage


class ConnectionEnvironment:
    def __init__(self):
        self.db_password = 'db-password'
        self.ssh_password = 'ssh-password'


def get_database_connection(name='pg', engine=POSTGRES, host='db.local', port=None, user='admin', database='app',
                            tags=None):
    # type: (str, str, str, int, str, str, list) -> Connection
    details = DatabaseDetails(engine, user, database)
    return Connection.new(DATABASE, name, host, port=port, details=details, tags=tags)


def get_shell_connection(name='web', host='web.local', port=None, user='deploy', auth_method=AUTH_KEY,
                         key_path=None, auto_accept=False, tags=None):
    # type: (str, str, int, str, str, str, bool, list) -> Connection
    details = RemoteLoginDetails(user, auth_method, key_path, auto_accept)
    return Connection.new(SHELL, name, host, port=port, details=details, tags=tags)


def get_filesystem_connection(name='files', host='files.local', user='deploy', password='ssh-password'):
    # type: (str, str, str, str) -> Connection
    details = RemoteLoginDetails(user, AUTH_PASSWORD if password else AUTH_KEY, None, True)
    connection = Connection.new(FILESYSTEM, name, host, details=details)
    connection.secret = password
    return connection


def get_params():    # type: () -> LebuParams
    params = LebuParams()
    params.set_storage(InMemoryConnectionStorage(), InMemorySecretStorage())
    return params


def get_populated_params():    # type: () -> LebuParams
    env = ConnectionEnvironment()
    params = get_params()
    registry = params.registry
    registry.save(get_database_connection(tags=['prod']), env.db_password)
    registry.save(get_shell_connection(tags=['prod', 'web']))
    registry.save(get_filesystem_connection(password=env.ssh_password))
    return params
