#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import datetime
import re
import uuid
from typing import Optional, Iterable, Union, Dict, Any

from .vault import get_password_key

SHELL = 'shell'
DATABASE = 'database'
FILESYSTEM = 'filesystem'
CONNECTION_KINDS = (SHELL, DATABASE, FILESYSTEM)

POSTGRES = 'postgres'
MYSQL = 'mysql'
MONGODB = 'mongodb'
REDIS = 'redis'
DATABASE_ENGINES = (POSTGRES, MYSQL, MONGODB, REDIS)

AUTH_KEY = 'key'
AUTH_PASSWORD = 'password'
AUTH_METHODS = (AUTH_KEY, AUTH_PASSWORD)

DEFAULT_PORTS = {
    SHELL: 22,
    FILESYSTEM: 22,
    POSTGRES: 5432,
    MYSQL: 3306,
    MONGODB: 27017,
    REDIS: 6379,
}

CONNECTION_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


def sanitize_str_field_value(value):    # type: (Any) -> str
    if not isinstance(value, str):
        value = str(value) if value else ''
    return value


def sanitize_int_field_value(value, *, default=0):    # type: (Any, Optional[int]) -> Optional[int]
    if not isinstance(value, int) or isinstance(value, bool):
        try:
            value = int(value)
        except (TypeError, ValueError):
            value = default
    return value


def sanitize_bool_field_value(value):    # type: (Any) -> bool
    if not isinstance(value, bool):
        if isinstance(value, int):
            value = value != 0
        else:
            value = False
    return value


def utc_now():    # type: () -> str
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec='seconds')


def is_valid_connection_name(name):    # type: (str) -> bool
    return isinstance(name, str) and CONNECTION_NAME_PATTERN.match(name) is not None


def get_default_port(kind, engine=None):    # type: (str, Optional[str]) -> int
    if kind == DATABASE:
        return DEFAULT_PORTS.get(engine or '', 0)
    return DEFAULT_PORTS.get(kind, 0)


class RemoteLoginDetails:
    """Payload of shell and filesystem connections"""
    def __init__(self, user='', auth_method=AUTH_KEY, key_path=None, auto_accept_fingerprint=False):
        self.user = user
        self.auth_method = auth_method
        self.key_path = key_path              # type: Optional[str]
        self.auto_accept_fingerprint = auto_accept_fingerprint

    def load(self, data):    # type: (dict) -> None
        self.user = sanitize_str_field_value(data.get('user'))
        auth_method = data.get('auth_method')
        self.auth_method = auth_method if auth_method in AUTH_METHODS else AUTH_KEY
        self.key_path = data.get('key_path') or None
        self.auto_accept_fingerprint = sanitize_bool_field_value(data.get('auto_accept_fingerprint'))

    def dump(self, data):    # type: (dict) -> None
        data['user'] = self.user
        data['auth_method'] = self.auth_method
        data['key_path'] = self.key_path
        data['auto_accept_fingerprint'] = self.auto_accept_fingerprint


class DatabaseDetails:
    """Payload of database connections"""
    def __init__(self, engine=POSTGRES, user='', database=''):
        self.engine = engine
        self.user = user
        self.database = database

    def load(self, data):    # type: (dict) -> None
        self.engine = sanitize_str_field_value(data.get('engine'))
        self.user = sanitize_str_field_value(data.get('user'))
        self.database = sanitize_str_field_value(data.get('database'))

    def dump(self, data):    # type: (dict) -> None
        data['engine'] = self.engine
        data['user'] = self.user
        data['database'] = self.database


ConnectionDetails = Union[RemoteLoginDetails, DatabaseDetails]


class Connection:
    """A stored endpoint.

    One record shape for every kind: ``kind`` selects the payload type held in
    ``details``. ``secret`` is transient and never part of ``dump()``.
    """
    def __init__(self, kind=SHELL, details=None):    # type: (str, Optional[ConnectionDetails]) -> None
        self.id = ''
        self.name = ''
        self.kind = kind
        self.host = ''
        self.port = 0
        self.tags = set()                  # type: set
        self.created_at = ''
        self.last_used_at = None           # type: Optional[str]
        self.has_secret = False
        self.details = details if details is not None else Connection.create_details(kind)
        self.secret = None                 # type: Optional[str]

    @staticmethod
    def create_details(kind):    # type: (str) -> ConnectionDetails
        if kind == DATABASE:
            return DatabaseDetails()
        return RemoteLoginDetails()

    @classmethod
    def new(cls, kind, name, host, port=None, details=None, tags=None):
        # type: (str, str, str, Optional[int], Optional[ConnectionDetails], Optional[Iterable[str]]) -> Connection
        if kind not in CONNECTION_KINDS:
            raise ValueError(f'Unsupported connection kind "{kind}"')
        connection = cls(kind, details)
        connection.id = uuid.uuid4().hex
        connection.name = name
        connection.host = host
        if not port:
            engine = connection.details.engine if isinstance(connection.details, DatabaseDetails) else None
            port = get_default_port(kind, engine)
        connection.port = port
        if tags:
            connection.tags = {x.strip() for x in tags if x and x.strip()}
        connection.created_at = utc_now()
        return connection

    @property
    def user(self):    # type: () -> str
        return self.details.user

    @property
    def engine(self):    # type: () -> Optional[str]
        if isinstance(self.details, DatabaseDetails):
            return self.details.engine

    @property
    def secret_key(self):    # type: () -> Optional[str]
        if self.has_secret:
            return get_password_key(self.id)

    @classmethod
    def load(cls, data):    # type: (Dict[str, Any]) -> Connection
        kind = data.get('kind')
        if kind not in CONNECTION_KINDS:
            raise ValueError(f'Unsupported connection kind "{kind}"')
        connection = cls(kind)
        connection.id = sanitize_str_field_value(data.get('id'))
        connection.name = sanitize_str_field_value(data.get('name'))
        connection.host = sanitize_str_field_value(data.get('host'))
        connection.port = sanitize_int_field_value(data.get('port'), default=0)
        tags = data.get('tags')
        if isinstance(tags, list):
            connection.tags = {x for x in tags if isinstance(x, str) and x}
        connection.created_at = sanitize_str_field_value(data.get('created_at'))
        connection.last_used_at = data.get('last_used_at') or None
        connection.has_secret = sanitize_bool_field_value(data.get('has_secret'))
        connection.details.load(data)
        return connection

    def dump(self):    # type: () -> Dict[str, Any]
        data = {
            'id': self.id,
            'name': self.name,
            'kind': self.kind,
            'host': self.host,
            'port': self.port,
            'tags': sorted(self.tags),
            'created_at': self.created_at,
            'last_used_at': self.last_used_at,
        }
        self.details.dump(data)
        data['has_secret'] = self.has_secret
        return data

    @property
    def endpoint(self):    # type: () -> str
        user = self.details.user
        host = f'{self.host}:{self.port}' if self.port else self.host
        return f'{user}@{host}' if user else host

    def __repr__(self):
        return f'Connection(name={self.name!r}, kind={self.kind!r}, endpoint={self.endpoint!r})'
