#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import importlib
import logging
from types import ModuleType
from typing import Optional

from .base import ResourceAdapter, ResourceInfo, QueryResult, DEFAULT_SAMPLE_LIMIT, MAX_QUERY_ROWS
from ..connection import Connection, DATABASE
from ..error import CommandError

ENGINE_MODULES = {
    'postgres': 'postgresql',
    'mysql': 'mysql',
    'mongodb': 'mongodb',
    'redis': 'redis',
}

ENGINE_PACKAGES = {
    'psycopg2': 'psycopg2-binary',
    'pymysql': 'pymysql',
    'pymongo': 'pymongo',
    'redis': 'redis',
}


def load_adapter_module(engine):    # type: (str) -> ModuleType
    module_name = ENGINE_MODULES.get(engine)
    if not module_name:
        raise CommandError('', f'Unsupported database engine "{engine}"')
    full_name = f'lebu.adapters.{module_name}'
    logging.debug('Importing %s', full_name)
    try:
        return importlib.import_module(full_name)
    except ModuleNotFoundError as e:
        package = ENGINE_PACKAGES.get((e.name or '').split('.')[0], e.name)
        raise CommandError('', f'The required module is not installed:\n\tpip install {package}') from e


def create_adapter(connection, secret=None):    # type: (Connection, Optional[str]) -> ResourceAdapter
    if connection.kind != DATABASE:
        raise CommandError('', f'Connection "{connection.name}" is not a database connection')
    module = load_adapter_module(connection.engine or '')
    adapter_class = getattr(module, 'Adapter', None)
    if adapter_class is None or not issubclass(adapter_class, ResourceAdapter):
        raise CommandError('', f'Invalid adapter for engine "{connection.engine}"')
    if secret is None:
        secret = connection.secret
    return adapter_class(connection.host, connection.port, connection.details.user, secret,
                         connection.details.database)
