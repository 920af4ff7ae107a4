#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""Database explore sessions.

   ``DatabaseExplorer.open`` resolves a stored connection, opens the backend
   adapter and guarantees the adapter is released on every exit path.
"""

import contextlib
import datetime
import json
import logging
from typing import Callable, Optional, Iterator, List, Any, Tuple

from .adapters import create_adapter, ResourceAdapter, ResourceInfo, QueryResult
from .adapters.base import check_limit, DEFAULT_SAMPLE_LIMIT, MAX_QUERY_ROWS
from .connection import Connection, DATABASE, MONGODB, REDIS
from .error import NotFoundError, CommandError
from .registry import ConnectionRegistry

MAX_DISPLAY_COLUMNS = 8
MAX_VALUE_LENGTH = 50
MAX_DISPLAY_ROWS = MAX_QUERY_ROWS

QUERY_PLACEHOLDERS = {
    MONGODB: 'collectionName.find({"field": "value"})',
    REDIS: 'KEYS * or GET keyname',
}
DEFAULT_QUERY_PLACEHOLDER = 'SELECT * FROM table_name LIMIT 10'

AdapterFactory = Callable[[Connection, Optional[str]], ResourceAdapter]


def query_placeholder(engine):    # type: (Optional[str]) -> str
    return QUERY_PLACEHOLDERS.get(engine or '', DEFAULT_QUERY_PLACEHOLDER)


def resource_label(engine):    # type: (Optional[str]) -> str
    if engine == MONGODB:
        return 'Collections'
    if engine == REDIS:
        return 'Key Prefixes'
    return 'Tables'


def value_to_text(value):    # type: (Any) -> str
    if value is None:
        return 'NULL'
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str)
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value)


def truncate_text(text, max_length=MAX_VALUE_LENGTH):    # type: (str, int) -> str
    if len(text) > max_length:
        return text[:max_length - 3] + '...'
    return text


def shape_result(result, max_columns=MAX_DISPLAY_COLUMNS, max_rows=MAX_DISPLAY_ROWS, max_length=MAX_VALUE_LENGTH):
    # type: (QueryResult, int, int, int) -> Tuple[List[str], List[List[str]], List[str]]
    """Limits a result to what fits on a terminal.

    Returns headers, rows of display strings and footer notes about
    omitted columns and rows.
    """
    columns = result.columns[:max_columns]
    table = []
    for row in result.rows[:max_rows]:
        table.append([truncate_text(value_to_text(row.get(x)), max_length) for x in columns])
    notes = []
    if len(result.columns) > max_columns:
        notes.append(f'... and {len(result.columns) - max_columns} more columns')
    if result.row_count > max_rows:
        notes.append(f'Showing first {max_rows} of {result.row_count} rows')
    return columns, table, notes


class ExploreSession:
    def __init__(self, connection, adapter, sample_limit=DEFAULT_SAMPLE_LIMIT):
        # type: (Connection, ResourceAdapter, int) -> None
        self.connection = connection
        self.adapter = adapter
        self.sample_limit = sample_limit

    @property
    def engine(self):    # type: () -> Optional[str]
        return self.connection.engine

    def list_resources(self):    # type: () -> List[ResourceInfo]
        return self.adapter.list_resources()

    def sample(self, resource, limit=None):    # type: (str, Any) -> QueryResult
        try:
            limit = check_limit(limit if limit is not None else self.sample_limit)
        except (TypeError, ValueError):
            logging.warning('Invalid row limit "%s". Using %d', limit, self.sample_limit)
            limit = self.sample_limit
        return self.adapter.fetch_sample(resource, limit)

    def query(self, text):    # type: (str) -> QueryResult
        return self.adapter.run_query(text)


class DatabaseExplorer:
    def __init__(self, registry, adapter_factory=None, sample_limit=DEFAULT_SAMPLE_LIMIT):
        # type: (ConnectionRegistry, Optional[AdapterFactory], int) -> None
        self.registry = registry
        self.adapter_factory = adapter_factory or create_adapter
        self.sample_limit = sample_limit

    @contextlib.contextmanager
    def open(self, name):    # type: (str) -> Iterator[ExploreSession]
        connection = self.registry.find_with_secret(name)
        if connection is None:
            raise NotFoundError(f'Connection "{name}" not found')
        if connection.kind != DATABASE:
            raise CommandError('explore', f'"{name}" is not a database connection')

        adapter = self.adapter_factory(connection, connection.secret)
        adapter.connect()
        try:
            logging.info('Connected to %s (%s)', name, connection.engine)
            self.registry.touch_last_used(name)
            yield ExploreSession(connection, adapter, self.sample_limit)
        finally:
            adapter.disconnect()
            logging.debug('Disconnected from %s', name)
