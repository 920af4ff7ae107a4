#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import abc
import logging
import re
from typing import List, Dict, Any, Optional, Iterable

from ..error import NotConnectedError, ConnectError, NotFoundError, UnsupportedQueryError

DEFAULT_SAMPLE_LIMIT = 50
MAX_QUERY_ROWS = 100

UNCONNECTED = 'unconnected'
CONNECTED = 'connected'
DISCONNECTED = 'disconnected'

IDENTIFIER_PATTERN = re.compile(r'[^A-Za-z0-9_]')


def sanitize_identifier(name):    # type: (str) -> str
    """Strips every character outside [A-Za-z0-9_]"""
    return IDENTIFIER_PATTERN.sub('', name or '')


def check_limit(limit):    # type: (Any) -> int
    limit = int(limit)
    if limit < 1:
        raise ValueError(f'Row limit should be a positive number: {limit}')
    return limit


class ResourceInfo:
    def __init__(self, name, kind):    # type: (str, str) -> None
        self.name = name
        self.kind = kind

    def __eq__(self, other):
        if isinstance(other, ResourceInfo):
            return self.name == other.name and self.kind == other.kind
        return NotImplemented

    def __repr__(self):
        return f'ResourceInfo({self.name!r}, {self.kind!r})'


class QueryResult:
    """Tabular result.

    ``row_count`` is the number of rows the backend reports as matching and may
    be larger than ``len(rows)`` when the result was capped.
    """
    def __init__(self, columns=None, rows=None, row_count=None):
        # type: (Optional[List[str]], Optional[List[Dict[str, Any]]], Optional[int]) -> None
        self.columns = list(columns or [])
        self.rows = list(rows or [])
        self.row_count = len(self.rows) if row_count is None else row_count

    @property
    def truncated(self):    # type: () -> bool
        return self.row_count > len(self.rows)

    @classmethod
    def from_cursor(cls, description, records, row_count=None):
        # type: (Optional[Iterable], Iterable[Iterable[Any]], Optional[int]) -> QueryResult
        columns = [x[0] for x in description or []]
        rows = [dict(zip(columns, record)) for record in records]
        if row_count is None or row_count < 0:
            row_count = len(rows)
        return cls(columns, rows, row_count)

    @classmethod
    def from_documents(cls, documents, row_count=None, empty_columns=None):
        # type: (Iterable[Dict[str, Any]], Optional[int], Optional[List[str]]) -> QueryResult
        documents = list(documents)
        columns = []      # type: List[str]
        seen = set()
        for document in documents:
            for key in document:
                if key not in seen:
                    seen.add(key)
                    columns.append(key)
        if not documents and empty_columns:
            columns = list(empty_columns)
        rows = [{column: document.get(column) for column in columns} for document in documents]
        return cls(columns, rows, len(rows) if row_count is None else row_count)


class ResourceAdapter(abc.ABC):
    """Uniform read-only access to a database backend.

    ``connect()`` must succeed before any other call. The session moves from
    unconnected to connected to disconnected and is never reopened.
    """
    engine = ''

    def __init__(self, host, port, user, password, database):
        # type: (str, int, str, Optional[str], str) -> None
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self._state = UNCONNECTED

    @property
    def state(self):    # type: () -> str
        return self._state

    @property
    def is_connected(self):    # type: () -> bool
        return self._state == CONNECTED

    @property
    def endpoint(self):    # type: () -> str
        return f'{self.host}:{self.port}'

    def connect(self):    # type: () -> None
        if self._state != UNCONNECTED:
            raise NotConnectedError(f'{self.engine} session to {self.endpoint} cannot be reopened')
        logging.debug('%s: connecting to %s', self.engine, self.endpoint)
        try:
            self._connect()
        except ConnectError:
            self._state = DISCONNECTED
            raise
        except KeyboardInterrupt:
            self._state = DISCONNECTED
            self._safe_disconnect()
            raise
        except Exception as e:
            self._state = DISCONNECTED
            self._safe_disconnect()
            raise ConnectError(self.endpoint, str(e) or type(e).__name__) from e
        self._state = CONNECTED

    def disconnect(self):    # type: () -> None
        if self._state == DISCONNECTED:
            return
        was_connected = self._state == CONNECTED
        self._state = DISCONNECTED
        if was_connected:
            try:
                self._disconnect()
            finally:
                logging.debug('%s: disconnected from %s', self.engine, self.endpoint)

    def _safe_disconnect(self):
        try:
            self._disconnect()
        except Exception as e:
            logging.debug('%s: error releasing session: %s', self.engine, e)

    def ensure_connected(self):
        if self._state != CONNECTED:
            raise NotConnectedError(f'{self.engine} adapter is {self._state}')

    def list_resources(self):    # type: () -> List[ResourceInfo]
        self.ensure_connected()
        return self._list_resources()

    def fetch_sample(self, resource, limit=DEFAULT_SAMPLE_LIMIT):    # type: (str, int) -> QueryResult
        self.ensure_connected()
        limit = check_limit(limit)
        result = self._fetch_sample(resource, limit)
        if len(result.rows) > limit:
            result.rows = result.rows[:limit]
        return result

    def run_query(self, text):    # type: (str) -> QueryResult
        self.ensure_connected()
        result = self._run_query(text or '')
        if len(result.rows) > MAX_QUERY_ROWS:
            result.rows = result.rows[:MAX_QUERY_ROWS]
        return result

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    @abc.abstractmethod
    def _connect(self):    # type: () -> None
        pass

    @abc.abstractmethod
    def _disconnect(self):    # type: () -> None
        pass

    @abc.abstractmethod
    def _list_resources(self):    # type: () -> List[ResourceInfo]
        pass

    @abc.abstractmethod
    def _fetch_sample(self, resource, limit):    # type: (str, int) -> QueryResult
        pass

    @abc.abstractmethod
    def _run_query(self, text):    # type: (str) -> QueryResult
        pass


class SqlAdapter(ResourceAdapter, abc.ABC):
    """Shared allow-list and identifier handling of relational backends"""

    @staticmethod
    def check_select(text):    # type: (str) -> str
        query = (text or '').strip()
        if not query.upper().startswith('SELECT'):
            raise UnsupportedQueryError('Only SELECT queries are allowed')
        return query

    @staticmethod
    def safe_table_name(resource):    # type: (str) -> str
        safe_name = sanitize_identifier(resource)
        if not safe_name:
            raise NotFoundError(f'Invalid table name "{resource}"')
        return safe_name
