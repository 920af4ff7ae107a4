# -*- coding: utf-8 -*-
#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""Redis resource adapter
   Dependencies:
       pip3 install redis

   Redis has no tables. Resources are key prefixes (text before the first ":")
   collected from a bounded scan of the key space, so the list is an
   approximation on large databases.
"""

import itertools
import json
import logging
from typing import Optional

import redis

from .base import ResourceAdapter, ResourceInfo, QueryResult, MAX_QUERY_ROWS
from ..error import UnsupportedQueryError, QueryError

PREFIX_SCAN_KEYS = 1000
COMPOSITE_PREVIEW = 10
QUERY_FORMAT_HELP = 'Supported commands: GET <key>, KEYS <pattern>'


def key_prefix(key):    # type: (str) -> str
    prefix, _, _ = key.partition(':')
    return prefix


def key_pattern(resource):    # type: (str) -> str
    return resource if '*' in resource else f'{resource}*'


def unique_keys(keys):
    """SCAN may report a key more than once"""
    seen = set()
    for key in keys:
        if key not in seen:
            seen.add(key)
            yield key


class RedisAdapter(ResourceAdapter):
    engine = 'redis'

    def __init__(self, host, port=6379, user='', password=None, database='0', timeout=10):
        super().__init__(host, port, user, password, database)
        self.timeout = timeout
        self._client = None    # type: Optional[redis.Redis]

    @property
    def db_index(self):    # type: () -> int
        database = str(self.database or '').strip()
        return int(database) if database.isdigit() else 0

    def _connect(self):
        self._client = redis.Redis(host=self.host, port=self.port, password=self.password or None, db=self.db_index,
                                   socket_connect_timeout=self.timeout, socket_timeout=self.timeout,
                                   decode_responses=True)
        self._client.ping()
        logging.debug('Connected to Redis %s/%d', self.endpoint, self.db_index)

    def _disconnect(self):
        if self._client is not None:
            client = self._client
            self._client = None
            client.close()

    def _list_resources(self):
        try:
            keys = itertools.islice(self._client.scan_iter(match='*', count=PREFIX_SCAN_KEYS), PREFIX_SCAN_KEYS)
            prefixes = {key_prefix(x) for x in keys}
        except redis.RedisError as e:
            raise QueryError(str(e)) from e
        return [ResourceInfo(x, 'key-prefix') for x in sorted(prefixes)]

    def read_value(self, key, key_type):
        if key_type == 'string':
            return self._client.get(key)
        if key_type == 'list':
            return self._client.lrange(key, 0, COMPOSITE_PREVIEW - 1)
        if key_type == 'set':
            return sorted(itertools.islice(self._client.sscan_iter(key), COMPOSITE_PREVIEW))
        if key_type == 'hash':
            return dict(itertools.islice(self._client.hscan_iter(key), COMPOSITE_PREVIEW))
        if key_type == 'zset':
            return [[member, score] for member, score in
                    self._client.zrange(key, 0, COMPOSITE_PREVIEW - 1, withscores=True)]
        return f'<{key_type}>'

    def _fetch_sample(self, resource, limit):
        rows = []
        try:
            keys = list(itertools.islice(unique_keys(self._client.scan_iter(match=key_pattern(resource))), limit))
            for key in keys:
                key_type = self._client.type(key)
                value = self.read_value(key, key_type)
                if isinstance(value, (list, dict)):
                    value = json.dumps(value)
                rows.append({'key': key, 'type': key_type, 'value': value})
        except redis.RedisError as e:
            raise QueryError(str(e)) from e
        return QueryResult(['key', 'type', 'value'], rows)

    def _run_query(self, text):
        parts = text.split()
        command = parts[0].upper() if parts else ''
        if len(parts) != 2 or command not in ('GET', 'KEYS'):
            raise UnsupportedQueryError(QUERY_FORMAT_HELP)
        argument = parts[1]
        try:
            if command == 'GET':
                value = self._client.get(argument)
                return QueryResult(['key', 'value'], [{'key': argument, 'value': value}], 1)
            keys = self._client.keys(argument)
        except redis.RedisError as e:
            raise QueryError(str(e)) from e
        return QueryResult(['key'], [{'key': x} for x in keys[:MAX_QUERY_ROWS]], len(keys))


Adapter = RedisAdapter
