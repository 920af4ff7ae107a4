# -*- coding: utf-8 -*-
#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""MongoDB resource adapter
   Dependencies:
       pip3 install pymongo

   Queries are limited to the shape: <collection>.find(<json object>)
"""

import json
import logging
import re
from typing import Tuple

import pymongo
import pymongo.errors

from .base import ResourceAdapter, ResourceInfo, QueryResult, MAX_QUERY_ROWS
from ..error import UnsupportedQueryError, QueryError

FIND_QUERY_PATTERN = re.compile(r'^(\w+)\.find\((\{.*\})?\)$', re.DOTALL)
QUERY_FORMAT_HELP = 'Query format: collectionName.find({}) or collectionName.find({"field": "value"})'
EMPTY_COLUMNS = ['_id']


def parse_find_query(text):    # type: (str) -> Tuple[str, dict]
    match = FIND_QUERY_PATTERN.match((text or '').strip())
    if not match:
        raise UnsupportedQueryError(QUERY_FORMAT_HELP)
    collection_name, filter_text = match.groups()
    if not filter_text:
        return collection_name, {}
    try:
        query_filter = json.loads(filter_text)
    except json.JSONDecodeError as e:
        raise UnsupportedQueryError(f'Malformed query filter: {e.msg}') from e
    if not isinstance(query_filter, dict):
        raise UnsupportedQueryError(QUERY_FORMAT_HELP)
    return collection_name, query_filter


class MongoAdapter(ResourceAdapter):
    engine = 'mongodb'

    def __init__(self, host, port=27017, user='', password=None, database='', timeout_ms=10000):
        super().__init__(host, port, user, password, database)
        self.timeout_ms = timeout_ms
        self._client = None
        self._db = None

    def _connect(self):
        kwargs = {
            'host': self.host,
            'port': self.port,
            'serverSelectionTimeoutMS': self.timeout_ms,
            'connectTimeoutMS': self.timeout_ms,
        }
        if self.password:
            kwargs['username'] = self.user
            kwargs['password'] = self.password
        self._client = pymongo.MongoClient(**kwargs)
        self._client.admin.command('ping')
        self._db = self._client[self.database]
        logging.debug('Connected to MongoDB %s/%s', self.endpoint, self.database)

    def _disconnect(self):
        self._db = None
        if self._client is not None:
            client = self._client
            self._client = None
            client.close()

    def _list_resources(self):
        try:
            collections = list(self._db.list_collections())
        except pymongo.errors.PyMongoError as e:
            raise QueryError(str(e)) from e
        resources = [ResourceInfo(x['name'], 'view' if x.get('type') == 'view' else 'collection')
                     for x in collections]
        resources.sort(key=lambda x: x.name)
        return resources

    def _fetch_sample(self, resource, limit):
        try:
            documents = list(self._db[resource].find({}).limit(limit))
        except pymongo.errors.InvalidName as e:
            raise UnsupportedQueryError(f'Invalid collection name "{resource}"') from e
        except pymongo.errors.PyMongoError as e:
            raise QueryError(str(e)) from e
        return QueryResult.from_documents(documents, empty_columns=EMPTY_COLUMNS)

    def _run_query(self, text):
        collection_name, query_filter = parse_find_query(text)
        collection = self._db[collection_name]
        try:
            documents = list(collection.find(query_filter).limit(MAX_QUERY_ROWS))
            if len(documents) < MAX_QUERY_ROWS:
                row_count = len(documents)
            else:
                row_count = collection.count_documents(query_filter)
        except pymongo.errors.PyMongoError as e:
            raise QueryError(str(e)) from e
        return QueryResult.from_documents(documents, row_count=row_count, empty_columns=EMPTY_COLUMNS)


Adapter = MongoAdapter
