# -*- coding: utf-8 -*-
#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""MySQL resource adapter
   Dependencies:
       pip3 install pymysql
"""

import logging
from typing import Optional

import pymysql

from .base import SqlAdapter, ResourceInfo, QueryResult, MAX_QUERY_ROWS
from ..error import NotFoundError, QueryError

ER_NO_SUCH_TABLE = 1146


class MySqlAdapter(SqlAdapter):
    engine = 'mysql'

    def __init__(self, host, port=3306, user='', password=None, database='', connect_timeout=10):
        super().__init__(host, port, user, password, database)
        self.connect_timeout = connect_timeout
        self._connection = None    # type: Optional[pymysql.connections.Connection]

    def _connect(self):
        self._connection = pymysql.connect(host=self.host, port=self.port, user=self.user,
                                           password=self.password or '', database=self.database or None,
                                           connect_timeout=self.connect_timeout)
        with self._connection.cursor() as cursor:
            cursor.execute('SET SESSION TRANSACTION READ ONLY')
        logging.debug('Connected to MySQL %s/%s', self.endpoint, self.database)

    def _disconnect(self):
        if self._connection is not None:
            connection = self._connection
            self._connection = None
            connection.close()

    def _execute(self, sql, args=None, max_rows=None):
        try:
            with self._connection.cursor() as cursor:
                affected = cursor.execute(sql, args)
                if max_rows is None:
                    records = cursor.fetchall()
                else:
                    records = cursor.fetchmany(max_rows)
                return QueryResult.from_cursor(cursor.description, records, affected)
        except pymysql.err.ProgrammingError as e:
            if e.args and e.args[0] == ER_NO_SUCH_TABLE:
                raise NotFoundError(str(e.args[1]) if len(e.args) > 1 else str(e)) from e
            raise QueryError(str(e)) from e
        except pymysql.err.MySQLError as e:
            raise QueryError(str(e)) from e

    def _list_resources(self):
        result = self._execute('SHOW FULL TABLES')
        resources = []
        for row in result.rows:
            values = list(row.values())
            if not values:
                continue
            table_type = values[1] if len(values) > 1 else ''
            kind = 'view' if isinstance(table_type, str) and table_type.lower() == 'view' else 'table'
            resources.append(ResourceInfo(values[0], kind))
        return resources

    def _fetch_sample(self, resource, limit):
        safe_name = self.safe_table_name(resource)
        return self._execute(f'SELECT * FROM `{safe_name}` LIMIT %s', (limit,))

    def _run_query(self, text):
        query = self.check_select(text)
        return self._execute(query, max_rows=MAX_QUERY_ROWS)


Adapter = MySqlAdapter
