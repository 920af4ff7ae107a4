# -*- coding: utf-8 -*-
#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""PostgreSQL resource adapter
   Dependencies:
       pip3 install psycopg2-binary
"""

import logging

import psycopg2
import psycopg2.errors

from .base import SqlAdapter, ResourceInfo, QueryResult, MAX_QUERY_ROWS
from ..error import NotFoundError, QueryError

LIST_TABLES_SQL = '''
SELECT tablename AS name, 'table' AS type FROM pg_tables WHERE schemaname = 'public'
UNION ALL
SELECT viewname AS name, 'view' AS type FROM pg_views WHERE schemaname = 'public'
ORDER BY name
'''


class PostgresAdapter(SqlAdapter):
    engine = 'postgres'

    def __init__(self, host, port=5432, user='', password=None, database='postgres', connect_timeout=10):
        super().__init__(host, port, user, password, database or 'postgres')
        self.connect_timeout = connect_timeout
        self._connection = None

    def _connect(self):
        self._connection = psycopg2.connect(host=self.host, port=self.port, user=self.user,
                                            password=self.password or None, dbname=self.database,
                                            connect_timeout=self.connect_timeout)
        self._connection.set_session(readonly=True, autocommit=True)
        logging.debug('Connected to PostgreSQL %s/%s', self.endpoint, self.database)

    def _disconnect(self):
        if self._connection is not None:
            connection = self._connection
            self._connection = None
            connection.close()

    def _execute(self, sql, args=None, max_rows=None):
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(sql, args)
                if max_rows is None:
                    records = cursor.fetchall()
                else:
                    records = cursor.fetchmany(max_rows)
                return QueryResult.from_cursor(cursor.description, records, cursor.rowcount)
        except psycopg2.errors.UndefinedTable as e:
            raise NotFoundError(str(e).strip()) from e
        except psycopg2.Error as e:
            raise QueryError(str(e).strip()) from e

    def _list_resources(self):
        result = self._execute(LIST_TABLES_SQL)
        return [ResourceInfo(x['name'], x['type']) for x in result.rows]

    def _fetch_sample(self, resource, limit):
        safe_name = self.safe_table_name(resource)
        return self._execute(f'SELECT * FROM "{safe_name}" LIMIT %s', (limit,))

    def _run_query(self, text):
        query = self.check_select(text)
        return self._execute(query, max_rows=MAX_QUERY_ROWS)


Adapter = PostgresAdapter
