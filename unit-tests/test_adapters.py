from unittest import TestCase, mock

import psycopg2
import psycopg2.errors
import pymysql

from data_connections import get_database_connection, get_shell_connection
from helper import FakeAdapter
from lebu.adapters import create_adapter, load_adapter_module, QueryResult
from lebu.adapters.base import sanitize_identifier, check_limit, SqlAdapter, UNCONNECTED, CONNECTED, DISCONNECTED
from lebu.adapters.mongodb import parse_find_query, MongoAdapter
from lebu.adapters.mysql import MySqlAdapter
from lebu.adapters.postgresql import PostgresAdapter
from lebu.adapters.redis import RedisAdapter, key_prefix, key_pattern
from lebu.connection import MYSQL, MONGODB, REDIS
from lebu.error import (CommandError, ConnectError, NotConnectedError, NotFoundError, UnsupportedQueryError,
                        QueryError)


class TestAdapterBase(TestCase):
    def test_sanitize_identifier(self):
        self.assertEqual(sanitize_identifier('users'), 'users')
        self.assertEqual(sanitize_identifier('user_accounts2'), 'user_accounts2')
        cleaned = sanitize_identifier('users"; DROP TABLE users; --')
        self.assertEqual(cleaned, 'usersDROPTABLEusers')
        self.assertEqual(sanitize_identifier(cleaned), cleaned)
        self.assertEqual(sanitize_identifier('";--'), '')

    def test_check_select(self):
        self.assertEqual(SqlAdapter.check_select('  select * from users '), 'select * from users')
        for query in ('DELETE FROM users', 'UPDATE users SET a=1', 'DROP TABLE users', '', 'WITH x AS (SELECT 1)'):
            with self.assertRaises(UnsupportedQueryError):
                SqlAdapter.check_select(query)

    def test_safe_table_name(self):
        self.assertEqual(SqlAdapter.safe_table_name('my-table'), 'mytable')
        with self.assertRaises(NotFoundError):
            SqlAdapter.safe_table_name('--;')

    def test_check_limit(self):
        self.assertEqual(check_limit('25'), 25)
        for limit in (0, -1):
            with self.assertRaises(ValueError):
                check_limit(limit)
        with self.assertRaises(ValueError):
            check_limit('many')

    def test_from_documents(self):
        result = QueryResult.from_documents([{'a': 1}, {'b': 2}])
        self.assertEqual(result.columns, ['a', 'b'])
        self.assertEqual(result.rows, [{'a': 1, 'b': None}, {'a': None, 'b': 2}])
        self.assertEqual(result.row_count, 2)

        result = QueryResult.from_documents([], empty_columns=['_id'])
        self.assertEqual(result.columns, ['_id'])
        self.assertEqual(result.rows, [])

    def test_from_cursor(self):
        result = QueryResult.from_cursor([('id',), ('name',)], [(1, 'a'), (2, 'b')], -1)
        self.assertEqual(result.columns, ['id', 'name'])
        self.assertEqual(result.rows[1], {'id': 2, 'name': 'b'})
        self.assertEqual(result.row_count, 2)
        self.assertFalse(result.truncated)


class TestAdapterLifecycle(TestCase):
    def test_not_connected(self):
        adapter = FakeAdapter()
        self.assertEqual(adapter.state, UNCONNECTED)
        with self.assertRaises(NotConnectedError):
            adapter.list_resources()
        with self.assertRaises(NotConnectedError):
            adapter.run_query('SELECT 1')

    def test_connect_once(self):
        adapter = FakeAdapter()
        adapter.connect()
        self.assertEqual(adapter.state, CONNECTED)
        self.assertEqual(len(adapter.list_resources()), 2)

        adapter.disconnect()
        adapter.disconnect()
        self.assertEqual(adapter.state, DISCONNECTED)
        self.assertEqual(adapter.calls.count('disconnect'), 1)

        with self.assertRaises(NotConnectedError):
            adapter.connect()
        with self.assertRaises(NotConnectedError):
            adapter.fetch_sample('users')

    def test_connect_failure(self):
        adapter = FakeAdapter(fail_connect=OSError('Connection refused'))
        with self.assertRaises(ConnectError) as context:
            adapter.connect()
        self.assertIn('Connection refused', str(context.exception))
        self.assertEqual(adapter.state, DISCONNECTED)
        self.assertIn('disconnect', adapter.calls)

    def test_context_manager(self):
        with FakeAdapter() as adapter:
            self.assertTrue(adapter.is_connected)
        self.assertEqual(adapter.state, DISCONNECTED)

    def test_row_caps(self):
        with FakeAdapter() as adapter:
            result = adapter.fetch_sample('users', 50)
            self.assertEqual(len(result.rows), 50)
            self.assertIn(('sample', 'users', 50), adapter.calls)

            result = adapter.run_query('SELECT * FROM users')
            self.assertEqual(len(result.rows), 100)
            self.assertEqual(result.row_count, 200)
            self.assertTrue(result.truncated)

            with self.assertRaises(ValueError):
                adapter.fetch_sample('users', 0)


class TestPostgresAdapter(TestCase):
    def setUp(self):
        self.connect_mock = mock.patch('psycopg2.connect').start()
        self.cursor = mock.MagicMock()
        self.cursor.description = [('id',), ('name',)]
        self.cursor.fetchall.return_value = [(1, 'alice')]
        self.cursor.fetchmany.return_value = [(1, 'alice')]
        self.cursor.rowcount = 1
        self.connect_mock.return_value.cursor.return_value.__enter__.return_value = self.cursor

    def tearDown(self):
        mock.patch.stopall()

    def test_read_only_session(self):
        with PostgresAdapter('db.local', 5432, 'admin', 'pwd', 'app'):
            self.connect_mock.assert_called_once()
            kwargs = self.connect_mock.call_args[1]
            self.assertEqual(kwargs['dbname'], 'app')
            self.assertEqual(kwargs['password'], 'pwd')
            self.connect_mock.return_value.set_session.assert_called_with(readonly=True, autocommit=True)
        self.connect_mock.return_value.close.assert_called_once()

    def test_sample_uses_sanitized_name(self):
        with PostgresAdapter('db.local', 5432, 'admin', 'pwd', 'app') as adapter:
            result = adapter.fetch_sample('users"; DROP TABLE users', 10)
            self.cursor.execute.assert_called_with('SELECT * FROM "usersDROPTABLEusers" LIMIT %s', (10,))
            self.assertEqual(result.rows, [{'id': 1, 'name': 'alice'}])

    def test_query_allow_list(self):
        with PostgresAdapter('db.local', 5432, 'admin', 'pwd', 'app') as adapter:
            with self.assertRaises(UnsupportedQueryError):
                adapter.run_query('DELETE FROM users')
            self.cursor.execute.assert_not_called()

            adapter.run_query('SELECT * FROM users')
            self.cursor.fetchmany.assert_called_with(100)

    def test_unknown_table(self):
        self.cursor.execute.side_effect = psycopg2.errors.UndefinedTable('relation "nope" does not exist')
        with PostgresAdapter('db.local', 5432, 'admin', 'pwd', 'app') as adapter:
            with self.assertRaises(NotFoundError):
                adapter.fetch_sample('nope', 10)

    def test_connect_failure(self):
        self.connect_mock.side_effect = psycopg2.OperationalError('could not connect to server')
        adapter = PostgresAdapter('db.local', 5432, 'admin', 'pwd', 'app')
        with self.assertRaises(ConnectError) as context:
            adapter.connect()
        self.assertEqual(context.exception.endpoint, 'db.local:5432')

    def test_session_setup_failure_closes_connection(self):
        self.connect_mock.return_value.set_session.side_effect = psycopg2.OperationalError('SSL SYSCALL error')
        adapter = PostgresAdapter('db.local', 5432, 'admin', 'pwd', 'app')
        with self.assertRaises(ConnectError):
            adapter.connect()
        self.assertEqual(adapter.state, DISCONNECTED)
        self.connect_mock.return_value.close.assert_called_once()


class TestMySqlAdapter(TestCase):
    def setUp(self):
        self.connect_mock = mock.patch('pymysql.connect').start()
        self.cursor = mock.MagicMock()
        self.cursor.description = [('Tables_in_app',), ('Table_type',)]
        self.cursor.fetchall.return_value = [('orders', 'BASE TABLE'), ('totals', 'VIEW')]
        self.cursor.execute.return_value = 2
        self.connect_mock.return_value.cursor.return_value.__enter__.return_value = self.cursor

    def tearDown(self):
        mock.patch.stopall()

    def test_read_only_session(self):
        with MySqlAdapter('db.local', 3306, 'root', 'pwd', 'app'):
            self.cursor.execute.assert_called_once_with('SET SESSION TRANSACTION READ ONLY')
        self.connect_mock.return_value.close.assert_called_once()

    def test_session_setup_failure_closes_connection(self):
        self.cursor.execute.side_effect = pymysql.err.OperationalError(2013, 'Lost connection')
        adapter = MySqlAdapter('db.local', 3306, 'root', 'pwd', 'app')
        with self.assertRaises(ConnectError):
            adapter.connect()
        self.connect_mock.return_value.close.assert_called_once()

    def test_list_resources(self):
        with MySqlAdapter('db.local', 3306, 'root', 'pwd', 'app') as adapter:
            resources = adapter.list_resources()
        self.assertEqual([(x.name, x.kind) for x in resources], [('orders', 'table'), ('totals', 'view')])

    def test_sample_quotes_table(self):
        with MySqlAdapter('db.local', 3306, 'root', 'pwd', 'app') as adapter:
            adapter.fetch_sample('orders`x', 5)
            self.cursor.execute.assert_called_with('SELECT * FROM `ordersx` LIMIT %s', (5,))

    def test_unknown_table(self):
        with MySqlAdapter('db.local', 3306, 'root', 'pwd', 'app') as adapter:
            self.cursor.execute.side_effect = pymysql.err.ProgrammingError(1146, "Table 'app.nope' doesn't exist")
            with self.assertRaises(NotFoundError):
                adapter.fetch_sample('nope', 5)

            self.cursor.execute.side_effect = pymysql.err.OperationalError(2013, 'Lost connection')
            with self.assertRaises(QueryError):
                adapter.run_query('SELECT 1')


class TestMongoAdapter(TestCase):
    def setUp(self):
        self.client_mock = mock.patch('pymongo.MongoClient').start()
        self.db = mock.MagicMock()
        self.client_mock.return_value.__getitem__.return_value = self.db
        self.collection = mock.MagicMock()
        self.db.__getitem__.return_value = self.collection

    def tearDown(self):
        mock.patch.stopall()

    def test_parse_find_query(self):
        self.assertEqual(parse_find_query('users.find({})'), ('users', {}))
        self.assertEqual(parse_find_query('users.find()'), ('users', {}))
        self.assertEqual(parse_find_query(' users.find({"age": 30}) '), ('users', {'age': 30}))

        for query in ('users.aggregate([])', 'db.users.find({})', 'users.find([1])', 'users.find({age: 30})',
                      'users.find({}).sort({})', '', 'SELECT * FROM users'):
            with self.assertRaises(UnsupportedQueryError):
                parse_find_query(query)

    def test_credentials_only_with_password(self):
        with MongoAdapter('mongo.local', 27017, 'admin', None, 'app'):
            kwargs = self.client_mock.call_args[1]
            self.assertNotIn('username', kwargs)
        self.client_mock.return_value.close.assert_called_once()

        with MongoAdapter('mongo.local', 27017, 'admin', 'pwd', 'app'):
            kwargs = self.client_mock.call_args[1]
            self.assertEqual(kwargs['username'], 'admin')
            self.assertEqual(kwargs['password'], 'pwd')

    def test_list_resources(self):
        self.db.list_collections.return_value = [{'name': 'users', 'type': 'collection'},
                                                 {'name': 'active', 'type': 'view'},
                                                 {'name': 'orders', 'type': 'collection'}]
        with MongoAdapter('mongo.local', 27017, '', None, 'app') as adapter:
            resources = adapter.list_resources()
        self.assertEqual([(x.name, x.kind) for x in resources],
                         [('active', 'view'), ('orders', 'collection'), ('users', 'collection')])

    def test_query(self):
        self.collection.find.return_value.limit.return_value = [{'_id': 1, 'a': 1}, {'_id': 2, 'b': 2}]
        with MongoAdapter('mongo.local', 27017, '', None, 'app') as adapter:
            result = adapter.run_query('users.find({"a": {"$exists": true}})')
        self.collection.find.assert_called_with({'a': {'$exists': True}})
        self.collection.find.return_value.limit.assert_called_with(100)
        self.collection.count_documents.assert_not_called()
        self.assertEqual(result.columns, ['_id', 'a', 'b'])
        self.assertEqual(result.row_count, 2)

    def test_query_total_count(self):
        self.collection.find.return_value.limit.return_value = [{'_id': x} for x in range(100)]
        self.collection.count_documents.return_value = 250
        with MongoAdapter('mongo.local', 27017, '', None, 'app') as adapter:
            result = adapter.run_query('users.find({})')
        self.assertEqual(len(result.rows), 100)
        self.assertEqual(result.row_count, 250)

    def test_sample(self):
        self.collection.find.return_value.limit.return_value = [{'_id': 1, 'a': 1}, {'_id': 2, 'b': 2}]
        with MongoAdapter('mongo.local', 27017, '', None, 'app') as adapter:
            result = adapter.fetch_sample('users', 10)
        self.db.__getitem__.assert_called_with('users')
        self.collection.find.assert_called_with({})
        self.collection.find.return_value.limit.assert_called_with(10)
        self.assertEqual(result.columns, ['_id', 'a', 'b'])
        self.assertEqual(result.rows, [{'_id': 1, 'a': 1, 'b': None}, {'_id': 2, 'a': None, 'b': 2}])

    def test_empty_sample(self):
        self.collection.find.return_value.limit.return_value = []
        with MongoAdapter('mongo.local', 27017, '', None, 'app') as adapter:
            result = adapter.fetch_sample('users', 10)
        self.assertEqual(result.columns, ['_id'])
        self.assertEqual(result.rows, [])


class TestRedisAdapter(TestCase):
    def setUp(self):
        self.redis_mock = mock.patch('redis.Redis').start()
        self.client = self.redis_mock.return_value

    def tearDown(self):
        mock.patch.stopall()

    def test_key_helpers(self):
        self.assertEqual(key_prefix('user:1:name'), 'user')
        self.assertEqual(key_prefix('session'), 'session')
        self.assertEqual(key_pattern('user'), 'user*')
        self.assertEqual(key_pattern('user:*:name'), 'user:*:name')

    def test_database_index(self):
        self.assertEqual(RedisAdapter('r', 6379, '', None, '3').db_index, 3)
        self.assertEqual(RedisAdapter('r', 6379, '', None, '').db_index, 0)
        self.assertEqual(RedisAdapter('r', 6379, '', None, 'cache').db_index, 0)

    def test_list_prefixes(self):
        self.client.scan_iter.return_value = iter(['user:1', 'user:2', 'order:9'])
        with RedisAdapter('redis.local', 6379, '', None, '0') as adapter:
            resources = adapter.list_resources()
        self.client.ping.assert_called_once()
        self.assertEqual([x.name for x in resources], ['order', 'user'])
        self.assertTrue(all(x.kind == 'key-prefix' for x in resources))

    def test_sample(self):
        self.client.scan_iter.return_value = iter(['user:1', 'user:2'])
        self.client.type.side_effect = ['string', 'hash']
        self.client.get.return_value = 'alice'
        self.client.hscan_iter.return_value = iter([('name', 'bob')])
        with RedisAdapter('redis.local', 6379, '', None, '0') as adapter:
            result = adapter.fetch_sample('user', 10)
        self.client.scan_iter.assert_called_with(match='user*')
        self.assertEqual(result.columns, ['key', 'type', 'value'])
        self.assertEqual(result.rows[0], {'key': 'user:1', 'type': 'string', 'value': 'alice'})
        self.assertEqual(result.rows[1]['value'], '{"name": "bob"}')

    def test_sample_skips_repeated_keys(self):
        self.client.scan_iter.return_value = iter(['user:1', 'user:1', 'user:2', 'user:1'])
        self.client.type.return_value = 'string'
        self.client.get.return_value = 'alice'
        with RedisAdapter('redis.local', 6379, '', None, '0') as adapter:
            result = adapter.fetch_sample('user', 2)
        self.assertEqual([x['key'] for x in result.rows], ['user:1', 'user:2'])

    def test_composite_values_truncated(self):
        with RedisAdapter('redis.local', 6379, '', None, '0') as adapter:
            self.client.lrange.return_value = [str(x) for x in range(10)]
            self.assertEqual(len(adapter.read_value('queue', 'list')), 10)
            self.client.lrange.assert_called_with('queue', 0, 9)

            self.client.sscan_iter.return_value = iter([f'm{x:02}' for x in range(15)])
            members = adapter.read_value('tags', 'set')
            self.assertEqual(len(members), 10)
            self.assertEqual(members, sorted(members))

            self.client.hscan_iter.return_value = iter([(f'f{x}', str(x)) for x in range(15)])
            self.assertEqual(len(adapter.read_value('profile', 'hash')), 10)

            self.client.zrange.return_value = [('a', 1.0), ('b', 2.0)]
            self.assertEqual(adapter.read_value('scores', 'zset'), [['a', 1.0], ['b', 2.0]])
            self.client.zrange.assert_called_with('scores', 0, 9, withscores=True)

            self.assertEqual(adapter.read_value('events', 'stream'), '<stream>')

    def test_query_allow_list(self):
        with RedisAdapter('redis.local', 6379, '', None, '0') as adapter:
            for query in ('FLUSHALL', 'SET a 1', 'DEL user:1', 'GET', 'KEYS a b'):
                with self.assertRaises(UnsupportedQueryError):
                    adapter.run_query(query)
            self.client.flushall.assert_not_called()

            self.client.get.return_value = 'alice'
            result = adapter.run_query('get user:1')
            self.assertEqual(result.rows, [{'key': 'user:1', 'value': 'alice'}])

            self.client.keys.return_value = [f'user:{x}' for x in range(150)]
            result = adapter.run_query('KEYS user:*')
            self.assertEqual(len(result.rows), 100)
            self.assertEqual(result.row_count, 150)


class TestCreateAdapter(TestCase):
    def test_engine_modules(self):
        self.assertIs(create_adapter(get_database_connection(), 'pwd').__class__, PostgresAdapter)
        self.assertIs(create_adapter(get_database_connection(engine=MYSQL)).__class__, MySqlAdapter)
        self.assertIs(create_adapter(get_database_connection(engine=MONGODB)).__class__, MongoAdapter)
        adapter = create_adapter(get_database_connection(engine=REDIS, database='2'), 'pwd')
        self.assertIsInstance(adapter, RedisAdapter)
        self.assertEqual(adapter.password, 'pwd')
        self.assertEqual(adapter.port, 6379)

    def test_not_database(self):
        with self.assertRaises(CommandError):
            create_adapter(get_shell_connection())

    def test_unsupported_engine(self):
        with self.assertRaises(CommandError):
            load_adapter_module('oracle')

    def test_missing_driver(self):
        with mock.patch('importlib.import_module') as mock_import:
            mock_import.side_effect = ModuleNotFoundError("No module named 'psycopg2'", name='psycopg2')
            with self.assertRaises(CommandError) as context:
                create_adapter(get_database_connection())
        self.assertIn('pip install psycopg2-binary', context.exception.message)
