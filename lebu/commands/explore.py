#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import argparse
import logging
from typing import Optional, Any

from .base import Command, dump_report_data, report_output_parser, prompt_input, choose_option
from ..adapters import QueryResult
from ..connection import DATABASE
from ..error import CommandError, NotFoundError, QueryError, UnsupportedQueryError
from ..explorer import DatabaseExplorer, ExploreSession, shape_result, value_to_text, query_placeholder, resource_label
from ..params import LebuParams


def register_commands(commands):
    commands['explore'] = ExploreCommand()


def register_command_info(aliases, command_info):
    aliases['ex'] = 'explore'
    command_info[explore_parser.prog] = explore_parser.description


explore_parser = argparse.ArgumentParser(prog='explore', description='Browse tables and run read-only queries',
                                         parents=[report_output_parser])
explore_parser.add_argument('--tables', dest='tables', action='store_true', help='list tables or collections')
explore_parser.add_argument('--sample', dest='sample', action='store', metavar='RESOURCE',
                            help='display first rows of a table, collection or key prefix')
explore_parser.add_argument('--limit', dest='limit', action='store', type=int, help='row limit for --sample')
explore_parser.add_argument('--query', dest='query', action='store', help='run a read-only query')
explore_parser.add_argument('name', nargs='?', type=str, action='store', help='database connection name')

EXPLORE_ACTIONS = [
    ('tables', 'List Tables'),
    ('browse', 'Browse Table'),
    ('query', 'Run Query'),
    ('exit', 'Exit'),
]


def dump_result(result, title, fmt='table', filename=None):
    # type: (QueryResult, str, Optional[str], Optional[str]) -> Optional[str]
    if fmt in ('json', 'csv'):
        table = [[row.get(x) for x in result.columns] for row in result.rows]
        if fmt == 'csv':
            table = [['' if x is None else value_to_text(x) for x in row] for row in table]
        return dump_report_data(table, result.columns, fmt=fmt, filename=filename)

    if not result.rows:
        logging.info('No data found.')
        return None
    headers, table, notes = shape_result(result)
    return dump_report_data(table, headers, title=f'{title} ({result.row_count} rows)',
                            footer='\n'.join(notes) if notes else None)


class ExploreCommand(Command):
    def get_parser(self):
        return explore_parser

    def execute(self, params, **kwargs):    # type: (LebuParams, ...) -> Any
        name = kwargs.get('name')
        if not name:
            if params.batch_mode:
                raise CommandError('explore', 'Connection name is required')
            connections = params.registry.list(kind=DATABASE)
            if not connections:
                logging.info('No database connections found.')
                return
            name = choose_option('Select database:', [(x.name, f'{x.name:<20} {x.engine}') for x in connections])

        explorer = DatabaseExplorer(params.registry, sample_limit=params.sample_limit)
        fmt = kwargs.get('format') or 'table'
        filename = kwargs.get('output')
        with explorer.open(name) as session:
            if kwargs.get('tables') or kwargs.get('sample') or kwargs.get('query'):
                return self.run_once(session, fmt, filename, **kwargs)
            self.explore_loop(session)

    def run_once(self, session, fmt, filename, **kwargs):    # type: (ExploreSession, str, Optional[str], ...) -> Any
        if kwargs.get('tables'):
            return self.list_resources(session, fmt, filename)
        resource = kwargs.get('sample')
        if resource:
            result = session.sample(resource, kwargs.get('limit'))
            return dump_result(result, resource, fmt, filename)
        result = session.query(kwargs.get('query') or '')
        return dump_result(result, 'Results', fmt, filename)

    @staticmethod
    def list_resources(session, fmt='table', filename=None):
        resources = session.list_resources()
        if not resources and fmt == 'table':
            logging.info('No tables found.')
            return
        table = [[x.name, x.kind] for x in resources]
        headers = ['Name', 'Type'] if fmt == 'table' else ['name', 'type']
        title = f'{resource_label(session.engine)} ({len(resources)})' if fmt == 'table' else None
        return dump_report_data(table, headers, title=title, fmt=fmt, filename=filename)

    def explore_loop(self, session):    # type: (ExploreSession) -> None
        while True:
            try:
                action = choose_option('What would you like to do?', EXPLORE_ACTIONS)
            except EOFError:
                break
            if action == 'exit':
                break
            try:
                if action == 'tables':
                    self.list_resources(session)
                elif action == 'browse':
                    self.browse(session)
                elif action == 'query':
                    self.query(session)
            except (QueryError, NotFoundError, UnsupportedQueryError) as e:
                logging.error('%s', e)
            except EOFError:
                print('')

    @staticmethod
    def browse(session):    # type: (ExploreSession) -> None
        resources = session.list_resources()
        if not resources:
            logging.info('No tables found.')
            return
        options = [(x.name, f'{x.name} ({x.kind})') for x in resources]
        options.append(('', 'Back'))
        resource = choose_option('Select table:', options)
        if not resource:
            return
        limit = prompt_input('Limit rows', str(session.sample_limit))
        dump_result(session.sample(resource, limit), resource)

    @staticmethod
    def query(session):    # type: (ExploreSession) -> None
        print(f'Example: {query_placeholder(session.engine)}')
        text = prompt_input('Enter query')
        if not text:
            return
        dump_result(session.query(text), 'Results')
