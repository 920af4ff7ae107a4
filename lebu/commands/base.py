#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import argparse
import csv
import datetime
import io
import json
import logging
import os
import shlex
from collections import OrderedDict
from typing import Optional, Sequence, List, Any, Dict

from tabulate import tabulate

from .. import error
from ..connection import Connection
from ..params import LebuParams

aliases = {}                 # type: Dict[str, str]
commands = {}                # type: Dict[str, Command]
command_info = OrderedDict()


report_output_parser = argparse.ArgumentParser(add_help=False)
report_output_parser.add_argument('--format', dest='format', action='store', choices=['table', 'csv', 'json'],
                                  default='table', help='format of output')
report_output_parser.add_argument('--output', dest='output', action='store',
                                  help='path to resulting output file (ignored for "table" format)')


class ParseError(Exception):
    pass


def register_commands(commands, aliases, command_info):
    from .connection import register_commands as connection_commands, register_command_info as connection_command_info
    connection_commands(commands)
    connection_command_info(aliases, command_info)

    from .explore import register_commands as explore_commands, register_command_info as explore_command_info
    explore_commands(commands)
    explore_command_info(aliases, command_info)

    from .sftp import register_commands as sftp_commands, register_command_info as sftp_command_info
    sftp_commands(commands)
    sftp_command_info(aliases, command_info)

    from .connect import register_commands as connect_commands, register_command_info as connect_command_info
    connect_commands(commands)
    connect_command_info(aliases, command_info)


def user_choice(question, choice, default='', show_choice=True):
    choices = [ch.upper() if ch.upper() == default.upper() else ch.lower() for ch in choice]

    while True:
        pr = question
        if show_choice:
            pr = pr + ' [' + '/'.join(choices) + ']'

        pr = pr + ': '
        result = input(pr)

        if len(result) == 0:
            return default

        if any(map(lambda x: x.upper() == result.upper(), choices)):
            return result

        logging.error('Error: invalid input')


def prompt_input(question, default='', required=False):    # type: (str, str, bool) -> str
    pr = f'{question} [{default}]: ' if default else f'{question}: '
    while True:
        result = input(pr).strip()
        if not result:
            result = default
        if result or not required:
            return result
        logging.error('Error: value is required')


def choose_option(question, options, default=None):
    # type: (str, Sequence[Any], Optional[Any]) -> Any
    """Numbered menu. ``options`` is a sequence of (value, title) pairs"""
    print(question)
    default_no = ''
    for no, (value, title) in enumerate(options, start=1):
        print(f'  {no:>2}. {title}')
        if default is not None and value == default:
            default_no = str(no)
    while True:
        answer = prompt_input('Choose', default_no)
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1][0]
        logging.error('Error: invalid input')


def raise_parse_exception(m):
    raise ParseError(m)


def suppress_exit(*args):
    raise ParseError()


def json_serialized(obj):
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()
    if isinstance(obj, bytes):
        return obj.hex()
    return str(obj)


def is_json_value_field(obj):
    if obj is None:
        return False
    if isinstance(obj, str):
        return len(obj) > 0
    return True


WORDS_TO_CAPITALIZE = {'Id', 'Ip', 'Url', 'Ssh', 'Sftp', 'Db'}


def field_to_title(field):   # type: (str) -> str
    words = field.split('_')
    words = [x.capitalize() for x in words if x]
    words = [x.upper() if x in WORDS_TO_CAPITALIZE else x for x in words]
    return ' '.join(words)


def dump_report_data(data, headers, title=None, fmt='', filename=None, **kwargs):
    # type: (List[List], Sequence[str], Optional[str], Optional[str], Optional[str], ...) -> Optional[str]
    # kwargs:
    #           footer: str                - Footer text. table only

    if fmt == 'csv':
        if filename:
            _, ext = os.path.splitext(filename)
            if not ext:
                filename += '.csv'
            logging.info('Report path: %s', os.path.abspath(filename))
        with open(filename, 'w', newline='', encoding='utf-8') if filename else io.StringIO() as fd:
            csv_writer = csv.writer(fd)
            if title:
                csv_writer.writerow([title])
                csv_writer.writerow([])
            if headers:
                csv_writer.writerow(headers)
            for row in data:
                csv_writer.writerow(['\n'.join(str(y) for y in x) if isinstance(x, list) else x for x in row])
            if isinstance(fd, io.StringIO):
                return fd.getvalue()
    elif fmt == 'json':
        data_list = []
        for row in data:
            obj = {}
            for index, column in filter(lambda x: is_json_value_field(x[1]), enumerate(row)):
                name = headers[index] if headers and index < len(headers) else "#{:0>2}".format(index)
                obj[name] = column
            data_list.append(obj)
        if filename:
            _, ext = os.path.splitext(filename)
            if not ext:
                filename += '.json'
            logging.info('Report path: %s', os.path.abspath(filename))
            with open(filename, 'w') as fd:
                json.dump(data_list, fd, indent=2, default=json_serialized)
        else:
            return json.dumps(data_list, indent=2, default=json_serialized)
    else:
        if title:
            print('\n{0}\n'.format(title))
        expanded_data = []
        for row in data:
            expanded_rows = max((len(x) for x in row if isinstance(x, list)), default=1)
            for i in range(expanded_rows):
                rowi = []
                for column in row:
                    value = ''
                    if isinstance(column, list):
                        if i < len(column):
                            value = column[i]
                    elif i == 0:
                        value = column
                    rowi.append(value)
                expanded_data.append(rowi)

        print(tabulate(expanded_data, headers=headers))
        footer = kwargs.get('footer')
        if isinstance(footer, str) and footer:
            print(footer)
    return None


class Command:
    def execute(self, params, **kwargs):     # type: (LebuParams, Any) -> Any
        raise NotImplementedError()

    def execute_args(self, params, args, **kwargs):
        # type: (LebuParams, str, ...) -> Any
        try:
            d = {}
            d.update(kwargs)
            parser = self._get_parser_safe()
            args = '' if args is None else args
            if parser:
                opts = parser.parse_args(shlex.split(args))
                d.update(opts.__dict__)

            return self.execute(params, **d)
        except ParseError as e:
            if str(e):
                logging.error(e)

    def get_parser(self):   # type: () -> Optional[argparse.ArgumentParser]
        return None

    def _get_parser_safe(self):
        parser = self.get_parser()
        if parser:
            if parser.exit != suppress_exit:
                parser.exit = suppress_exit
            if parser.error != raise_parse_exception:
                parser.error = raise_parse_exception
        return parser


class ConnectionMixin:
    @staticmethod
    def resolve_connection(params, name, command='', kinds=None, with_secret=False):
        # type: (LebuParams, str, str, Optional[Sequence[str]], bool) -> Connection
        if not name:
            raise error.CommandError(command, 'Connection name is required')
        registry = params.registry
        connection = registry.find_with_secret(name) if with_secret else registry.find(name)
        if connection is None:
            raise error.NotFoundError(f'Connection "{name}" not found')
        if kinds and connection.kind not in kinds:
            raise error.CommandError(command, f'"{name}" is not a {" or ".join(kinds)} connection')
        return connection
