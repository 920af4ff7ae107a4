# -*- coding: utf-8 -*-
#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import argparse
import json
import logging
import os
import shlex
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from . import cli
from .params import LebuParams, load_config_properties


def get_params_from_config(config_filename=None):    # type: (Optional[str]) -> LebuParams
    if os.getenv('LEBU_DEBUG'):
        logging.getLogger().setLevel(logging.DEBUG)
        logging.info('Debug ON')

    def get_env_config():
        path = os.getenv('LEBU_CONFIG_FILE')
        if path:
            logging.debug('Setting config file from LEBU_CONFIG_FILE env variable %s', path)
        return path

    config_filename = config_filename or get_env_config()
    if not config_filename:
        config_filename = 'config.json'
        if os.path.isfile(config_filename):
            config_filename = os.path.join(os.getcwd(), config_filename)
        else:
            config_filename = os.path.join(Path.home(), '.lebu', config_filename)
    else:
        config_filename = os.path.expanduser(config_filename)

    params = LebuParams()
    params.config_filename = config_filename
    if os.getenv('LEBU_DEBUG'):
        params.debug = True

    if os.path.exists(config_filename):
        try:
            try:
                with open(params.config_filename) as config_file:
                    params.config = json.load(config_file)
                if not isinstance(params.config, dict):
                    raise ValueError('Configuration should be a JSON object')
                load_config_properties(params)
            except ValueError as e:
                logging.error('Unable to parse JSON configuration file "%s"', os.path.abspath(params.config_filename))
                answer = input('Do you want to delete it (y/N): ')
                if answer in ['y', 'Y']:
                    os.remove(params.config_filename)
                    params.config = {}
                else:
                    raise e
        except IOError as ioe:
            logging.warning('Error: Unable to open config file %s: %s', params.config_filename, ioe)

    return params


def usage(m):
    print(m)
    parser.print_help()
    cli.display_command_help()
    sys.exit(1)


parser = argparse.ArgumentParser(prog='lebu', add_help=False, allow_abbrev=False,
                                 description='Terminal connection manager for SSH, databases, and SFTP')
parser.add_argument('--version', dest='version', action='store_true', help='Display version')
parser.add_argument('--config', dest='config', action='store', help='Config file to use')
parser.add_argument('--debug', dest='debug', action='store_true', help='Turn on debug mode')
parser.add_argument('--batch-mode', dest='batch_mode', action='store_true', help='Run lebu in batch mode.')
parser.add_argument('command', nargs='?', type=str, action='store', help='Command')
parser.add_argument('options', nargs='*', action='store', help='Options')
parser.error = usage


def main():
    logging.basicConfig(format='%(message)s')
    logging.getLogger().setLevel(logging.INFO)

    opts, flags = parser.parse_known_args(sys.argv[1:])
    params = get_params_from_config(opts.config)

    if opts.batch_mode:
        params.batch_mode = True
    if opts.debug:
        params.debug = opts.debug

    logging.getLogger().setLevel(
        logging.DEBUG if params.debug else logging.WARNING if params.batch_mode else logging.INFO)

    if opts.version:
        print(f'lebu, version {__version__}')
        return

    if flags and len(flags) > 0:
        if flags[0] in ('-h', '--help'):
            flags.clear()
            opts.command = '?'
    elif opts.command == 'help' and len(opts.options) == 0:
        opts.command = '?'

    if (opts.command or '') == '?':
        usage('')

    if opts.command in {None, 'shell', '-'}:
        if opts.command == '-':
            params.batch_mode = True
        errno = cli.loop(params)
    elif os.path.isfile(opts.command):
        with open(opts.command, 'r') as f:
            lines = f.readlines()
        params.commands.extend([x.strip() for x in lines if x.strip()])
        params.commands.append('q')
        params.batch_mode = True
        errno = cli.loop(params)
    else:
        flags = ' '.join([shlex.quote(x) for x in flags]) if flags is not None else ''
        options = ' '.join([shlex.quote(x) for x in opts.options]) if opts.options is not None else ''
        options = ' -- ' + options if options.startswith('-') else options
        command = ' '.join([opts.command, options, flags]).strip()
        startup = list(params.commands)
        params.commands.clear()
        if startup:
            cli.runcommands(params, startup)
        errno = cli.runcommands(params, [command], quiet=True)

    sys.exit(errno)


if __name__ == '__main__':
    main()
