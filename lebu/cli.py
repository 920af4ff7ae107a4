#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import logging
import os
import sys
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.shortcuts import CompleteStyle

from . import display
from .autocomplete import CommandCompleter
from .commands import register_commands, aliases, commands, command_info
from .error import CommandError, Error
from .params import LebuParams


stack = []              # type: List[str]
register_commands(commands, aliases, command_info)

command_info['debug'] = 'Toggle debug output'
command_info['history'] = 'Show command history'
command_info['clear'] = 'Clear the screen'
command_info['quit'] = 'Exit'


def display_command_help():
    from .display import bcolors

    alias_lookup = {x[1]: x[0] for x in aliases.items()}
    print(f'\n{bcolors.BOLD}Commands:{bcolors.ENDC}')
    for cmd, description in command_info.items():
        alias = alias_lookup.get(cmd) or ''
        alias_str = f' ({alias})' if alias else ''
        print(f'  {bcolors.OKGREEN}{cmd + alias_str:<16}{bcolors.ENDC} {description}')
    print('\nType \'command -h\' to display help on command')


def command_and_args_from_cmd(command_line):
    args = ''
    pos = command_line.find(' ')
    if pos > 0:
        cmd = command_line[:pos]
        args = command_line[pos + 1:].strip()
    else:
        cmd = command_line.strip()

    return cmd, args


def toggle_debug(params):    # type: (LebuParams) -> None
    params.debug = not params.debug
    level = logging.DEBUG if params.debug else logging.WARNING if params.batch_mode else logging.INFO
    logging.getLogger().setLevel(level)
    logging.info('Debug %s', 'ON' if params.debug else 'OFF')


def do_command(params, command_line):    # type: (LebuParams, str) -> Optional[str]
    lower_line = command_line.lower()
    if lower_line in ('h', 'history'):
        for no, line in enumerate(reversed(stack), start=1):
            print(f'{no:>4}  {line}')
        return

    if len(stack) == 0 or stack[-1] != command_line:
        stack.append(command_line)

    if lower_line in ('c', 'cls', 'clear'):
        print(chr(27) + "[2J")
    elif lower_line == 'debug':
        toggle_debug(params)
    elif lower_line in ('?', 'help'):
        display_command_help()
    else:
        cmd, args = command_and_args_from_cmd(command_line)
        if cmd:
            orig_cmd = cmd
            if cmd in aliases and cmd not in commands:
                cmd = aliases[cmd]

            if cmd in commands:
                command = commands[cmd]
                return command.execute_args(params, args, command=orig_cmd)
            else:
                display_command_help()


def runcommands(params, commands=None, quiet=False):    # type: (LebuParams, Optional[List[str]], bool) -> int
    if commands is None:
        commands = params.commands

    error_no = 0
    for command in commands:
        if not quiet:
            logging.info('Executing [%s]...', command)
        try:
            result = do_command(params, command)
            if result is not None:
                print(result)
        except CommandError as e:
            error_no = 1
            msg = f'{e.command}: {e.message}' if e.command else f'{e.message}'
            logging.error(msg)
        except Error as e:
            error_no = 1
            logging.error('%s', e)
        except Exception as e:
            error_no = 1
            logging.debug(e, exc_info=True)
            logging.error('An unexpected error occurred: %s', sys.exc_info()[0])
    return error_no


def get_prompt(params):    # type: (LebuParams) -> str
    if params.batch_mode:
        return ''
    return 'lebu> '


def loop(params):  # type: (LebuParams) -> int
    error_no = 0
    suppress_errno = False

    logging.getLogger().setLevel(logging.DEBUG if params.debug else logging.WARNING if params.batch_mode else logging.INFO)
    prompt_session = None
    if not params.batch_mode:
        if os.isatty(0) and os.isatty(1):
            completer = CommandCompleter(params, aliases)
            prompt_session = PromptSession(multiline=False,
                                           completer=completer,
                                           complete_style=CompleteStyle.MULTI_COLUMN,
                                           complete_while_typing=False)

        display.welcome()
        logging.info('Type "?" to list commands')

    while True:
        command = ''
        if len(params.commands) > 0:
            command = params.commands[0].strip()
            params.commands = params.commands[1:]

        try:
            if not command:
                if prompt_session is not None:
                    command = prompt_session.prompt(get_prompt(params))
                else:
                    command = input(get_prompt(params))

            command = command.strip()
            if not command:
                continue
            if command.lower() == 'q' or command.lower() == 'quit':
                break

            suppress_errno = False
            if command.startswith('@'):
                suppress_errno = True
                command = command[1:]
            if params.batch_mode:
                logging.info('> %s', command)
            error_no = 1
            result = do_command(params, command)
            error_no = 0
            if result:
                print(result)
        except EOFError:
            break
        except KeyboardInterrupt:
            print('')
        except CommandError as e:
            if e.command:
                logging.warning('%s: %s', e.command, e.message)
            else:
                logging.warning('%s', e.message)
        except Error as e:
            logging.error('%s', e)
        except Exception as e:
            logging.debug(e, exc_info=True)
            logging.error('An unexpected error occurred: %s. Type "debug" to toggle verbose error output', e)

        if params.batch_mode and error_no != 0 and not suppress_errno:
            break

    if not params.batch_mode:
        logging.info('\nGoodbye.\n')

    return error_no
