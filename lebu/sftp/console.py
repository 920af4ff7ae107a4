#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

from typing import Optional, List

from tabulate import tabulate

from .client import RemoteFileEntry
from .navigator import (NavigatorUI, NavigatorState, NavigatorAction, ACTION_OPEN, ACTION_UP, ACTION_FILE,
                        ACTION_UPLOAD, ACTION_MKDIR, ACTION_RMDIR, ACTION_HIDDEN, ACTION_EXIT,
                        FILE_DOWNLOAD, FILE_DELETE, FILE_DETAILS, FILE_BACK)
from ..commands.base import user_choice
from ..display import bcolors, format_size, format_modify_time

NAVIGATOR_HELP = '''
  <number>     open directory or select file
  ..           go to parent directory
  u            upload file here
  m            make directory
  r <number>   remove empty directory
  h            show hidden entries
  q            exit
'''

FILE_ACTIONS = {
    'd': FILE_DOWNLOAD,
    'x': FILE_DELETE,
    'i': FILE_DETAILS,
    'b': FILE_BACK,
}


def parse_navigator_input(answer, entries):    # type: (str, List[RemoteFileEntry]) -> Optional[NavigatorAction]
    command, _, argument = answer.strip().partition(' ')
    command = command.lower()
    argument = argument.strip()
    if not command:
        return None
    if command in ('q', 'exit', 'quit'):
        return NavigatorAction(ACTION_EXIT)
    if command in ('..', 'up', 'cd..'):
        return NavigatorAction(ACTION_UP)
    if command == 'u':
        return NavigatorAction(ACTION_UPLOAD)
    if command == 'm':
        return NavigatorAction(ACTION_MKDIR)
    if command == 'h':
        return NavigatorAction(ACTION_HIDDEN)
    if command == 'r':
        entry = entry_by_number(argument, entries)
        return NavigatorAction(ACTION_RMDIR, entry) if entry else None
    entry = entry_by_number(command, entries)
    if entry:
        return NavigatorAction(ACTION_OPEN if entry.is_directory else ACTION_FILE, entry)
    return None


def entry_by_number(text, entries):    # type: (str, List[RemoteFileEntry]) -> Optional[RemoteFileEntry]
    if text.isdigit():
        number = int(text)
        if 1 <= number <= len(entries):
            return entries[number - 1]


class ConsoleNavigatorUI(NavigatorUI):
    def __init__(self, title=''):
        self.title = title

    def choose_action(self, state, entries):    # type: (NavigatorState, List[RemoteFileEntry]) -> NavigatorAction
        self.print_listing(state, entries)
        while True:
            try:
                answer = input(f'{state.current_path}> ')
            except EOFError:
                return NavigatorAction(ACTION_EXIT)
            if answer.strip() == '?':
                print(NAVIGATOR_HELP)
                continue
            action = parse_navigator_input(answer, entries)
            if action:
                return action
            if answer.strip():
                print(f'{bcolors.WARNING}Invalid choice. Type "?" for help.{bcolors.ENDC}')

    def print_listing(self, state, entries):    # type: (NavigatorState, List[RemoteFileEntry]) -> None
        print('')
        if self.title:
            print(f'{bcolors.BOLD}{self.title}{bcolors.ENDC}')
        print(f'{bcolors.GRAY}{state.current_path}{bcolors.ENDC}')
        table = []
        for no, entry in enumerate(entries, start=1):
            if entry.is_directory:
                name = f'{bcolors.OKBLUE}{entry.name}/{bcolors.ENDC}'
                size = ''
            else:
                name = entry.name
                size = format_size(entry.size)
            table.append([no, name, size, format_modify_time(entry.modify_time), entry.permissions])
        if table:
            print(tabulate(table, headers=['#', 'Name', 'Size', 'Modified', 'Permissions'],
                           colalign=('right', 'left', 'right', 'left', 'left')))
        hidden_note = ' (including hidden)' if state.show_hidden else ''
        print(f'{bcolors.GRAY}{len(entries)} items{hidden_note}. Type "?" for help.{bcolors.ENDC}')

    def choose_file_action(self, path, entry):    # type: (str, RemoteFileEntry) -> str
        print(f'\n{bcolors.BOLD}{entry.name}{bcolors.ENDC}  '
              f'{bcolors.GRAY}{format_size(entry.size)} | {format_modify_time(entry.modify_time)}{bcolors.ENDC}')
        try:
            answer = user_choice('(D)ownload, delete (X), (I)nfo, (B)ack', 'dxib', 'b')
        except EOFError:
            return FILE_BACK
        return FILE_ACTIONS.get(answer.lower(), FILE_BACK)

    def ask_text(self, message, default=''):    # type: (str, str) -> str
        prompt = f'{message} [{default}]: ' if default else f'{message}: '
        try:
            answer = input(prompt).strip()
        except EOFError:
            answer = ''
        return answer or default

    def confirm(self, message):    # type: (str) -> bool
        try:
            return user_choice(message, 'yn', 'n').lower() == 'y'
        except EOFError:
            return False

    def show_details(self, path, entry):    # type: (str, RemoteFileEntry) -> None
        modified = entry.modify_time.strftime('%Y-%m-%d %H:%M:%S') if entry.modify_time else ''
        table = [
            ['Name', entry.name],
            ['Size', f'{format_size(entry.size)} ({entry.size} bytes)'],
            ['Modified', modified],
            ['Permissions', entry.permissions],
            ['Path', path],
        ]
        print('')
        print(tabulate(table, tablefmt='plain'))
        print('')
