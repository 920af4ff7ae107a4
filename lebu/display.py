#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import datetime
import shutil
from typing import Optional, Union

from colorama import init, Fore, Style

from . import __version__

init()


class bcolors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'
    GRAY = '\033[90m'


def welcome():
    lines = [
        r'  _     _        ',
        r' | |___| |__ _  _',
        r" | / -_) '_ \ || |",
        r' |_\___|_.__/\_,_|',
    ]
    try:
        width = shutil.get_terminal_size(fallback=(80, 24)).columns
    except OSError:
        width = 80
    print(Style.RESET_ALL)
    for line in lines:
        print(Fore.LIGHTCYAN_EX + line[:width])
    print(Fore.LIGHTBLACK_EX + f'  terminal connection manager  v{__version__}\n' + Style.RESET_ALL)


SIZE_UNITS = ('B', 'KB', 'MB', 'GB', 'TB')


def format_size(size):    # type: (Optional[int]) -> str
    if not size or size <= 0:
        return '0 B'
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    value = round(value, 1)
    if value == int(value):
        value = int(value)
    return f'{value} {SIZE_UNITS[unit]}'


def parse_timestamp(value):    # type: (Union[str, datetime.datetime, None]) -> Optional[datetime.datetime]
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt


def format_relative_time(value, now=None):
    # type: (Union[str, datetime.datetime, None], Optional[datetime.datetime]) -> str
    dt = parse_timestamp(value)
    if dt is None:
        return 'never'
    now = now or datetime.datetime.now(datetime.timezone.utc)
    minutes = int((now - dt).total_seconds() // 60)
    if minutes < 1:
        return 'just now'
    if minutes < 60:
        return f'{minutes}m ago'
    hours = minutes // 60
    if hours < 24:
        return f'{hours}h ago'
    return f'{hours // 24}d ago'


def format_modify_time(value, now=None):
    # type: (Optional[datetime.datetime], Optional[datetime.datetime]) -> str
    if value is None:
        return ''
    now = now or datetime.datetime.now()
    days = (now - value).days
    if days == 0:
        return value.strftime('%H:%M')
    if 0 < days < 7:
        return f'{days}d ago'
    return value.strftime('%b %d')
