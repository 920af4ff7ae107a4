#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import json
import logging
import os
from typing import List

from .types import IConnectionStorage


class JsonConnectionStorage(IConnectionStorage):
    """Connection records kept in a single JSON document: {"connections": [...]}

    The whole file is read and rewritten on every change. Two processes
    writing at the same time can lose an update.
    """
    def __init__(self, filename):    # type: (str) -> None
        self.filename = os.path.expanduser(filename)

    def load(self):    # type: () -> List[dict]
        if not os.path.isfile(self.filename):
            return []
        with open(self.filename, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if isinstance(data, dict):
            connections = data.get('connections')
            if isinstance(connections, list):
                return [x for x in connections if isinstance(x, dict)]
        logging.warning('Connection file "%s" has unexpected format', self.filename)
        return []

    def store(self, records):    # type: (List[dict]) -> None
        folder = os.path.dirname(os.path.abspath(self.filename))
        if not os.path.isdir(folder):
            os.makedirs(folder, mode=0o700, exist_ok=True)
        temp_name = self.filename + '.tmp'
        fd = os.open(temp_name, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump({'connections': records}, f, indent=2)
        os.replace(temp_name, self.filename)
        logging.debug('Stored %d connection(s) to %s', len(records), self.filename)
