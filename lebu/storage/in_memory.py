#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import copy
from typing import Dict, List, Optional

from .types import IConnectionStorage, ISecretStorage


class InMemoryConnectionStorage(IConnectionStorage):
    def __init__(self, records=None):    # type: (Optional[List[dict]]) -> None
        self._records = copy.deepcopy(records) if records else []   # type: List[dict]

    def load(self):
        return copy.deepcopy(self._records)

    def store(self, records):
        self._records = copy.deepcopy(records)


class InMemorySecretStorage(ISecretStorage):
    def __init__(self) -> None:
        self._secrets: Dict[str, str] = {}

    def put(self, key, secret):
        self._secrets[key] = secret

    def get(self, key):
        return self._secrets.get(key)

    def delete(self, key):
        if key in self._secrets:
            del self._secrets[key]
            return True
        return False

    def __contains__(self, key):
        return key in self._secrets

    def __len__(self):
        return len(self._secrets)
