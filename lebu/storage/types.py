#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import abc
from typing import List, Optional


class IConnectionStorage(abc.ABC):
    """Persistent list of flat connection records"""
    @abc.abstractmethod
    def load(self):    # type: () -> List[dict]
        pass

    @abc.abstractmethod
    def store(self, records):    # type: (List[dict]) -> None
        pass


class ISecretStorage(abc.ABC):
    """Key to secret store kept apart from the connection records"""
    @abc.abstractmethod
    def put(self, key, secret):    # type: (str, str) -> None
        pass

    @abc.abstractmethod
    def get(self, key):    # type: (str) -> Optional[str]
        pass

    @abc.abstractmethod
    def delete(self, key):    # type: (str) -> bool
        pass
