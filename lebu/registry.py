#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import logging
from typing import List, Optional

from .connection import Connection, is_valid_connection_name, utc_now
from .error import DuplicateNameError
from .storage.types import IConnectionStorage, ISecretStorage
from .vault import get_password_key


class ConnectionRegistry:
    """Connection records without secrets, joined with the vault on demand.

    The backing storage is read in full, changed in memory and written in full.
    There is no lock between processes.
    """
    def __init__(self, storage, vault):    # type: (IConnectionStorage, ISecretStorage) -> None
        self.storage = storage
        self.vault = vault

    def _load_connections(self):    # type: () -> List[Connection]
        connections = []
        for record in self.storage.load():
            try:
                connections.append(Connection.load(record))
            except ValueError as e:
                logging.warning('Skipping invalid connection record "%s": %s', record.get('name') or '', e)
        return connections

    def list(self, kind=None, tag=None):    # type: (Optional[str], Optional[str]) -> List[Connection]
        connections = self._load_connections()
        if kind:
            connections = [x for x in connections if x.kind == kind]
        if tag:
            connections = [x for x in connections if tag in x.tags]
        return connections

    def find(self, name):    # type: (str) -> Optional[Connection]
        return next((x for x in self._load_connections() if x.name == name), None)

    def find_with_secret(self, name):    # type: (str) -> Optional[Connection]
        connection = self.find(name)
        if connection and connection.has_secret:
            secret = self.vault.get(connection.secret_key)
            if secret is not None:
                connection.secret = secret
            else:
                logging.warning('Password for connection "%s" is missing from the key store', name)
        return connection

    def save(self, connection, secret=None):    # type: (Connection, Optional[str]) -> None
        records = self.storage.load()
        index = next((i for i, x in enumerate(records) if x.get('id') == connection.id), -1)
        if index < 0:
            if not is_valid_connection_name(connection.name):
                raise ValueError(f'Invalid connection name "{connection.name}". '
                                 'Use only letters, numbers, dashes and underscores')
            if any(x for x in records if x.get('name') == connection.name):
                raise DuplicateNameError(f'Connection with name "{connection.name}" already exists')

        if secret is None:
            secret = connection.secret
        if secret:
            self.vault.put(get_password_key(connection.id), secret)
            connection.has_secret = True

        record = connection.dump()
        if index >= 0:
            records[index] = record
        else:
            records.append(record)
        self.storage.store(records)
        logging.debug('Connection "%s" saved', connection.name)

    def delete(self, name):    # type: (str) -> bool
        records = self.storage.load()
        record = next((x for x in records if x.get('name') == name), None)
        if record is None:
            return False

        if record.get('has_secret') is True:
            if not self.vault.delete(get_password_key(record.get('id') or '')):
                logging.debug('Connection "%s" had no password in the key store', name)

        self.storage.store([x for x in records if x is not record])
        return True

    def touch_last_used(self, name):    # type: (str) -> None
        records = self.storage.load()
        record = next((x for x in records if x.get('name') == name), None)
        if record is not None:
            record['last_used_at'] = utc_now()
            self.storage.store(records)
