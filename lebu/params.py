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
from typing import Optional, List

from .registry import ConnectionRegistry
from .storage.json_file import JsonConnectionStorage
from .storage.types import ISecretStorage, IConnectionStorage
from .vault import KeyringVault, DEFAULT_SERVICE_NAME

DEFAULT_CONNECTIONS_FILE = os.path.join('~', '.lebu', 'connections.json')
DEFAULT_SAMPLE_LIMIT = 50
DEFAULT_SFTP_START_PATH = '/home'

BOOL_PROPERTIES = ['debug', 'batch_mode']
INT_PROPERTIES = ['sample_limit']
STR_PROPERTIES = ['connections_file', 'vault_service', 'sftp_start_path', 'download_dir']


class LebuParams:
    """ Global storage of data during the session """

    def __init__(self, config_filename='', config=None):
        self.config_filename = config_filename
        self.config = config or {}
        self.debug = False
        self.batch_mode = False
        self.commands = []         # type: List[str]
        self.connections_file = DEFAULT_CONNECTIONS_FILE
        self.vault_service = DEFAULT_SERVICE_NAME
        self.sample_limit = DEFAULT_SAMPLE_LIMIT
        self.sftp_start_path = DEFAULT_SFTP_START_PATH
        self.download_dir = '.'
        self._vault = None         # type: Optional[ISecretStorage]
        self._registry = None      # type: Optional[ConnectionRegistry]

    @property
    def vault(self):    # type: () -> ISecretStorage
        if self._vault is None:
            self._vault = KeyringVault(self.vault_service)
        return self._vault

    @vault.setter
    def vault(self, value):    # type: (ISecretStorage) -> None
        self._vault = value
        self._registry = None

    @property
    def registry(self):    # type: () -> ConnectionRegistry
        if self._registry is None:
            storage = JsonConnectionStorage(os.path.expanduser(self.connections_file))
            self._registry = ConnectionRegistry(storage, self.vault)
        return self._registry

    def set_storage(self, storage, vault):    # type: (IConnectionStorage, ISecretStorage) -> None
        self._vault = vault
        self._registry = ConnectionRegistry(storage, vault)


def load_config_properties(params):    # type: (LebuParams) -> None
    config = params.config
    for name in BOOL_PROPERTIES:
        if name in config:
            value = config[name]
            if isinstance(value, bool):
                setattr(params, name, value)
            else:
                logging.warning('Configuration property "%s" should be boolean', name)
    for name in INT_PROPERTIES:
        if name in config:
            value = config[name]
            if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                setattr(params, name, value)
            else:
                logging.warning('Configuration property "%s" should be a positive integer', name)
    for name in STR_PROPERTIES:
        if name in config:
            value = config[name]
            if isinstance(value, str) and value:
                setattr(params, name, value)
            else:
                logging.warning('Configuration property "%s" should be a non-empty string', name)
    commands = config.get('commands')
    if isinstance(commands, list):
        params.commands.extend(x for x in commands if isinstance(x, str) and x)
