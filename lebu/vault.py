#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""Credential vault backed by the operating system key store.

   Secrets are stored with the ``keyring`` library under a single service name,
   one entry per connection: ``password:<connection id>``.
"""

import logging

import keyring
import keyring.errors

from .error import VaultUnavailableError
from .storage.types import ISecretStorage

DEFAULT_SERVICE_NAME = 'lebu'
INSECURE_BACKENDS = ('keyring.backends.fail', 'keyring.backends.null')


def get_password_key(connection_id):    # type: (str) -> str
    return f'password:{connection_id}'


class KeyringVault(ISecretStorage):
    def __init__(self, service_name=DEFAULT_SERVICE_NAME):
        self.service_name = service_name or DEFAULT_SERVICE_NAME
        self._backend_checked = False

    def check_backend(self):
        if self._backend_checked:
            return
        backend = keyring.get_keyring()
        backend_type = type(backend)
        module_name = backend_type.__module__ or ''
        if any(module_name.startswith(x) for x in INSECURE_BACKENDS):
            raise VaultUnavailableError('No system key store is available to protect the password')
        if 'plaintext' in backend_type.__name__.lower():
            raise VaultUnavailableError(
                f'Key store backend "{backend_type.__name__}" keeps secrets in plain text. '
                'Configure a protected keyring backend.')
        logging.debug('Using key store backend %s.%s', module_name, backend_type.__name__)
        self._backend_checked = True

    def put(self, key, secret):
        self.check_backend()
        try:
            keyring.set_password(self.service_name, key, secret)
        except keyring.errors.KeyringError as e:
            raise VaultUnavailableError(f'Unable to store secret in the system key store: {e}') from e

    def get(self, key):
        self.check_backend()
        try:
            return keyring.get_password(self.service_name, key)
        except keyring.errors.KeyringError as e:
            raise VaultUnavailableError(f'Unable to read secret from the system key store: {e}') from e

    def delete(self, key):
        self.check_backend()
        try:
            keyring.delete_password(self.service_name, key)
            return True
        except keyring.errors.PasswordDeleteError:
            logging.debug('Secret "%s" does not exist in the key store', key)
            return False
        except keyring.errors.KeyringError as e:
            raise VaultUnavailableError(f'Unable to delete secret from the system key store: {e}') from e
