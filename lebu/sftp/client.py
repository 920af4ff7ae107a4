# -*- coding: utf-8 -*-
#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""SFTP client
   Dependencies:
       pip install paramiko
"""

import datetime
import errno
import io
import logging
import os
import posixpath
import socket
import stat
from typing import Optional, List, Callable, Any

import paramiko

from ..adapters.base import UNCONNECTED, CONNECTED, DISCONNECTED
from ..connection import Connection, AUTH_PASSWORD
from ..error import ConnectError, NotConnectedError, NotFoundError, RemoteFileError

logging.getLogger("paramiko").setLevel(logging.WARNING)

PERMISSION_BITS = (
    (stat.S_IRUSR, 'r'), (stat.S_IWUSR, 'w'), (stat.S_IXUSR, 'x'),
    (stat.S_IRGRP, 'r'), (stat.S_IWGRP, 'w'), (stat.S_IXGRP, 'x'),
    (stat.S_IROTH, 'r'), (stat.S_IWOTH, 'w'), (stat.S_IXOTH, 'x'),
)

PRIVATE_KEY_TYPES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


def format_permissions(mode):    # type: (Optional[int]) -> str
    mode = mode or 0
    return ''.join(flag if mode & bit else '-' for bit, flag in PERMISSION_BITS)


def parent_path(path):    # type: (str) -> str
    parent = posixpath.dirname(path.rstrip('/'))
    return parent or '/'


def join_path(directory, name):    # type: (str, str) -> str
    return posixpath.join(directory or '/', name)


def load_private_key(key_material, passphrase=None):    # type: (str, Optional[str]) -> paramiko.PKey
    for key_type in PRIVATE_KEY_TYPES:
        try:
            return key_type.from_private_key(io.StringIO(key_material), password=passphrase)
        except paramiko.SSHException as e:
            logging.debug('Private key is not %s: %s', key_type.__name__, e)
    raise ValueError('Unsupported private key format. Expected Ed25519, ECDSA or RSA key')


class RemoteFileEntry:
    """One item of a remote directory listing"""
    def __init__(self, name, is_directory=False, size=0, modify_time=None, permissions='---------'):
        # type: (str, bool, int, Optional[datetime.datetime], str) -> None
        self.name = name
        self.is_directory = is_directory
        self.size = size
        self.modify_time = modify_time
        self.permissions = permissions

    @property
    def is_hidden(self):    # type: () -> bool
        return self.name.startswith('.')

    @classmethod
    def from_attributes(cls, attributes, name=None):
        # type: (paramiko.SFTPAttributes, Optional[str]) -> RemoteFileEntry
        mode = attributes.st_mode or 0
        modify_time = None
        if attributes.st_mtime is not None:
            modify_time = datetime.datetime.fromtimestamp(attributes.st_mtime)
        return cls(name if name is not None else attributes.filename,
                   is_directory=stat.S_ISDIR(mode),
                   size=attributes.st_size or 0,
                   modify_time=modify_time,
                   permissions=format_permissions(mode))

    def __repr__(self):
        return f'RemoteFileEntry({self.name!r}, is_directory={self.is_directory})'


class SftpClient:
    def __init__(self, host, port=22, user='', key_path=None, key_material=None, password=None,
                 auto_accept_fingerprint=False, timeout=10):
        self.host = host
        self.port = port or 22
        self.user = user
        self.key_path = key_path                # type: Optional[str]
        self.key_material = key_material        # type: Optional[str]
        self.password = password                # type: Optional[str]
        self.auto_accept_fingerprint = auto_accept_fingerprint
        self.timeout = timeout
        self._ssh = None       # type: Optional[paramiko.SSHClient]
        self._sftp = None      # type: Optional[paramiko.SFTPClient]
        self._state = UNCONNECTED

    @classmethod
    def from_connection(cls, connection):    # type: (Connection) -> SftpClient
        details = connection.details
        password = connection.secret if details.auth_method == AUTH_PASSWORD else None
        return cls(connection.host, connection.port, details.user, key_path=details.key_path,
                   password=password, auto_accept_fingerprint=details.auto_accept_fingerprint)

    @property
    def state(self):    # type: () -> str
        return self._state

    @property
    def endpoint(self):    # type: () -> str
        return f'{self.user}@{self.host}:{self.port}' if self.user else f'{self.host}:{self.port}'

    def connect(self):    # type: () -> None
        if self._state != UNCONNECTED:
            raise NotConnectedError(f'SFTP session to {self.endpoint} cannot be reopened')

        logging.debug('SFTP: connecting to %s', self.endpoint)
        ssh = paramiko.SSHClient()
        try:
            if self.auto_accept_fingerprint:
                ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
            else:
                ssh.load_system_host_keys()
                ssh.set_missing_host_key_policy(paramiko.RejectPolicy())

            pkey = load_private_key(self.key_material) if self.key_material else None
            key_filename = os.path.expanduser(self.key_path) if self.key_path else None
            has_credentials = bool(pkey or key_filename or self.password)
            ssh.connect(hostname=self.host, port=self.port, username=self.user or None,
                        password=self.password or None, pkey=pkey, key_filename=key_filename,
                        timeout=self.timeout, allow_agent=not has_credentials, look_for_keys=not has_credentials)
            self._sftp = ssh.open_sftp()
        except paramiko.AuthenticationException as e:
            self._close_failed(ssh)
            raise ConnectError(self.endpoint, f'Authentication failed: {e}') from e
        except (paramiko.SSHException, socket.error, ValueError) as e:
            self._close_failed(ssh)
            raise ConnectError(self.endpoint, str(e) or type(e).__name__) from e

        self._ssh = ssh
        self._state = CONNECTED
        logging.debug('SFTP: connected to %s', self.endpoint)

    def _close_failed(self, ssh):
        self._state = DISCONNECTED
        self._sftp = None
        try:
            ssh.close()
        except Exception as e:
            logging.debug('SFTP: error releasing session: %s', e)

    def disconnect(self):    # type: () -> None
        if self._state == DISCONNECTED:
            return
        self._state = DISCONNECTED
        sftp, ssh = self._sftp, self._ssh
        self._sftp = None
        self._ssh = None
        try:
            if sftp:
                sftp.close()
        finally:
            if ssh:
                ssh.close()
                logging.debug('SFTP: disconnected from %s', self.endpoint)

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def _call(self, path, action):    # type: (str, Callable[[paramiko.SFTPClient], Any]) -> Any
        if self._state != CONNECTED:
            raise NotConnectedError(f'SFTP client is {self._state}')
        try:
            return action(self._sftp)
        except FileNotFoundError as e:
            raise NotFoundError(f'{path}: No such file or directory') from e
        except (IOError, paramiko.SSHException) as e:
            if getattr(e, 'errno', None) == errno.ENOENT:
                raise NotFoundError(f'{path}: No such file or directory') from e
            raise RemoteFileError(path, getattr(e, 'strerror', None) or str(e) or type(e).__name__) from e
        except EOFError as e:
            raise RemoteFileError(path, 'Connection closed') from e

    def list(self, path):    # type: (str) -> List[RemoteFileEntry]
        attributes = self._call(path, lambda x: x.listdir_attr(path))
        entries = [RemoteFileEntry.from_attributes(x) for x in attributes if x.filename not in ('.', '..')]
        entries.sort(key=lambda x: (not x.is_directory, x.name))
        return entries

    def stat(self, path):    # type: (str) -> RemoteFileEntry
        attributes = self._call(path, lambda x: x.stat(path))
        return RemoteFileEntry.from_attributes(attributes, posixpath.basename(path.rstrip('/')) or '/')

    def download(self, remote_path, local_path):    # type: (str, str) -> None
        local_dir = os.path.dirname(os.path.abspath(local_path))
        if not os.path.isdir(local_dir):
            raise RemoteFileError(local_path, 'Local directory does not exist')
        self._call(remote_path, lambda x: x.get(remote_path, local_path))
        logging.debug('SFTP: downloaded %s to %s', remote_path, local_path)

    def upload(self, local_path, remote_path):    # type: (str, str) -> None
        if not os.path.isfile(local_path):
            raise NotFoundError(f'{local_path}: Local file does not exist')
        self._call(remote_path, lambda x: x.put(local_path, remote_path))
        logging.debug('SFTP: uploaded %s to %s', local_path, remote_path)

    def delete(self, path):    # type: (str) -> None
        self._call(path, lambda x: x.remove(path))

    def remove_directory(self, path):    # type: (str) -> None
        self._call(path, lambda x: x.rmdir(path))

    def create_directory(self, path):    # type: (str) -> None
        self._call(path, lambda x: x.mkdir(path))
