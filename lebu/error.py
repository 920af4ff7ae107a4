#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

class Error(Exception):
    """Base class for exceptions in this module."""
    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class CommandError(Error):
    def __init__(self, command, message):
        super().__init__(message)
        self.command = command

    def __str__(self):
        if self.command:
            return f'{self.command}: {self.message}'
        else:
            return super().__str__()


class ConnectError(Error):
    """Network or authentication failure while opening a backend session"""
    def __init__(self, endpoint, message):
        super().__init__(message)
        self.endpoint = endpoint

    def __str__(self):
        if self.endpoint:
            return f'{self.endpoint}: {self.message}'
        return super().__str__()


class NotConnectedError(Error):
    def __init__(self, message='Not connected'):
        super().__init__(message)


class UnsupportedQueryError(Error):
    pass


class NotFoundError(Error):
    pass


class QueryError(Error):
    pass


class RemoteFileError(Error):
    def __init__(self, path, message):
        super().__init__(message)
        self.path = path

    def __str__(self):
        if self.path:
            return f'{self.path}: {self.message}'
        return super().__str__()


class VaultUnavailableError(Error):
    pass


class DuplicateNameError(Error):
    pass
