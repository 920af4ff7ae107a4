#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

"""Interactive remote filesystem browser.

   The navigator is a loop over ``NavigatorState`` values. Every iteration lists
   the current directory again, asks the UI for an action and computes the next
   state. ``None`` ends the loop.
"""

import abc
import logging
import os
from typing import Optional, List, NamedTuple

from .client import SftpClient, RemoteFileEntry, join_path, parent_path
from ..error import NotFoundError, RemoteFileError

ACTION_OPEN = 'open'
ACTION_UP = 'up'
ACTION_FILE = 'file'
ACTION_UPLOAD = 'upload'
ACTION_MKDIR = 'mkdir'
ACTION_RMDIR = 'rmdir'
ACTION_HIDDEN = 'hidden'
ACTION_EXIT = 'exit'

FILE_DOWNLOAD = 'download'
FILE_DELETE = 'delete'
FILE_DETAILS = 'details'
FILE_BACK = 'back'

DEFAULT_START_PATH = '/home'


class NavigatorState(NamedTuple):
    current_path: str
    show_hidden: bool = False


class NavigatorAction(NamedTuple):
    kind: str
    entry: Optional[RemoteFileEntry] = None


class NavigatorUI(abc.ABC):
    @abc.abstractmethod
    def choose_action(self, state, entries):    # type: (NavigatorState, List[RemoteFileEntry]) -> NavigatorAction
        pass

    @abc.abstractmethod
    def choose_file_action(self, path, entry):    # type: (str, RemoteFileEntry) -> str
        pass

    @abc.abstractmethod
    def ask_text(self, message, default=''):    # type: (str, str) -> str
        pass

    @abc.abstractmethod
    def confirm(self, message):    # type: (str) -> bool
        pass

    @abc.abstractmethod
    def show_details(self, path, entry):    # type: (str, RemoteFileEntry) -> None
        pass

    def report_error(self, message):    # type: (str) -> None
        logging.error(message)

    def report_info(self, message):    # type: (str) -> None
        logging.info(message)


class FilesystemNavigator:
    def __init__(self, client, ui, start_path=DEFAULT_START_PATH, download_dir='.'):
        # type: (SftpClient, NavigatorUI, str, str) -> None
        self.client = client
        self.ui = ui
        self.start_path = start_path or DEFAULT_START_PATH
        self.download_dir = download_dir or '.'

    def initial_state(self):    # type: () -> NavigatorState
        try:
            if self.client.stat(self.start_path).is_directory:
                return NavigatorState(self.start_path)
        except (NotFoundError, RemoteFileError) as e:
            logging.debug('Start directory "%s" is not available: %s', self.start_path, e)
        return NavigatorState('/')

    def run(self, state=None):    # type: (Optional[NavigatorState]) -> None
        if state is None:
            state = self.initial_state()
        while state is not None:
            state = self.step(state)

    def step(self, state):    # type: (NavigatorState) -> Optional[NavigatorState]
        try:
            entries = self.client.list(state.current_path)
        except (NotFoundError, RemoteFileError) as e:
            self.ui.report_error(f'Failed to list directory: {e}')
            if state.current_path == '/':
                return None
            return NavigatorState(parent_path(state.current_path))

        if not state.show_hidden:
            entries = [x for x in entries if not x.is_hidden]
        action = self.ui.choose_action(state, entries)
        return self.apply(state, action)

    def apply(self, state, action):    # type: (NavigatorState, NavigatorAction) -> Optional[NavigatorState]
        path = state.current_path
        if action.kind == ACTION_EXIT:
            return None
        if action.kind == ACTION_OPEN and action.entry:
            return NavigatorState(join_path(path, action.entry.name))
        if action.kind == ACTION_UP:
            return NavigatorState(parent_path(path))
        if action.kind == ACTION_HIDDEN:
            return NavigatorState(path, show_hidden=True)

        try:
            if action.kind == ACTION_FILE and action.entry:
                self.file_action(path, action.entry)
            elif action.kind == ACTION_UPLOAD:
                self.upload(path)
            elif action.kind == ACTION_MKDIR:
                self.create_directory(path)
            elif action.kind == ACTION_RMDIR and action.entry:
                self.remove_directory(path, action.entry)
        except (NotFoundError, RemoteFileError) as e:
            self.ui.report_error(str(e))
        return NavigatorState(path)

    def file_action(self, path, entry):    # type: (str, RemoteFileEntry) -> None
        remote_path = join_path(path, entry.name)
        file_action = self.ui.choose_file_action(path, entry)
        if file_action == FILE_DOWNLOAD:
            default_path = os.path.join(self.download_dir, entry.name)
            local_path = self.ui.ask_text('Save to', default_path) or default_path
            local_path = os.path.expanduser(local_path)
            self.client.download(remote_path, local_path)
            self.ui.report_info(f'Downloaded to {local_path}')
        elif file_action == FILE_DELETE:
            if self.ui.confirm(f'Delete "{entry.name}"?'):
                self.client.delete(remote_path)
                self.ui.report_info(f'Deleted {entry.name}')
        elif file_action == FILE_DETAILS:
            self.ui.show_details(remote_path, entry)

    def upload(self, path):    # type: (str) -> None
        local_path = os.path.expanduser(self.ui.ask_text('Local file path').strip())
        if not local_path:
            return
        if not os.path.isfile(local_path):
            self.ui.report_error(f'File not found: {local_path}')
            return
        file_name = os.path.basename(local_path)
        remote_name = self.ui.ask_text('Save as', file_name).strip() or file_name
        self.client.upload(local_path, join_path(path, remote_name))
        self.ui.report_info(f'Uploaded {remote_name}')

    def create_directory(self, path):    # type: (str) -> None
        name = self.ui.ask_text('Folder name').strip()
        if not name:
            self.ui.report_error('Folder name is required')
            return
        self.client.create_directory(join_path(path, name))
        self.ui.report_info(f'Created {name}')

    def remove_directory(self, path, entry):    # type: (str, RemoteFileEntry) -> None
        if not entry.is_directory:
            self.ui.report_error(f'"{entry.name}" is not a directory')
            return
        if self.ui.confirm(f'Remove directory "{entry.name}"?'):
            self.client.remove_directory(join_path(path, entry.name))
            self.ui.report_info(f'Removed {entry.name}')
