#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

import logging

from prompt_toolkit.completion import Completion, Completer

from .commands import commands
from .params import LebuParams

CONNECTION_COMMANDS = {'remove', 'explore', 'sftp', 'ssh', 'db'}


class CommandCompleter(Completer):
    """Completes command names and, for commands taking one, connection names"""
    def __init__(self, params, aliases):    # type: (LebuParams, dict) -> None
        Completer.__init__(self)
        self.params = params
        self.aliases = aliases

    def get_completions(self, document, complete_event):
        if not document.is_cursor_at_the_end:
            return
        text = document.text_before_cursor
        pos = text.find(' ')
        if pos == -1:
            names = sorted(x for x in list(commands) + list(self.aliases) if x.startswith(text))
            for name in names:
                yield Completion(name, start_position=-len(text))
            return

        cmd = text[:pos]
        cmd = self.aliases.get(cmd, cmd)
        if cmd not in CONNECTION_COMMANDS:
            return
        word = document.get_word_before_cursor(WORD=True)
        if word.startswith('-'):
            return
        try:
            names = sorted(x.name for x in self.params.registry.list() if x.name.startswith(word))
        except Exception as e:
            logging.debug('Connection name completion failed: %s', e)
            return
        for name in names:
            yield Completion(name, start_position=-len(word))
