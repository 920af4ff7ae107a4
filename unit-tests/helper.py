from lebu.adapters.base import ResourceAdapter, ResourceInfo, QueryResult
from lebu.error import NotFoundError
from lebu.sftp.client import RemoteFileEntry, parent_path
from lebu.sftp.navigator import NavigatorUI, NavigatorAction, FILE_BACK


class FakeAdapter(ResourceAdapter):
    engine = 'fake'

    def __init__(self, host='localhost', port=1, user='', password=None, database='', fail_connect=None):
        super().__init__(host, port, user, password, database)
        self.fail_connect = fail_connect
        self.calls = []
        self.rows = [{'id': x, 'name': f'row{x}'} for x in range(1, 201)]

    def _connect(self):
        self.calls.append('connect')
        if self.fail_connect:
            raise self.fail_connect

    def _disconnect(self):
        self.calls.append('disconnect')

    def _list_resources(self):
        return [ResourceInfo('orders', 'table'), ResourceInfo('users', 'table')]

    def _fetch_sample(self, resource, limit):
        self.calls.append(('sample', resource, limit))
        # ignores the limit so the cap of the base class is exercised
        return QueryResult(['id', 'name'], self.rows)

    def _run_query(self, text):
        self.calls.append(('query', text))
        return QueryResult(['id', 'name'], self.rows)


class FakeSftpClient:
    """In-memory remote tree: {directory path: [RemoteFileEntry]}"""
    def __init__(self, tree, broken=None):
        self.tree = tree
        self.broken = set(broken or [])
        self.listed = []
        self.created = []
        self.removed = []
        self.deleted = []
        self.downloaded = []
        self.uploaded = []

    def list(self, path):
        self.listed.append(path)
        if path in self.broken or path not in self.tree:
            raise NotFoundError(f'{path}: No such file or directory')
        return list(self.tree[path])

    def stat(self, path):
        if path in self.tree:
            return RemoteFileEntry(path.rstrip('/').split('/')[-1] or '/', is_directory=True)
        parent = parent_path(path)
        for entry in self.tree.get(parent, []):
            if entry.name == path.rstrip('/').split('/')[-1]:
                return entry
        raise NotFoundError(f'{path}: No such file or directory')

    def create_directory(self, path):
        self.created.append(path)
        self.tree.setdefault(parent_path(path), []).append(
            RemoteFileEntry(path.split('/')[-1], is_directory=True))
        self.tree[path] = []

    def remove_directory(self, path):
        self.removed.append(path)

    def delete(self, path):
        self.deleted.append(path)

    def download(self, remote_path, local_path):
        self.downloaded.append((remote_path, local_path))

    def upload(self, local_path, remote_path):
        self.uploaded.append((local_path, remote_path))


class ScriptedNavigatorUI(NavigatorUI):
    """Replays a fixed list of answers. Runs out into exit"""
    def __init__(self, actions=None, file_actions=None, texts=None, confirmations=None):
        self.actions = list(actions or [])
        self.file_actions = list(file_actions or [])
        self.texts = list(texts or [])
        self.confirmations = list(confirmations or [])
        self.listings = []
        self.errors = []
        self.infos = []
        self.details = []

    def choose_action(self, state, entries):
        self.listings.append((state, [x.name for x in entries]))
        if not self.actions:
            return NavigatorAction('exit')
        action = self.actions.pop(0)
        return action(entries) if callable(action) else action

    def choose_file_action(self, path, entry):
        return self.file_actions.pop(0) if self.file_actions else FILE_BACK

    def ask_text(self, message, default=''):
        text = self.texts.pop(0) if self.texts else ''
        return text or default

    def confirm(self, message):
        return self.confirmations.pop(0) if self.confirmations else False

    def show_details(self, path, entry):
        self.details.append(path)

    def report_error(self, message):
        self.errors.append(message)

    def report_info(self, message):
        self.infos.append(message)
