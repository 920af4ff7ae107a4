import json
import os
import tempfile
from unittest import TestCase, mock

import keyring.errors

from lebu.error import VaultUnavailableError
from lebu.storage.json_file import JsonConnectionStorage
from lebu.vault import KeyringVault, get_password_key


class SecureKeyring:
    pass


class PlaintextKeyring:
    pass


class TestKeyringVault(TestCase):
    def setUp(self):
        self.get_keyring_mock = mock.patch('keyring.get_keyring').start()
        self.get_keyring_mock.return_value = SecureKeyring()
        self.set_password_mock = mock.patch('keyring.set_password').start()
        self.get_password_mock = mock.patch('keyring.get_password').start()
        self.delete_password_mock = mock.patch('keyring.delete_password').start()

    def tearDown(self):
        mock.patch.stopall()

    def test_put_get_delete(self):
        vault = KeyringVault('lebu-test')
        key = get_password_key('abc')
        self.assertEqual(key, 'password:abc')

        vault.put(key, 'secret')
        self.set_password_mock.assert_called_with('lebu-test', key, 'secret')

        self.get_password_mock.return_value = 'secret'
        self.assertEqual(vault.get(key), 'secret')
        self.get_password_mock.assert_called_with('lebu-test', key)

        self.assertTrue(vault.delete(key))
        self.delete_password_mock.assert_called_with('lebu-test', key)

    def test_delete_missing_secret(self):
        self.delete_password_mock.side_effect = keyring.errors.PasswordDeleteError('not found')
        vault = KeyringVault()
        self.assertFalse(vault.delete('password:missing'))

    def test_backend_failure(self):
        self.get_password_mock.side_effect = keyring.errors.KeyringLocked('locked')
        vault = KeyringVault()
        with self.assertRaises(VaultUnavailableError):
            vault.get('password:abc')

        self.set_password_mock.side_effect = keyring.errors.PasswordSetError('denied')
        with self.assertRaises(VaultUnavailableError):
            vault.put('password:abc', 'secret')

    def test_plaintext_backend_is_rejected(self):
        self.get_keyring_mock.return_value = PlaintextKeyring()
        vault = KeyringVault()
        with self.assertRaises(VaultUnavailableError):
            vault.put('password:abc', 'secret')
        self.set_password_mock.assert_not_called()

    def test_fail_backend_is_rejected(self):
        import keyring.backends.fail
        self.get_keyring_mock.return_value = keyring.backends.fail.Keyring()
        vault = KeyringVault()
        with self.assertRaises(VaultUnavailableError):
            vault.get('password:abc')
        self.get_password_mock.assert_not_called()


class TestJsonConnectionStorage(TestCase):
    def setUp(self):
        self.folder = tempfile.TemporaryDirectory()
        self.filename = os.path.join(self.folder.name, 'nested', 'connections.json')

    def tearDown(self):
        self.folder.cleanup()

    def test_missing_file(self):
        storage = JsonConnectionStorage(self.filename)
        self.assertEqual(storage.load(), [])

    def test_store_and_load(self):
        storage = JsonConnectionStorage(self.filename)
        storage.store([{'id': '1', 'name': 'web', 'kind': 'shell'}])
        self.assertTrue(os.path.isfile(self.filename))
        self.assertFalse(os.path.exists(self.filename + '.tmp'))
        if os.name == 'posix':
            self.assertEqual(os.stat(self.filename).st_mode & 0o777, 0o600)

        with open(self.filename, 'r') as f:
            data = json.load(f)
        self.assertEqual(data['connections'][0]['name'], 'web')
        self.assertEqual(storage.load(), [{'id': '1', 'name': 'web', 'kind': 'shell'}])

    def test_unexpected_format(self):
        os.makedirs(os.path.dirname(self.filename))
        with open(self.filename, 'w') as f:
            json.dump([1, 2, 3], f)
        storage = JsonConnectionStorage(self.filename)
        with mock.patch('logging.warning') as mock_warning:
            self.assertEqual(storage.load(), [])
            mock_warning.assert_called()
