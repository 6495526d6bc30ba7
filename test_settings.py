"""
Unit tests for configuration and input sanitization
"""

import unittest
from unittest.mock import Mock, patch
import json
import os
import tempfile

os.environ['ENVIRONMENT'] = 'local'

import settings

CLIENT_CONFIG = {'installed': {'client_id': 'test-client.apps.googleusercontent.com'}}


class TestSanitizeString(unittest.TestCase):

    def test_plain_string(self):
        self.assertEqual(settings.sanitize_string("Grade 5 Band"), "Grade 5 Band")

    def test_html_tags_removed(self):
        result = settings.sanitize_string("<script>alert('xss')</script >Choir")
        self.assertNotIn("<", result)
        self.assertEqual(settings.sanitize_string("<div>Orchestra</div>"), "Orchestra")

    def test_control_characters_removed(self):
        self.assertEqual(settings.sanitize_string("Music\x00Theory"), "MusicTheory")

    def test_max_length(self):
        self.assertEqual(len(settings.sanitize_string("a" * 3000)), 2000)

    def test_empty(self):
        self.assertEqual(settings.sanitize_string(None), "")
        self.assertEqual(settings.sanitize_string(""), "")


class TestLoadClientConfig(unittest.TestCase):

    def write_config(self, content):
        handle = tempfile.NamedTemporaryFile('w', suffix='.json', delete=False)
        handle.write(content)
        handle.close()
        self.addCleanup(os.remove, handle.name)
        return handle.name

    def test_from_file(self):
        path = self.write_config(json.dumps(CLIENT_CONFIG))

        config = settings.load_client_config(path)

        self.assertEqual(config, CLIENT_CONFIG)
        self.assertEqual(settings.client_id_from_config(config), 'test-client.apps.googleusercontent.com')

    def test_missing_file(self):
        with self.assertRaises(EnvironmentError):
            settings.load_client_config('/nonexistent/client_secrets.json')

    @patch.dict(os.environ, {'GOOGLE_OAUTH_CLIENT_CONFIG': json.dumps({'web': {'client_id': 'web-id'}})})
    def test_from_environment(self):
        config = settings.load_client_config()

        self.assertEqual(settings.client_id_from_config(config), 'web-id')

    def test_invalid_json(self):
        path = self.write_config('not json')

        with self.assertRaises(EnvironmentError) as context:
            settings.load_client_config(path)

        self.assertIn('not valid JSON', str(context.exception))

    def test_missing_client_section(self):
        path = self.write_config(json.dumps({'other': {}}))

        with self.assertRaises(EnvironmentError):
            settings.load_client_config(path)


class TestGetSecret(unittest.TestCase):

    @patch.dict(os.environ, {'SOME_SECRET': 'from-env'})
    @patch('settings.secretmanager.SecretManagerServiceClient')
    def test_environment_wins(self, mock_client):
        self.assertEqual(settings.get_secret('SOME_SECRET'), 'from-env')
        mock_client.assert_not_called()

    @patch('settings.secretmanager.SecretManagerServiceClient')
    def test_secret_manager_lookup(self, mock_client):
        response = Mock()
        response.payload.data = b'{"installed": {}}'
        mock_client.return_value.access_secret_version.return_value = response

        value = settings.get_secret('MISSING_FROM_ENV_SECRET', 'my-project')

        self.assertEqual(value, '{"installed": {}}')
        mock_client.return_value.access_secret_version.assert_called_once_with(
            request={"name": "projects/my-project/secrets/MISSING_FROM_ENV_SECRET/versions/latest"}
        )

    @patch('settings.secretmanager.SecretManagerServiceClient')
    def test_secret_missing_everywhere(self, mock_client):
        mock_client.return_value.access_secret_version.side_effect = Exception('NotFound')

        with self.assertRaises(EnvironmentError):
            settings.get_secret('MISSING_FROM_ENV_SECRET', 'my-project')


class TestEnvironment(unittest.TestCase):

    @patch.dict(os.environ, {'OAUTH_REDIRECT_PORT': '9090', 'OAUTH_REDIRECT_HOST': '127.0.0.1'})
    def test_redirect_overrides(self):
        self.assertEqual(settings.redirect_port(), 9090)
        self.assertEqual(settings.redirect_host(), '127.0.0.1')

    @patch.dict(os.environ, {'OAUTH_REDIRECT_PORT': 'eighty'})
    def test_bad_redirect_port(self):
        with self.assertRaises(EnvironmentError):
            settings.redirect_port()

    def test_default_redirect(self):
        with patch.dict(os.environ):
            os.environ.pop('OAUTH_REDIRECT_PORT', None)
            os.environ.pop('OAUTH_REDIRECT_HOST', None)
            self.assertEqual(settings.redirect_port(), 8080)
            self.assertEqual(settings.redirect_host(), 'localhost')


if __name__ == '__main__':
    unittest.main()
