import json
import logging
import os
import re
from typing import Optional, Dict, Any

from google.auth import default
from google.cloud import logging as cloud_logging
from google.cloud import secretmanager

logger = logging.getLogger(__name__)

# ----------------------------
# Constants
# ----------------------------

IDENTITY_SCOPES = [
    'openid',
    'https://www.googleapis.com/auth/userinfo.email',
    'https://www.googleapis.com/auth/userinfo.profile',
]

# Permissions requested after the user has signed in
CLASSROOM_SCOPES = [
    'https://www.googleapis.com/auth/classroom.courses.readonly',
    'https://www.googleapis.com/auth/classroom.coursework.me',
]

CLIENT_CONFIG_SECRET_ID = 'GOOGLE_OAUTH_CLIENT_CONFIG'

DEFAULT_REDIRECT_HOST = 'localhost'
DEFAULT_REDIRECT_PORT = 8080


# ----------------------------
# Logging
# ----------------------------

def configure_logging() -> None:
    """Route logs to Cloud Logging, or to stderr locally or when it is unavailable."""
    if not is_local():
        try:
            logging_client = cloud_logging.Client()
            logging_client.setup_logging()
            return
        except Exception:
            pass
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


# ----------------------------
# Environment & Secret Management
# ----------------------------

def is_local() -> bool:
    return os.environ.get('ENVIRONMENT') == 'local'


def get_secret(secret_id: str, project_id: Optional[str] = None) -> str:
    """
    Retrieve a secret from Google Secret Manager.
    Falls back to environment variable if Secret Manager is not available.

    Args:
        secret_id: The ID of the secret to retrieve
        project_id: Optional GCP project ID. If not provided, uses default credentials

    Returns:
        The secret value as a string
    """
    # Try environment variable first for local development
    env_value = os.environ.get(secret_id)
    if env_value:
        logger.info(f"Using environment variable for {secret_id}")
        return env_value

    try:
        client = secretmanager.SecretManagerServiceClient()
        if not project_id:
            credentials, project_id = default()
            if not project_id:
                raise EnvironmentError("Unable to determine GCP project ID")

        name = f"projects/{project_id}/secrets/{secret_id}/versions/latest"
        response = client.access_secret_version(request={"name": name})
        secret_value = response.payload.data.decode('UTF-8')
        logger.info(f"Retrieved {secret_id} from Secret Manager")
        return secret_value
    except Exception as e:
        logger.error(f"Failed to retrieve secret {secret_id}: {str(e)}")
        raise EnvironmentError(f"Secret {secret_id} not found in environment or Secret Manager")


def load_client_config(credentials_file: Optional[str] = None,
                       project_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the OAuth 2.0 client configuration.

    A client secrets file wins over the GOOGLE_OAUTH_CLIENT_CONFIG secret.

    Raises:
        EnvironmentError: if no configuration can be found or it is not valid JSON
    """
    if credentials_file:
        if not os.path.exists(credentials_file):
            raise EnvironmentError(f"Credentials file not found: {credentials_file}")
        with open(credentials_file, 'r') as f:
            raw = f.read()
    else:
        raw = get_secret(CLIENT_CONFIG_SECRET_ID, project_id)

    try:
        config = json.loads(raw)
    except ValueError:
        raise EnvironmentError("OAuth client configuration is not valid JSON")

    if 'installed' not in config and 'web' not in config:
        raise EnvironmentError("OAuth client configuration must contain an 'installed' or 'web' section")
    return config


def client_id_from_config(client_config: Dict[str, Any]) -> str:
    section = client_config.get('installed') or client_config.get('web') or {}
    return section.get('client_id', '')


def redirect_host() -> str:
    return os.environ.get('OAUTH_REDIRECT_HOST') or DEFAULT_REDIRECT_HOST


def redirect_port() -> int:
    raw = os.environ.get('OAUTH_REDIRECT_PORT')
    if not raw:
        return DEFAULT_REDIRECT_PORT
    try:
        return int(raw)
    except ValueError:
        raise EnvironmentError(f"OAUTH_REDIRECT_PORT must be an integer, got {raw!r}")


# ----------------------------
# Input Sanitization
# ----------------------------

def sanitize_string(input_str: Optional[str], max_length: int = 2000) -> str:
    """
    Sanitize string input before it is displayed or sent upstream.

    Args:
        input_str: The string to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not input_str:
        return ""

    # Remove null bytes and control characters
    sanitized = ''.join(char for char in input_str if ord(char) >= 32 or char in '\n\r\t')

    sanitized = sanitized[:max_length]

    # Course names and ids shouldn't contain HTML
    sanitized = re.sub(r'<[^>]*>', '', sanitized)

    return sanitized.strip()
