import logging
from typing import Optional

import requests
from google.oauth2.credentials import Credentials

import settings
import view as messages
from auth_flow import Identity, SessionContext
from classroom_client import ClassroomClient
from errors import AuthError, TransportError, ValidationError

# ----------------------------
# Configuration & Setup
# ----------------------------

settings.configure_logging()

logger = logging.getLogger(__name__)

TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


# ----------------------------
# Authentication & Authorization
# ----------------------------

def bearer_token(request) -> Optional[str]:
    """Extract the access token from the Authorization header."""
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    token = auth_header[len('Bearer '):].strip()
    return token or None


def lookup_token_identity(access_token: str) -> Identity:
    """
    Confirm an access token with Google and return who it belongs to.

    Raises:
        AuthError: if the token is invalid, expired or lacks the Classroom scopes
    """
    try:
        response = requests.get(
            TOKENINFO_URL,
            params={'access_token': access_token},
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Token lookup failed: {str(e)}")
        raise AuthError("Token could not be verified") from e

    if response.status_code != 200:
        logger.warning(f"Token rejected by Google: HTTP {response.status_code}")
        raise AuthError("Invalid or expired access token")

    try:
        info = response.json()
    except ValueError as e:
        logger.error(f"Token lookup returned an unreadable body: {str(e)}")
        raise AuthError("Token could not be verified") from e

    granted = set((info.get('scope') or '').split())
    missing = [scope for scope in settings.CLASSROOM_SCOPES if scope not in granted]
    if missing:
        raise AuthError(f"Access token is missing scopes: {', '.join(missing)}")

    return Identity(subject=info.get('sub', ''), email=info.get('email', ''))


def session_from_request(request) -> SessionContext:
    token = bearer_token(request)
    if not token:
        raise AuthError("Missing bearer token")
    identity = lookup_token_identity(token)
    return SessionContext(identity=identity, credentials=Credentials(token=token))


# ----------------------------
# Handlers
# ----------------------------

def list_courses_response(client: ClassroomClient):
    try:
        courses = client.list_courses()
    except TransportError:
        return {"error": messages.COURSES_LOAD_FAILED}, 502

    result = {"courses": [{"id": c.id, "name": c.name} for c in courses]}
    if not courses:
        result["message"] = messages.NO_ACTIVE_COURSES
    return result


def create_assignment_response(client: ClassroomClient, request):
    body = request.get_json(silent=True) or {}
    course_id = settings.sanitize_string(body.get('courseId'), max_length=64)

    try:
        created = client.create_assignment(course_id)
    except ValidationError:
        return {"error": messages.SELECT_COURSE_FIRST}, 400
    except TransportError:
        return {"error": messages.ASSIGNMENT_FAILED}, 502

    return {
        "status": "ok",
        "message": messages.ASSIGNMENT_CREATED,
        "courseWork": created,
    }


def classroom_assignments(request):
    """
    Cloud Function entry point.

    GET lists the caller's active courses. POST {"courseId": ...} creates the
    sight reading assignment in that course.

    Args:
        request: Flask request object carrying the caller's access token

    Returns:
        JSON response, with an HTTP status on errors
    """
    try:
        if request.method not in ('GET', 'POST'):
            return {"error": "Method not allowed"}, 405

        try:
            session = session_from_request(request)
        except AuthError as e:
            logger.error(f"Authentication failed: {str(e)}")
            return {"error": "Unauthorized"}, 401

        client = ClassroomClient(session)
        if request.method == 'GET':
            return list_courses_response(client)
        return create_assignment_response(client, request)

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}")
        return {"error": "Internal server error"}, 500
