import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from errors import TransportError, ValidationError
from settings import sanitize_string

logger = logging.getLogger(__name__)

# ----------------------------
# Constants
# ----------------------------

ACTIVE_COURSE_STATE = 'ACTIVE'
PAGE_SIZE = 100

DEFAULT_TITLE = '5-a-Day Sight Reading Practice'
DEFAULT_DESCRIPTION = "Please complete today's sight reading exercise using the link."
DEFAULT_MATERIAL_URL = 'https://anderson506.github.io/sightreading5aday/'


class WorkType(str, Enum):
    ASSIGNMENT = 'ASSIGNMENT'
    SHORT_ANSWER_QUESTION = 'SHORT_ANSWER_QUESTION'
    MULTIPLE_CHOICE_QUESTION = 'MULTIPLE_CHOICE_QUESTION'


class CourseWorkState(str, Enum):
    PUBLISHED = 'PUBLISHED'
    DRAFT = 'DRAFT'


@dataclass(frozen=True)
class Course:
    id: str
    name: str

    @classmethod
    def from_api(cls, item: dict) -> 'Course':
        return cls(id=item['id'], name=sanitize_string(item.get('name', '')))


@dataclass
class CourseWorkDraft:
    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION
    materials: List[str] = field(default_factory=lambda: [DEFAULT_MATERIAL_URL])
    work_type: WorkType = WorkType.ASSIGNMENT
    state: CourseWorkState = CourseWorkState.PUBLISHED

    def to_resource(self) -> Dict[str, Any]:
        """Build the courseWork request body."""
        return {
            'title': self.title,
            'description': self.description,
            'materials': [{'link': {'url': url}} for url in self.materials],
            'workType': self.work_type.value,
            'state': self.state.value,
        }


class ClassroomClient:
    """Classroom API calls made on behalf of one signed-in session."""

    def __init__(self, session, service=None):
        if session is None:
            raise ValidationError("Please sign in first.")
        self.session = session
        self._service = service

    @property
    def service(self):
        if self._service is None:
            self._service = build('classroom', 'v1', credentials=self.session.credentials,
                                  cache_discovery=False)
        return self._service

    def list_courses(self) -> List[Course]:
        """
        Retrieve all active courses with pagination support.

        Returns:
            List of courses in the order the API returned them

        Raises:
            TransportError: if any page could not be fetched
        """
        courses = []
        page_token = None

        try:
            while True:
                request_params = {
                    'courseStates': [ACTIVE_COURSE_STATE],
                    'pageSize': PAGE_SIZE,
                }
                if page_token:
                    request_params['pageToken'] = page_token

                result = self.service.courses().list(**request_params).execute()
                courses.extend(Course.from_api(item) for item in result.get('courses', []))

                page_token = result.get('nextPageToken')
                if not page_token:
                    break
        except (HttpError, httplib2.HttpLib2Error, GoogleAuthError, OSError) as e:
            logger.error(f"Error listing courses: {str(e)}")
            raise TransportError("Could not load courses") from e

        logger.info(f"Retrieved {len(courses)} active courses")
        return courses

    def create_assignment(self, course_id: Optional[str],
                          draft: Optional[CourseWorkDraft] = None) -> Dict[str, Any]:
        """
        Create a course work item in a course.

        Args:
            course_id: Target course. Must not be empty.
            draft: What to create. A fresh default draft when omitted.

        Returns:
            The created courseWork resource
        """
        if not course_id or not course_id.strip():
            raise ValidationError("Please select a course first.")

        draft = draft or CourseWorkDraft()
        try:
            created = self.service.courses().courseWork().create(
                courseId=course_id,
                body=draft.to_resource()
            ).execute()
        except (HttpError, httplib2.HttpLib2Error, GoogleAuthError, OSError) as e:
            logger.error(f"Error creating assignment in course {course_id}: {str(e)}")
            raise TransportError("Failed to create assignment") from e

        logger.info(f"Created course work {created.get('id')} in course {course_id}")
        return created
