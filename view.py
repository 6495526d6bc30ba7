"""
UI-observable state of the Classroom page.

The view holds what a page would show: which panel is visible, the course
selector, whether the create button is enabled and the feedback line. Front
ends read it; only the controller writes it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class SessionState(str, Enum):
    UNAUTHENTICATED = 'unauthenticated'
    AWAITING_GRANT = 'awaiting_grant'
    IDLE = 'idle'
    LOADING_COURSES = 'loading_courses'
    READY = 'ready'
    CREATING = 'creating'


# Feedback messages
LOADING_COURSES = 'Loading courses...'
NO_ACTIVE_COURSES = 'No active courses found.'
COURSES_LOAD_FAILED = 'Could not load courses.'
SELECT_COURSE_FIRST = 'Please select a course first.'
CREATING_ASSIGNMENT = 'Creating assignment...'
ASSIGNMENT_CREATED = 'Successfully created assignment!'
ASSIGNMENT_FAILED = 'Failed to create assignment.'
SIGN_IN_FAILED = 'Sign-in failed. Please try again.'


@dataclass(frozen=True)
class CourseOption:
    value: str
    text: str


@dataclass
class ClassroomView:
    state: SessionState = SessionState.UNAUTHENTICATED
    sign_in_visible: bool = True
    controls_visible: bool = False
    course_options: List[CourseOption] = field(default_factory=list)
    selected_course_id: str = ''
    create_enabled: bool = True
    feedback: str = ''

    def show_sign_in(self):
        self.sign_in_visible = True
        self.controls_visible = False

    def show_controls(self):
        self.sign_in_visible = False
        self.controls_visible = True

    def set_courses(self, options: List[CourseOption]):
        """Replace the selector contents. The first option becomes the selection."""
        self.course_options = list(options)
        self.selected_course_id = self.course_options[0].value if self.course_options else ''

    def option_for(self, value: str) -> Optional[CourseOption]:
        for option in self.course_options:
            if option.value == value:
                return option
        return None
