import logging
from typing import Callable, Optional

import view as messages
from auth_flow import AuthFlowCoordinator, AuthResult, Identity, SessionContext
from classroom_client import ClassroomClient, CourseWorkDraft
from errors import AuthError, TransportError
from view import ClassroomView, CourseOption, SessionState

logger = logging.getLogger(__name__)


class ClassroomController:
    """
    Connects sign-in, the Classroom client and the view.

    The controller owns the session for its lifetime. Every Classroom error ends up
    as feedback text on the view; nothing is raised to the caller.
    """

    def __init__(
        self,
        coordinator: AuthFlowCoordinator,
        view: Optional[ClassroomView] = None,
        client_factory: Callable[[SessionContext], ClassroomClient] = ClassroomClient,
    ):
        self.view = view or ClassroomView()
        self.coordinator = coordinator
        self.coordinator.on_identity_confirmed = self.handle_identity_confirmed
        self.coordinator.on_token_acquired = self.handle_token_acquired
        self.coordinator.on_auth_error = self.handle_auth_error
        self._client_factory = client_factory
        self.session: Optional[SessionContext] = None
        self.client: Optional[ClassroomClient] = None

        self.view.show_sign_in()

    # ----------------------------
    # Authentication
    # ----------------------------

    def sign_in(self) -> AuthResult:
        return self.coordinator.begin_sign_in()

    def handle_identity_confirmed(self, identity: Identity):
        self.view.state = SessionState.AWAITING_GRANT

    def handle_token_acquired(self, session: SessionContext):
        self.session = session
        self.client = self._client_factory(session)
        self.view.show_controls()
        self.view.state = SessionState.IDLE
        self.load_courses()

    def handle_auth_error(self, error: AuthError):
        logger.error(f"Error getting access token: {error}")
        self.session = None
        self.client = None
        self.view.state = SessionState.UNAUTHENTICATED
        self.view.show_sign_in()
        self.view.feedback = messages.SIGN_IN_FAILED

    # ----------------------------
    # Courses
    # ----------------------------

    def load_courses(self) -> bool:
        """Fill the course selector. Returns True when the listing succeeded."""
        if self.client is None:
            logger.warning("Course listing requested before sign-in")
            return False

        previous_state = self.view.state
        self.view.feedback = messages.LOADING_COURSES
        self.view.state = SessionState.LOADING_COURSES

        try:
            courses = self.client.list_courses()
        except TransportError as e:
            logger.error(f"Error listing courses: {e}")
            self.view.feedback = messages.COURSES_LOAD_FAILED
            self.view.state = previous_state
            return False

        self.view.set_courses([CourseOption(value=c.id, text=c.name) for c in courses])
        if courses:
            self.view.feedback = ''
            self.view.create_enabled = True
        else:
            self.view.feedback = messages.NO_ACTIVE_COURSES
            self.view.create_enabled = False
        self.view.state = SessionState.READY
        return True

    def select_course(self, course_id: str) -> bool:
        if self.view.option_for(course_id) is None:
            logger.warning(f"Ignoring selection of unknown course {course_id!r}")
            return False
        self.view.selected_course_id = course_id
        return True

    # ----------------------------
    # Assignment creation
    # ----------------------------

    def create_assignment(self, draft: Optional[CourseWorkDraft] = None) -> bool:
        """Create an assignment in the selected course. Returns True on success."""
        course_id = self.view.selected_course_id
        if not course_id.strip() or self.client is None:
            self.view.feedback = messages.SELECT_COURSE_FIRST
            return False

        self.view.feedback = messages.CREATING_ASSIGNMENT
        self.view.create_enabled = False
        self.view.state = SessionState.CREATING

        try:
            self.client.create_assignment(course_id, draft)
            self.view.feedback = messages.ASSIGNMENT_CREATED
            return True
        except TransportError as e:
            logger.error(f"Error creating assignment: {e}")
            self.view.feedback = messages.ASSIGNMENT_FAILED
            return False
        finally:
            self.view.create_enabled = True
            self.view.state = SessionState.READY
