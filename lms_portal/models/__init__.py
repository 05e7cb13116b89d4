from .user import User
from .student import Student
from .course import Course, CourseModule
from .enrollment import Enrollment, CompletedModule, QuizAttempt
from .liveclass import LiveClass
from .session import AuthSession, SessionManager, session_manager
from .event import (
    ActivityEvent,
    LoginEvent,
    EnrollmentCreatedEvent,
    ModuleCompletedEvent,
    QuizAttemptedEvent,
    WatchTimeEvent,
    DocumentViewEvent
)
from .recording import Recording
from .teacher import TeacherAssignment
