import logging
from .models import Student

logger = logging.getLogger(__name__)


def student_for_user(user):
    if not getattr(user, "is_authenticated", False):
        return None
    return Student.objects.filter(user=user).first()


def can_manage_session(user, session) -> bool:
    """Admins manage every session; teachers only the sessions they run."""
    if not getattr(user, "is_authenticated", False):
        return False
    if user.is_admin:
        return True
    allowed = user.is_teacher and session.teacher_id == user.pk
    if not allowed:
        logger.warning("Permission denied: user %s cannot manage session %s", user.pk, session.pk)
    return allowed


def can_view_enrollment(user, enrollment) -> bool:
    if not getattr(user, "is_authenticated", False):
        return False
    if enrollment.student.user_id == user.pk:
        return True
    return can_manage_session(user, enrollment.session)
