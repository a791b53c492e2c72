import logging
from django.core.exceptions import ValidationError
from .models import Enrollment, SessionDateHost

logger = logging.getLogger(__name__)


def assign_host(session, day, student=None, address="", latitude=None, longitude=None, cancelled=False):
    """
    Set where a session meets on ``day``.

    A student host must hold an active enrollment with ``can_host``; their
    address and coordinates are copied unless given explicitly. Without a
    student the teacher hosts at ``address``.
    """
    defaults = {
        "host_type": SessionDateHost.HOST_TEACHER,
        "host_student": None,
        "host_address": address or session.location,
        "latitude": latitude,
        "longitude": longitude,
        "is_cancelled": cancelled,
    }
    if student is not None and not cancelled:
        enrollment = Enrollment.objects.filter(student=student, session=session).first()
        if enrollment is None or not enrollment.is_active or not enrollment.can_host:
            raise ValidationError(f"{student} is not able to host this session")
        defaults.update(
            host_type=SessionDateHost.HOST_STUDENT,
            host_student=student,
            host_address=address or student.address,
            latitude=latitude if latitude is not None else student.latitude,
            longitude=longitude if longitude is not None else student.longitude,
        )
        enrollment.host_date = day
        enrollment.save(update_fields=["host_date", "updated_at"])
    host, _ = SessionDateHost.objects.update_or_create(session=session, date=day, defaults=defaults)
    logger.info("Host for session %s on %s set to %s", session.pk, day, host.host_address or "(none)")
    return host
