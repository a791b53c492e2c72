from datetime import date, datetime, time, timezone as dt_timezone

import pytest
from django.core.cache import cache

from academics.models import Course, Enrollment, Session, SessionDateHost
from accounts.models import User
from students.models import Student

MONDAY = date(2025, 1, 6)
HOST_LAT = 33.5138
HOST_LON = 36.2765


def at(day, hour, minute=0, second=0):
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=dt_timezone.utc)


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def teacher(db):
    return User.objects.create_teacher(email="teacher@example.com", password="s3cret-pass")


@pytest.fixture
def other_teacher(db):
    return User.objects.create_teacher(email="other@example.com", password="s3cret-pass")


@pytest.fixture
def student_user(db):
    return User.objects.create_user(email="amal@example.com", password="s3cret-pass")


@pytest.fixture
def student(student_user):
    return Student.objects.create(
        user=student_user,
        first_name="Amal",
        last_name="Haddad",
        address="12 Olive St",
        latitude=HOST_LAT,
        longitude=HOST_LON,
    )


@pytest.fixture
def session(teacher):
    course = Course.objects.create(teacher=teacher, name="Arabic Calligraphy")
    return Session.objects.create(
        course=course,
        teacher=teacher,
        start_date=MONDAY,
        end_date=date(2025, 1, 31),
        weekdays="Monday,Wednesday",
        start_time=time(9, 0),
        end_time=time(12, 0),
        location="Main hall",
        grace_period_minutes=15,
        proximity_radius=50,
    )


@pytest.fixture
def enrollment(student, session):
    return Enrollment.objects.create(student=student, session=session, enrollment_date=MONDAY)


@pytest.fixture
def host(session):
    return SessionDateHost.objects.create(
        session=session,
        date=MONDAY,
        host_address="12 Olive St",
        latitude=HOST_LAT,
        longitude=HOST_LON,
    )
