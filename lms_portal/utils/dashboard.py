"""Read-side aggregation for the admin dashboard.

Nothing here writes or caches; every call queries the database again.
"""
from datetime import datetime, timedelta
from .. import db
from ..models.student import Student
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.liveclass import LiveClass
from ..models.event import LoginEvent
from .dates import utcnow

TRACKED_ENTITIES = (
    ('students', Student),
    ('courses', Course),
    ('enrollments', Enrollment),
    ('live_classes', LiveClass),
)


def trend_days(window_days, today=None):
    """The trailing ``window_days`` calendar days ending today, oldest first"""
    today = today or utcnow().date()
    return [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]


def daily_counts(model, days):
    """Rows of ``model`` created on each of ``days``; days without rows count 0"""
    start = datetime.combine(days[0], datetime.min.time())
    end = datetime.combine(days[-1] + timedelta(days=1), datetime.min.time())
    day_column = db.func.date(model.created_at)
    rows = (
        db.session.query(day_column, db.func.count(model.id))
        .filter(model.created_at >= start, model.created_at < end)
        .group_by(day_column)
        .all()
    )
    counts = {str(day): count for day, count in rows}
    return [counts.get(day.isoformat(), 0) for day in days]


def compute_trends(window_days=7, today=None):
    if window_days < 1:
        raise ValueError('window_days must be at least 1')
    days = trend_days(window_days, today)
    trends = {name: daily_counts(model, days) for name, model in TRACKED_ENTITIES}
    trends['days'] = [day.isoformat() for day in days]
    return trends


def dashboard_stats():
    now = utcnow()
    first_day_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    upcoming = LiveClass.upcoming()
    next_live_class = upcoming.first()

    return {
        'total_students': Student.query.count(),
        'total_courses': Course.query.count(),
        'total_enrollments': Enrollment.query.count(),
        'active_enrollments': Enrollment.query.filter(Enrollment.valid_until >= now).count(),
        'upcoming_live_classes': upcoming.count(),
        'new_students_this_month': Student.query.filter(Student.created_at >= first_day_of_month).count(),
        'courses_breakdown': {
            'standalone': Course.query.filter_by(type='standalone').count(),
            'with_mba': Course.query.filter_by(type='with-mba').count(),
        },
        'next_live_class': next_live_class.to_dict() if next_live_class else None,
    }


def recent_logins(limit=10):
    events = LoginEvent.query.order_by(LoginEvent.created_at.desc(), LoginEvent.id.desc()).limit(limit).all()
    return [event.to_dict() for event in events]
