from eventflow.models.activity import Activity, Schedule  # noqa: F401
from eventflow.models.activity_log import ActivityLog  # noqa: F401
from eventflow.models.category import ActivityCategory, EventArea, EventCategory  # noqa: F401
from eventflow.models.event import EditionDisplay, Event, NameDisplay  # noqa: F401
from eventflow.models.registry import ActivityRegistry, Presence  # noqa: F401
from eventflow.models.room import Room  # noqa: F401
from eventflow.models.user import User  # noqa: F401
