from enum import Enum




class UserRole(str, Enum):
    VOLUNTEER = "volunteer"
    ORGANIZATION = "organization"
    ADMIN = "admin"


class EventStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    COMPLETED = "completed"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    APPLICATION_UPDATED = "application_updated"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    EVENT_REMINDER = "event_reminder"
    EVENT_COMPLETED = "event_completed"


# Forward-only event status moves; anything else is refused
EVENT_STATUS_TRANSITIONS = {
    EventStatus.OPEN.value: {EventStatus.CLOSED.value, EventStatus.COMPLETED.value},
    EventStatus.CLOSED.value: {EventStatus.COMPLETED.value},
    EventStatus.COMPLETED.value: set(),
}
