from .department import Department, DepartmentRequirement, normalize_department_name
from .event import Event
from .message import MAX_MESSAGE_LENGTH, Message
from .resource_availability import ResourceAvailability
from .user import User

__all__ = [
    "Department",
    "DepartmentRequirement",
    "Event",
    "MAX_MESSAGE_LENGTH",
    "Message",
    "ResourceAvailability",
    "User",
    "normalize_department_name",
]
