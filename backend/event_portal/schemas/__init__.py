from .department import (
    DepartmentCreate,
    DepartmentRead,
    DepartmentRequirementsRead,
    DepartmentSyncRead,
    DepartmentSyncRequest,
    DepartmentVisibilityUpdate,
    RequirementCreate,
    RequirementRead,
)
from .event import (
    AttachmentInfo,
    EventCreate,
    EventRead,
    EventStatusUpdate,
    EventUpdate,
    RequirementSelection,
)
from .message import MessageCreate, MessageRead, UnreadCount
from .pagination import ApiResponse, Pagination
from .resource_availability import (
    AvailabilityRead,
    AvailabilitySet,
    AvailabilitySummary,
    BulkAvailabilityItem,
    BulkAvailabilityResult,
    BulkAvailabilitySet,
    BulkItemError,
    CleanupResult,
)
from .user import Token, UserCreate, UserLogin, UserRead, UserSummary

__all__ = [
    "ApiResponse",
    "AttachmentInfo",
    "AvailabilityRead",
    "AvailabilitySet",
    "AvailabilitySummary",
    "BulkAvailabilityItem",
    "BulkAvailabilityResult",
    "BulkAvailabilitySet",
    "BulkItemError",
    "CleanupResult",
    "DepartmentCreate",
    "DepartmentRead",
    "DepartmentRequirementsRead",
    "DepartmentSyncRead",
    "DepartmentSyncRequest",
    "DepartmentVisibilityUpdate",
    "EventCreate",
    "EventRead",
    "EventStatusUpdate",
    "EventUpdate",
    "MessageCreate",
    "MessageRead",
    "Pagination",
    "RequirementCreate",
    "RequirementRead",
    "RequirementSelection",
    "Token",
    "UnreadCount",
    "UserCreate",
    "UserLogin",
    "UserRead",
    "UserSummary",
]
