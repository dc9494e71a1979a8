from fastapi import APIRouter

from event_portal.api.routes import (
    auth,
    departments,
    events,
    health,
    messages,
    resource_availability,
    users,
    websocket,
)

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(departments.router, prefix="/departments", tags=["departments"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(
    resource_availability.router, prefix="/resource-availability", tags=["resource-availability"]
)
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(websocket.router, tags=["websocket"])
