"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Health and the user routes are open; each protected route
declares get_current_user itself because handlers need the resolved
AuthContext (user id for ownership scoping, raw token for logout).
"""

from fastapi import APIRouter

from todoapi.api.health import router as health_router
from todoapi.api.todos import router as todos_router
from todoapi.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(todos_router, tags=["todos"])
