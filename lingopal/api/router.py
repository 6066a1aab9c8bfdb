"""
API Router
"""

from fastapi import APIRouter

from lingopal.api.friend_requests import router as friend_requests_router
from lingopal.api.friends import router as friends_router
from lingopal.api.health import router as health_router

api_router = APIRouter()

# 1. Routes that DON'T need authentication
api_router.include_router(health_router)

# 2. Routes that DO need authentication (each endpoint takes CurrentUserDep)
api_router.include_router(friend_requests_router)
api_router.include_router(friends_router)
