"""
Top-level router for version 1 of the API.

Aggregates the domain routers (auth, tasks, users) under a unified
prefix.  When a new domain is added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import auth, tasks, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
router.include_router(users.router, prefix="/users", tags=["users"])
