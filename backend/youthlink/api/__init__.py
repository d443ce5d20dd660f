"""
API router aggregation.

This module exposes a single `api_router` that the FastAPI app
can include with a prefix such as `/api`.
"""

from __future__ import annotations

from fastapi import APIRouter

from . import applications, auth, opportunities, users, verification

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(users.admin_router)
api_router.include_router(verification.router)
api_router.include_router(opportunities.router)
api_router.include_router(applications.router)
