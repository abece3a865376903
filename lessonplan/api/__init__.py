"""
REST API Module

Routers exposing the teaching plan editor.
"""

from lessonplan.api.plan import router as plan_router

__all__ = ["plan_router"]
