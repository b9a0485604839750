"""
app/api/routers package marker.
"""

from app.api.routers.employee_import import router as employee_import_router

__all__ = [
    "employee_import_router",
]
