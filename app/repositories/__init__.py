"""
app/repositories package marker.
"""

from app.repositories.employee_repository import EmployeeConflictError, EmployeeRepository

__all__ = [
    "EmployeeConflictError",
    "EmployeeRepository",
]
