"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.department import Department, JobGrade
from db.models.employee import Employee, EmployeeGender, EmployeeStatusLog, EmploymentStatus

__all__ = [
    "Department",
    "Employee",
    "EmployeeGender",
    "EmployeeStatusLog",
    "EmploymentStatus",
    "JobGrade",
]
