"""Import all models so they are registered with Base.metadata."""

# ruff: noqa: F401

from src.modules.groups.models import Group
from src.modules.students.models import Student, student_groups
from src.modules.payments.models import Payment
