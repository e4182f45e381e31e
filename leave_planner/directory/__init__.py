"""Directory module — Employee, Customer, Project and assignment models, schemas and services."""

from leave_planner.directory.models import Customer, Employee, Project, ProjectAssignment

__all__ = ["Employee", "Customer", "Project", "ProjectAssignment"]
