"""Auth router — caller introspection."""

from fastapi import APIRouter, Depends

from leave_planner.auth.dependencies import get_current_user
from leave_planner.directory.models import Employee
from leave_planner.directory.schemas import EmployeeResponse

router = APIRouter(prefix="", tags=["auth"])


@router.get("/me", response_model=EmployeeResponse)
async def me(employee: Employee = Depends(get_current_user)):
    """Return the employee the request is authenticated as."""
    return employee
