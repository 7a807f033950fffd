from fastapi import APIRouter
from app.routers import (
    auth, departments, employees, salary, payroll,
    leave, leave_types, leave_balances, profile_edits, reports
)

# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(departments.router, tags=["Departments"])
api_router.include_router(employees.router, tags=["Employees"])
api_router.include_router(salary.router, tags=["Salary"])
api_router.include_router(payroll.router, tags=["Payroll"])
api_router.include_router(leave_types.router, tags=["Leave Types"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(leave_balances.router, tags=["Leave Balances"])
api_router.include_router(profile_edits.router, tags=["Profile Edits"])
api_router.include_router(reports.router, tags=["Reports"])
