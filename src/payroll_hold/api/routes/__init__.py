"""API routes."""

from payroll_hold.api.routes.employees import router as employees_router
from payroll_hold.api.routes.health import router as health_router
from payroll_hold.api.routes.hold import router as hold_router
from payroll_hold.api.routes.salary import router as salary_router

__all__ = ["employees_router", "health_router", "hold_router", "salary_router"]
