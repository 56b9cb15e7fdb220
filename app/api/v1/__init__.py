"""V1 API router aggregation."""

from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.domains import router as domains_router
from app.api.v1.employees import router as employees_router
from app.api.v1.invoices import router as invoices_router
from app.api.v1.notifications import router as notifications_router
from app.api.v1.system import router as system_router
from app.api.v1.tenants import router as tenants_router
from app.api.v1.users import router as users_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(tenants_router)
v1_router.include_router(domains_router)
v1_router.include_router(auth_router)
v1_router.include_router(users_router)
v1_router.include_router(notifications_router)
v1_router.include_router(employees_router)
v1_router.include_router(invoices_router)
v1_router.include_router(system_router)
