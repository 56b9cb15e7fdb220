"""Import all models so SQLModel.metadata picks them up."""

from app.models.contract import Contract, ContractStatus
from app.models.domain_mapping import DomainMapping, DomainMappingRead, DomainMappingUpsert
from app.models.employee import Employee, EmployeeCreate, EmployeeRead, EmployeeUpdate
from app.models.invoice import (
    CLOSED_INVOICE_STATUSES,
    Invoice,
    InvoiceCreate,
    InvoiceLineIn,
    InvoiceRead,
    InvoiceStatus,
)
from app.models.notification import (
    Notification,
    NotificationPage,
    NotificationRead,
    NotificationStatus,
    NotificationType,
)
from app.models.tenant import Tenant, TenantCreate, TenantRead, TenantUpdate
from app.models.user import User, UserRead, UserRole, UserRoleUpdate

__all__ = [
    "CLOSED_INVOICE_STATUSES",
    "Contract",
    "ContractStatus",
    "DomainMapping",
    "DomainMappingRead",
    "DomainMappingUpsert",
    "Employee",
    "EmployeeCreate",
    "EmployeeRead",
    "EmployeeUpdate",
    "Invoice",
    "InvoiceCreate",
    "InvoiceLineIn",
    "InvoiceRead",
    "InvoiceStatus",
    "Notification",
    "NotificationPage",
    "NotificationRead",
    "NotificationStatus",
    "NotificationType",
    "Tenant",
    "TenantCreate",
    "TenantRead",
    "TenantUpdate",
    "User",
    "UserRead",
    "UserRole",
    "UserRoleUpdate",
]
