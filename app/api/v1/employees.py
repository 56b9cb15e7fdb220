"""Employees — HR module. Document dates trigger an immediate expiry check."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import select

from app.api.deps import AuthContext, Session, require_module
from app.models.base import utcnow
from app.models.employee import Employee, EmployeeCreate, EmployeeRead, EmployeeUpdate
from app.services.expiry_checks import check_employee_expiries_immediate

router = APIRouter(prefix="/employees", tags=["employees"])

HrAuth = Annotated[AuthContext, Depends(require_module("hr"))]

_EXPIRY_FIELDS = frozenset({"passport_expiry", "visa_expiry", "insurance_expiry"})


@router.get("", response_model=list[EmployeeRead])
async def list_employees(auth: HrAuth, session: Session) -> list[EmployeeRead]:
    stmt = (
        select(Employee)
        .where(Employee.tenant_id == auth.tenant_id)
        .order_by(Employee.full_name.asc())  # type: ignore[attr-defined]
    )
    result = await session.execute(stmt)
    return [EmployeeRead.model_validate(e) for e in result.scalars().all()]


@router.post("", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
async def create_employee(body: EmployeeCreate, auth: HrAuth, session: Session) -> EmployeeRead:
    employee = Employee(tenant_id=auth.tenant_id, **body.model_dump())
    session.add(employee)
    await session.commit()
    await session.refresh(employee)

    read = EmployeeRead.model_validate(employee)
    await check_employee_expiries_immediate(session, employee)
    return read


@router.patch("/{employee_id}", response_model=EmployeeRead)
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    auth: HrAuth,
    session: Session,
) -> EmployeeRead:
    stmt = select(Employee).where(
        Employee.id == employee_id,
        Employee.tenant_id == auth.tenant_id,
    )
    employee = (await session.execute(stmt)).scalar_one_or_none()
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(employee, field, value)
    employee.updated_at = utcnow()
    session.add(employee)
    await session.commit()
    await session.refresh(employee)

    read = EmployeeRead.model_validate(employee)
    if _EXPIRY_FIELDS & update_data.keys():
        await check_employee_expiries_immediate(session, employee)
    return read
