"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_engine.database import async_session_factory
from kudos_engine.models import Employee
from kudos_engine.models.enums import EmployeeRole
from kudos_engine.services.errors import EmployeeNotFoundError, PermissionDeniedError


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_actor(
    db: DbSession,
    x_employee_id: Annotated[str | None, Header()] = None,
) -> Employee:
    """Resolve the calling employee from the X-Employee-ID header."""
    if not x_employee_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Employee-ID header is required",
        )
    try:
        employee_id = UUID(x_employee_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Employee-ID format",
        )
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise EmployeeNotFoundError(employee_id)
    return employee


async def require_admin(actor: Annotated[Employee, Depends(get_actor)]) -> Employee:
    """Only Admin-role employees may call administrative endpoints."""
    if actor.role != EmployeeRole.ADMIN.value or not actor.is_active:
        raise PermissionDeniedError("Administrator role required")
    return actor


# Type aliases for cleaner dependency injection
Actor = Annotated[Employee, Depends(get_actor)]
AdminActor = Annotated[Employee, Depends(require_admin)]
