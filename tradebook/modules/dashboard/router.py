"""API endpoints for the database dashboard."""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.auth.dependencies import require_roles
from tradebook.core.auth.models import User, UserRole
from tradebook.core.config import settings
from tradebook.core.database.session import get_db
from tradebook.core.exceptions import ValidationError
from tradebook.modules.dashboard.export import export_dashboard_csv, export_dashboard_xlsx
from tradebook.modules.dashboard.schemas import DashboardFilters, DashboardResponse
from tradebook.modules.dashboard.service import DashboardService, row_to_response
from tradebook.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/database-dashboard", tags=["Database Dashboard"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("", response_model=ApiResponse[DashboardResponse])
async def get_database_dashboard(
    search: str | None = Query(None),
    as_of_date: date | None = Query(None, description="Only orders placed on or before this date"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.dashboard_default_limit, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    """One row per catalog item, supplier and customer activity side by side."""
    filters = DashboardFilters(search=search, as_of_date=as_of_date, page=page, limit=limit)
    return ApiResponse(data=await DashboardService(db).get_dashboard(filters))


@router.get("/export")
async def export_database_dashboard(
    format: str = Query("csv", description="Format: csv or xlsx"),
    search: str | None = Query(None),
    as_of_date: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.USER)),
):
    """Export every matching dashboard row (no paging)."""
    fmt = format.lower()
    if fmt not in ("csv", "xlsx"):
        raise ValidationError("Format must be csv or xlsx", field="format")

    filters = DashboardFilters(search=search, as_of_date=as_of_date)
    rows = [row_to_response(row) for row in await DashboardService(db).get_rows(filters)]

    if fmt == "xlsx":
        return Response(
            content=export_dashboard_xlsx(rows),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": "attachment; filename=database_dashboard.xlsx"},
        )
    return Response(
        content=export_dashboard_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=database_dashboard.csv"},
    )
