"""
报表路由
"""
from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import DashboardSummary
from app.services.report_service import ReportService
from app.services.view_cache import view_cache, REPORTS
from app.security.auth import require_area
from core.security.context import AuthSession

router = APIRouter(prefix="/reports", tags=["报表"])


@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_area("/reports"))
):
    """看板统计"""
    today = date.today()
    return view_cache.get_or_load(
        REPORTS,
        ("dashboard", today.isoformat()),
        lambda: DashboardSummary(**ReportService(db).get_dashboard_summary(today)),
    )
