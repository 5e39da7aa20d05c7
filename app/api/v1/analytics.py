"""
Analytics API

Daily/weekly/monthly/entity reports per ad source, the integrated Meta + Naver
report, and the narrative context consumed by the AI summary.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from datetime import date
import traceback

from app.core.deps import get_analytics_service
from app.models.enums import MetaView, NaverView
from app.services.analytics.facts import InvalidMeasureError
from app.services.analytics.service import AnalyticsService, ClientNotFoundError
from app.services.fact_store import FactStoreError

router = APIRouter(prefix="/analytics", tags=["Analytics"])


# ========================================
# Helper Functions
# ========================================

def to_http_error(endpoint: str, e: Exception) -> HTTPException:
    """Map service errors to HTTP errors"""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, ClientNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidMeasureError):
        print(f"[ANALYTICS ERROR] {endpoint}: {traceback.format_exc()}")
        return HTTPException(status_code=500, detail=f"Invalid fact data: {str(e)}")
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, FactStoreError):
        print(f"[ANALYTICS ERROR] {endpoint}: {traceback.format_exc()}")
        return HTTPException(status_code=500, detail=f"Database error: {str(e)}")
    print(f"[ANALYTICS ERROR] {endpoint}: {traceback.format_exc()}")
    return HTTPException(status_code=500, detail="Internal server error")


# ========================================
# Endpoints
# ========================================

@router.get("/meta")
async def get_meta_analytics(
    client_id: Optional[str] = Query(None, description="Client ID"),
    client_slug: Optional[str] = Query(None, description="Client slug (used when client_id is absent)"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    view: MetaView = Query(MetaView.ALL, description="Which arrays to populate"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Meta ads report: daily, weekly, monthly, campaigns, ads, summary and total row.
    """
    try:
        resolved = await service.resolve_client_id(client_id, client_slug)
        report = await service.paid_social_report(resolved, start_date, end_date, view)
        return {"success": True, "client_id": resolved, **report}
    except Exception as e:
        raise to_http_error("/meta", e)


@router.get("/naver")
async def get_naver_analytics(
    client_id: Optional[str] = Query(None, description="Client ID"),
    client_slug: Optional[str] = Query(None, description="Client slug (used when client_id is absent)"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    view: NaverView = Query(NaverView.ALL, description="Which arrays to populate"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Naver Place keyword ads report: daily, weekly, monthly, keywords, summary and total row.
    """
    try:
        resolved = await service.resolve_client_id(client_id, client_slug)
        report = await service.local_search_report(resolved, start_date, end_date, view)
        return {"success": True, "client_id": resolved, **report}
    except Exception as e:
        raise to_http_error("/naver", e)


@router.get("/naver/keyword")
async def get_naver_keyword(
    client_id: Optional[str] = Query(None, description="Client ID"),
    client_slug: Optional[str] = Query(None, description="Client slug (used when client_id is absent)"),
    keyword: Optional[str] = Query(None, description="Keyword for the daily trend; omit for the ranked list"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(50, ge=1, le=1000),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Daily trend of one keyword, or the keyword list ranked by cost.
    """
    try:
        resolved = await service.resolve_client_id(client_id, client_slug)
        if keyword and keyword.strip():
            return await service.keyword_detail(resolved, keyword, start_date, end_date)
        return await service.keyword_list(resolved, start_date, end_date, limit=limit)
    except Exception as e:
        raise to_http_error("/naver/keyword", e)


@router.get("/integrated")
async def get_integrated_analytics(
    client_id: Optional[str] = Query(None, description="Client ID"),
    client_slug: Optional[str] = Query(None, description="Client slug (used when client_id is absent)"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    compare_previous: bool = Query(False, description="Include the previous equal-length period"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Meta + Naver combined: unified summary, merged daily series, channel comparison.
    """
    try:
        resolved = await service.resolve_client_id(client_id, client_slug)
        report = await service.integrated_report(resolved, start_date, end_date, compare_previous)
        return {"success": True, "client_id": resolved, **report}
    except Exception as e:
        raise to_http_error("/integrated", e)


@router.get("/narrative-context")
async def get_narrative_context(
    client_id: Optional[str] = Query(None, description="Client ID"),
    client_slug: Optional[str] = Query(None, description="Client slug (used when client_id is absent)"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    top_n: Optional[int] = Query(None, ge=1, le=50, description="Top campaigns/keywords by spend"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Aggregates serialized for the external AI summary prompt.
    """
    try:
        resolved = await service.resolve_client_id(client_id, client_slug)
        context = await service.narrative_context(resolved, start_date, end_date, top_n=top_n)
        return {"success": True, "client_id": resolved, **context}
    except Exception as e:
        raise to_http_error("/narrative-context", e)
