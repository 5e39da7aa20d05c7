"""
Fact ingestion API

Parsed Naver keyword rows are upserted directly; Meta rows are collected from
the Graph API on demand.
"""
from fastapi import APIRouter, Depends, HTTPException
import traceback

from app.core.deps import get_fact_store, get_meta_sync_service
from app.models.enums import AdSource
from app.schemas.analytics import MetaCollectRequest, NaverFactUploadRequest, UpsertResult
from app.services.analytics.facts import coerce_fact_row
from app.services.analytics.service import AnalyticsService, ClientNotFoundError
from app.services.fact_store import FactStore, FactStoreError
from app.services.meta.meta_api import MetaAPIError
from app.services.meta.meta_sync import MetaSyncService

router = APIRouter(prefix="/facts", tags=["Facts"])


@router.post("/naver", response_model=UpsertResult)
async def upload_naver_facts(
    request: NaverFactUploadRequest,
    store: FactStore = Depends(get_fact_store),
):
    """
    Upsert parsed Naver keyword rows (one row per date x keyword).
    """
    try:
        client_id = await AnalyticsService(store).resolve_client_id(request.client_id, request.client_slug)
    except ClientNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    rows = []
    skipped = 0
    for item in request.rows:
        try:
            rows.append(coerce_fact_row({"client_id": client_id, **item.model_dump()}, AdSource.LOCAL_SEARCH))
        except ValueError:
            skipped += 1

    try:
        written = await store.upsert(rows)
    except FactStoreError as e:
        print(f"[FACTS ERROR] /naver: {traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=f"Database error: {str(e)}")

    return UpsertResult(client_id=client_id, rows_written=written, rows_skipped=skipped)


@router.post("/meta/collect", response_model=UpsertResult)
async def collect_meta_facts(
    request: MetaCollectRequest,
    store: FactStore = Depends(get_fact_store),
    sync: MetaSyncService = Depends(get_meta_sync_service),
):
    """
    Collect Meta insights for one client and upsert them.
    """
    try:
        client_id = await AnalyticsService(store).resolve_client_id(request.client_id, request.client_slug)
        written = await sync.collect_client(client_id, request.start_date, request.end_date)
        return UpsertResult(client_id=client_id, rows_written=written)
    except ClientNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MetaAPIError as e:
        print(f"[FACTS ERROR] /meta/collect: {traceback.format_exc()}")
        raise HTTPException(status_code=502, detail=f"Meta API error: {str(e)}")
    except FactStoreError as e:
        print(f"[FACTS ERROR] /meta/collect: {traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=f"Database error: {str(e)}")
