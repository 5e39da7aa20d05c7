# Analytics Module (pure aggregation; AnalyticsService lives in .service)
from app.services.analytics.facts import FactRow, InvalidMeasureError, coerce_fact_row
from app.services.analytics.measures import LOCAL_SEARCH, PAID_SOCIAL, SCHEMAS, MeasureSchema, Totals
from app.services.analytics.summary import Summary, summarize

__all__ = [
    "FactRow",
    "InvalidMeasureError",
    "coerce_fact_row",
    "LOCAL_SEARCH",
    "PAID_SOCIAL",
    "SCHEMAS",
    "MeasureSchema",
    "Totals",
    "Summary",
    "summarize",
]
