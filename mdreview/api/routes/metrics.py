"""Prometheus exposition of the md-review counters.

Series exposed (defined in ``mdreview.core.metrics``):

- ``mdreview_http_requests_total`` and ``mdreview_http_request_duration_seconds``
  by method, route template and status
- ``mdreview_comment_mutations_total`` by store operation
- ``mdreview_selection_resolutions_total`` by outcome
- ``mdreview_storage_failures_total`` by read/write

Open in development. In production the endpoint is hidden until
``METRICS_TOKEN`` is set, and then the token must be presented as a bearer
credential or in ``X-Metrics-Token``.
"""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from mdreview.api.deps import get_app_settings
from mdreview.core.config import Settings

router = APIRouter()


def _presented_token(authorization: str | None, header_token: str | None) -> str | None:
    scheme, _, credentials = (authorization or "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return header_token


def require_scrape_access(
    authorization: str | None = Header(default=None),
    x_metrics_token: str | None = Header(default=None, alias="X-Metrics-Token"),
    settings: Settings = Depends(get_app_settings),
) -> None:
    if settings.environment != "production":
        return
    expected = settings.metrics_token.get_secret_value() if settings.metrics_token else ""
    if not expected:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    token = _presented_token(authorization, x_metrics_token)
    if token is None or not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@router.get("/metrics", include_in_schema=False, dependencies=[Depends(require_scrape_access)])
async def metrics_endpoint() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
