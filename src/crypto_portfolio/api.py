from __future__ import annotations

import logging
from typing import AsyncContextManager, Callable, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from . import settings
from .holdings_file import load_holdings
from .models import ErrorResponse, PortfolioReport, Snapshot
from .portfolio_service import PortfolioService, open_portfolio_service
from .report_cache import ReportCache
from .snapshot_store import load_snapshots

logger = logging.getLogger(__name__)

PORTFOLIO_ERROR = "Failed to fetch portfolio data"
SNAPSHOTS_ERROR = "Failed to read portfolio snapshots"


ServiceOpener = Callable[[], AsyncContextManager[PortfolioService]]


def get_service_opener() -> ServiceOpener:
    """How the portfolio endpoint opens a priced service on a cache miss."""

    return open_portfolio_service


def get_report_cache(request: Request) -> ReportCache:
    return request.app.state.report_cache


def _cache_control(cache: ReportCache) -> str:
    return f"public, max-age={int(cache.ttl_seconds)}"


def create_app(*, report_cache: Optional[ReportCache] = None) -> FastAPI:
    """Build the API application.

    The report cache is owned by the application: it starts empty here and is
    only ever replaced wholesale by a fresh valuation.
    """

    app = FastAPI(title="Crypto Portfolio API")
    app.state.report_cache = report_cache or ReportCache(ttl_seconds=settings.get_cache_ttl_seconds())

    @app.get(
        "/api/portfolio",
        response_model=PortfolioReport,
        response_model_exclude_none=True,
        responses={500: {"model": ErrorResponse}},
    )
    async def get_portfolio(
        response: Response,
        open_service: ServiceOpener = Depends(get_service_opener),
        cache: ReportCache = Depends(get_report_cache),
    ):
        cached = cache.get()
        if cached is not None:
            response.headers["Cache-Control"] = _cache_control(cache)
            return cached

        try:
            holdings = await run_in_threadpool(load_holdings, settings.get_holdings_path())
            async with open_service() as service:
                report = await service.compute_report(holdings)
        except Exception:
            logger.exception("Portfolio calculation error")
            return JSONResponse(status_code=500, content={"error": PORTFOLIO_ERROR})

        cache.put(report)
        response.headers["Cache-Control"] = _cache_control(cache)
        return report

    @app.get(
        "/api/snapshots",
        response_model=dict[str, Snapshot],
        response_model_exclude_none=True,
        responses={500: {"model": ErrorResponse}},
    )
    async def get_snapshots():
        """Stored monthly snapshots, newest month first."""

        try:
            snapshots = await run_in_threadpool(load_snapshots, settings.get_snapshots_path())
        except Exception:
            logger.exception("Snapshot store read error")
            return JSONResponse(status_code=500, content={"error": SNAPSHOTS_ERROR})

        return {m: snapshots[m] for m in sorted(snapshots, reverse=True)}

    return app


app = create_app()
