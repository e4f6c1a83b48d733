"""HTTP API for the futures market analyzer."""

from __future__ import annotations

import argparse
from contextlib import asynccontextmanager
import logging
from pathlib import Path
import sys
from typing import Any, Callable, Dict, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from market_analyzer.advisor import MarketAdvisor
from market_analyzer.cache import ResultStore
from market_analyzer.config import settings
from market_analyzer.data import InvalidInputFormat, MarketInput
from market_analyzer.decision import calculate_market_metrics, compute
from market_analyzer.ingest import fetch_market_data
from market_analyzer.ingest.coinglass import smart_symbol
from market_analyzer.utils.time import utc_now_iso, utc_now_ms

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], MarketInput]


def _cache_key(symbol: str) -> str:
    return f"market_snapshot_{symbol.lower()}"


def create_app(
    store: Optional[ResultStore] = None,
    fetcher: Optional[Fetcher] = None,
    advisor: Optional[MarketAdvisor] = None,
    write_enabled: Optional[bool] = None,
) -> FastAPI:
    store = store or ResultStore(default_ttl_s=settings.cache_duration_minutes * 60)
    fetcher = fetcher or (lambda symbol: fetch_market_data(symbol))
    if advisor is None and settings.advisor_enabled:
        advisor = MarketAdvisor()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if advisor is not None:
            advisor.close()
            logger.info("Advisor client closed")

    app = FastAPI(title="Market Analyzer API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    writes_allowed = settings.api_write_enabled if write_enabled is None else write_enabled

    def _require_write_enabled() -> None:
        if not writes_allowed:
            raise HTTPException(status_code=403, detail="API write actions disabled.")

    @app.get("/health", response_class=JSONResponse)
    def health() -> JSONResponse:
        return JSONResponse(
            {
                "success": True,
                "status": "healthy",
                "timestamp": utc_now_iso(),
                "features": {
                    "coinglass": bool(settings.coinglass_api_key),
                    "metrics": True,
                    "advisor": advisor is not None,
                    "cache": True,
                },
                "api_write_enabled": writes_allowed,
            }
        )

    @app.get("/api/market-analyzer/cache-stats", response_class=JSONResponse)
    def cache_stats() -> JSONResponse:
        return JSONResponse({"success": True, "data": store.stats(), "timestamp": utc_now_iso()})

    @app.post("/api/market-analyzer/clear-cache", response_class=JSONResponse)
    def clear_cache() -> JSONResponse:
        _require_write_enabled()
        cleared = store.clear_all()
        return JSONResponse(
            {
                "success": True,
                "message": f"Cleared {cleared} cache entries",
                "timestamp": utc_now_iso(),
            }
        )

    @app.post("/api/market-analyzer/analyze", response_class=JSONResponse)
    def analyze(payload: Dict[str, Any] = Body(...)) -> JSONResponse:
        try:
            metrics = calculate_market_metrics(payload)
        except InvalidInputFormat as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse({"success": True, "data": metrics})

    @app.get("/api/market-analyzer/{symbol}", response_class=JSONResponse)
    def market_analysis(
        symbol: str, refresh: bool = Query(False, description="Bypass the cache.")
    ) -> JSONResponse:
        symbol = symbol.upper()
        key = _cache_key(symbol)
        if not refresh:
            entry = store.get(key)
            if entry is not None:
                body = dict(entry.data)
                body["meta"] = {
                    **body.get("meta", {}),
                    "cached": True,
                    "cached_at": entry.cached_at,
                    "age_minutes": int(entry.age_s(store.now()) // 60),
                }
                return JSONResponse(body)

        market = fetcher(symbol)
        metrics = compute(market).to_dict(utc_now_ms())
        metrics["aiInsight"] = advisor.get_insight(metrics) if advisor else None

        body = {
            "success": True,
            "data": metrics,
            "meta": {
                "cached": False,
                "timestamp": utc_now_iso(),
                "source": "coinglass_api_v4",
                "exchange_mapping": {
                    settings.retail_venue.lower(): f"{symbol} (USDT-margined)",
                    settings.smart_venue.lower(): f"{smart_symbol(symbol)} (coin-margined)",
                },
            },
        }
        store.set(key, body)
        logger.info(
            "%s analysis cached: %s (%.1f)",
            symbol, metrics["finalDecision"]["bias"], metrics["finalDecision"]["confidence"],
        )
        return JSONResponse(body)

    return app


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Market analyzer API server.")
    parser.add_argument("--host", default="127.0.0.1", help="Bind host.")
    parser.add_argument("--port", type=int, default=8000, help="Bind port.")
    parser.add_argument("--log-level", default="INFO", help="Logging level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
