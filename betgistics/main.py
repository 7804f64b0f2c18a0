"""
FastAPI application for Betgistics
Every tool is exposed as an HTTP route returning the tool envelope
"""

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict
import logging
import os

from betgistics.schemas import (
    BasketballEstimateRequest,
    FootballEstimateRequest,
    HockeyTotalRequest,
    KellyRequest,
    OddsConvertRequest,
    OrchestrationRequest,
    OutcomeUpdate,
    ToolResponse,
    VigRequest,
)
from betgistics.services import tools
from betgistics.services.bet_logging import BetLogger
from betgistics.services.bet_store import create_bet_store
from betgistics.services.matchup_parser import MatchupParseError
from betgistics.services.orchestration import orchestrate
from betgistics.services.stats_provider import StatsProvider, get_stats_provider

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0"

_bet_logger = None


def get_bet_logger() -> BetLogger:
    """Process-wide bet logger over the store chosen by BET_STORE."""
    global _bet_logger
    if _bet_logger is None:
        _bet_logger = BetLogger(create_bet_store())
    return _bet_logger


def get_stats() -> StatsProvider:
    return get_stats_provider()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting Betgistics API")
    if os.getenv("BET_STORE", "sql").lower() == "sql":
        from betgistics.models import init_db

        init_db()
    yield
    logger.info("Shutting down Betgistics API")


app = FastAPI(
    title="Betgistics",
    description="Cover probabilities, Kelly sizing and bet logging for team sports",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Structured error code -> HTTP status
_ERROR_STATUS = {
    "team_not_found": 404,
    "bet_not_found": 404,
}


def _respond(result: tools.ToolResult) -> JSONResponse:
    status = 200
    if result.is_error:
        status = _ERROR_STATUS.get(result.structured.get("error"), 400)
    return JSONResponse(status_code=status, content=result.to_response())


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Service banner"""
    return {
        "app": "Betgistics",
        "version": APP_VERSION,
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
async def health_check(bet_logger: BetLogger = Depends(get_bet_logger)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "betStore": type(bet_logger.store).__name__,
        "durable": bet_logger.store.durable,
    }


# ============================================================================
# ESTIMATORS
# ============================================================================

@app.post("/api/estimate/football", response_model=ToolResponse)
async def estimate_football(payload: FootballEstimateRequest):
    return _respond(tools.estimate_football(**payload.model_dump()))


@app.post("/api/estimate/basketball", response_model=ToolResponse)
async def estimate_basketball(payload: BasketballEstimateRequest):
    return _respond(tools.estimate_basketball(**payload.model_dump()))


@app.post("/api/estimate/hockey", response_model=ToolResponse)
async def estimate_hockey(payload: HockeyTotalRequest):
    return _respond(
        tools.estimate_hockey_total(
            payload.home.model_dump(),
            payload.away.model_dump(),
            payload.line,
            payload.bet_type,
        )
    )


@app.post("/api/estimate/{category}/by-name", response_model=ToolResponse)
async def estimate_by_name(
    category: str,
    payload: Dict[str, Any] = Body(...),
    stats: StatsProvider = Depends(get_stats),
):
    """Favourite/underdog cover probabilities from two team names"""
    return _respond(tools.estimate_by_name(category, payload, stats_provider=stats))


# ============================================================================
# KELLY AND ODDS
# ============================================================================

@app.post("/api/kelly", response_model=ToolResponse)
async def kelly(payload: KellyRequest):
    return _respond(
        tools.kelly_calculate(payload.bankroll, payload.odds, payload.probability, payload.fraction)
    )


@app.post("/api/odds/convert", response_model=ToolResponse)
async def convert_odds(payload: OddsConvertRequest):
    return _respond(tools.convert_odds(payload.odds, payload.from_format, payload.denominator))


@app.get("/api/odds/implied", response_model=ToolResponse)
async def implied_probability(odds: float = Query(...)):
    return _respond(tools.implied_probability(odds))


@app.post("/api/odds/vig", response_model=ToolResponse)
async def calculate_vig(payload: VigRequest):
    return _respond(tools.calculate_vig(payload.odds1, payload.odds2))


# ============================================================================
# BET LOG
# ============================================================================

@app.post("/api/bets/log", response_model=ToolResponse)
async def log_bet(
    payload: Dict[str, Any] = Body(...),
    session_id: str = Query(default="default", max_length=120),
    bet_logger: BetLogger = Depends(get_bet_logger),
):
    """Log a bet; team and numeric fields accept the usual aliases"""
    result = await tools.log_bet(payload, bet_logger=bet_logger, session_id=session_id)
    return _respond(result)


@app.put("/api/bets/{bet_id}/outcome", response_model=ToolResponse)
async def update_bet_outcome(
    bet_id: str,
    payload: OutcomeUpdate,
    bet_logger: BetLogger = Depends(get_bet_logger),
):
    """Settle a pending bet"""
    result = await tools.update_bet_outcome(
        bet_id,
        payload.result,
        bet_logger=bet_logger,
        payout=payload.payout,
        actual_score=payload.actual_score,
    )
    return _respond(result)


@app.get("/api/bets/{session_id}", response_model=ToolResponse)
async def bet_history(
    session_id: str,
    limit: int = Query(default=20, ge=1, le=100),
    bet_logger: BetLogger = Depends(get_bet_logger),
):
    result = await tools.bet_history(session_id, bet_logger=bet_logger, limit=limit)
    return _respond(result)


# ============================================================================
# ORCHESTRATION
# ============================================================================

@app.post("/api/orchestrate", response_model=ToolResponse)
async def orchestrate_bet(
    payload: OrchestrationRequest,
    stats: StatsProvider = Depends(get_stats),
    bet_logger: BetLogger = Depends(get_bet_logger),
):
    """Parse, estimate, size and log a natural-language betting request"""
    try:
        result = await orchestrate(payload, stats_provider=stats, bet_logger=bet_logger)
    except MatchupParseError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "clarificationNeeded": exc.clarification_needed},
        )
    return _respond(
        tools.ToolResult(
            structured=result,
            text=result["summary"]["human"],
            is_error=not result["success"],
        )
    )


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
