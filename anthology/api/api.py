import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import List

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, status

from anthology.config import get_config
from anthology.logging_setup import configure_logging
from anthology.models import RankedContent, RankingExplanation, RankingRequest, RankingSnapshot
from anthology.orchestration.ranking_orchestrator import RankingOrchestrator
from anthology.orchestration.ranking_service_factory import RankingServiceFactory

# Set logging
logger = logging.getLogger(__name__)
configure_logging()

# Initialize FastAPI app
app = FastAPI(
    title="Anthology Feed Ranking",
    description="Ranks a reader's saved content from their engagement history",
    version="1.0.0"
)


@lru_cache(maxsize=1)
def get_orchestrator() -> RankingOrchestrator:
    """Shared orchestrator built from configuration (singleton via LRU cache)"""
    return RankingServiceFactory.create_orchestrator()


@app.post("/rank", response_model=List[RankedContent])
async def rank_contents(request: RankingRequest,
                        orchestrator: RankingOrchestrator = Depends(get_orchestrator)) -> List[RankedContent]:
    """
    Rank a user's content, highest score first.
    """
    try:
        snapshot = orchestrator.rank_request(request)
        return snapshot.rankings

    except Exception as e:
        logger.error(f"Error ranking content for user {request.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to rank content: {str(e)}"
        )


@app.post("/rank/snapshot", response_model=RankingSnapshot)
async def rank_snapshot(request: RankingRequest,
                        orchestrator: RankingOrchestrator = Depends(get_orchestrator)) -> RankingSnapshot:
    """
    Rank a user's content and return the versioned snapshot for caching.
    """
    try:
        return orchestrator.rank_request(request)

    except Exception as e:
        logger.error(f"Error building ranking snapshot for user {request.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to rank content: {str(e)}"
        )


@app.post("/rank/explain", response_model=List[RankingExplanation])
async def explain_ranking(request: RankingRequest,
                          orchestrator: RankingOrchestrator = Depends(get_orchestrator)) -> List[RankingExplanation]:
    """
    Per-item score breakdown, in ranked order.

    The exploration bonus is drawn again for this call, so the order can
    differ slightly from a /rank response for the same request.
    """
    try:
        return orchestrator.explain_request(request)

    except Exception as e:
        logger.error(f"Error explaining ranking for user {request.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to explain ranking: {str(e)}"
        )


@app.get("/health")
async def health_check():
    """Health check endpoint with system status"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc),
        "algorithm_version": get_config().ranking.algorithm_version
    }


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "name": "Anthology Feed Ranking",
        "version": "1.0.0",
        "description": "Ranks saved articles, videos and documents for the reader feed",
        "endpoints": {
            "POST /rank": "Rank content, highest score first",
            "POST /rank/snapshot": "Rank content and return a versioned snapshot",
            "POST /rank/explain": "Explain the score of every content item",
            "GET /health": "System health check"
        }
    }


if __name__ == "__main__":
    cfg = get_config()
    logger.info("Starting Anthology Feed Ranking API...")
    uvicorn.run(
        "anthology.api.api:app",
        host=cfg.api.host,
        port=cfg.api.port,
        reload=True,
        log_level="info"
    )
