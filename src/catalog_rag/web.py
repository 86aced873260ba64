"""FastAPI JSON interface for the product search pipeline."""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from catalog_rag.config import AppConfig
from catalog_rag.exceptions import RAGError, ValidationError
from catalog_rag.pipeline import RAGPipeline, build_pipeline

logger = logging.getLogger(__name__)

_config = AppConfig()


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Wire the pipeline on startup. Nothing external is contacted yet."""
    application.state.pipeline = build_pipeline(_config)
    logger.info("Search pipeline ready (collection %s)", _config.vector_store.collection_name)
    yield


app = FastAPI(
    title="Catalog RAG",
    lifespan=lifespan,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
)

router = APIRouter(prefix="/api/v1")


def get_pipeline(request: Request) -> RAGPipeline | None:
    """FastAPI dependency — return the pipeline from app state."""
    return getattr(request.app.state, "pipeline", None)


class SearchRequest(BaseModel):
    query: str
    session_id: str | None = None


class DocumentResponse(BaseModel):
    id: str
    name: str
    brand: str
    category: str
    description: str
    price: int
    formatted_price: str
    relevance_score: float
    relevance_percentage: float
    relevance_level: str


class SearchResponse(BaseModel):
    original_query: str
    optimized_query: str
    documents: list[DocumentResponse]
    response: str
    processing_time_ms: float
    statistics: dict


class HealthResponse(BaseModel):
    status: str
    components: dict[str, bool]


class StatsResponse(BaseModel):
    health: dict[str, bool]
    collection: dict
    active_sessions: int = Field(ge=0)


def _require(pipeline: RAGPipeline | None) -> RAGPipeline:
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Search pipeline not initialized.")
    return pipeline


@router.post("/search", response_model=SearchResponse)
def api_search(body: SearchRequest, pipeline=Depends(get_pipeline)):
    pipeline = _require(pipeline)
    session = body.session_id or _config.context.default_session
    try:
        result = pipeline.search_with_context(body.query, session)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.message)
    except RAGError as exc:
        logger.error("Search failed: %s", exc)
        raise HTTPException(status_code=503, detail=exc.message)
    return SearchResponse(**result.to_dict())


@router.get("/health", response_model=HealthResponse)
def api_health(pipeline=Depends(get_pipeline)):
    components = _require(pipeline).health_check()
    status = "healthy" if all(components.values()) else "degraded"
    if not components["overall"]:
        status = "unavailable"
    return HealthResponse(status=status, components=components)


@router.get("/stats", response_model=StatsResponse)
def api_stats(pipeline=Depends(get_pipeline)):
    return StatsResponse(**_require(pipeline).system_stats())


app.include_router(router)
