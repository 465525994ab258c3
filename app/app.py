import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config import Settings, load_settings
from app.database import create_db_engine
from app.errors import (
    DuplicateError,
    InvalidTypeError,
    NotFoundError,
    PersistenceError,
    StringAnalyzerError,
    ValidationError,
)
from app.filters import apply_filters, parse_filters
from app.natural_language import filter_by_natural_language
from app.persistence import SqlAlchemyPersistence
from app.schemas import FilterResponse, NaturalLanguageResponse, StringRecord
from app.store import Persistence, RecordStore

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    # the status constant was renamed across Starlette releases
    InvalidTypeError: 422,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    DuplicateError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _status_for(exc: StringAnalyzerError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_core_error(request: Request, exc: StringAnalyzerError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    return JSONResponse(status_code=status_code, content={"error": exc.message})


async def handle_request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies get the same envelope as any other bad input."""
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request.") if errors else "Invalid request."
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": f"Invalid request: {detail}"})


def _query_params(request: Request) -> Dict[str, Any]:
    """Collapse repeated query keys into lists, leaving single values as text."""
    params: Dict[str, Any] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        params[key] = values[0] if len(values) == 1 else values
    return params


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def create_app(settings: Optional[Settings] = None, persistence: Optional[Persistence] = None) -> FastAPI:
    """Build the API. Without an explicit persistence the configured database is used."""
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = None
        backend = persistence
        try:
            if backend is None:
                engine = create_db_engine(settings.database_url)
                backend = SqlAlchemyPersistence(engine)
                backend.create_schema()
            app.state.store = RecordStore.open(backend)
            yield
        finally:
            if engine is not None:
                engine.dispose()

    app = FastAPI(title="String Analyzer API", lifespan=lifespan)
    app.add_exception_handler(StringAnalyzerError, handle_core_error)
    app.add_exception_handler(RequestValidationError, handle_request_error)

    @app.get("/")
    def read_root():
        return {"message": "String Analyzer API is running!"}

    @app.post("/strings", status_code=status.HTTP_201_CREATED, response_model=StringRecord)
    def create_string(payload: Any = Body(None), store: RecordStore = Depends(get_store)):
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object.")
        return store.insert(payload.get("value"))

    @app.get("/strings", response_model=FilterResponse)
    def get_all_strings(request: Request, store: RecordStore = Depends(get_store)):
        filters = parse_filters(_query_params(request))
        result = apply_filters(store.list(), filters)
        return {
            "data": list(result.data),
            "count": result.count,
            "filters_applied": result.filters_applied,
        }

    # Must be registered before /strings/{value}
    @app.get(
        "/strings/filter-by-natural-language",
        response_model=NaturalLanguageResponse,
        response_model_exclude_none=True,
    )
    def natural_language_filter(request: Request, store: RecordStore = Depends(get_store)):
        params = _query_params(request)
        query = params.get("query", params.get("q"))
        if isinstance(query, list):
            query = query[0]
        return filter_by_natural_language(store, query).to_dict()

    @app.get("/strings/{value}", response_model=StringRecord)
    def get_string(value: str, store: RecordStore = Depends(get_store)):
        return store.get(value)

    @app.delete("/strings/{value}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_string(value: str, store: RecordStore = Depends(get_store)):
        store.delete(value)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


app = create_app()
