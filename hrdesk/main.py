import logging
import uuid
from time import monotonic

from fastapi import FastAPI, Request
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from hrdesk.api.list_views import router as list_views_router
from hrdesk.db import SessionLocal
from hrdesk.errors import register_error_handlers
from hrdesk.logging import configure_logging
from hrdesk.metrics import observe_request
from hrdesk.services.list_registry import ListViewRegistry
from hrdesk.services.preferences import PreferenceStore, SqlPreferenceStore
from hrdesk.services.query_layer import QueryLayer, SqlListQueryLayer

logger = logging.getLogger(__name__)


def create_app(
    query_layer: QueryLayer | None = None,
    preference_store: PreferenceStore | None = None,
) -> FastAPI:
    configure_logging()
    app = FastAPI(title="hrdesk list views API")
    app.state.query_layer = query_layer or SqlListQueryLayer(SessionLocal)
    app.state.preference_store = preference_store or SqlPreferenceStore(SessionLocal)
    register_error_handlers(app)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request.state.request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        start = monotonic()
        response = await call_next(request)
        route = request.scope.get("route")
        path = getattr(route, "path", None) or "unmatched"
        observe_request(request.method, path, response.status_code, monotonic() - start)
        response.headers["x-request-id"] = request.state.request_id
        return response

    @app.get("/health")
    def health():
        return {"status": "ok", "views": ListViewRegistry.keys()}

    @app.get("/metrics")
    def metrics_endpoint():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(list_views_router, prefix="/api/v1")
    logger.info("List view API ready with views: %s", ", ".join(ListViewRegistry.keys()))
    return app


app = create_app()
