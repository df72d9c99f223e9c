import logging
from typing import Any

from fastapi import Body, FastAPI
from fastapi.responses import JSONResponse

from logship.config import Settings, get_settings
from logship.envelope import EnvelopeError, decode_invoke_request, encode_invoke_response
from logship.pipeline import LogPipeline


logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, pipeline: LogPipeline | None = None) -> FastAPI:
    settings = settings or get_settings()
    pipeline = pipeline or LogPipeline(settings)
    app = FastAPI(title=settings.app_name)

    @app.get("/healthz", include_in_schema=False)
    def health_check():
        return JSONResponse({"status": "healthy"})

    # Sync handler: the function host waits for the shipment to finish.
    @app.post("/logs-function")
    def logs_function(payload: Any = Body(None)):
        try:
            request = decode_invoke_request(payload)
        except EnvelopeError as exc:
            logger.warning("rejected invocation", extra={"reason": str(exc)})
            return JSONResponse({"error": str(exc)}, status_code=400)

        result = pipeline.run(request.records)
        response = encode_invoke_response(result)
        http_status = 400 if result.config_error else 200
        return JSONResponse(response.to_dict(), status_code=http_status)

    return app
