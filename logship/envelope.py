import json
from typing import Any

from logship.schemas import InvokeRequest, InvokeResponse, PipelineResult


class EnvelopeError(ValueError):
    pass


def decode_invoke_request(body: Any) -> InvokeRequest:
    # The function host sends {"Data": {"records": "<json string>"}, "Metadata": {...}}.
    if isinstance(body, (bytes, str)):
        try:
            body = json.loads(body)
        except ValueError as exc:
            raise EnvelopeError(f"request body is not valid JSON: {exc}") from exc

    if isinstance(body, list):
        return InvokeRequest(records=body)
    if not isinstance(body, dict):
        raise EnvelopeError("request body must be a JSON object or list")

    metadata = body.get("Metadata") or {}
    data = body.get("Data")
    if isinstance(data, dict) and "records" in data:
        records = data["records"]
    elif "records" in body:
        records = body["records"]
    else:
        raise EnvelopeError("request body does not carry any records")

    if isinstance(records, (bytes, str)):
        try:
            records = json.loads(records)
        except ValueError as exc:
            raise EnvelopeError(f"records payload is not valid JSON: {exc}") from exc

    if not isinstance(records, list):
        raise EnvelopeError("records payload must be a list")
    return InvokeRequest(records=records, metadata=metadata if isinstance(metadata, dict) else {})


def encode_invoke_response(result: PipelineResult) -> InvokeResponse:
    return InvokeResponse(
        outputs={"statusCode": result.status_code},
        logs=result.logs,
        return_value=result.message,
    )
