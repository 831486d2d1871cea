"""Optional FastAPI HTTP API for lp-generator.

Install with: pip install lp-generator[api]
Run with: uvicorn lp_generator.api:api --reload
"""

from __future__ import annotations

import base64
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

try:
    from fastapi import Body, Depends, FastAPI
    from fastapi.responses import JSONResponse
except ImportError:
    raise ImportError(
        "FastAPI is not installed. Install with: pip install lp-generator[api]"
    )

from pydantic import ValidationError

from lp_generator.config import AiSettings, get_settings
from lp_generator.errors import MSG_BAD_REQUEST
from lp_generator.graph import configure_logging, get_kind, run_generation
from lp_generator.llm.base import ChatTransport
from lp_generator.models import HtmlCssBundle


@asynccontextmanager
async def _lifespan(app: FastAPI):
    configure_logging(get_settings().log_level)
    yield


api = FastAPI(title="lp-generator", version="0.1.0", lifespan=_lifespan)


def get_transport(settings: AiSettings = Depends(get_settings)) -> Optional[ChatTransport]:
    """OpenAI transport, or None when no key is configured (the run fails fast)."""
    if not settings.has_api_key:
        return None
    from lp_generator.llm.openai_provider import OpenAIChatTransport

    return OpenAIChatTransport(settings)


def _bad_request() -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": MSG_BAD_REQUEST})


def _run(
    kind_name: str,
    body: Optional[Dict[str, Any]],
    transport: Optional[ChatTransport],
    settings: AiSettings,
):
    if body is None:
        return _bad_request()

    kind = get_kind(kind_name)
    try:
        request = kind.parse_request(body)
    except ValidationError:
        return _bad_request()

    outcome = run_generation(kind, request, transport, settings)
    if not outcome.success:
        return JSONResponse(status_code=422, content={"message": outcome.user_message})

    if isinstance(outcome.artifact, HtmlCssBundle):
        bundle = outcome.artifact
        return {
            "zipBase64": base64.b64encode(bundle.zip_bytes).decode("ascii"),
            "html": bundle.html,
            "css": bundle.css,
        }
    return outcome.artifact_json()


# ── Endpoints ────────────────────────────────────────────────────────────────

@api.post("/api/ai/generate-lp")
def generate_lp(
    body: Optional[Dict[str, Any]] = Body(default=None),
    transport: Optional[ChatTransport] = Depends(get_transport),
    settings: AiSettings = Depends(get_settings),
):
    return _run("blueprint", body, transport, settings)


@api.post("/api/ai/generate-design")
def generate_design(
    body: Optional[Dict[str, Any]] = Body(default=None),
    transport: Optional[ChatTransport] = Depends(get_transport),
    settings: AiSettings = Depends(get_settings),
):
    return _run("design", body, transport, settings)


@api.post("/api/ai/generate-decor")
def generate_decor(
    body: Optional[Dict[str, Any]] = Body(default=None),
    transport: Optional[ChatTransport] = Depends(get_transport),
    settings: AiSettings = Depends(get_settings),
):
    return _run("decoration", body, transport, settings)


@api.post("/api/ai/generate-reference-design")
def generate_reference_design(
    body: Optional[Dict[str, Any]] = Body(default=None),
    transport: Optional[ChatTransport] = Depends(get_transport),
    settings: AiSettings = Depends(get_settings),
):
    return _run("reference_design", body, transport, settings)


@api.post("/api/ai/generate-reference-zip")
def generate_reference_zip(
    body: Optional[Dict[str, Any]] = Body(default=None),
    transport: Optional[ChatTransport] = Depends(get_transport),
    settings: AiSettings = Depends(get_settings),
):
    return _run("reference_zip", body, transport, settings)


@api.post("/api/ai/generate-zip")
def generate_zip(
    body: Optional[Dict[str, Any]] = Body(default=None),
    transport: Optional[ChatTransport] = Depends(get_transport),
    settings: AiSettings = Depends(get_settings),
):
    return _run("zip", body, transport, settings)
