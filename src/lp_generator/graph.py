"""LangGraph bounded-retry pipeline shared by every generation kind.

Kinds:
  - blueprint:         ContentBlueprint JSON from LP business inputs.
  - design:            DesignSpec theme/layout tokens.
  - decoration:        DecorationSpec background/frame/heading tokens.
  - reference_design:  ReferenceStyleSpec extracted from a reference page.
  - reference_zip:     index.html + styles.css modelled on a reference page.
  - zip:               index.html + styles.css rendered from a blueprint.

Each run is one graph: call_model -> validate, looping back to call_model
with the previous attempt's errors until an artifact validates or the
attempt budget is spent.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from langgraph.graph import END, StateGraph
from pydantic import BaseModel, Field, ValidationError

from lp_generator.config import AiSettings, get_settings
from lp_generator.errors import (
    MSG_BAD_REQUEST,
    MSG_GENERIC_FAILURE,
    MSG_MISSING_BLUEPRINT,
    MSG_NOT_CONFIGURED,
    GenerationCancelled,
    classify_user_message,
)
from lp_generator.llm.base import ChatTransport
from lp_generator.models import (
    ChatMessage,
    DesignRequest,
    GenerationOutcome,
    LpRequest,
    ReferenceDesignRequest,
    ValidationResult,
    ZipRequest,
)
from lp_generator.prompts import (
    build_blueprint_messages,
    build_decoration_messages,
    build_design_messages,
    build_reference_messages,
    build_reference_zip_messages,
    build_zip_messages,
)
from lp_generator.redact import mask_sensitive, preview_text, trim_long
from lp_generator.safety import SPLIT_FAILED, HtmlCssValidator
from lp_generator.validators import (
    BlueprintValidator,
    DecorationValidator,
    DesignValidator,
    ReferenceValidator,
    describe_error,
)

logger = logging.getLogger("lp_generator.graph")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

RESPONSE_TOO_LARGE = "response too large"
ARTIFACT_NULL = "validated but artifact is null"
API_KEY_MISSING = "api key missing"
MISSING_BLUEPRINT = "missing blueprint"


def configure_logging(level: str = "INFO") -> None:
    """Attach a basic stderr handler; used by the CLI and the API."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


# ── Kind capability ──────────────────────────────────────────────────────────

PromptBuilder = Callable[..., List[ChatMessage]]


@dataclass(frozen=True)
class GenerationKind:
    """Everything the retry loop needs to know about one artifact kind."""

    name: str
    tag: str
    request_type: Type[BaseModel]
    build_prompt: PromptBuilder
    make_validator: Callable[[AiSettings], Any]
    json_mode: Callable[[AiSettings], bool]
    retry_cap: int
    model_setting: str
    input_summary: Callable[[Any], str]
    precheck: Optional[Callable[[Any], Optional[str]]] = None

    def model(self, settings: AiSettings) -> str:
        return settings.resolve_model(self.model_setting)

    def max_attempts(self, settings: AiSettings) -> int:
        return settings.resolve_retry_count(self.retry_cap) + 1

    def parse_request(self, data: Any) -> BaseModel:
        if isinstance(data, self.request_type):
            return data
        return self.request_type.model_validate(data or {})


def _join_fields(*values: Optional[str]) -> str:
    return " ".join(v for v in values if v and v.strip())


def _lp_summary(request: LpRequest) -> str:
    return _join_fields(
        request.industry,
        request.brand_name,
        request.campaign_overview,
        request.offer,
        request.conditions,
        request.period,
        request.target,
        request.tone,
        request.goal,
        request.notes,
        request.prohibited_expressions,
        request.required_statements,
    )


def _design_summary(request: DesignRequest) -> str:
    return _join_fields(
        request.industry,
        request.campaign_type,
        request.tone,
        request.brand_color_hint,
        request.reference_url,
        request.prohibited,
    )


def _reference_summary(request: ReferenceDesignRequest) -> str:
    return _join_fields(request.reference_url, request.campaign_type, request.brand_color_hint, request.tone)


def _zip_summary(request: ZipRequest) -> str:
    title = request.blueprint.meta.title if request.blueprint and request.blueprint.meta else ""
    return _join_fields(title, request.notes)


def _zip_precheck(request: ZipRequest) -> Optional[str]:
    return MISSING_BLUEPRINT if request.blueprint is None else None


def _strict_flag(settings: AiSettings) -> bool:
    return settings.strict_json_only


def _always_json(settings: AiSettings) -> bool:
    return True


def _never_json(settings: AiSettings) -> bool:
    return False


def _markup_validator(settings: AiSettings) -> HtmlCssValidator:
    return HtmlCssValidator()


KINDS: Dict[str, GenerationKind] = {
    kind.name: kind
    for kind in (
        GenerationKind(
            name="blueprint",
            tag="[AI]",
            request_type=LpRequest,
            build_prompt=build_blueprint_messages,
            make_validator=lambda s: BlueprintValidator(strict=s.strict_json_only),
            json_mode=_strict_flag,
            retry_cap=3,
            model_setting="model_blueprint",
            input_summary=_lp_summary,
        ),
        GenerationKind(
            name="design",
            tag="[AI-Design]",
            request_type=DesignRequest,
            build_prompt=build_design_messages,
            make_validator=lambda s: DesignValidator(strict=s.strict_json_only),
            json_mode=_always_json,
            retry_cap=3,
            model_setting="model_design_spec",
            input_summary=_design_summary,
        ),
        GenerationKind(
            name="decoration",
            tag="[AI-Decor]",
            request_type=DesignRequest,
            build_prompt=build_decoration_messages,
            make_validator=lambda s: DecorationValidator(strict=s.strict_json_only),
            json_mode=_always_json,
            retry_cap=3,
            model_setting="model_decoration_spec",
            input_summary=_design_summary,
        ),
        GenerationKind(
            name="reference_design",
            tag="[AI-Ref]",
            request_type=ReferenceDesignRequest,
            build_prompt=build_reference_messages,
            make_validator=lambda s: ReferenceValidator(strict=s.strict_json_only),
            json_mode=_always_json,
            retry_cap=2,
            model_setting="model_reference_spec",
            input_summary=_reference_summary,
        ),
        GenerationKind(
            name="reference_zip",
            tag="[AI-RefZip]",
            request_type=ReferenceDesignRequest,
            build_prompt=build_reference_zip_messages,
            make_validator=_markup_validator,
            json_mode=_never_json,
            retry_cap=2,
            model_setting="model_reference_zip",
            input_summary=_reference_summary,
        ),
        GenerationKind(
            name="zip",
            tag="[AI-Zip]",
            request_type=ZipRequest,
            build_prompt=build_zip_messages,
            make_validator=_markup_validator,
            json_mode=_never_json,
            retry_cap=2,
            model_setting="model_experimental_zip",
            input_summary=_zip_summary,
            precheck=_zip_precheck,
        ),
    )
}


def get_kind(name: str) -> GenerationKind:
    key = name.strip().lower().replace("-", "_")
    if key not in KINDS:
        raise ValueError(f"Unknown generation kind '{name}'. Choose from: {', '.join(KINDS)}")
    return KINDS[key]


# ══════════════════════════════════════════════════════════════════════════════
# Retry graph
# ══════════════════════════════════════════════════════════════════════════════

class GenerationState(BaseModel):
    attempt: int = 0
    max_attempts: int = 1
    errors: List[str] = Field(default_factory=list)
    raw_text: Optional[str] = None
    # set when the attempt failed before reaching the validator
    call_failed: bool = False
    artifact: Optional[Any] = None
    warnings: List[str] = Field(default_factory=list)
    success: bool = False


class _AttemptLog:
    """Failed-attempt logging shared by both nodes of one run."""

    def __init__(self, kind: GenerationKind, request: BaseModel) -> None:
        self.tag = kind.tag
        self.input_summary = kind.input_summary(request)

    def failure(self, reason: str, attempt: int, errors: Sequence[str], raw_text: Optional[str]) -> None:
        joined = " | ".join(errors) if errors else "(none)"
        logger.warning("%s %s (attempt %d): %s", self.tag, reason, attempt, joined)
        logger.warning("%s input: %s", self.tag, mask_sensitive(self.input_summary))
        if raw_text and raw_text.strip():
            logger.warning("%s response: %s", self.tag, mask_sensitive(trim_long(raw_text)))


def _raise_if_cancelled(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise GenerationCancelled("generation cancelled")


def _make_call_model_node(
    kind: GenerationKind,
    request: BaseModel,
    transport: ChatTransport,
    settings: AiSettings,
    attempt_log: _AttemptLog,
    cancel: Optional[threading.Event],
):
    model = kind.model(settings)
    json_mode = kind.json_mode(settings)
    input_limit = settings.input_limit()
    max_chars = settings.max_ai_response_chars

    def call_model(state: GenerationState) -> dict:
        _raise_if_cancelled(cancel)
        attempt = state.attempt + 1
        messages = kind.build_prompt(
            request,
            errors=state.errors,
            is_retry=attempt > 1,
            input_limit=input_limit,
        )
        try:
            raw_text = transport.send(model, messages, json_mode, cancel)
        except GenerationCancelled:
            raise
        except Exception as exc:
            errors = [str(exc)]
            attempt_log.failure("exception", attempt, errors, None)
            return {"attempt": attempt, "errors": errors, "raw_text": None, "call_failed": True}

        _raise_if_cancelled(cancel)
        if max_chars > 0 and len(raw_text) > max_chars:
            errors = [RESPONSE_TOO_LARGE]
            attempt_log.failure("response too large", attempt, errors, raw_text)
            return {"attempt": attempt, "errors": errors, "raw_text": raw_text, "call_failed": True}

        return {"attempt": attempt, "raw_text": raw_text, "call_failed": False}

    return call_model


def _make_validate_node(kind: GenerationKind, settings: AiSettings, attempt_log: _AttemptLog):
    validator = kind.make_validator(settings)

    def validate(state: GenerationState) -> dict:
        raw_text = state.raw_text or ""
        result: ValidationResult
        artifact, result = validator.parse_and_validate(raw_text)
        if result.errors:
            errors = list(result.errors)
            reason = "split failed" if errors == [SPLIT_FAILED] else "validation failed"
            attempt_log.failure(reason, state.attempt, errors, raw_text)
            return {"errors": errors}

        final = result.normalized if result.normalized is not None else artifact
        if final is None:
            errors = [ARTIFACT_NULL]
            attempt_log.failure("artifact null", state.attempt, errors, raw_text)
            return {"errors": errors}

        return {"artifact": final, "warnings": list(result.warnings), "success": True}

    return validate


def _has_attempts_left(state: GenerationState) -> bool:
    return state.attempt < state.max_attempts


def _route_after_call(state: GenerationState) -> str:
    if not state.call_failed:
        return "validate"
    return "call_model" if _has_attempts_left(state) else END


def _route_after_validate(state: GenerationState) -> str:
    if state.success:
        return END
    return "call_model" if _has_attempts_left(state) else END


def build_generation_graph(
    kind: GenerationKind,
    request: BaseModel,
    transport: ChatTransport,
    settings: AiSettings,
    cancel: Optional[threading.Event] = None,
):
    """Return the compiled call_model/validate graph for one run."""
    attempt_log = _AttemptLog(kind, request)
    graph = StateGraph(GenerationState)
    graph.add_node("call_model", _make_call_model_node(kind, request, transport, settings, attempt_log, cancel))
    graph.add_node("validate", _make_validate_node(kind, settings, attempt_log))
    graph.set_entry_point("call_model")
    graph.add_conditional_edges("call_model", _route_after_call, {"validate": "validate", "call_model": "call_model", END: END})
    graph.add_conditional_edges("validate", _route_after_validate, {"call_model": "call_model", END: END})
    return graph.compile()


def _read_result(result: Any) -> Tuple[bool, Any, List[str], List[str], Optional[str], int]:
    if not isinstance(result, dict):
        result = {key: getattr(result, key, None) for key in GenerationState.model_fields}
    return (
        bool(result.get("success")),
        result.get("artifact"),
        list(result.get("warnings") or []),
        list(result.get("errors") or []),
        result.get("raw_text"),
        int(result.get("attempt") or 0),
    )


def run_generation(
    kind: GenerationKind | str,
    request: Any,
    transport: Optional[ChatTransport],
    settings: Optional[AiSettings] = None,
    cancel: Optional[threading.Event] = None,
) -> GenerationOutcome:
    """Run one generation to a terminal outcome.

    Never raises for bad requests or generation failures; the outcome
    carries the classified user message and the raw error list. Only
    ``GenerationCancelled`` propagates.
    """
    if isinstance(kind, str):
        kind = get_kind(kind)
    settings = settings or get_settings()
    try:
        request = kind.parse_request(request)
    except ValidationError as exc:
        error = f"invalid request: {describe_error(exc)}"
        logger.warning("%s %s", kind.tag, error)
        return GenerationOutcome.failed(MSG_BAD_REQUEST, [error])

    if not settings.has_api_key:
        logger.warning("%s api key missing", kind.tag)
        return GenerationOutcome.failed(MSG_NOT_CONFIGURED, [API_KEY_MISSING])

    if kind.precheck is not None:
        problem = kind.precheck(request)
        if problem:
            logger.warning("%s %s", kind.tag, problem)
            return GenerationOutcome.failed(MSG_MISSING_BLUEPRINT, [problem])

    _raise_if_cancelled(cancel)
    max_attempts = kind.max_attempts(settings)
    compiled = build_generation_graph(kind, request, transport, settings, cancel)
    logger.info(
        "generation start kind=%s model=%s max_attempts=%d input=%s",
        kind.name,
        kind.model(settings),
        max_attempts,
        preview_text(mask_sensitive(kind.input_summary(request))),
    )

    # each attempt visits at most two nodes
    config = {"recursion_limit": max_attempts * 2 + 4}
    result = compiled.invoke(GenerationState(max_attempts=max_attempts), config=config)
    success, artifact, warnings, errors, raw_text, attempts = _read_result(result)

    if success and artifact is not None:
        logger.info(
            "generation done kind=%s attempts=%d warnings=%d",
            kind.name,
            attempts,
            len(warnings),
        )
        return GenerationOutcome.succeeded(artifact, warnings, raw_text or "", attempts)

    user_message = classify_user_message(" | ".join(errors)) or MSG_GENERIC_FAILURE
    logger.warning("%s generation failed kind=%s attempts=%d", kind.tag, kind.name, attempts)
    return GenerationOutcome.failed(user_message, errors, attempts)


class Generator:
    """One orchestrator bound to a kind, a transport and settings."""

    def __init__(
        self,
        kind: GenerationKind | str,
        transport: Optional[ChatTransport],
        settings: Optional[AiSettings] = None,
    ) -> None:
        self.kind = get_kind(kind) if isinstance(kind, str) else kind
        self.transport = transport
        self.settings = settings

    def generate(self, request: Any, cancel: Optional[threading.Event] = None) -> GenerationOutcome:
        return run_generation(self.kind, request, self.transport, self.settings, cancel)
