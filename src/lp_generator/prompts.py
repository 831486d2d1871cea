"""Chat prompt builders, one per generation kind.

Every builder is pure: it returns exactly one system message and one user
message. Request fields are capped before they are interpolated, the user
message as a whole is capped at the configured input limit, and on a retry
the previous attempt's errors are appended as a bullet list.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from lp_generator.models import ChatMessage, DesignRequest, LpRequest, ReferenceDesignRequest, ZipRequest
from lp_generator.resources import read_text

DEFAULT_INPUT_LIMIT = 2000

# Per-field caps applied before interpolation.
LP_FIELD_LIMITS: Dict[str, int] = {
    "industry": 100,
    "brand_name": 120,
    "campaign_overview": 500,
    "offer": 200,
    "conditions": 300,
    "period": 200,
    "target": 200,
    "tone": 20,
    "goal": 30,
    "notes": 500,
    "prohibited_expressions": 500,
    "required_statements": 500,
}
DESIGN_FIELD_LIMITS: Dict[str, int] = {
    "industry": 100,
    "campaign_type": 120,
    "tone": 20,
    "brand_color_hint": 30,
    "reference_url": 200,
    "prohibited": 300,
}
REFERENCE_FIELD_LIMITS: Dict[str, int] = {
    "reference_url": 300,
    "campaign_type": 30,
    "brand_color_hint": 30,
    "tone": 20,
}
ZIP_NOTES_LIMIT = 500

SCHEMA_RETRY_RULE = "同じSchemaで、上記を必ず修正してください。"
BLUEPRINT_RETRY_RULES = (
    SCHEMA_RETRY_RULE + "\n出力はJSONのみ。説明文禁止。空文字は禁止、空ならnull。\n未知のフィールドは禁止。"
)
JSON_RETRY_RULES = SCHEMA_RETRY_RULE + "\n出力はJSONのみ。説明文禁止。未知フィールド禁止。"
MARKUP_RETRY_RULES = "同じ形式で修正してください。外部URL・scriptは禁止。"


# ── Shared helpers ───────────────────────────────────────────────────────────

def _safe_format(template: str, **kwargs: str) -> str:
    """Substitute {key} placeholders without raising on unrecognised braces.

    The system prompts carry literal JSON schemas, so str.format() is out.
    """
    for key, value in kwargs.items():
        template = template.replace("{" + key + "}", value)
    return template


def cap_fields(values: Dict[str, str], limits: Dict[str, int]) -> Dict[str, str]:
    """Trim each field to its cap; fields without a cap pass through."""
    capped: Dict[str, str] = {}
    for key, value in values.items():
        text = (value or "").strip()
        limit = limits.get(key)
        capped[key] = text[:limit] if limit is not None else text
    return capped


def trim_input(value: str, limit: int) -> str:
    """Cap the whole user message; overflow is marked with '...'."""
    if not value or not value.strip():
        return ""
    if len(value) <= limit:
        return value
    return value[:limit] + "..."


def retry_block(errors: Sequence[str], rules: str) -> str:
    error_lines = "\n".join(f"- {e}" for e in errors)
    return _safe_format(read_text("templates/retry.txt"), errors=error_lines, rules=rules)


def _messages(
    system: str,
    user: str,
    errors: Sequence[str],
    is_retry: bool,
    rules: str,
    input_limit: int,
) -> List[ChatMessage]:
    user = trim_input(user, input_limit)
    if is_retry and errors:
        user += "\n\n" + retry_block(errors, rules)
    return [
        ChatMessage(role="system", content=system.strip()),
        ChatMessage(role="user", content=user.strip()),
    ]


# ── Builders ─────────────────────────────────────────────────────────────────

def build_blueprint_messages(
    request: LpRequest,
    errors: Sequence[str] = (),
    is_retry: bool = False,
    input_limit: int = DEFAULT_INPUT_LIMIT,
) -> List[ChatMessage]:
    fields = cap_fields(request.model_dump(), LP_FIELD_LIMITS)
    user = _safe_format(read_text("templates/blueprint_user.txt"), **fields)
    return _messages(
        read_text("templates/blueprint_system.txt"), user, errors, is_retry, BLUEPRINT_RETRY_RULES, input_limit
    )


def build_design_messages(
    request: DesignRequest,
    errors: Sequence[str] = (),
    is_retry: bool = False,
    input_limit: int = DEFAULT_INPUT_LIMIT,
) -> List[ChatMessage]:
    fields = cap_fields(request.model_dump(), DESIGN_FIELD_LIMITS)
    user = _safe_format(read_text("templates/design_user.txt"), **fields)
    return _messages(read_text("templates/design_system.txt"), user, errors, is_retry, JSON_RETRY_RULES, input_limit)


def build_decoration_messages(
    request: DesignRequest,
    errors: Sequence[str] = (),
    is_retry: bool = False,
    input_limit: int = DEFAULT_INPUT_LIMIT,
) -> List[ChatMessage]:
    # decoration shares the design request form
    fields = cap_fields(request.model_dump(), DESIGN_FIELD_LIMITS)
    user = _safe_format(read_text("templates/design_user.txt"), **fields)
    return _messages(
        read_text("templates/decoration_system.txt"), user, errors, is_retry, JSON_RETRY_RULES, input_limit
    )


def build_reference_messages(
    request: ReferenceDesignRequest,
    errors: Sequence[str] = (),
    is_retry: bool = False,
    input_limit: int = DEFAULT_INPUT_LIMIT,
) -> List[ChatMessage]:
    fields = cap_fields(request.model_dump(), REFERENCE_FIELD_LIMITS)
    user = _safe_format(read_text("templates/reference_user.txt"), **fields)
    return _messages(
        read_text("templates/reference_system.txt"), user, errors, is_retry, JSON_RETRY_RULES, input_limit
    )


def build_reference_zip_messages(
    request: ReferenceDesignRequest,
    errors: Sequence[str] = (),
    is_retry: bool = False,
    input_limit: int = DEFAULT_INPUT_LIMIT,
) -> List[ChatMessage]:
    fields = cap_fields(request.model_dump(), REFERENCE_FIELD_LIMITS)
    user = _safe_format(read_text("templates/reference_zip_user.txt"), **fields)
    return _messages(
        read_text("templates/reference_zip_system.txt"), user, errors, is_retry, MARKUP_RETRY_RULES, input_limit
    )


def build_zip_messages(
    request: ZipRequest,
    errors: Sequence[str] = (),
    is_retry: bool = False,
    input_limit: int = DEFAULT_INPUT_LIMIT,
) -> List[ChatMessage]:
    blueprint_json = request.blueprint.model_dump_json(by_alias=True) if request.blueprint else "null"
    user = _safe_format(
        read_text("templates/zip_user.txt"),
        blueprint_json=blueprint_json,
        notes=(request.notes or "").strip()[:ZIP_NOTES_LIMIT],
    )
    return _messages(read_text("templates/zip_system.txt"), user, errors, is_retry, MARKUP_RETRY_RULES, input_limit)
