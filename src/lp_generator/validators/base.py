"""Shared machinery for the artifact validators.

Every validator runs two passes:

1. an unknown-field pass over the raw parsed JSON (allow-list per object,
   keys compared case-insensitively); findings are errors in strict mode and
   warnings otherwise;
2. a semantic pass over the typed artifact (required objects, closed enums,
   numeric ranges, ``#RRGGBB`` colors).

Only when both passes leave no errors does ``normalize`` run on a copy of the
artifact. Normalize repairs near-misses and records a warning for each value
it touches; it never fails.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Generic, Iterable, List, Optional, Tuple, Type, TypeVar, get_args, get_origin

from pydantic import BaseModel, ValidationError

from lp_generator.colors import clamp, is_hex_color
from lp_generator.models import ValidationResult

A = TypeVar("A", bound=BaseModel)


def allowed(*values: str) -> frozenset[str]:
    """Case-insensitive allow-list."""
    return frozenset(v.lower() for v in values)


class Findings:
    """Collects errors and warnings for one validation run."""

    def __init__(self, strict: bool) -> None:
        self.strict = strict
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def unknown(self, message: str) -> None:
        if self.strict:
            self.errors.append(message)
        else:
            self.warnings.append(message)

    def check_keys(self, obj: Dict[str, Any], fields: frozenset[str], label: str) -> None:
        for key in obj:
            if str(key).lower() not in fields:
                self.unknown(f"unknown {label} field: {key}")

    def check_enum(self, value: Optional[str], values: frozenset[str], name: str) -> None:
        if (value or "").lower() not in values:
            self.error(f"{name} is invalid")

    def check_color(self, value: Optional[str], name: str) -> None:
        if not value or not value.strip() or not is_hex_color(value):
            self.error(f"{name} must be #RRGGBB")

    def check_range(self, value: float, low: float, high: float, name: str) -> None:
        if value < low or value > high:
            self.error(f"{name} out of range")

    def result(self, normalized: Any = None) -> ValidationResult:
        return ValidationResult(
            errors=list(self.errors),
            warnings=list(self.warnings),
            normalized=normalized if not self.errors else None,
        )


def get_child(obj: Dict[str, Any], name: str) -> Tuple[bool, Any]:
    """Case-insensitive key lookup on a raw JSON object."""
    wanted = name.lower()
    for key, value in obj.items():
        if str(key).lower() == wanted:
            return True, value
    return False, None


# ── Normalize helpers ────────────────────────────────────────────────────────

def clamp_value(value, low, high, name: str, warnings: List[str]):
    """Clamp into ``[low, high]``; warn only when the value actually moved."""
    clamped = clamp(value, low, high)
    if clamped != value:
        warnings.append(f"{name} clamped to {clamped}")
    return clamped


def normalize_color(value: Optional[str], name: str, warnings: List[str], fallback: str = "#000000") -> str:
    if value and is_hex_color(value):
        return value.upper()
    warnings.append(f"{name} color normalized")
    return fallback


def default_enum(value: Optional[str], values: frozenset[str], default: str, name: str, warnings: List[str]) -> str:
    if value and value.lower() in values:
        return value
    warnings.append(f"{name} default applied")
    return default


# ── Parsing ──────────────────────────────────────────────────────────────────

def _nested_model(annotation: Any) -> Tuple[Optional[Type[BaseModel]], bool]:
    origin = get_origin(annotation)
    if origin is None:
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            return annotation, False
        return None, False
    if origin is list:
        model, _ = _nested_model(get_args(annotation)[0])
        return model, True
    for arg in get_args(annotation):
        model, is_list = _nested_model(arg)
        if model is not None:
            return model, is_list
    return None, False


def fold_keys(data: Any, model: Type[BaseModel]) -> Any:
    """Rewrite JSON keys to the model's aliases, ignoring case."""
    if not isinstance(data, dict):
        return data

    lookup: Dict[str, Tuple[str, Any]] = {}
    for name, info in model.model_fields.items():
        key = info.alias or name
        lookup[key.lower()] = (key, info.annotation)

    folded: Dict[str, Any] = {}
    for key, value in data.items():
        match = lookup.get(str(key).lower())
        if match is None:
            folded[key] = value
            continue
        canonical, annotation = match
        nested, is_list = _nested_model(annotation)
        if nested is not None:
            if is_list and isinstance(value, list):
                value = [fold_keys(item, nested) for item in value]
            elif not is_list:
                value = fold_keys(value, nested)
        folded[canonical] = value
    return folded


def describe_error(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ())) or "root"
            parts.append(f"{loc}: {err.get('msg')}")
        return "; ".join(parts)
    return str(exc)


# ── Base validator ───────────────────────────────────────────────────────────

class ArtifactValidator(Generic[A]):
    """Template for the per-kind validators."""

    artifact_type: Type[A]
    null_message: str = "artifact is null"
    root_label: str = "root must be object"

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict

    def validate(self, artifact: Optional[A], raw: Any = None) -> ValidationResult:
        findings = Findings(self.strict)

        if raw is not None:
            if not isinstance(raw, dict):
                findings.error(self.root_label)
            else:
                self.check_unknown_fields(raw, findings)

        if artifact is None:
            findings.error(self.null_message)
            return findings.result()

        self.check_semantics(artifact, findings)

        if findings.errors:
            return findings.result()

        normalized = self.normalize(artifact.model_copy(deep=True), findings.warnings)
        return findings.result(normalized)

    def parse_and_validate(self, raw_text: str) -> Tuple[Optional[A], ValidationResult]:
        """Decode the model output and validate it against both passes."""
        try:
            data = json.loads(raw_text)
            artifact = None if data is None else self.artifact_type.model_validate(fold_keys(data, self.artifact_type))
        except (ValueError, TypeError) as exc:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
            return None, ValidationResult(errors=[f"json parse failed: {describe_error(exc)}"])
        return artifact, self.validate(artifact, data)

    def check_unknown_fields(self, root: Dict[str, Any], findings: Findings) -> None:
        raise NotImplementedError

    def check_semantics(self, artifact: A, findings: Findings) -> None:
        raise NotImplementedError

    def normalize(self, artifact: A, warnings: List[str]) -> A:
        raise NotImplementedError

    def check_nested(
        self,
        root: Dict[str, Any],
        name: str,
        fields: Iterable[str],
        findings: Findings,
    ) -> Optional[Dict[str, Any]]:
        """Allow-list check on ``root[name]`` when it is an object; returns it."""
        found, value = get_child(root, name)
        if not found or not isinstance(value, dict):
            return None
        findings.check_keys(value, frozenset(f.lower() for f in fields), name)
        return value
