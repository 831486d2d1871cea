import io
import logging
import threading
import zipfile

import pytest

from conftest import VALID_MARKUP, FakeTransport, dumps, make_settings
from lp_generator.errors import (
    MSG_BAD_REQUEST,
    MSG_GENERIC_FAILURE,
    MSG_MISSING_BLUEPRINT,
    MSG_NOT_CONFIGURED,
    MSG_QUOTA,
    MSG_RATE_LIMIT,
    GenerationCancelled,
    TransportError,
)
from lp_generator.graph import KINDS, Generator, get_kind, run_generation
from lp_generator.models import (
    ContentBlueprint,
    DesignSpec,
    HtmlCssBundle,
    LpRequest,
    ReferenceStyleSpec,
    ZipRequest,
)


def _without_hero(blueprint_data: dict) -> dict:
    blueprint_data["sections"] = [s for s in blueprint_data["sections"] if s["type"] != "hero"]
    return blueprint_data


# ── Retry steering ───────────────────────────────────────────────────────────

def test_retry_feeds_previous_errors_into_next_prompt(blueprint_data, settings) -> None:
    invalid = dumps(_without_hero(dict(blueprint_data, sections=list(blueprint_data["sections"]))))
    transport = FakeTransport([invalid, dumps(blueprint_data)])

    outcome = run_generation("blueprint", LpRequest(industry="小売"), transport, settings)

    assert outcome.success is True
    assert isinstance(outcome.artifact, ContentBlueprint)
    assert outcome.attempts == 2
    assert len(transport.calls) == 2
    assert "section 'hero' is required" not in transport.user_message(0)
    assert "section 'hero' is required" in transport.user_message(1)
    assert "【再生成の指示】" in transport.user_message(1)


def test_success_on_first_attempt_returns_normalized_artifact(design_data, settings) -> None:
    transport = FakeTransport([dumps(design_data)])

    outcome = run_generation("design", {"industry": "小売"}, transport, settings)

    assert outcome.success is True
    assert isinstance(outcome.artifact, DesignSpec)
    assert outcome.artifact.theme.primary == "#0E0D6A"
    assert outcome.raw_text == dumps(design_data)
    assert outcome.user_message is None
    assert len(transport.calls) == 1


def test_success_keeps_normalize_warnings(design_data, settings) -> None:
    design_data["theme"]["font"] = "comic"
    transport = FakeTransport([dumps(design_data)])

    outcome = run_generation("design", {}, transport, settings)

    assert outcome.success is True
    assert "theme.font default applied" in outcome.warnings
    assert outcome.artifact.theme.font == "system"


# ── Retry budget ─────────────────────────────────────────────────────────────

def test_budget_exhaustion_makes_retries_plus_one_calls() -> None:
    settings = make_settings(max_retry_count=2)
    transport = FakeTransport(["{}"] * 10)

    outcome = run_generation("blueprint", LpRequest(), transport, settings)

    assert outcome.success is False
    assert len(transport.calls) == 3
    assert outcome.attempts == 3
    assert outcome.user_message == MSG_GENERIC_FAILURE
    assert outcome.errors
    assert outcome.artifact is None


@pytest.mark.parametrize(
    ("kind", "configured", "expected_calls"),
    [
        ("blueprint", 9, 4),
        ("design", 9, 4),
        ("decoration", 9, 4),
        ("reference_design", 9, 3),
        ("reference_zip", 9, 3),
        ("blueprint", 1, 2),
    ],
)
def test_retry_count_is_clamped_to_kind_cap(kind, configured, expected_calls) -> None:
    settings = make_settings(max_retry_count=configured)
    transport = FakeTransport(["not json"] * 10)

    outcome = run_generation(kind, {}, transport, settings)

    assert outcome.success is False
    assert len(transport.calls) == expected_calls


def test_zero_retries_means_single_attempt() -> None:
    settings = make_settings(max_retry_count=0, max_retries=0)
    transport = FakeTransport(["null"] * 3)

    outcome = run_generation("decoration", {}, transport, settings)

    assert outcome.success is False
    assert len(transport.calls) == 1


# ── Fast failures ────────────────────────────────────────────────────────────

def test_missing_api_key_fails_without_calls() -> None:
    settings = make_settings(api_key="  ")
    transport = FakeTransport([])

    outcome = run_generation("blueprint", LpRequest(), transport, settings)

    assert outcome.success is False
    assert outcome.user_message == MSG_NOT_CONFIGURED
    assert outcome.errors == ["api key missing"]
    assert transport.calls == []


def test_zip_without_blueprint_fails_fast(settings) -> None:
    transport = FakeTransport([])

    outcome = run_generation("zip", ZipRequest(notes="x"), transport, settings)

    assert outcome.success is False
    assert outcome.user_message == MSG_MISSING_BLUEPRINT
    assert outcome.errors == ["missing blueprint"]
    assert transport.calls == []


def test_mistyped_request_field_is_a_failed_outcome(settings) -> None:
    transport = FakeTransport([])

    outcome = run_generation("blueprint", {"industry": 123}, transport, settings)

    assert outcome.success is False
    assert outcome.user_message == MSG_BAD_REQUEST
    assert outcome.errors[0].startswith("invalid request: industry")
    assert transport.calls == []


def test_camel_case_request_keys_reach_the_prompt(blueprint_data, settings) -> None:
    transport = FakeTransport([dumps(blueprint_data)])

    outcome = run_generation(
        "blueprint",
        {"brandName": "サンプルマート", "campaignOverview": "春のクーポン", "industry": "小売"},
        transport,
        settings,
    )

    assert outcome.success is True
    prompt = transport.user_message(0)
    assert "会社名・ブランド名: サンプルマート" in prompt
    assert "キャンペーン概要: 春のクーポン" in prompt


# ── Failure classification ───────────────────────────────────────────────────

def test_transport_errors_are_retried_and_classified(settings) -> None:
    error = TransportError("AI API request failed: 429 Too Many Requests insufficient_quota", status_code=429)
    transport = FakeTransport([error, error, error])

    outcome = run_generation("blueprint", LpRequest(), transport, settings)

    assert len(transport.calls) == 3
    assert outcome.user_message == MSG_QUOTA
    assert outcome.errors == [str(error)]


def test_transport_error_text_steers_retry(blueprint_data, settings) -> None:
    transport = FakeTransport([TransportError("AI response is empty."), dumps(blueprint_data)])

    outcome = run_generation("blueprint", LpRequest(), transport, settings)

    assert outcome.success is True
    assert "- AI response is empty." in transport.user_message(1)


def test_rate_limit_message(settings) -> None:
    transport = FakeTransport([TransportError("rate_limit_exceeded")] * 3)

    outcome = run_generation("design", {}, transport, settings)

    assert outcome.user_message == MSG_RATE_LIMIT


def test_oversize_response_is_rejected_before_parsing(design_data) -> None:
    settings = make_settings(max_ai_response_chars=50, max_retry_count=1)
    transport = FakeTransport([dumps(design_data), dumps(design_data)])

    outcome = run_generation("design", {}, transport, settings)

    assert outcome.success is False
    assert outcome.errors == ["response too large"]
    assert len(transport.calls) == 2


def test_response_size_guard_disabled_by_zero(design_data) -> None:
    settings = make_settings(max_ai_response_chars=0)
    transport = FakeTransport([dumps(design_data)])

    assert run_generation("design", {}, transport, settings).success is True


# ── Cancellation ─────────────────────────────────────────────────────────────

def test_cancel_before_start_raises(settings) -> None:
    cancel = threading.Event()
    cancel.set()
    transport = FakeTransport([])

    with pytest.raises(GenerationCancelled):
        run_generation("blueprint", LpRequest(), transport, settings, cancel=cancel)
    assert transport.calls == []


def test_cancellation_from_transport_is_not_retried(settings) -> None:
    transport = FakeTransport([GenerationCancelled("generation cancelled"), "{}"])

    with pytest.raises(GenerationCancelled):
        run_generation("blueprint", LpRequest(), transport, settings)
    assert len(transport.calls) == 1


# ── Kind wiring ──────────────────────────────────────────────────────────────

def test_json_mode_and_model_per_kind(blueprint_data, settings) -> None:
    settings = make_settings(model_blueprint="bp-model", model_experimental_zip="zip-model")
    bp_transport = FakeTransport([dumps(blueprint_data)])
    zip_transport = FakeTransport([VALID_MARKUP])

    run_generation("blueprint", LpRequest(), bp_transport, settings)
    run_generation("zip", {"blueprint": blueprint_data}, zip_transport, settings)

    assert bp_transport.calls[0]["json_mode"] is True
    assert bp_transport.calls[0]["model"] == "bp-model"
    assert zip_transport.calls[0]["json_mode"] is False
    assert zip_transport.calls[0]["model"] == "zip-model"


def test_blueprint_json_mode_follows_strict_flag(blueprint_data) -> None:
    settings = make_settings(strict_json_only=False)
    transport = FakeTransport([dumps(blueprint_data)])

    run_generation("blueprint", LpRequest(), transport, settings)

    assert transport.calls[0]["json_mode"] is False


def test_empty_model_setting_falls_back_to_default(design_data) -> None:
    settings = make_settings(model="base-model", model_design_spec="")
    transport = FakeTransport([dumps(design_data)])

    run_generation("design", {}, transport, settings)

    assert transport.calls[0]["model"] == "base-model"


def test_get_kind_accepts_dashes_and_rejects_unknown() -> None:
    assert get_kind("reference-design") is KINDS["reference_design"]
    with pytest.raises(ValueError, match="Unknown generation kind"):
        get_kind("poster")


# ── Markup kinds ─────────────────────────────────────────────────────────────

def test_zip_kind_packages_bundle(blueprint_data, settings) -> None:
    transport = FakeTransport([VALID_MARKUP])

    outcome = run_generation("zip", {"blueprint": blueprint_data, "notes": "CTAを目立たせる"}, transport, settings)

    assert outcome.success is True
    bundle = outcome.artifact
    assert isinstance(bundle, HtmlCssBundle)
    with zipfile.ZipFile(io.BytesIO(bundle.zip_bytes)) as archive:
        assert sorted(archive.namelist()) == ["index.html", "styles.css"]
        assert archive.read("styles.css").decode("utf-8") == bundle.css
    assert "サンプルマート" in transport.user_message(0)


def test_reference_zip_retries_unsafe_markup(settings) -> None:
    unsafe = "===index.html===\n<p>x</p><script>alert(1)</script>\n===styles.css===\nbody{}"
    transport = FakeTransport([unsafe, VALID_MARKUP])

    outcome = run_generation("reference_zip", {"reference_url": "https://example.com"}, transport, settings)

    assert outcome.success is True
    assert "- script tag is not allowed" in transport.user_message(1)


def test_markup_split_failure_is_retryable(settings) -> None:
    transport = FakeTransport(["<html></html>", "still no markers", "nope"])

    outcome = run_generation("reference_zip", {}, transport, settings)

    assert outcome.success is False
    assert outcome.errors == ["html/css split failed"]
    assert len(transport.calls) == 3


# ── Logging ──────────────────────────────────────────────────────────────────

def test_failed_attempts_are_logged_with_masked_input(caplog, settings) -> None:
    request = LpRequest(industry="小売", notes="連絡先 taro@example.com 03-1234-5678")
    transport = FakeTransport(["{}"] * 3)

    with caplog.at_level(logging.WARNING, logger="lp_generator.graph"):
        run_generation("blueprint", request, transport, settings)

    text = caplog.text
    assert "[AI] validation failed (attempt 1)" in text
    assert "[AI] validation failed (attempt 3)" in text
    assert "[email]" in text
    assert "[phone]" in text
    assert "taro@example.com" not in text


def test_reference_failure_uses_ref_tag(caplog, settings) -> None:
    transport = FakeTransport([TransportError("boom")] * 3)

    with caplog.at_level(logging.WARNING, logger="lp_generator.graph"):
        run_generation("reference_design", {}, transport, settings)

    assert "[AI-Ref] exception (attempt 1): boom" in caplog.text


# ── Generator facade ─────────────────────────────────────────────────────────

def test_generator_runs_independent_outcomes(reference_data, settings) -> None:
    generator = Generator("reference_design", FakeTransport([dumps(reference_data), "null", "null", "null"]), settings)

    first = generator.generate({"reference_url": "https://example.com"})
    second = generator.generate({})

    assert first.success is True
    assert isinstance(first.artifact, ReferenceStyleSpec)
    assert second.success is False
    assert second.attempts == 3
