import json

from conftest import dumps
from lp_generator.models import ContentBlueprint
from lp_generator.validators import BlueprintValidator
from lp_generator.validators.blueprint import (
    FALLBACK_BULLETS,
    NOTES_FALLBACK_BULLETS,
    ensure_bullets,
    truncate_soft,
)


def _parse(data, strict=True):
    return BlueprintValidator(strict=strict).parse_and_validate(dumps(data))


def _section(data, section_type):
    return next(s for s in data["sections"] if s["type"] == section_type)


def test_valid_blueprint_has_no_errors(blueprint_data) -> None:
    artifact, result = _parse(blueprint_data)

    assert result.errors == []
    assert result.is_valid
    assert isinstance(result.normalized, ContentBlueprint)
    assert result.normalized is not artifact
    assert [s.type for s in result.normalized.sections] == ["hero", "offer", "howto", "notes", "footer"]


def test_unknown_root_field_is_error_in_strict_mode(blueprint_data) -> None:
    blueprint_data["theme"] = {"primary": "#000000"}

    _, result = _parse(blueprint_data, strict=True)

    assert "unknown root field: theme" in result.errors
    assert result.normalized is None


def test_unknown_root_field_is_warning_when_not_strict(blueprint_data) -> None:
    blueprint_data["theme"] = {"primary": "#000000"}

    _, result = _parse(blueprint_data, strict=False)

    assert result.errors == []
    assert "unknown root field: theme" in result.warnings
    assert result.normalized is not None


def test_unknown_nested_fields_are_reported_at_every_level(blueprint_data) -> None:
    blueprint_data["meta"]["brand"]["logo"] = "x.png"
    blueprint_data["sections"][0]["style"] = "bold"
    blueprint_data["sections"][0]["props"]["emoji"] = "🎉"
    _section(blueprint_data, "offer")["props"]["items"][0]["icon"] = "clock"

    _, result = _parse(blueprint_data)

    assert "unknown brand field: logo" in result.errors
    assert "unknown section field: style" in result.errors
    assert "unknown props field: emoji" in result.errors
    assert "unknown item field: icon" in result.errors


def test_keys_are_matched_case_insensitively(blueprint_data) -> None:
    blueprint_data["META"] = blueprint_data.pop("meta")
    blueprint_data["Sections"] = blueprint_data.pop("sections")

    _, result = _parse(blueprint_data)

    assert result.errors == []
    assert result.normalized.meta.title == "春の新生活クーポン"


def test_missing_required_sections(blueprint_data) -> None:
    blueprint_data["sections"] = [s for s in blueprint_data["sections"] if s["type"] not in ("hero", "footer")]

    _, result = _parse(blueprint_data)

    assert "section 'hero' is required" in result.errors
    assert "section 'footer' is required" in result.errors
    assert "sections must be at least 4" in result.errors


def test_every_violation_is_kept(blueprint_data) -> None:
    blueprint_data["meta"]["language"] = "en"
    blueprint_data["sections"].append({"type": "gallery", "id": "", "props": {"bullets": [], "items": []}})

    _, result = _parse(blueprint_data)

    assert "meta.language must be 'ja'" in result.errors
    assert "unknown section type: gallery" in result.errors
    assert "section.id is required" in result.errors


def test_tone_and_goal_outside_enums_are_warnings(blueprint_data) -> None:
    blueprint_data["meta"]["tone"] = "playful"
    blueprint_data["meta"]["goal"] = "awareness"

    _, result = _parse(blueprint_data)

    assert result.errors == []
    assert "meta.tone should be casual or formal" in result.warnings
    assert "meta.goal should be acquisition, activation, retention, or revenue" in result.warnings


def test_null_bullets_and_items_are_errors(blueprint_data) -> None:
    props = _section(blueprint_data, "howto")["props"]
    props["bullets"] = None
    props["items"] = None

    _, result = _parse(blueprint_data)

    assert "bullets is required: howto" in result.errors
    assert "items is required: howto" in result.errors


def test_hard_size_limit(blueprint_data) -> None:
    _section(blueprint_data, "hero")["props"]["body"] = "あ" * 20001

    _, result = _parse(blueprint_data)

    assert "props too large: hero" in result.errors


def test_unparseable_output() -> None:
    artifact, result = BlueprintValidator().parse_and_validate("```json\n{}\n```")

    assert artifact is None
    assert result.errors[0].startswith("json parse failed")


def test_wrong_types_are_parse_failures(blueprint_data) -> None:
    blueprint_data["sections"] = "hero, offer"

    artifact, result = _parse(blueprint_data)

    assert artifact is None
    assert result.errors[0].startswith("json parse failed")


def test_null_document() -> None:
    artifact, result = BlueprintValidator().parse_and_validate("null")

    assert artifact is None
    assert result.errors == ["blueprint is null"]


def test_root_must_be_object() -> None:
    result = BlueprintValidator().validate(ContentBlueprint(), raw=["meta"])

    assert "root must be an object" in result.errors


# ── Normalize ────────────────────────────────────────────────────────────────

def test_long_heading_is_truncated_with_warning(blueprint_data) -> None:
    _section(blueprint_data, "hero")["props"]["heading"] = "見" * 55

    _, result = _parse(blueprint_data)

    hero = result.normalized.find_section("hero")
    assert hero.props.heading == "見" * 40
    assert "hero.heading trimmed to 40" in result.warnings


def test_short_bullets_are_padded_with_fallbacks(blueprint_data) -> None:
    _section(blueprint_data, "howto")["props"]["bullets"] = ["アプリをダウンロード", "  "]

    _, result = _parse(blueprint_data)

    howto = result.normalized.find_section("howto")
    assert howto.props.bullets == ["アプリをダウンロード", FALLBACK_BULLETS[0], FALLBACK_BULLETS[1]]
    assert "howto.bullets bullets不足 (min 3)" in result.warnings


def test_notes_section_needs_five_bullets(blueprint_data) -> None:
    _section(blueprint_data, "notes")["props"]["bullets"] = ["一部対象外商品があります。"]

    _, result = _parse(blueprint_data)

    notes = result.normalized.find_section("notes")
    assert notes.props.bullets == ["一部対象外商品があります。", *NOTES_FALLBACK_BULLETS[:4]]
    assert len(set(notes.props.bullets)) == 5
    assert [w for w in result.warnings if w.startswith("notes.") and "bullets不足" in w] == [
        "notes.bullets bullets不足 (min 5)"
    ]


def test_too_many_bullets_are_cut(blueprint_data) -> None:
    _section(blueprint_data, "hero")["props"]["bullets"] = [f"項目{i}" for i in range(12)]

    _, result = _parse(blueprint_data)

    assert len(result.normalized.find_section("hero").props.bullets) == 10
    assert "hero.bullets bullets多すぎ (max 10)" in result.warnings


def test_validation_does_not_mutate_parsed_artifact(blueprint_data) -> None:
    _section(blueprint_data, "hero")["props"]["heading"] = "見" * 55

    artifact, result = _parse(blueprint_data)

    assert artifact.find_section("hero").props.heading == "見" * 55
    assert result.normalized.find_section("hero").props.heading == "見" * 40


def test_normalized_output_round_trips_through_aliases(blueprint_data) -> None:
    _, result = _parse(blueprint_data)

    dumped = result.normalized.model_dump(by_alias=True)
    assert dumped["meta"]["brand"]["colorHint"] == "#E60012"
    assert json.loads(json.dumps(dumped, ensure_ascii=False))["sections"][0]["props"]["ctaText"] == "クーポンを受け取る"


def test_truncate_soft_and_ensure_bullets_helpers() -> None:
    warnings = []

    assert truncate_soft("abc", 5, warnings, "k") == "abc"
    assert truncate_soft("", 5, warnings, "empty") == ""
    assert ensure_bullets(["a", "b"], 1, 10, warnings, "ok") == ["a", "b"]

    assert warnings == ["empty is empty"]
