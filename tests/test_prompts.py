from lp_generator.models import ContentBlueprint, DesignRequest, LpRequest, ReferenceDesignRequest, ZipRequest
from lp_generator.prompts import (
    _safe_format,
    build_blueprint_messages,
    build_decoration_messages,
    build_design_messages,
    build_reference_messages,
    build_reference_zip_messages,
    build_zip_messages,
    cap_fields,
    trim_input,
)


def test_one_system_and_one_user_message() -> None:
    for messages in (
        build_blueprint_messages(LpRequest(industry="小売")),
        build_design_messages(DesignRequest(industry="小売")),
        build_decoration_messages(DesignRequest(industry="小売")),
        build_reference_messages(ReferenceDesignRequest(reference_url="https://example.com")),
        build_reference_zip_messages(ReferenceDesignRequest()),
        build_zip_messages(ZipRequest(blueprint=ContentBlueprint())),
    ):
        assert [m.role for m in messages] == ["system", "user"]
        assert messages[0].content
        assert messages[1].content


def test_request_fields_are_interpolated() -> None:
    messages = build_blueprint_messages(LpRequest(industry="小売", brand_name="サンプルマート", period="4月末まで"))

    user = messages[1].content
    assert "業種: 小売" in user
    assert "会社名・ブランド名: サンプルマート" in user
    assert "期間: 4月末まで" in user
    assert "{" not in user


def test_fields_are_capped_before_interpolation() -> None:
    messages = build_design_messages(DesignRequest(industry="業" * 150))

    assert "業種: " + "業" * 100 + "\n" in messages[1].content


def test_retry_block_lists_every_error() -> None:
    errors = ["section 'hero' is required", "meta.language must be 'ja'"]

    messages = build_blueprint_messages(LpRequest(), errors=errors, is_retry=True)

    user = messages[1].content
    assert "【再生成の指示】" in user
    assert "- section 'hero' is required" in user
    assert "- meta.language must be 'ja'" in user
    assert "未知のフィールドは禁止" in user


def test_no_retry_block_on_first_attempt_or_without_errors() -> None:
    first = build_design_messages(DesignRequest(), errors=["x"], is_retry=False)
    empty = build_design_messages(DesignRequest(), errors=[], is_retry=True)

    assert "【再生成の指示】" not in first[1].content
    assert "【再生成の指示】" not in empty[1].content


def test_markup_retry_rules_mention_scripts() -> None:
    messages = build_reference_zip_messages(ReferenceDesignRequest(), errors=["html/css split failed"], is_retry=True)

    assert "- html/css split failed" in messages[1].content
    assert "script" in messages[1].content


def test_system_prompt_keeps_literal_json_schema() -> None:
    system = build_design_messages(DesignRequest())[0].content

    assert '"theme"' in system
    assert "{" in system


def test_zip_prompt_embeds_blueprint_json_with_aliases() -> None:
    blueprint = ContentBlueprint.model_validate({"meta": {"title": "春", "brand": {"name": "A", "colorHint": "#000000"}}})

    user = build_zip_messages(ZipRequest(blueprint=blueprint, notes="余白多め"))[1].content

    assert '"colorHint":"#000000"' in user
    assert "余白多め" in user


def test_user_message_is_capped_at_input_limit() -> None:
    messages = build_blueprint_messages(LpRequest(campaign_overview="あ" * 500, notes="い" * 500), input_limit=300)

    assert len(messages[1].content) == 303
    assert messages[1].content.endswith("...")


def test_helpers() -> None:
    assert _safe_format('{"a": {x}} {y}', x="1") == '{"a": 1} {y}'
    assert cap_fields({"a": "  abcdef ", "b": "xyz"}, {"a": 3}) == {"a": "abc", "b": "xyz"}
    assert trim_input("   ", 10) == ""
    assert trim_input("abcdef", 3) == "abc..."
