import copy
import json
import threading
from typing import Any, List, Optional

import pytest

from lp_generator.config import AiSettings
from lp_generator.llm.base import ChatTransport
from lp_generator.models import ChatMessage


class FakeTransport(ChatTransport):
    """Replays queued responses; an exception in the queue is raised instead."""

    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.calls: List[dict] = []

    def send(
        self,
        model: str,
        messages: List[ChatMessage],
        json_mode: bool,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        self.calls.append({"model": model, "messages": list(messages), "json_mode": json_mode})
        if not self.responses:
            raise AssertionError("transport called more times than expected")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def user_message(self, index: int) -> str:
        return self.calls[index]["messages"][1].content


def make_settings(**overrides: Any) -> AiSettings:
    values = {"api_key": "sk-test", "max_retry_count": 2, "max_retries": 2}
    values.update(overrides)
    return AiSettings(_env_file=None, **values)


@pytest.fixture
def settings() -> AiSettings:
    return make_settings()


# ── Valid artifacts ──────────────────────────────────────────────────────────

VALID_BLUEPRINT = {
    "meta": {
        "language": "ja",
        "title": "春の新生活クーポン",
        "tone": "casual",
        "goal": "acquisition",
        "industry": "小売",
        "brand": {"name": "サンプルマート", "colorHint": "#E60012"},
    },
    "sections": [
        {
            "type": "hero",
            "id": "hero",
            "props": {
                "heading": "新生活を応援！",
                "subheading": "アプリ会員限定クーポン配布中",
                "body": "",
                "bullets": ["全品対象", "何度でも使える", "アプリで簡単"],
                "ctaText": "クーポンを受け取る",
                "disclaimer": None,
                "items": [],
            },
        },
        {
            "type": "offer",
            "id": "offer",
            "props": {
                "heading": "キャンペーン内容",
                "bullets": [],
                "items": [
                    {"title": "期間", "text": "2025年4月30日まで"},
                    {"title": "特典", "text": "全品10%OFF"},
                    {"title": "対象", "text": "アプリ会員の方"},
                ],
            },
        },
        {
            "type": "howto",
            "id": "howto",
            "props": {
                "heading": "ご利用の流れ",
                "bullets": ["アプリをダウンロード", "会員登録", "レジでクーポンを提示"],
                "ctaText": "アプリを入手",
                "items": [],
            },
        },
        {
            "type": "notes",
            "id": "notes",
            "props": {
                "heading": "注意事項",
                "bullets": [
                    "一部対象外商品があります。",
                    "他クーポンとの併用はできません。",
                    "1会計につき1回までご利用いただけます。",
                    "在庫がなくなり次第終了となります。",
                    "内容は予告なく変更となる場合があります。",
                ],
                "items": [],
            },
        },
        {
            "type": "footer",
            "id": "footer",
            "props": {
                "body": "お問い合わせはお近くの店舗まで。",
                "bullets": ["運営：サンプルマート株式会社", "受付時間 10:00-18:00", "年中無休"],
                "items": [],
            },
        },
    ],
}

VALID_DESIGN = {
    "version": 1,
    "designType": "coupon",
    "theme": {
        "primary": "#0e0d6a",
        "secondary": "#1e293b",
        "accent": "#f59e0b",
        "bg": "#f8fafc",
        "text": "#0f172a",
        "radius": 16,
        "shadow": "soft",
        "font": "system",
        "ctaStyle": "solid",
    },
    "layout": {
        "container": "centered",
        "hero": "split",
        "sectionStyle": "card",
        "headingStyle": "bold",
        "offerStyle": "singleCard",
        "howtoStyle": "steps",
        "notesStyle": "boxed",
        "rankingStyle": "table",
    },
}

VALID_DECORATION = {
    "background": {"type": "gradient", "colors": ["#f8fafc", "#ffffff"], "pattern": "none", "opacity": 0.12},
    "sectionFrame": {"style": "card", "radius": 16, "shadow": "soft", "border": "light"},
    "headingDecoration": {"type": "accent-line", "color": "#0E0D6A", "thickness": 3},
    "ctaEmphasis": {"style": "badge", "color": "#F59E0B"},
    "sectionDivider": {"type": "none", "height": 0, "color": "#E2E8F0"},
}

VALID_REFERENCE = {
    "styleTokens": {
        "colors": {
            "primary": "#1E3A8A",
            "accent": "#F59E0B",
            "bg": "#F8FAFC",
            "text": "#0F172A",
            "muted": "#64748B",
            "border": "#E2E8F0",
        },
        "typography": {"h1": 32, "h2": 24, "body": 16, "small": 13, "weightScale": "medium"},
        "spacing": {"sectionY": 32, "cardPadding": 24, "gridGap": 16},
        "radius": {"card": 16, "button": 999, "badge": 999},
        "shadow": {"card": "soft", "sticky": "soft"},
    },
    "layoutRecipe": {"hero": "kv-image-top", "section": "card", "heading": "band", "ranking": "table", "notes": "accordion"},
    "decorSpec": {"background": "solid", "divider": "none", "badge": "none"},
}

VALID_MARKUP = (
    "===index.html===\n"
    "<!doctype html><html><head><link rel=\"stylesheet\" href=\"styles.css\"></head>"
    "<body><h1>新生活を応援！</h1></body></html>\n"
    "===styles.css===\n"
    "body { margin: 0; color: #0f172a; }\n"
)


@pytest.fixture
def blueprint_data() -> dict:
    return copy.deepcopy(VALID_BLUEPRINT)


@pytest.fixture
def design_data() -> dict:
    return copy.deepcopy(VALID_DESIGN)


@pytest.fixture
def decoration_data() -> dict:
    return copy.deepcopy(VALID_DECORATION)


@pytest.fixture
def reference_data() -> dict:
    return copy.deepcopy(VALID_REFERENCE)


def dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)
