"""Content blueprint validator."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from lp_generator.models import BlueprintSection, ContentBlueprint
from lp_generator.validators.base import ArtifactValidator, Findings, allowed, get_child

SECTION_TYPES = allowed("hero", "benefits", "howto", "offer", "ranking", "faq", "notes", "footer")
REQUIRED_SECTIONS = ("hero", "offer", "howto", "notes", "footer")
TONES = allowed("casual", "formal")
GOALS = allowed("acquisition", "activation", "retention", "revenue")

ROOT_FIELDS = allowed("meta", "sections")
META_FIELDS = allowed("language", "title", "tone", "goal", "industry", "brand")
BRAND_FIELDS = allowed("name", "colorHint")
SECTION_FIELDS = allowed("type", "id", "props")
PROPS_FIELDS = allowed("heading", "subheading", "body", "bullets", "ctaText", "disclaimer", "items")
ITEM_FIELDS = allowed("title", "text", "badge")

HEADING_LIMIT = 40
SUBHEADING_LIMIT = 80
BODY_LIMIT = 500
CTA_LIMIT = 40
DISCLAIMER_LIMIT = 120
BULLET_LIMIT = 60
ITEM_TITLE_LIMIT = 60
ITEM_TEXT_LIMIT = 200
ITEM_BADGE_LIMIT = 30

MAX_HARD_STRING = 20000
MAX_SECTIONS = 50
MIN_SECTIONS = 4

FALLBACK_BULLETS = (
    "内容は予告なく変更となる場合があります。",
    "詳細は公式サイトでご確認ください。",
    "最新情報は店舗・窓口でご確認ください。",
)
NOTES_FALLBACK_BULLETS = FALLBACK_BULLETS + (
    "他の割引・クーポンとの併用はできません。",
    "画像はイメージです。",
)


def _too_large(value: Optional[str]) -> bool:
    return bool(value and value.strip() and len(value) > MAX_HARD_STRING)


def truncate_soft(value: Optional[str], limit: int, warnings: List[str], key: str) -> Optional[str]:
    if not value or not value.strip():
        warnings.append(f"{key} is empty")
        return value
    if len(value) <= limit:
        return value
    warnings.append(f"{key} trimmed to {limit}")
    return value[:limit]


def ensure_bullets(
    bullets: List[str],
    minimum: int,
    maximum: int,
    warnings: List[str],
    key: str,
    fallback_bullets: Sequence[str] = FALLBACK_BULLETS,
) -> List[str]:
    """Drop blanks, pad with unused fallback sentences up to ``minimum``, cut at ``maximum``."""
    cleaned = [b.strip() for b in bullets if b and b.strip()]

    if len(cleaned) < minimum:
        warnings.append(f"{key} bullets不足 (min {minimum})")
        fallback = [b for b in fallback_bullets if b not in cleaned]
        while len(cleaned) < minimum and fallback:
            cleaned.append(fallback.pop(0))

    if len(cleaned) > maximum:
        warnings.append(f"{key} bullets多すぎ (max {maximum})")
        cleaned = cleaned[:maximum]

    return cleaned


class BlueprintValidator(ArtifactValidator[ContentBlueprint]):
    artifact_type = ContentBlueprint
    null_message = "blueprint is null"
    root_label = "root must be an object"

    # ── Unknown fields ───────────────────────────────────────────────────

    def check_unknown_fields(self, root: Dict[str, Any], findings: Findings) -> None:
        findings.check_keys(root, ROOT_FIELDS, "root")

        found, meta = get_child(root, "meta")
        if found:
            if not isinstance(meta, dict):
                findings.error("meta must be object")
            else:
                findings.check_keys(meta, META_FIELDS, "meta")
                found, brand = get_child(meta, "brand")
                if found:
                    if not isinstance(brand, dict):
                        findings.error("meta.brand must be object")
                    else:
                        findings.check_keys(brand, BRAND_FIELDS, "brand")

        found, sections = get_child(root, "sections")
        if not found:
            return
        if not isinstance(sections, list):
            findings.error("sections must be array")
            return

        for section in sections:
            if not isinstance(section, dict):
                findings.error("section must be object")
                continue
            findings.check_keys(section, SECTION_FIELDS, "section")

            found, props = get_child(section, "props")
            if not found:
                continue
            if not isinstance(props, dict):
                findings.error("props must be object")
                continue
            self._check_props(props, findings)

    def _check_props(self, props: Dict[str, Any], findings: Findings) -> None:
        findings.check_keys(props, PROPS_FIELDS, "props")

        found, bullets = get_child(props, "bullets")
        if found and bullets is not None and not isinstance(bullets, list):
            findings.error("props.bullets must be array")

        found, items = get_child(props, "items")
        if found and items is not None and not isinstance(items, list):
            findings.error("props.items must be array")
        if not isinstance(items, list):
            return
        for item in items:
            if not isinstance(item, dict):
                findings.error("props.items item must be object")
                continue
            findings.check_keys(item, ITEM_FIELDS, "item")

    # ── Semantics ────────────────────────────────────────────────────────

    def check_semantics(self, blueprint: ContentBlueprint, findings: Findings) -> None:
        meta = blueprint.meta
        if meta is None:
            findings.error("meta is required")
        else:
            if (meta.language or "").lower() != "ja":
                findings.error("meta.language must be 'ja'")
            if (meta.tone or "").lower() not in TONES:
                findings.warn("meta.tone should be casual or formal")
            if (meta.goal or "").lower() not in GOALS:
                findings.warn("meta.goal should be acquisition, activation, retention, or revenue")
            if meta.brand is None:
                findings.error("meta.brand is required")
            brand_name = meta.brand.name if meta.brand else None
            if _too_large(meta.title) or _too_large(meta.industry) or _too_large(brand_name):
                findings.error("meta fields too large")

        sections = blueprint.sections or []
        if blueprint.sections is None or len(sections) < MIN_SECTIONS:
            findings.error(f"sections must be at least {MIN_SECTIONS}")
        if len(sections) > MAX_SECTIONS:
            findings.error("sections too many")

        types = {(s.type or "").lower() for s in sections}
        for required in REQUIRED_SECTIONS:
            if required not in types:
                findings.error(f"section '{required}' is required")

        for section in sections:
            self._check_section(section, findings)

    def _check_section(self, section: BlueprintSection, findings: Findings) -> None:
        if (section.type or "").lower() not in SECTION_TYPES:
            findings.error(f"unknown section type: {section.type}")
        if not section.id or not section.id.strip():
            findings.error("section.id is required")

        props = section.props
        if props is None:
            findings.error(f"section.props is required: {section.id}")
            return

        if any(_too_large(v) for v in (props.heading, props.subheading, props.body, props.cta_text, props.disclaimer)):
            findings.error(f"props too large: {section.id}")

        if props.bullets is None:
            findings.error(f"bullets is required: {section.id}")
        else:
            for bullet in props.bullets:
                if _too_large(bullet):
                    findings.error(f"bullet too large: {section.id}")

        if props.items is None:
            findings.error(f"items is required: {section.id}")
        else:
            for item in props.items:
                if _too_large(item.title) or _too_large(item.text) or _too_large(item.badge):
                    findings.error(f"item too large: {section.id}")

    # ── Normalize ────────────────────────────────────────────────────────

    def normalize(self, blueprint: ContentBlueprint, warnings: List[str]) -> ContentBlueprint:
        for section in blueprint.sections or []:
            props = section.props
            if props is None:
                continue
            sid = section.id

            props.heading = truncate_soft(props.heading, HEADING_LIMIT, warnings, f"{sid}.heading")
            props.subheading = truncate_soft(props.subheading, SUBHEADING_LIMIT, warnings, f"{sid}.subheading")
            props.body = truncate_soft(props.body, BODY_LIMIT, warnings, f"{sid}.body")
            props.cta_text = truncate_soft(props.cta_text, CTA_LIMIT, warnings, f"{sid}.ctaText")
            props.disclaimer = truncate_soft(props.disclaimer, DISCLAIMER_LIMIT, warnings, f"{sid}.disclaimer")

            if props.bullets is not None:
                if (section.type or "").lower() == "notes":
                    bullets = ensure_bullets(props.bullets, 5, 10, warnings, f"{sid}.bullets", NOTES_FALLBACK_BULLETS)
                else:
                    bullets = ensure_bullets(props.bullets, 3, 10, warnings, f"{sid}.bullets")
                trimmed = (truncate_soft(b, BULLET_LIMIT, warnings, f"{sid}.bullet") or "" for b in bullets)
                props.bullets = [b for b in trimmed if b.strip()]

            if props.items is not None:
                if not props.items:
                    warnings.append(f"{sid}.items is empty")
                for item in props.items:
                    item.title = truncate_soft(item.title, ITEM_TITLE_LIMIT, warnings, f"{sid}.item.title") or ""
                    item.text = truncate_soft(item.text, ITEM_TEXT_LIMIT, warnings, f"{sid}.item.text") or ""
                    item.badge = truncate_soft(item.badge, ITEM_BADGE_LIMIT, warnings, f"{sid}.item.badge")

        return blueprint
