"""Map validated artifacts onto the editor: content fields and CSS variables.

``BlueprintMapper`` copies a content blueprint into the content model. The
offer section is not pre-classified by the model; each item (or bullet, when
there are no items) is sorted locally into period / benefit / condition /
other by keyword containment, checked in that order.

The style mappers turn design, decoration and reference specs into CSS
custom properties plus a list of modifier classes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from lp_generator.colors import clamp
from lp_generator.content import ContentModel, SectionGroup, StyledTextItem, TemplateContext, TextItem
from lp_generator.models import (
    BlueprintSection,
    ColorTokens,
    ContentBlueprint,
    DecorationBackground,
    DecorationCta,
    DecorationDivider,
    DecorationHeading,
    DecorationSectionFrame,
    DecorationSpec,
    DecorTokens,
    DesignLayout,
    DesignSpec,
    DesignTheme,
    LayoutRecipe,
    RadiusTokens,
    ReferenceStyleSpec,
    SectionProps,
    SpacingTokens,
    StyleTokens,
    TypographyTokens,
)

PERIOD_TEXT_LIMIT = 120
BENEFIT_LINE_LIMIT = 140

CONDITIONS_HEADER = "【利用条件】"
DEFAULT_OFFER_TITLE = "オファー"
DEFAULT_FLOW_TITLE = "ご利用の流れ"
DEFAULT_FLOW_BUTTON = "詳しく見る"
DEFAULT_NOTES_TITLE = "注意事項"

PERIOD_KEYWORDS = ("期間", "実施期間", "キャンペーン期間", "開催期間", "利用期間", "有効期限", "期限", "まで")
BENEFIT_KEYWORDS = ("特典", "割引", "ポイント", "還元", "プレゼント", "値引", "OFF", "%")
CONDITION_KEYWORDS = (
    "条件", "対象", "回数", "金額", "除外", "上限", "最低", "以上", "未満",
    "初回", "限定", "先着", "抽選", "併用不可", "利用不可",
)


# ── Offer classification ─────────────────────────────────────────────────────

def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    lower = text.lower()
    return any(k.lower() in lower for k in keywords)


def classify_offer_text(text: str) -> str:
    """Return ``period``, ``benefit``, ``condition`` or ``other``."""
    if _contains_any(text, PERIOD_KEYWORDS):
        return "period"
    if _contains_any(text, BENEFIT_KEYWORDS):
        return "benefit"
    if _contains_any(text, CONDITION_KEYWORDS):
        return "condition"
    return "other"


@dataclass
class OfferInfo:
    periods: List[str] = field(default_factory=list)
    benefits: List[str] = field(default_factory=list)
    conditions: List[str] = field(default_factory=list)
    extra_notes: List[str] = field(default_factory=list)

    def add(self, bucket: str, text: str) -> None:
        target = {
            "period": self.periods,
            "benefit": self.benefits,
            "condition": self.conditions,
        }.get(bucket, self.extra_notes)
        target.append(text)


def extract_offer_info(props: SectionProps) -> OfferInfo:
    info = OfferInfo()

    items = props.items or []
    for item in items:
        title = item.title or ""
        text = item.text or ""
        combined = " ".join(t for t in (title, text) if t.strip())
        if not combined.strip():
            continue
        # classify on title + text, but store the text itself when present
        info.add(classify_offer_text(combined), text if text.strip() else combined)

    if not items:
        for bullet in props.bullets or []:
            if bullet and bullet.strip():
                info.add(classify_offer_text(bullet), bullet)

    if props.body and props.body.strip():
        info.benefits.append(props.body)

    return info


# ── Helpers ──────────────────────────────────────────────────────────────────

def _combine_text(first: Optional[str], second: Optional[str]) -> str:
    if not first or not first.strip():
        return second or ""
    if not second or not second.strip():
        return first
    return f"{first}\n{second}"


def _non_blank(values: Optional[Iterable[Optional[str]]]) -> List[str]:
    return [v for v in (values or []) if v and v.strip()]


def has_section_content(section: Optional[BlueprintSection]) -> bool:
    if section is None or section.props is None:
        return False
    props = section.props
    scalars = (props.heading, props.subheading, props.body, props.cta_text, props.disclaimer)
    if any(v and v.strip() for v in scalars):
        return True
    if _non_blank(props.bullets):
        return True
    return any((i.title or "").strip() or (i.text or "").strip() for i in props.items or [])


def _content_props(section: Optional[BlueprintSection]) -> Optional[SectionProps]:
    """Props of a section that carries any text, else None."""
    if section is None or not has_section_content(section):
        return None
    return section.props


def _distinct(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return list(seen)


def append_notes(content: ContentModel, lines: Iterable[str], header: str) -> None:
    """Append lines to the notes list behind ``header``, skipping duplicates.

    Duplicate detection ignores case and surrounding whitespace; order of
    first appearance is kept. The header is inserted at the top if missing.
    """
    notes = content.sections.coupon_notes
    if not notes.title.strip():
        notes.title = DEFAULT_NOTES_TITLE

    seen = {line.text.strip().lower() for line in notes.text_lines}
    if header.strip() and header.lower() not in seen:
        notes.text_lines.insert(0, StyledTextItem(text=header))
        seen.add(header.lower())

    for line in lines:
        cleaned = (line or "").strip()
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        notes.text_lines.append(StyledTextItem(text=cleaned))


def resolve_section_key(kebab: str, camel: str, template: Optional[TemplateContext], content: ContentModel) -> str:
    """Prefer whichever spelling the content or template already uses."""
    existing = {g.key.lower() for g in content.section_groups}
    if kebab.lower() in existing:
        return kebab
    if camel.lower() in existing:
        return camel
    if template is not None:
        keys = {k.lower() for k in template.section_group_keys}
        if kebab.lower() in keys:
            return kebab
        if camel.lower() in keys:
            return camel
    return camel


# ── Blueprint mapper ─────────────────────────────────────────────────────────

class BlueprintMapper:
    """Apply a validated content blueprint to a content model in place."""

    def apply(
        self,
        content: ContentModel,
        blueprint: ContentBlueprint,
        template: Optional[TemplateContext] = None,
    ) -> None:
        if content is None or blueprint is None:
            return

        hero = blueprint.find_section("hero")
        offer = blueprint.find_section("offer")
        howto = blueprint.find_section("howto")
        notes = blueprint.find_section("notes")
        footer = blueprint.find_section("footer")

        if blueprint.meta is not None and blueprint.meta.title is not None:
            content.meta.page_title = blueprint.meta.title
        content.meta.description = (
            _combine_text(hero.props.subheading, hero.props.body) if hero and hero.props else ""
        )

        hero_applied = self._apply_hero(content, hero)
        notes_applied = self._apply_notes(content, notes)
        footer_applied = self._apply_footer(content, footer)
        howto_applied = self._apply_howto(content, howto)
        offer_applied = self._apply_offer(content, offer)
        notes_enabled = notes_applied or content.sections.coupon_notes.has_notes()

        content.custom_sections = []

        keys: List[str] = []
        if hero_applied:
            keys.append(resolve_section_key("campaign-content", "campaignContent", template, content))
        if offer_applied:
            keys.append(resolve_section_key("coupon-period", "couponPeriod", template, content))
        if howto_applied:
            keys.append(resolve_section_key("coupon-flow", "couponFlow", template, content))
        if notes_enabled:
            keys.append(resolve_section_key("coupon-notes", "couponNotes", template, content))
        if footer_applied:
            keys.append("countdown")

        content.section_groups = [SectionGroup(key=k, enabled=True) for k in keys if k.strip()]

        sections = content.sections
        sections.campaign_content.enabled = hero_applied
        sections.coupon_period.enabled = offer_applied
        sections.coupon_flow.enabled = howto_applied
        sections.coupon_notes.enabled = notes_enabled
        content.campaign.show_countdown = footer_applied

    @staticmethod
    def _apply_hero(content: ContentModel, section: Optional[BlueprintSection]) -> bool:
        props = _content_props(section)
        if props is None:
            return False
        target = content.sections.campaign_content
        target.title = props.heading or ""
        target.body = _combine_text(props.subheading, props.body)
        target.notes = [TextItem(text=t) for t in _non_blank(props.bullets)]
        return True

    @staticmethod
    def _apply_offer(content: ContentModel, section: Optional[BlueprintSection]) -> bool:
        props = _content_props(section)
        if props is None:
            return False
        period = content.sections.coupon_period
        period.title = props.heading if props.heading is not None else DEFAULT_OFFER_TITLE
        period.input_mode = "manual"

        info = extract_offer_info(props)
        period_text = info.periods[0] if info.periods else ""
        if period_text.strip():
            if len(period_text) > PERIOD_TEXT_LIMIT:
                info.extra_notes.append(period_text[PERIOD_TEXT_LIMIT:])
                period_text = period_text[:PERIOD_TEXT_LIMIT]
            period.text = period_text
        else:
            period.text = ""

        if info.benefits:
            benefit_line = " / ".join(_distinct(info.benefits))
            if len(benefit_line) > BENEFIT_LINE_LIMIT:
                info.extra_notes.append(benefit_line)
            else:
                campaign = content.sections.campaign_content
                addition = f"特典：{benefit_line}"
                campaign.body = f"{campaign.body}\n{addition}" if campaign.body.strip() else addition

        condition_notes = info.conditions + info.extra_notes
        if condition_notes:
            append_notes(content, condition_notes, CONDITIONS_HEADER)

        return bool(period.text.strip())

    @staticmethod
    def _apply_howto(content: ContentModel, section: Optional[BlueprintSection]) -> bool:
        props = _content_props(section)
        if props is None:
            return False
        flow = content.sections.coupon_flow
        flow.title = props.heading if props.heading is not None else DEFAULT_FLOW_TITLE
        flow.lead = props.subheading or ""
        flow.note = props.disclaimer or ""
        flow.button_label = props.cta_text if props.cta_text is not None else DEFAULT_FLOW_BUTTON
        flow.items = [TextItem(text=t) for t in _non_blank(props.bullets)]
        return True

    @staticmethod
    def _apply_notes(content: ContentModel, section: Optional[BlueprintSection]) -> bool:
        props = _content_props(section)
        if props is None:
            return False
        notes = content.sections.coupon_notes
        notes.title = props.heading if props.heading is not None else DEFAULT_NOTES_TITLE
        notes.text_lines = [StyledTextItem(text=t) for t in _non_blank(props.bullets)]
        return True

    @staticmethod
    def _apply_footer(content: ContentModel, section: Optional[BlueprintSection]) -> bool:
        props = _content_props(section)
        if props is None:
            return False
        lines = _non_blank([props.body, *(props.bullets or []), props.disclaimer])
        content.campaign.footer_lines = [StyledTextItem(text=t) for t in lines]
        return True


# ── Style mappers ────────────────────────────────────────────────────────────

FONT_STACKS = {
    "rounded": "'M PLUS Rounded 1c', 'Hiragino Maru Gothic ProN', 'Segoe UI', sans-serif",
    "gothic": "'Noto Sans JP', 'Yu Gothic', 'Segoe UI', sans-serif",
}
DEFAULT_FONT_STACK = "'Inter', 'Segoe UI', 'Helvetica Neue', Arial, sans-serif"


@dataclass
class StyleMapping:
    """CSS custom properties plus modifier classes for the page root."""

    variables: Dict[str, str]
    classes: List[str]

    def to_css(self, selector: str = ":root") -> str:
        body = "\n".join(f"  {name}: {value};" for name, value in self.variables.items())
        return f"{selector} {{\n{body}\n}}\n"

    def class_attr(self) -> str:
        return " ".join(self.classes)


def _px(value: int) -> str:
    return f"{value}px"


def _format_opacity(value: float) -> str:
    # at most three decimals, no trailing zeros
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return text or "0"


class DesignMapper:
    def map(self, spec: DesignSpec) -> StyleMapping:
        theme = spec.theme or DesignTheme()
        layout = spec.layout or DesignLayout()
        variables = {
            "--ai-primary": theme.primary or "",
            "--ai-secondary": theme.secondary or "",
            "--ai-accent": theme.accent or "",
            "--ai-bg": theme.bg or "",
            "--ai-text": theme.text or "",
            "--ai-radius": _px(clamp(theme.radius, 0, 32)),
            "--ai-font": FONT_STACKS.get((theme.font or "").lower(), DEFAULT_FONT_STACK),
        }
        classes = [
            f"ai-container-{layout.container}",
            f"ai-hero-{layout.hero}",
            f"ai-section-{layout.section_style}",
            f"ai-heading-{layout.heading_style}",
            f"ai-offer-{layout.offer_style}",
            f"ai-howto-{layout.howto_style}",
            f"ai-notes-{layout.notes_style}",
            f"ai-ranking-{layout.ranking_style}",
            f"ai-shadow-{theme.shadow}",
            f"ai-font-{theme.font}",
            f"ai-cta-{theme.cta_style}",
        ]
        return StyleMapping(variables, classes)


class DecorationMapper:
    def map(self, spec: DecorationSpec) -> StyleMapping:
        background = spec.background or DecorationBackground()
        frame = spec.section_frame or DecorationSectionFrame()
        heading = spec.heading_decoration or DecorationHeading()
        cta = spec.cta_emphasis or DecorationCta()
        divider = spec.section_divider or DecorationDivider()

        colors = list(background.colors or ["#F8FAFC", "#FFFFFF"])
        if len(colors) == 1:
            colors.append(colors[0])

        variables = {
            "--ai-decor-bg-1": colors[0],
            "--ai-decor-bg-2": colors[1],
            "--ai-decor-bg-opacity": _format_opacity(background.opacity),
            "--ai-decor-frame-radius": _px(clamp(frame.radius, 0, 28)),
            "--ai-decor-heading-color": heading.color or "",
            "--ai-decor-heading-thickness": _px(clamp(heading.thickness, 0, 8)),
            "--ai-decor-cta-color": cta.color or "",
            "--ai-decor-divider-height": _px(clamp(divider.height, 0, 48)),
            "--ai-decor-divider-color": divider.color or "",
        }
        classes = [
            f"ai-decor-bg-{background.type}",
            f"ai-decor-pattern-{background.pattern}",
            f"ai-decor-frame-{frame.style}",
            f"ai-decor-shadow-{frame.shadow}",
            f"ai-decor-border-{frame.border}",
            f"ai-decor-heading-{heading.type}",
            f"ai-decor-cta-{cta.style}",
            f"ai-decor-divider-{divider.type}",
        ]
        return StyleMapping(variables, classes)


class ReferenceStyleMapper:
    def map(self, spec: ReferenceStyleSpec) -> StyleMapping:
        tokens = spec.style_tokens or StyleTokens()
        recipe = spec.layout_recipe or LayoutRecipe()
        decor = spec.decor_spec or DecorTokens()
        colors = tokens.colors or ColorTokens()
        typography = tokens.typography or TypographyTokens()
        spacing = tokens.spacing or SpacingTokens()
        radius = tokens.radius or RadiusTokens()

        variables = {
            "--ref-primary": colors.primary or "",
            "--ref-accent": colors.accent or "",
            "--ref-bg": colors.bg or "",
            "--ref-text": colors.text or "",
            "--ref-muted": colors.muted or "",
            "--ref-border": colors.border or "",
            "--ref-h1": _px(typography.h1),
            "--ref-h2": _px(typography.h2),
            "--ref-body": _px(typography.body),
            "--ref-small": _px(typography.small),
            "--ref-section-y": _px(spacing.section_y),
            "--ref-card-padding": _px(spacing.card_padding),
            "--ref-grid-gap": _px(spacing.grid_gap),
            "--ref-radius-card": _px(radius.card),
            "--ref-radius-button": _px(radius.button),
            "--ref-radius-badge": _px(radius.badge),
        }
        classes = [
            f"ref-hero-{recipe.hero}",
            f"ref-section-{recipe.section}",
            f"ref-heading-{recipe.heading}",
            f"ref-ranking-{recipe.ranking}",
            f"ref-notes-{recipe.notes}",
            f"ref-bg-{decor.background}",
            f"ref-divider-{decor.divider}",
            f"ref-badge-{decor.badge}",
            f"ref-weight-{typography.weight_scale}",
        ]
        return StyleMapping(variables, classes)
