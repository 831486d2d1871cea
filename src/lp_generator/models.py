"""Pydantic v2 data models for lp-generator.

Artifacts use camelCase aliases so they round-trip the exact JSON the model
is asked to produce; dump them with ``by_alias=True``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["system", "user", "assistant"]
GENERATION_KINDS = ("blueprint", "design", "decoration", "reference_design", "reference_zip", "zip")


class _Artifact(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Chat ─────────────────────────────────────────────────────────────────────

class ChatMessage(BaseModel):
    role: Role
    content: str


# ── Requests ─────────────────────────────────────────────────────────────────

class _Request(BaseModel):
    """Accepts camelCase request bodies as well as snake_case YAML keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class LpRequest(_Request):
    """Business inputs for the content blueprint generator."""
    industry: str = ""
    brand_name: str = ""
    campaign_overview: str = ""
    offer: str = ""
    conditions: str = ""
    period: str = ""
    target: str = ""
    tone: str = "casual"
    goal: str = "acquisition"
    notes: str = ""
    prohibited_expressions: str = ""
    required_statements: str = ""

    model_config = ConfigDict(frozen=True)


class DesignRequest(_Request):
    """Inputs shared by the design-token and decoration generators."""
    industry: str = ""
    campaign_type: str = ""
    tone: str = "casual"
    brand_color_hint: str = ""
    reference_url: str = ""
    prohibited: str = ""

    model_config = ConfigDict(frozen=True)


class ReferenceDesignRequest(_Request):
    reference_url: str = ""
    campaign_type: str = "ranking"
    brand_color_hint: str = ""
    tone: str = "clean"

    model_config = ConfigDict(frozen=True)


# ── Content blueprint ────────────────────────────────────────────────────────

class BlueprintBrand(_Artifact):
    name: Optional[str] = ""
    color_hint: Optional[str] = Field(default=None, alias="colorHint")


class BlueprintMeta(_Artifact):
    language: Optional[str] = "ja"
    title: Optional[str] = ""
    tone: Optional[str] = "casual"
    goal: Optional[str] = "acquisition"
    industry: Optional[str] = ""
    brand: Optional[BlueprintBrand] = Field(default_factory=BlueprintBrand)


class BlueprintItem(_Artifact):
    title: Optional[str] = ""
    text: Optional[str] = ""
    badge: Optional[str] = None


class SectionProps(_Artifact):
    heading: Optional[str] = None
    subheading: Optional[str] = None
    body: Optional[str] = None
    bullets: Optional[List[str]] = Field(default_factory=list)
    cta_text: Optional[str] = Field(default=None, alias="ctaText")
    disclaimer: Optional[str] = None
    items: Optional[List[BlueprintItem]] = Field(default_factory=list)


class BlueprintSection(_Artifact):
    type: Optional[str] = ""
    id: Optional[str] = ""
    props: Optional[SectionProps] = Field(default_factory=SectionProps)


class ContentBlueprint(_Artifact):
    meta: Optional[BlueprintMeta] = Field(default_factory=BlueprintMeta)
    sections: Optional[List[BlueprintSection]] = Field(default_factory=list)

    def find_section(self, section_type: str) -> Optional[BlueprintSection]:
        """First section of the given type, compared case-insensitively."""
        wanted = section_type.lower()
        for section in self.sections or []:
            if (section.type or "").lower() == wanted:
                return section
        return None


class ZipRequest(_Request):
    """Blueprint-driven HTML/CSS generation input."""
    blueprint: Optional[ContentBlueprint] = None
    notes: str = ""


# ── Design tokens ────────────────────────────────────────────────────────────

class DesignTheme(_Artifact):
    primary: Optional[str] = "#0e0d6a"
    secondary: Optional[str] = "#1e293b"
    accent: Optional[str] = "#f59e0b"
    bg: Optional[str] = "#f8fafc"
    text: Optional[str] = "#0f172a"
    radius: int = 16
    shadow: Optional[str] = "soft"
    font: Optional[str] = "system"
    cta_style: Optional[str] = Field(default="solid", alias="ctaStyle")


class DesignLayout(_Artifact):
    container: Optional[str] = "centered"
    hero: Optional[str] = "split"
    section_style: Optional[str] = Field(default="card", alias="sectionStyle")
    heading_style: Optional[str] = Field(default="bold", alias="headingStyle")
    offer_style: Optional[str] = Field(default="singleCard", alias="offerStyle")
    howto_style: Optional[str] = Field(default="steps", alias="howtoStyle")
    notes_style: Optional[str] = Field(default="boxed", alias="notesStyle")
    ranking_style: Optional[str] = Field(default="table", alias="rankingStyle")


class DesignSpec(_Artifact):
    version: int = 1
    design_type: Optional[str] = Field(default="", alias="designType")
    theme: Optional[DesignTheme] = Field(default_factory=DesignTheme)
    layout: Optional[DesignLayout] = Field(default_factory=DesignLayout)


# ── Decoration ───────────────────────────────────────────────────────────────

class DecorationBackground(_Artifact):
    type: Optional[str] = "solid"
    colors: Optional[List[str]] = Field(default_factory=lambda: ["#F8FAFC", "#FFFFFF"])
    pattern: Optional[str] = "none"
    opacity: float = 0.12


class DecorationSectionFrame(_Artifact):
    style: Optional[str] = "card"
    radius: int = 16
    shadow: Optional[str] = "soft"
    border: Optional[str] = "light"


class DecorationHeading(_Artifact):
    type: Optional[str] = "accent-line"
    color: Optional[str] = "#0E0D6A"
    thickness: int = 3


class DecorationCta(_Artifact):
    style: Optional[str] = "badge"
    color: Optional[str] = "#F59E0B"


class DecorationDivider(_Artifact):
    type: Optional[str] = "none"
    height: int = 0
    color: Optional[str] = "#E2E8F0"


class DecorationSpec(_Artifact):
    background: Optional[DecorationBackground] = Field(default_factory=DecorationBackground)
    section_frame: Optional[DecorationSectionFrame] = Field(default_factory=DecorationSectionFrame, alias="sectionFrame")
    heading_decoration: Optional[DecorationHeading] = Field(default_factory=DecorationHeading, alias="headingDecoration")
    cta_emphasis: Optional[DecorationCta] = Field(default_factory=DecorationCta, alias="ctaEmphasis")
    section_divider: Optional[DecorationDivider] = Field(default_factory=DecorationDivider, alias="sectionDivider")


# ── Reference style ──────────────────────────────────────────────────────────

class ColorTokens(_Artifact):
    primary: Optional[str] = "#1E3A8A"
    accent: Optional[str] = "#F59E0B"
    bg: Optional[str] = "#F8FAFC"
    text: Optional[str] = "#0F172A"
    muted: Optional[str] = "#64748B"
    border: Optional[str] = "#E2E8F0"

    def palette(self) -> List[Optional[str]]:
        return [self.primary, self.accent, self.bg, self.text, self.muted, self.border]


class TypographyTokens(_Artifact):
    h1: int = 32
    h2: int = 24
    body: int = 16
    small: int = 13
    weight_scale: Optional[str] = Field(default="medium", alias="weightScale")


class SpacingTokens(_Artifact):
    section_y: int = Field(default=32, alias="sectionY")
    card_padding: int = Field(default=24, alias="cardPadding")
    grid_gap: int = Field(default=16, alias="gridGap")


class RadiusTokens(_Artifact):
    card: int = 16
    button: int = 999
    badge: int = 999


class ShadowTokens(_Artifact):
    card: Optional[str] = "soft"
    sticky: Optional[str] = "soft"


class StyleTokens(_Artifact):
    colors: Optional[ColorTokens] = Field(default_factory=ColorTokens)
    typography: Optional[TypographyTokens] = Field(default_factory=TypographyTokens)
    spacing: Optional[SpacingTokens] = Field(default_factory=SpacingTokens)
    radius: Optional[RadiusTokens] = Field(default_factory=RadiusTokens)
    shadow: Optional[ShadowTokens] = Field(default_factory=ShadowTokens)


class LayoutRecipe(_Artifact):
    hero: Optional[str] = "kv-image-top"
    section: Optional[str] = "card"
    heading: Optional[str] = "band"
    ranking: Optional[str] = "table"
    notes: Optional[str] = "accordion"


class DecorTokens(_Artifact):
    background: Optional[str] = "solid"
    divider: Optional[str] = "none"
    badge: Optional[str] = "none"


class ReferenceStyleSpec(_Artifact):
    style_tokens: Optional[StyleTokens] = Field(default_factory=StyleTokens, alias="styleTokens")
    layout_recipe: Optional[LayoutRecipe] = Field(default_factory=LayoutRecipe, alias="layoutRecipe")
    decor_spec: Optional[DecorTokens] = Field(default_factory=DecorTokens, alias="decorSpec")


# ── HTML/CSS bundle ──────────────────────────────────────────────────────────

class HtmlCssBundle(BaseModel):
    html: str
    css: str
    zip_bytes: bytes = b""


# ── Validation / outcome ─────────────────────────────────────────────────────

class ValidationResult(BaseModel):
    """Errors, warnings and the normalized artifact (present only when valid)."""
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    normalized: Optional[Any] = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


class GenerationOutcome(BaseModel):
    success: bool
    artifact: Optional[Any] = None
    warnings: List[str] = Field(default_factory=list)
    raw_text: Optional[str] = None
    errors: List[str] = Field(default_factory=list)
    user_message: Optional[str] = None
    attempts: int = 0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def succeeded(cls, artifact: Any, warnings: List[str], raw_text: str, attempts: int = 0) -> "GenerationOutcome":
        return cls(success=True, artifact=artifact, warnings=list(warnings), raw_text=raw_text, attempts=attempts)

    @classmethod
    def failed(cls, user_message: str, errors: List[str], attempts: int = 0) -> "GenerationOutcome":
        return cls(success=False, errors=list(errors), user_message=user_message, attempts=attempts)

    def artifact_json(self) -> Dict[str, Any]:
        if isinstance(self.artifact, BaseModel):
            return self.artifact.model_dump(by_alias=True, exclude={"zip_bytes"})
        return {}


# ── Run metadata ─────────────────────────────────────────────────────────────

class RunMeta(BaseModel):
    run_id: str
    kind: str
    status: str = "initialized"
    model: Optional[str] = None
    attempts: int = 0
    user_message: Optional[str] = None
    errors: List[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
