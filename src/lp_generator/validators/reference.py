"""Reference-style validator: palette, typography, spacing scale, layout recipe."""

from __future__ import annotations

from typing import Any, Dict, List

from lp_generator.colors import hue_families
from lp_generator.models import (
    ColorTokens,
    RadiusTokens,
    ReferenceStyleSpec,
    ShadowTokens,
    SpacingTokens,
    StyleTokens,
    TypographyTokens,
)
from lp_generator.validators.base import (
    ArtifactValidator,
    Findings,
    allowed,
    clamp_value,
    default_enum,
    normalize_color,
)

LAYOUT_RECIPE_ENUMS = {
    "hero": allowed("kv-image-top", "kv-split", "kv-poster"),
    "section": allowed("card", "band", "flat"),
    "heading": allowed("band", "pill", "underline"),
    "ranking": allowed("table", "cards", "podium"),
    "notes": allowed("accordion", "boxed"),
}
DECOR_ENUMS = {
    "background": allowed("solid", "gradient"),
    "divider": allowed("none", "line", "wave"),
    "badge": allowed("none", "label", "stamp"),
}
WEIGHT_SCALES = allowed("regular", "medium", "bold")

SPACING_SCALE = frozenset({8, 16, 24, 32, 48})
SPACING_DEFAULT = 24
MAX_HUE_FAMILIES = 3

TYPOGRAPHY_RANGES = {
    "h1": (20, 48),
    "h2": (16, 36),
    "body": (12, 22),
    "small": (10, 18),
}
RADIUS_RANGES = {
    "card": (0, 32),
    "button": (0, 999),
    "badge": (0, 999),
}
COLOR_FIELDS = ("primary", "accent", "bg", "text", "muted", "border")
SPACING_FIELDS = (("section_y", "sectionY"), ("card_padding", "cardPadding"), ("grid_gap", "gridGap"))

ROOT_FIELDS = allowed("styleTokens", "layoutRecipe", "decorSpec")
STYLE_TOKEN_FIELDS = {
    "colors": COLOR_FIELDS,
    "typography": ("h1", "h2", "body", "small", "weightScale"),
    "spacing": ("sectionY", "cardPadding", "gridGap"),
    "radius": ("card", "button", "badge"),
    "shadow": ("card", "sticky"),
}


class ReferenceValidator(ArtifactValidator[ReferenceStyleSpec]):
    artifact_type = ReferenceStyleSpec
    null_message = "reference spec is null"

    def check_unknown_fields(self, root: Dict[str, Any], findings: Findings) -> None:
        findings.check_keys(root, ROOT_FIELDS, "root")

        tokens = self.check_nested(root, "styleTokens", STYLE_TOKEN_FIELDS.keys(), findings)
        if tokens is not None:
            for name, fields in STYLE_TOKEN_FIELDS.items():
                self.check_nested(tokens, name, fields, findings)

        self.check_nested(root, "layoutRecipe", LAYOUT_RECIPE_ENUMS.keys(), findings)
        self.check_nested(root, "decorSpec", DECOR_ENUMS.keys(), findings)

    # ── Semantics ────────────────────────────────────────────────────────

    def check_semantics(self, spec: ReferenceStyleSpec, findings: Findings) -> None:
        tokens = spec.style_tokens
        if tokens is None:
            findings.error("styleTokens is required")
        else:
            self._check_tokens(tokens, findings)

        recipe = spec.layout_recipe
        if recipe is None:
            findings.error("layoutRecipe is required")
        else:
            for name, values in LAYOUT_RECIPE_ENUMS.items():
                findings.check_enum(getattr(recipe, name), values, f"layoutRecipe.{name}")

        decor = spec.decor_spec
        if decor is None:
            findings.error("decorSpec is required")
        else:
            for name, values in DECOR_ENUMS.items():
                findings.check_enum(getattr(decor, name), values, f"decorSpec.{name}")

    def _check_tokens(self, tokens: StyleTokens, findings: Findings) -> None:
        for name in STYLE_TOKEN_FIELDS:
            if getattr(tokens, name) is None:
                findings.error(f"styleTokens.{name} is required")

        if tokens.colors is not None:
            _check_colors(tokens.colors, findings)
        if tokens.typography is not None:
            _check_typography(tokens.typography, findings)
        if tokens.spacing is not None:
            _check_spacing(tokens.spacing, findings)
        if tokens.radius is not None:
            _check_radius(tokens.radius, findings)
        if tokens.shadow is not None:
            _check_shadow(tokens.shadow, findings)

    # ── Normalize ────────────────────────────────────────────────────────

    def normalize(self, spec: ReferenceStyleSpec, warnings: List[str]) -> ReferenceStyleSpec:
        tokens = spec.style_tokens or StyleTokens()
        spec.style_tokens = tokens
        colors = tokens.colors or ColorTokens()
        typography = tokens.typography or TypographyTokens()
        spacing = tokens.spacing or SpacingTokens()
        radius = tokens.radius or RadiusTokens()

        for name in COLOR_FIELDS:
            setattr(colors, name, normalize_color(getattr(colors, name), f"colors.{name}", warnings))

        typography.weight_scale = default_enum(
            typography.weight_scale, WEIGHT_SCALES, "medium", "typography.weightScale", warnings
        )

        for attr, alias in SPACING_FIELDS:
            value = getattr(spacing, attr)
            if value not in SPACING_SCALE:
                warnings.append(f"spacing.{alias} default applied")
                setattr(spacing, attr, SPACING_DEFAULT)

        for name, (low, high) in RADIUS_RANGES.items():
            setattr(radius, name, clamp_value(getattr(radius, name), low, high, f"radius.{name}", warnings))

        tokens.colors = colors
        tokens.typography = typography
        tokens.spacing = spacing
        tokens.radius = radius
        tokens.shadow = ShadowTokens(card="soft", sticky="soft")
        return spec


def _check_colors(colors: ColorTokens, findings: Findings) -> None:
    for name in COLOR_FIELDS:
        findings.check_color(getattr(colors, name), f"colors.{name}")
    if hue_families(colors.palette()) > MAX_HUE_FAMILIES:
        findings.error("colors must be at most 3 hue families (+ gray allowed)")


def _check_typography(typography: TypographyTokens, findings: Findings) -> None:
    for name, (low, high) in TYPOGRAPHY_RANGES.items():
        findings.check_range(getattr(typography, name), low, high, f"typography.{name}")
    findings.check_enum(typography.weight_scale, WEIGHT_SCALES, "typography.weightScale")


def _check_spacing(spacing: SpacingTokens, findings: Findings) -> None:
    for attr, alias in SPACING_FIELDS:
        if getattr(spacing, attr) not in SPACING_SCALE:
            findings.error(f"spacing.{alias} must be 8px scale")


def _check_radius(radius: RadiusTokens, findings: Findings) -> None:
    for name, (low, high) in RADIUS_RANGES.items():
        findings.check_range(getattr(radius, name), low, high, f"radius.{name}")


def _check_shadow(shadow: ShadowTokens, findings: Findings) -> None:
    if (shadow.card or "").lower() != "soft":
        findings.error("shadow.card must be soft")
    if (shadow.sticky or "").lower() != "soft":
        findings.error("shadow.sticky must be soft")
