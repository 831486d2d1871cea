"""Design-token validator (theme colors, radius, layout enums)."""

from __future__ import annotations

from typing import Any, Dict, List

from lp_generator.models import DesignSpec, DesignTheme
from lp_generator.validators.base import ArtifactValidator, Findings, allowed, clamp_value, normalize_color

DESIGN_TYPES = allowed("ranking", "municipality_rebate", "municipality_lottery", "coupon", "point_lottery")
SHADOWS = allowed("soft", "none")
FONTS = allowed("system", "rounded", "gothic")
CTA_STYLES = allowed("solid", "outline", "gradient")

LAYOUT_ENUMS = {
    "container": allowed("centered", "wide"),
    "hero": allowed("split", "stacked", "poster"),
    "sectionStyle": allowed("card", "band", "flat"),
    "headingStyle": allowed("pill", "underline", "bold"),
    "offerStyle": allowed("cardGrid", "singleCard"),
    "howtoStyle": allowed("steps", "timeline"),
    "notesStyle": allowed("accordion", "boxed"),
    "rankingStyle": allowed("table", "cards", "podium"),
}

THEME_COLORS = ("primary", "secondary", "accent", "bg", "text")
RADIUS_RANGE = (0, 32)

ROOT_FIELDS = allowed("version", "designType", "theme", "layout")
THEME_FIELDS = ("primary", "secondary", "accent", "bg", "text", "radius", "shadow", "font", "ctaStyle")

# theme fields that fall back to a default instead of failing
_THEME_DEFAULTS = (
    ("shadow", "shadow", SHADOWS, "soft"),
    ("font", "font", FONTS, "system"),
    ("cta_style", "ctaStyle", CTA_STYLES, "solid"),
)


class DesignValidator(ArtifactValidator[DesignSpec]):
    artifact_type = DesignSpec
    null_message = "design spec is null"

    def check_unknown_fields(self, root: Dict[str, Any], findings: Findings) -> None:
        findings.check_keys(root, ROOT_FIELDS, "root")
        self.check_nested(root, "theme", THEME_FIELDS, findings)
        self.check_nested(root, "layout", LAYOUT_ENUMS.keys(), findings)

    def check_semantics(self, spec: DesignSpec, findings: Findings) -> None:
        if spec.version != 1:
            findings.error("version must be 1")
        findings.check_enum(spec.design_type, DESIGN_TYPES, "designType")

        theme = spec.theme
        if theme is None:
            findings.error("theme is required")
        else:
            for name in THEME_COLORS:
                findings.check_color(getattr(theme, name), f"theme.{name}")
            findings.check_range(theme.radius, *RADIUS_RANGE, "theme.radius")
            for attr, alias, values, _default in _THEME_DEFAULTS:
                if (getattr(theme, attr) or "").lower() not in values:
                    findings.warn(f"theme.{alias} default applied")

        layout = spec.layout
        if layout is None:
            findings.error("layout is required")
        else:
            dumped = layout.model_dump(by_alias=True)
            for alias, values in LAYOUT_ENUMS.items():
                findings.check_enum(dumped.get(alias), values, f"layout.{alias}")

    def normalize(self, spec: DesignSpec, warnings: List[str]) -> DesignSpec:
        theme = spec.theme or DesignTheme()
        spec.theme = theme
        for name in THEME_COLORS:
            setattr(theme, name, normalize_color(getattr(theme, name), f"theme.{name}", warnings))
        theme.radius = clamp_value(theme.radius, *RADIUS_RANGE, "theme.radius", warnings)
        # the default-applied warnings were already recorded by check_semantics
        for attr, _alias, values, default in _THEME_DEFAULTS:
            if (getattr(theme, attr) or "").lower() not in values:
                setattr(theme, attr, default)
        return spec
