"""Decoration spec validator."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from lp_generator.colors import is_hex_color
from lp_generator.models import (
    DecorationBackground,
    DecorationCta,
    DecorationDivider,
    DecorationHeading,
    DecorationSectionFrame,
    DecorationSpec,
)
from lp_generator.validators.base import ArtifactValidator, Findings, allowed, clamp_value, normalize_color

BACKGROUND_TYPES = allowed("solid", "gradient", "pattern")
PATTERNS = allowed("dots", "waves", "none")
FRAME_STYLES = allowed("card", "flat", "band")
FRAME_SHADOWS = allowed("none", "soft", "medium")
FRAME_BORDERS = allowed("none", "light")
HEADING_TYPES = allowed("none", "accent-line", "pill", "label")
CTA_STYLES = allowed("none", "badge", "glow")
DIVIDER_TYPES = allowed("none", "wave", "zigzag")

OPACITY_RANGE = (0.0, 0.6)
FRAME_RADIUS_RANGE = (0, 28)
THICKNESS_RANGE = (0, 8)
DIVIDER_HEIGHT_RANGE = (0, 48)

ROOT_FIELDS = allowed("background", "sectionFrame", "headingDecoration", "ctaEmphasis", "sectionDivider")
NESTED_FIELDS = {
    "background": ("type", "colors", "pattern", "opacity"),
    "sectionFrame": ("style", "radius", "shadow", "border"),
    "headingDecoration": ("type", "color", "thickness"),
    "ctaEmphasis": ("style", "color"),
    "sectionDivider": ("type", "height", "color"),
}

DEFAULT_BACKGROUND_COLOR = "#F8FAFC"


def _check_color_list(colors: Optional[List[str]], name: str, findings: Findings) -> None:
    if not colors:
        findings.error(f"{name} must have at least 1 color")
        return
    if len(colors) > 2:
        findings.error(f"{name} must have at most 2 colors")
        return
    for index, color in enumerate(colors):
        if not is_hex_color(color):
            findings.error(f"{name}[{index}] must be #RRGGBB")


class DecorationValidator(ArtifactValidator[DecorationSpec]):
    artifact_type = DecorationSpec
    null_message = "decoration spec is null"

    def check_unknown_fields(self, root: Dict[str, Any], findings: Findings) -> None:
        findings.check_keys(root, ROOT_FIELDS, "root")
        for name, fields in NESTED_FIELDS.items():
            self.check_nested(root, name, fields, findings)

    def check_semantics(self, spec: DecorationSpec, findings: Findings) -> None:
        background = spec.background
        if background is None:
            findings.error("background is required")
        else:
            findings.check_enum(background.type, BACKGROUND_TYPES, "background.type")
            findings.check_enum(background.pattern, PATTERNS, "background.pattern")
            _check_color_list(background.colors, "background.colors", findings)
            findings.check_range(background.opacity, *OPACITY_RANGE, "background.opacity")

        frame = spec.section_frame
        if frame is None:
            findings.error("sectionFrame is required")
        else:
            findings.check_enum(frame.style, FRAME_STYLES, "sectionFrame.style")
            findings.check_enum(frame.shadow, FRAME_SHADOWS, "sectionFrame.shadow")
            findings.check_enum(frame.border, FRAME_BORDERS, "sectionFrame.border")
            findings.check_range(frame.radius, *FRAME_RADIUS_RANGE, "sectionFrame.radius")

        heading = spec.heading_decoration
        if heading is None:
            findings.error("headingDecoration is required")
        else:
            findings.check_enum(heading.type, HEADING_TYPES, "headingDecoration.type")
            findings.check_color(heading.color, "headingDecoration.color")
            findings.check_range(heading.thickness, *THICKNESS_RANGE, "headingDecoration.thickness")

        cta = spec.cta_emphasis
        if cta is None:
            findings.error("ctaEmphasis is required")
        else:
            findings.check_enum(cta.style, CTA_STYLES, "ctaEmphasis.style")
            findings.check_color(cta.color, "ctaEmphasis.color")

        divider = spec.section_divider
        if divider is None:
            findings.error("sectionDivider is required")
        else:
            findings.check_enum(divider.type, DIVIDER_TYPES, "sectionDivider.type")
            findings.check_color(divider.color, "sectionDivider.color")
            findings.check_range(divider.height, *DIVIDER_HEIGHT_RANGE, "sectionDivider.height")

    def normalize(self, spec: DecorationSpec, warnings: List[str]) -> DecorationSpec:
        background = spec.background or DecorationBackground()
        spec.background = background
        colors = list(background.colors or [])
        if not colors:
            warnings.append("background.colors default applied")
            colors.append(DEFAULT_BACKGROUND_COLOR)
        if len(colors) == 1:
            # a single color renders as a flat two-stop gradient
            colors.append(colors[0])
        background.colors = [
            normalize_color(colors[0], "background.colors[0]", warnings),
            normalize_color(colors[1], "background.colors[1]", warnings),
        ]
        background.opacity = clamp_value(background.opacity, *OPACITY_RANGE, "background.opacity", warnings)

        frame = spec.section_frame = spec.section_frame or DecorationSectionFrame()
        heading = spec.heading_decoration = spec.heading_decoration or DecorationHeading()
        cta = spec.cta_emphasis = spec.cta_emphasis or DecorationCta()
        divider = spec.section_divider = spec.section_divider or DecorationDivider()

        frame.radius = clamp_value(frame.radius, *FRAME_RADIUS_RANGE, "sectionFrame.radius", warnings)
        heading.thickness = clamp_value(heading.thickness, *THICKNESS_RANGE, "headingDecoration.thickness", warnings)
        divider.height = clamp_value(divider.height, *DIVIDER_HEIGHT_RANGE, "sectionDivider.height", warnings)

        heading.color = normalize_color(heading.color, "headingDecoration.color", warnings)
        cta.color = normalize_color(cta.color, "ctaEmphasis.color", warnings)
        divider.color = normalize_color(divider.color, "sectionDivider.color", warnings)
        return spec
