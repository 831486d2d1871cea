"""The slice of the editor content model that blueprint mapping writes to."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class TextItem(BaseModel):
    text: str = ""


class StyledTextItem(BaseModel):
    text: str = ""


class MetaModel(BaseModel):
    page_title: str = ""
    description: str = ""


class CampaignModel(BaseModel):
    show_countdown: bool = False
    footer_lines: List[StyledTextItem] = Field(default_factory=list)


class CampaignContentSection(BaseModel):
    enabled: bool = False
    title: str = ""
    body: str = ""
    notes: List[TextItem] = Field(default_factory=list)


class CouponPeriodSection(BaseModel):
    enabled: bool = False
    title: str = ""
    input_mode: str = "manual"
    text: str = ""


class CouponFlowSection(BaseModel):
    enabled: bool = False
    title: str = ""
    lead: str = ""
    note: str = ""
    button_label: str = ""
    items: List[TextItem] = Field(default_factory=list)


class CouponNotesSection(BaseModel):
    enabled: bool = False
    title: str = ""
    text_lines: List[StyledTextItem] = Field(default_factory=list)

    def has_notes(self) -> bool:
        return any(line.text.strip() for line in self.text_lines)


class SectionsModel(BaseModel):
    campaign_content: CampaignContentSection = Field(default_factory=CampaignContentSection)
    coupon_period: CouponPeriodSection = Field(default_factory=CouponPeriodSection)
    coupon_flow: CouponFlowSection = Field(default_factory=CouponFlowSection)
    coupon_notes: CouponNotesSection = Field(default_factory=CouponNotesSection)


class SectionGroup(BaseModel):
    key: str
    enabled: bool = True


class ContentModel(BaseModel):
    """Page content as the editor stores it."""
    meta: MetaModel = Field(default_factory=MetaModel)
    campaign: CampaignModel = Field(default_factory=CampaignModel)
    sections: SectionsModel = Field(default_factory=SectionsModel)
    section_groups: List[SectionGroup] = Field(default_factory=list)
    custom_sections: List[Dict[str, Any]] = Field(default_factory=list)


class TemplateContext(BaseModel):
    """What the mapper needs to know about the target template."""
    section_group_keys: List[str] = Field(default_factory=list)
