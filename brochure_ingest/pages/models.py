"""Pydantic models describing classified brochure pages and derived records."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


class PageType(str, Enum):
    """Closed set of page classifications produced by the extraction service."""

    UNIT_ANCHOR = "unit_anchor"
    UNIT_FLOORPLAN_ONLY = "unit_floorplan_only"
    UNIT_RENDERING = "unit_rendering"
    UNIT_INTERIOR = "unit_interior"
    UNIT_DETAIL = "unit_detail"
    PROJECT_COVER = "project_cover"
    PROJECT_OVERVIEW = "project_overview"
    PROJECT_SUMMARY = "project_summary"
    PROJECT_RENDERING = "project_rendering"
    PROJECT_AERIAL = "project_aerial"
    PROJECT_LOCATION_MAP = "project_location_map"
    PROJECT_MASTER_PLAN = "project_master_plan"
    TOWER_CHARACTERISTICS = "tower_characteristics"
    AMENITIES_LIST = "amenities_list"
    AMENITIES_IMAGES = "amenities_images"
    PAYMENT_PLAN = "payment_plan"
    PRICING_TABLE = "pricing_table"
    SECTION_TITLE = "section_title"
    SECTION_DIVIDER = "section_divider"
    GENERAL_TEXT = "general_text"
    BACK_COVER = "back_cover"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "PageType":
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.UNKNOWN


class ImageCategory(str, Enum):
    """Classification assigned to an extracted image."""

    FLOOR_PLAN = "floor_plan"
    UNIT_EXTERIOR = "unit_exterior"
    UNIT_INTERIOR_LIVING = "unit_interior_living"
    UNIT_INTERIOR_BEDROOM = "unit_interior_bedroom"
    UNIT_INTERIOR_KITCHEN = "unit_interior_kitchen"
    UNIT_INTERIOR_BATHROOM = "unit_interior_bathroom"
    UNIT_BALCONY = "unit_balcony"
    BUILDING_EXTERIOR = "building_exterior"
    BUILDING_AERIAL = "building_aerial"
    BUILDING_ENTRANCE = "building_entrance"
    LOCATION_MAP = "location_map"
    MASTER_PLAN = "master_plan"
    AMENITY_POOL = "amenity_pool"
    AMENITY_GYM = "amenity_gym"
    AMENITY_GARDEN = "amenity_garden"
    AMENITY_LOUNGE = "amenity_lounge"
    AMENITY_OTHER = "amenity_other"
    LOGO = "logo"
    ICON = "icon"
    DIAGRAM = "diagram"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "ImageCategory":
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.UNKNOWN


def coerce_number(value: Any) -> Optional[float]:
    """Return a float for numeric-looking input, ``None`` for anything else.

    Extraction output regularly carries numbers as strings such as
    ``"1,250 sqft"``; only the first numeric token is kept.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _NUMBER_PATTERN.search(value.replace(",", ""))
        if match is None:
            return None
        return float(match.group(0))
    return None


class _RecordModel(BaseModel):
    """Base configuration shared by incoming extraction records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class ImageUrls(_RecordModel):
    original: Optional[str] = None
    large: Optional[str] = None
    medium: Optional[str] = None
    thumbnail: Optional[str] = None


class ImageFeatures(_RecordModel):
    is_full_page: bool = False
    has_dimensions: bool = False
    has_scale: bool = False


class PageImage(_RecordModel):
    """An image extracted from a single page."""

    image_id: str = ""
    image_path: str
    image_urls: Optional[ImageUrls] = None
    category: ImageCategory = ImageCategory.UNKNOWN
    confidence: float = 0.0
    should_use: Optional[bool] = None
    features: ImageFeatures = Field(default_factory=ImageFeatures)
    ai_description: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def _lenient_category(cls, value: Any) -> ImageCategory:
        return ImageCategory(value) if value is not None else ImageCategory.UNKNOWN

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        number = coerce_number(value)
        if number is None:
            return 0.0
        return min(max(number, 0.0), 1.0)

    @field_validator("image_urls", mode="wrap")
    @classmethod
    def _absent_urls(cls, value: Any, handler: Any) -> Optional[ImageUrls]:
        try:
            return handler(value)
        except ValidationError:
            return None

    @field_validator("features", mode="wrap")
    @classmethod
    def _default_features(cls, value: Any, handler: Any) -> ImageFeatures:
        if value is None:
            return ImageFeatures()
        try:
            return handler(value)
        except ValidationError:
            return ImageFeatures()

    @property
    def excluded(self) -> bool:
        """Return ``True`` when the extractor explicitly rejected the image."""

        return self.should_use is False


class UnitSpecs(_RecordModel):
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    suite_area: Optional[float] = None
    balcony_area: Optional[float] = None
    price: Optional[float] = None
    price_per_sqft: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def _lenient_number(cls, value: Any) -> Optional[float]:
        return coerce_number(value)


class UnitInfo(_RecordModel):
    unit_type_name: Optional[str] = None
    unit_category: Optional[str] = None
    specs: Optional[UnitSpecs] = None
    features: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    has_detailed_specs: bool = False

    @field_validator("features", mode="before")
    @classmethod
    def _string_list(cls, value: Any) -> List[str]:
        return _clean_strings(value)

    @field_validator("specs", mode="wrap")
    @classmethod
    def _absent_specs(cls, value: Any, handler: Any) -> Optional[UnitSpecs]:
        try:
            return handler(value)
        except ValidationError:
            return None


class BoundaryMarkers(_RecordModel):
    is_section_start: bool = False
    is_section_end: bool = False
    is_unit_start: bool = False
    is_unit_end: bool = False
    start_marker_text: Optional[str] = None
    end_marker_text: Optional[str] = None


class AmenitiesData(_RecordModel):
    amenities: List[str] = Field(default_factory=list)

    @field_validator("amenities", mode="before")
    @classmethod
    def _string_list(cls, value: Any) -> List[str]:
        return _clean_strings(value)


class ProjectInfoData(_RecordModel):
    project_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("projectName", "project_name", "name"),
    )
    developer: Optional[str] = None
    address: Optional[str] = None
    area: Optional[str] = None
    launch_date: Optional[str] = None
    completion_date: Optional[str] = None
    handover_date: Optional[str] = None
    construction_progress: Optional[float] = None
    description: Optional[str] = None

    @field_validator(
        "project_name",
        "developer",
        "address",
        "area",
        "launch_date",
        "completion_date",
        "handover_date",
        "description",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            return None
        text = str(value).strip()
        return text or None

    @field_validator("construction_progress", mode="before")
    @classmethod
    def _progress(cls, value: Any) -> Optional[float]:
        return coerce_number(value)


class PaymentMilestone(_RecordModel):
    milestone: str = ""
    percentage: float = 0.0
    stage: Optional[str] = None
    date: Optional[str] = None

    @field_validator("percentage", mode="before")
    @classmethod
    def _percentage(cls, value: Any) -> float:
        number = coerce_number(value)
        return number if number is not None else 0.0


class PaymentPlanData(_RecordModel):
    name: Optional[str] = None
    milestones: List[PaymentMilestone] = Field(default_factory=list)

    @field_validator("milestones", mode="before")
    @classmethod
    def _valid_milestones(cls, value: Any) -> List[Any]:
        return valid_items(value, PaymentMilestone)


class PageRecord(_RecordModel):
    """Immutable per-page record emitted by the extraction service."""

    page_number: int
    source_document: str = Field(
        validation_alias=AliasChoices("sourceDocument", "source_document", "pdfSource"),
    )
    chunk_index: Optional[int] = None
    page_type: PageType = PageType.UNKNOWN
    confidence: float = 0.0
    images: List[PageImage] = Field(default_factory=list)
    unit_info: Optional[UnitInfo] = None
    amenities_data: Optional[AmenitiesData] = None
    project_info_data: Optional[ProjectInfoData] = None
    payment_plan_data: Optional[PaymentPlanData] = None
    boundary_markers: BoundaryMarkers = Field(default_factory=BoundaryMarkers)

    @field_validator("page_type", mode="before")
    @classmethod
    def _lenient_page_type(cls, value: Any) -> PageType:
        return PageType(value) if value is not None else PageType.UNKNOWN

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value: Any) -> float:
        number = coerce_number(value)
        return min(max(number, 0.0), 1.0) if number is not None else 0.0

    @field_validator("images", mode="before")
    @classmethod
    def _valid_images(cls, value: Any) -> List[Any]:
        return valid_items(value, PageImage)

    @field_validator(
        "unit_info",
        "amenities_data",
        "project_info_data",
        "payment_plan_data",
        mode="wrap",
    )
    @classmethod
    def _absent_on_error(cls, value: Any, handler: Any) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return None

    @field_validator("boundary_markers", mode="wrap")
    @classmethod
    def _default_markers(cls, value: Any, handler: Any) -> BoundaryMarkers:
        if value is None:
            return BoundaryMarkers()
        try:
            return handler(value)
        except ValidationError:
            return BoundaryMarkers()

    @property
    def key(self) -> tuple[str, int]:
        return (self.source_document, self.page_number)

    @property
    def unit_name(self) -> str:
        if self.unit_info is None or not self.unit_info.unit_type_name:
            return ""
        return self.unit_info.unit_type_name.strip()


# Derived records -------------------------------------------------------------


class PageRange(BaseModel):
    start: int
    end: int


class UnitBoundary(BaseModel):
    """Contiguous page range attributed to one unit type."""

    unit_type_name: str
    start_page: int
    end_page: int
    page_count: int
    source_documents: List[str] = Field(default_factory=list)


class UnitImageAssignment(BaseModel):
    """Images attributed to one unit type."""

    unit_type_name: str
    floor_plan_images: List[PageImage] = Field(default_factory=list)
    rendering_images: List[PageImage] = Field(default_factory=list)
    interior_images: List[PageImage] = Field(default_factory=list)
    balcony_images: List[PageImage] = Field(default_factory=list)
    all_images: List[PageImage] = Field(default_factory=list)
    source_documents: List[str] = Field(default_factory=list)
    page_range: Optional[PageRange] = None


class ProjectImages(BaseModel):
    cover_images: List[PageImage] = Field(default_factory=list)
    aerial_images: List[PageImage] = Field(default_factory=list)
    location_maps: List[PageImage] = Field(default_factory=list)
    master_plan_images: List[PageImage] = Field(default_factory=list)
    amenity_images: List[PageImage] = Field(default_factory=list)
    rendering_images: List[PageImage] = Field(default_factory=list)

    def all_images(self) -> List[PageImage]:
        return [
            *self.cover_images,
            *self.aerial_images,
            *self.location_maps,
            *self.master_plan_images,
            *self.amenity_images,
            *self.rendering_images,
        ]


class PaymentPlan(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    milestones: List[PaymentMilestone] = Field(default_factory=list)
    total_percentage: float = 0.0
    source_document: Optional[str] = None
    page_number: Optional[int] = None


class ProjectInfo(BaseModel):
    project_name: Optional[str] = None
    developer: Optional[str] = None
    address: Optional[str] = None
    area: Optional[str] = None
    launch_date: Optional[str] = None
    completion_date: Optional[str] = None
    handover_date: Optional[str] = None
    construction_progress: Optional[float] = None
    description: Optional[str] = None


class AssignmentResult(BaseModel):
    """Snapshot of everything derived from the pages seen so far."""

    units: List[UnitImageAssignment] = Field(default_factory=list)
    project_images: ProjectImages = Field(default_factory=ProjectImages)
    payment_plans: List[PaymentPlan] = Field(default_factory=list)
    project_info: Optional[ProjectInfo] = None
    amenities: List[str] = Field(default_factory=list)
    boundaries: List[UnitBoundary] = Field(default_factory=list)
    total_pages: int = 0
    total_documents: int = 0
    boundaries_found: int = 0
    processing_time_ms: float = 0.0

    def comparable(self) -> dict:
        """Return a dump without timing fields, for equality checks."""

        return self.model_dump(mode="json", exclude={"processing_time_ms"})


def _clean_strings(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    cleaned: List[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            cleaned.append(item.strip())
    return cleaned


def valid_items(value: Any, model: type[BaseModel]) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        return []
    items: List[Any] = []
    for item in value:
        try:
            items.append(model.model_validate(item))
        except ValidationError:
            continue
    return items


__all__ = [
    "AmenitiesData",
    "AssignmentResult",
    "BoundaryMarkers",
    "ImageCategory",
    "ImageFeatures",
    "ImageUrls",
    "PageImage",
    "PageRange",
    "PageRecord",
    "PageType",
    "PaymentMilestone",
    "PaymentPlan",
    "PaymentPlanData",
    "ProjectImages",
    "ProjectInfo",
    "ProjectInfoData",
    "UnitBoundary",
    "UnitImageAssignment",
    "UnitInfo",
    "UnitSpecs",
    "coerce_number",
    "valid_items",
]
