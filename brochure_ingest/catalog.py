"""Catalog-level models: bulk chunk extraction output and final project records."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .pages.models import PageRecord, PaymentPlan, coerce_number, valid_items


class BulkUnit(BaseModel):
    """Unit specification extracted from a chunk as a whole."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str = ""
    type_name: str = ""
    category: Optional[str] = None
    building_name: Optional[str] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    area: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("area", "totalArea", "total_area"),
    )
    suite_area: Optional[float] = None
    balcony_area: Optional[float] = None
    price: Optional[float] = None
    price_per_sqft: Optional[float] = None
    orientation: Optional[str] = None
    unit_numbers: List[str] = Field(default_factory=list)
    unit_count: int = 0
    features: List[str] = Field(default_factory=list)
    floor_plan_image: Optional[str] = None
    description: Optional[str] = None

    @field_validator(
        "bedrooms",
        "bathrooms",
        "area",
        "suite_area",
        "balcony_area",
        "price",
        "price_per_sqft",
        mode="before",
    )
    @classmethod
    def _number(cls, value: Any) -> Optional[float]:
        return coerce_number(value)

    @field_validator("unit_count", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        number = coerce_number(value)
        return int(number) if number is not None else 0

    @field_validator("unit_numbers", "features", mode="before")
    @classmethod
    def _strings(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(item).strip() for item in value if item is not None and str(item).strip()]

    @property
    def display_name(self) -> str:
        return (self.type_name or self.name or "").strip()


class BulkExtraction(BaseModel):
    """Project-level data accumulated from every chunk's bulk extraction."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

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
    units: List[BulkUnit] = Field(default_factory=list)
    payment_plans: List[PaymentPlan] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    image_paths: List[str] = Field(default_factory=list)

    def merge_chunk(self, other: "BulkExtraction") -> None:
        """Fold another chunk's extraction into this one.

        Scalar fields keep the first non-empty value, the description keeps the
        longest text, units and plans accumulate, amenities and images stay
        unique in first-seen order.
        """

        for name in (
            "project_name",
            "developer",
            "address",
            "area",
            "launch_date",
            "completion_date",
            "handover_date",
            "construction_progress",
        ):
            if getattr(self, name) in (None, "") and getattr(other, name) not in (None, ""):
                setattr(self, name, getattr(other, name))

        if other.description and len(other.description) > len(self.description or ""):
            self.description = other.description

        self.units.extend(other.units)
        self.payment_plans.extend(other.payment_plans)
        for amenity in other.amenities:
            if amenity not in self.amenities:
                self.amenities.append(amenity)
        for path in other.image_paths:
            if path not in self.image_paths:
                self.image_paths.append(path)


class ChunkExtraction(BaseModel):
    """Everything the extraction service returned for one chunk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    source_document: str = ""
    chunk_index: int = 0
    page_start: int = 0
    page_end: int = 0
    pages: List[PageRecord] = Field(default_factory=list)
    bulk: BulkExtraction = Field(default_factory=BulkExtraction)
    warnings: List[str] = Field(default_factory=list)

    @field_validator("pages", mode="before")
    @classmethod
    def _valid_pages(cls, value: Any) -> List[Any]:
        return valid_items(value, PageRecord)


class CatalogUnit(BaseModel):
    """Unit record emitted by the final aggregation pass."""

    name: str
    type_name: str
    category: str
    building_name: Optional[str] = None
    bedrooms: int
    bathrooms: int
    area: float
    suite_area: Optional[float] = None
    balcony_area: Optional[float] = None
    price: Optional[float] = None
    price_per_sqft: Optional[float] = None
    orientation: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    floor_plan_image: Optional[str] = None
    floor_plan_images: List[str] = Field(default_factory=list)
    rendering_images: List[str] = Field(default_factory=list)
    interior_images: List[str] = Field(default_factory=list)
    balcony_images: List[str] = Field(default_factory=list)
    source_documents: List[str] = Field(default_factory=list)
    matched_bulk_unit: bool = False


class ProjectCatalog(BaseModel):
    """Final project record assembled at the end of a job."""

    project_name: Optional[str] = None
    developer: Optional[str] = None
    address: Optional[str] = None
    area: Optional[str] = None
    launch_date: Optional[str] = None
    completion_date: Optional[str] = None
    handover_date: Optional[str] = None
    construction_progress: Optional[float] = None
    description: Optional[str] = None
    amenities: List[str] = Field(default_factory=list)
    units: List[CatalogUnit] = Field(default_factory=list)
    payment_plans: List[PaymentPlan] = Field(default_factory=list)
    payment_plan_highlight: Optional[str] = None
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    cover_images: List[str] = Field(default_factory=list)
    aerial_images: List[str] = Field(default_factory=list)
    location_maps: List[str] = Field(default_factory=list)
    master_plan_images: List[str] = Field(default_factory=list)
    amenity_images: List[str] = Field(default_factory=list)
    rendering_images: List[str] = Field(default_factory=list)
    gallery_images: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "units": len(self.units),
            "amenities": len(self.amenities),
            "payment_plans": len(self.payment_plans),
            "gallery_images": len(self.gallery_images),
        }


__all__ = [
    "BulkExtraction",
    "BulkUnit",
    "ChunkExtraction",
    "CatalogUnit",
    "ProjectCatalog",
]
