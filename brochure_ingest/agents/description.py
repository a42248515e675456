"""Project description writer backed by Ollama with a template fallback."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_ollama import ChatOllama
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MIN_GENERATED_LENGTH = 50

_LUXURY_PATTERN = re.compile(r"spa|wellness|concierge|valet|cigar", re.IGNORECASE)
_FAMILY_PATTERN = re.compile(r"kids|children|play|family", re.IGNORECASE)
_LARGE_UNIT_PATTERN = re.compile(r"4BR|5BR|Penthouse", re.IGNORECASE)
_PROMPT_LIFESTYLE_PATTERN = re.compile(
    r"pool|gym|spa|garden|park|lounge|cinema|club|beach|terrace|wellness|play|kids", re.IGNORECASE
)
_TEMPLATE_LIFESTYLE_PATTERN = re.compile(
    r"pool|gym|spa|garden|park|wellness|lounge|cinema|beach|club", re.IGNORECASE
)

_STYLE_VOCABULARY = {
    "ultra-luxury": "opulent, exclusive, prestigious, bespoke, curated, refined",
    "family-oriented": "welcoming, vibrant, safe, spacious, community-focused",
    "urban-chic": "dynamic, sleek, connected, contemporary, energetic",
    "resort-lifestyle": "tranquil, coastal, serene, breathtaking, idyllic",
    "contemporary": "modern, sophisticated, elegant, premium, thoughtfully designed",
}


class ValueRange(BaseModel):
    min: float
    max: float


class ProjectSummary(BaseModel):
    """Facts fed to the description writer."""

    project_name: Optional[str] = None
    developer: Optional[str] = None
    area: Optional[str] = None
    address: Optional[str] = None
    launch_date: Optional[str] = None
    completion_date: Optional[str] = None
    handover_date: Optional[str] = None
    construction_progress: Optional[float] = None
    total_units: int = 0
    unit_categories: List[str] = Field(default_factory=list)
    area_range: Optional[ValueRange] = None
    price_range: Optional[ValueRange] = None
    amenities: List[str] = Field(default_factory=list)
    has_payment_plan: bool = False
    payment_plan_highlight: Optional[str] = None


class ProjectCharacter(BaseModel):
    style: str = "contemporary"
    unique_selling_points: List[str] = Field(default_factory=list)
    target_audience: str = "discerning buyers"


class DescriptionWriterConfig(BaseModel):
    ollama_model: str = "qwen3:4b"
    ollama_base_url: str = "http://127.0.0.1:11434"
    temperature: float = 0.7
    enabled: bool = True


def analyze_project_character(summary: ProjectSummary) -> ProjectCharacter:
    """Infer a positioning style from amenities, location and unit mix."""

    area = (summary.area or "").lower()
    has_luxury = any(_LUXURY_PATTERN.search(item) for item in summary.amenities)
    has_family = any(_FAMILY_PATTERN.search(item) for item in summary.amenities)
    beachfront = "palm" in area or "beach" in area
    downtown = "downtown" in area or "business bay" in area
    large_units = any(_LARGE_UNIT_PATTERN.search(item) for item in summary.unit_categories)

    if has_luxury and large_units:
        return ProjectCharacter(
            style="ultra-luxury",
            unique_selling_points=["exclusive amenities", "spacious layouts"],
            target_audience="elite clientele and investors",
        )
    if has_family:
        return ProjectCharacter(
            style="family-oriented",
            unique_selling_points=["family-friendly facilities", "safe community"],
            target_audience="growing families",
        )
    if downtown:
        return ProjectCharacter(
            style="urban-chic",
            unique_selling_points=["prime business district location", "city connectivity"],
            target_audience="urban professionals",
        )
    if beachfront:
        return ProjectCharacter(
            style="resort-lifestyle",
            unique_selling_points=["waterfront living", "beachside luxury"],
            target_audience="lifestyle seekers",
        )
    return ProjectCharacter()


def project_type_label(unit_categories: List[str]) -> str:
    has_penthouse = any("penthouse" in item.lower() for item in unit_categories)
    max_bedrooms = 0
    for item in unit_categories:
        match = re.search(r"(\d+)BR", item)
        if match:
            max_bedrooms = max(max_bedrooms, int(match.group(1)))
    if has_penthouse or max_bedrooms >= 4:
        return "luxury residential development"
    if max_bedrooms >= 2:
        return "premium residential development"
    return "modern residential development"


def generate_basic_description(summary: ProjectSummary) -> str:
    """Deterministic four-sentence description used when the model is unavailable."""

    parts: List[str] = []
    project_type = project_type_label(summary.unit_categories)

    if summary.project_name and summary.area:
        parts.append(
            f"Discover {summary.project_name}, where modern elegance meets prime location in {summary.area}."
        )
    elif summary.area:
        parts.append(
            f"Experience refined living in the heart of {summary.area}, one of the city's most sought-after neighborhoods."
        )
    elif summary.project_name:
        parts.append(
            f"{summary.project_name} redefines urban living with sophisticated design and exceptional amenities."
        )
    else:
        parts.append(f"Discover your sanctuary in this {project_type}, where luxury meets lifestyle.")

    lifestyle = [item for item in summary.amenities if _TEMPLATE_LIFESTYLE_PATTERN.search(item)][:3]
    if len(lifestyle) >= 2:
        parts.append(
            f"Residents embrace resort-style living with {lifestyle[0]} and {lifestyle[1]}, "
            "creating the perfect balance of relaxation and vitality."
        )
    elif lifestyle:
        parts.append(
            f"Enjoy an elevated lifestyle with premium {lifestyle[0]} and thoughtfully designed spaces for modern living."
        )

    categories = summary.unit_categories
    if len(categories) > 1:
        parts.append(
            f"Choose from beautifully crafted {categories[0]} to {categories[-1]} homes, "
            "each designed with contemporary elegance and comfort in mind."
        )
    elif categories:
        parts.append(
            f"Featuring meticulously designed {categories[0]} residences that blend style with functionality."
        )

    if summary.developer:
        parts.append(
            f"Developed by {summary.developer}, this prime address offers exceptional value "
            "for discerning investors and families alike."
        )
    elif summary.area:
        parts.append(
            f"This prime {summary.area} location represents an outstanding investment opportunity."
        )
    else:
        parts.append("An exceptional opportunity for those seeking the perfect blend of luxury living and smart investment.")

    return " ".join(parts)


def build_description_prompt(summary: ProjectSummary) -> str:
    character = analyze_project_character(summary)
    lifestyle = [item for item in summary.amenities if _PROMPT_LIFESTYLE_PATTERN.search(item)][:4]
    categories = summary.unit_categories
    homes = f"{categories[0]} to {categories[-1]}" if categories else "various"
    emphasis = " and ".join(character.unique_selling_points)

    lines = [
        "Write a unique 4-5 sentence real estate description with a distinct voice.",
        f"Name: {summary.project_name or 'this development'}",
        f"Location: {summary.area or summary.address or 'a prime location'}",
        f"Developer: {summary.developer or 'a renowned developer'}",
        f"Style: {character.style}",
        f"Target: {character.target_audience}",
        f"Homes: {homes}",
        f"Amenities: {', '.join(lifestyle) or 'premium amenities'}",
        f"Vocabulary: {_STYLE_VOCABULARY.get(character.style, _STYLE_VOCABULARY['contemporary'])}",
    ]
    if emphasis:
        lines.append(f"Emphasize: {emphasis}")
    lines.append("Turn amenities into experiences, do not quote unit counts, and return plain prose only.")
    return "\n".join(lines)


class ProjectDescriptionWriter:
    """Callable producing a project description, regenerating every time."""

    def __init__(self, config: Optional[DescriptionWriterConfig] = None) -> None:
        self._config = config or DescriptionWriterConfig()
        self._chain = None
        if self._config.enabled:
            self._setup_chain()

    def _setup_chain(self) -> None:
        prompt = ChatPromptTemplate.from_messages(
            [
                ("system", "You write concise, vivid real estate project descriptions."),
                ("human", "{brief}"),
            ]
        )
        llm = ChatOllama(
            model=self._config.ollama_model,
            base_url=self._config.ollama_base_url,
            temperature=self._config.temperature,
        )
        self._chain = prompt | llm | StrOutputParser()

    def __call__(self, summary: ProjectSummary, current: Optional[str] = None) -> str:
        """Return a new description, or ``current`` when the result is too short."""

        generated = self._generate(summary)
        if len(generated.strip()) > MIN_GENERATED_LENGTH:
            return generated.strip()
        logger.info("Generated description too short; keeping the existing one")
        return current or generated.strip()

    def _generate(self, summary: ProjectSummary) -> str:
        if self._chain is None:
            return generate_basic_description(summary)
        try:
            result = self._chain.invoke({"brief": build_description_prompt(summary)})
        except Exception as exc:  # pragma: no cover - network/model failures
            logger.warning("Description generation via Ollama failed; using template: %s", exc)
            return generate_basic_description(summary)
        return result if isinstance(result, str) else str(result)


__all__ = [
    "DescriptionWriterConfig",
    "ProjectCharacter",
    "ProjectDescriptionWriter",
    "ProjectSummary",
    "analyze_project_character",
    "build_description_prompt",
    "generate_basic_description",
    "project_type_label",
]
