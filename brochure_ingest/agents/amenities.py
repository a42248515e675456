"""Amenity list normalization through Ollama with a rule-based fallback."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_ollama import ChatOllama
from pydantic import BaseModel, Field

from ..assignment.dedupe import deduplicate_amenities

logger = logging.getLogger(__name__)

MAX_AMENITIES = 15

EXCLUDED_AMENITY_KEYWORDS = (
    "wash room",
    "washroom",
    "shower",
    "locker",
    "changing room",
    "walking path",
    "promenade",
    "corridor",
    "elevator",
    "phone booth",
    "meeting room",
    "reception",
    "entrance gate",
    "parking",
    "access",
    "male",
    "female",
    "toilet",
    "storage",
    "lobby",
    "entrance",
)

# Ordered: the first matching keyword decides the canonical name.
AMENITY_MERGE_RULES = (
    ("pool", "Swimming Pool"),
    ("gym", "Gym"),
    ("fitness", "Gym"),
    ("garden", "Sky Garden"),
    ("play area", "Kids' Play Area"),
    ("kids", "Kids' Play Area"),
    ("lounge", "Lounge"),
    ("cinema", "Cinema"),
    ("bbq", "BBQ Area"),
    ("yoga", "Yoga Studio"),
    ("wellness", "Yoga Studio"),
    ("co-working", "Co-working Space"),
)

_SYSTEM_PROMPT = (
    "You are a real estate amenity expert. Clean up messy amenity lists extracted "
    "from property brochures. Merge synonyms aggressively (every pool variant becomes "
    "'Swimming Pool', gyms and fitness centres become 'Gym', play areas and kids' clubs "
    "become \"Kids' Play Area\", lounges become 'Lounge'). Exclude facilities every "
    "building has: washrooms, showers, lockers, changing rooms, walking paths, lobbies, "
    "entrances, reception, parking, elevators, corridors, meeting rooms, phone booths. "
    "Keep differentiating amenities buyers care about. Return 5-15 items using common terms."
)


class AmenityNormalizerConfig(BaseModel):
    ollama_model: str = "qwen3:4b"
    ollama_base_url: str = "http://127.0.0.1:11434"
    temperature: float = 0.0
    enabled: bool = True
    max_items: int = Field(default=MAX_AMENITIES, ge=1)


def fallback_filter_amenities(amenities: List[str], max_items: int = MAX_AMENITIES) -> List[str]:
    """Drop basic facilities and fold synonyms into canonical names."""

    filtered: List[str] = []
    for amenity in amenities:
        text = amenity.strip()
        lowered = text.lower()
        if any(keyword in lowered for keyword in EXCLUDED_AMENITY_KEYWORDS):
            continue

        canonical: Optional[str] = None
        for keyword, standard in AMENITY_MERGE_RULES:
            if keyword in lowered:
                canonical = standard
                break

        if canonical is None:
            if not 3 < len(text) < 30:
                continue
            canonical = text
        if canonical not in filtered:
            filtered.append(canonical)

    return filtered[:max_items]


def parse_amenity_response(raw: str) -> List[str]:
    """Extract the amenity list from a model reply.

    Accepts ``{"amenities": [...]}``, a bare JSON array, and either wrapped in
    Markdown fences or surrounded by commentary.
    """

    text = raw.strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1).strip()

    payload: Any
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"(\{.*\}|\[.*\])", text, re.DOTALL)
        if match is None:
            raise ValueError("Model reply contains no JSON payload") from None
        payload = json.loads(match.group(1))

    if isinstance(payload, dict):
        payload = payload.get("amenities")
    if not isinstance(payload, list):
        raise ValueError("Model reply does not contain an amenity list")
    return [str(item).strip() for item in payload if isinstance(item, str) and item.strip()]


class AmenityNormalizer:
    """Async callable that returns a cleaned amenity list.

    Uses a LangChain Ollama chain when enabled and falls back to keyword
    rules when the server or its reply is unusable.
    """

    def __init__(self, config: Optional[AmenityNormalizerConfig] = None) -> None:
        self._config = config or AmenityNormalizerConfig()
        self._chain = None
        self.fallback_used = False
        if self._config.enabled:
            self._setup_chain()

    def _setup_chain(self) -> None:
        prompt = ChatPromptTemplate.from_messages(
            [
                ("system", _SYSTEM_PROMPT),
                (
                    "human",
                    'Raw amenities:\n{amenities}\nRespond with JSON only: {{"amenities": ["..."]}}',
                ),
            ]
        )
        llm = ChatOllama(
            model=self._config.ollama_model,
            base_url=self._config.ollama_base_url,
            temperature=self._config.temperature,
            format="json",
        )
        self._chain = prompt | llm | StrOutputParser()

    async def __call__(self, amenities: List[str]) -> List[str]:
        raw = deduplicate_amenities(amenities)
        if not raw:
            return []
        if self._chain is None:
            return self._fallback(raw)

        try:
            reply = await self._chain.ainvoke({"amenities": json.dumps(raw, ensure_ascii=False, indent=2)})
            cleaned = deduplicate_amenities(parse_amenity_response(str(reply)))
        except Exception as exc:  # pragma: no cover - network/model failures
            logger.warning("Amenity normalization via Ollama failed; using keyword rules: %s", exc)
            return self._fallback(raw)

        if not cleaned:
            return self._fallback(raw)
        logger.info("Normalized %d raw amenities into %d", len(raw), len(cleaned))
        return cleaned[: self._config.max_items]

    def _fallback(self, amenities: List[str]) -> List[str]:
        self.fallback_used = True
        return fallback_filter_amenities(amenities, self._config.max_items)

    def describe(self) -> Dict[str, Any]:
        return {
            "model": self._config.ollama_model,
            "llm": self._chain is not None,
            "fallback_used": self.fallback_used,
        }


__all__ = [
    "AMENITY_MERGE_RULES",
    "AmenityNormalizer",
    "AmenityNormalizerConfig",
    "EXCLUDED_AMENITY_KEYWORDS",
    "fallback_filter_amenities",
    "parse_amenity_response",
]
