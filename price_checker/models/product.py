"""Data models for product extraction from e-commerce pages."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """Marketplaces with dedicated extraction rules."""

    AMAZON = "amazon"
    FLIPKART = "flipkart"
    MYNTRA = "myntra"
    GENERIC = "generic"


class ExtractionTarget(BaseModel):
    """A URL together with the marketplace it was classified as."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Product page URL")
    platform: Platform = Field(..., description="Classified marketplace")


class FetchCandidate(BaseModel):
    """Raw response from one fetch profile."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Response body")
    status_code: int = Field(..., description="HTTP status code")
    strategy: str = Field(..., description="Name of the fetch profile used")
    likely_blocked: bool = Field(
        default=False, description="Response looks like an anti-bot page"
    )

    @property
    def is_success_status(self) -> bool:
        return 200 <= self.status_code < 300


class ExtractedFields(BaseModel):
    """Normalized product fields produced from a single source."""

    title: str = ""
    price: float = Field(default=0.0, ge=0, description="Price, 0 when unknown")
    currency: str = "INR"
    brand: str = ""
    category: str = ""
    image: str = ""
    rating: str = ""
    unavailable: bool = Field(
        default=False, description="Listing is out of stock or discontinued"
    )
    availability_text: str = ""

    @property
    def has_price(self) -> bool:
        return self.price > 0


class ScoredCandidate(BaseModel):
    """Extracted fields ranked against the fetch response they came from."""

    extracted: ExtractedFields
    score: int
    strategy: str
    status_code: int
    likely_blocked: bool = False


class FinalPayload(BaseModel):
    """Result returned to callers of the extraction pipeline.

    Field names are snake_case in Python; ``to_dict()`` emits the camelCase
    keys API consumers expect (``extractionMethod``, ``aiErrors`` ...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    platform: str = Field(..., description="Marketplace display name")
    title: str
    price: float = 0.0
    currency: str = "INR"
    brand: str = ""
    category: str = ""
    image: str = ""
    rating: str = ""
    unavailable: bool = False
    availability_text: str = Field(default="", alias="availabilityText")
    extraction_method: str = Field(..., alias="extractionMethod")
    extraction_note: str = Field(default="", alias="extractionNote")
    ai_errors: tuple[str, ...] = Field(default=(), alias="aiErrors")
    url_extracted: bool = Field(default=False, alias="urlExtracted")

    @classmethod
    def from_fields(
        cls,
        fields: ExtractedFields,
        *,
        url: str,
        platform: str,
        extraction_method: str,
        extraction_note: str = "",
        ai_errors: Optional[list[str]] = None,
        url_extracted: bool = False,
    ) -> "FinalPayload":
        """Build the terminal payload from one source's fields."""
        return cls(
            url=url,
            platform=platform,
            title=fields.title or "Unknown Product",
            price=fields.price,
            currency=fields.currency,
            brand=fields.brand,
            category=fields.category,
            image=fields.image,
            rating=fields.rating,
            unavailable=fields.unavailable,
            availability_text=fields.availability_text,
            extraction_method=extraction_method,
            extraction_note=extraction_note,
            ai_errors=tuple(ai_errors or ()),
            url_extracted=url_extracted,
        )

    def to_dict(self) -> dict:
        """Serialize with camelCase keys."""
        data = self.model_dump(by_alias=True)
        data["aiErrors"] = list(self.ai_errors)
        return data
