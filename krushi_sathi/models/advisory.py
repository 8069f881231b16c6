from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime

from krushi_sathi.core.config import settings
from krushi_sathi.utils.images import decode_image

LangCode = Literal["en", "ml", "hi", "mr", "kn", "gu", "te"]
SUPPORTED_LANGS: tuple[str, ...] = ("en", "ml", "hi", "mr", "kn", "gu", "te")

AdvisorySource = Literal["template", "ai"]


class AdvisoryRequest(BaseModel):
    question: Optional[str] = Field(None, description="Farmer's question, trimmed and truncated to 2000 chars.")
    # Bare base64 or a data:image/...;base64, URL
    imageBase64: Optional[str] = Field(None, validation_alias=AliasChoices("imageBase64", "imageData"))
    lang: LangCode = Field(validation_alias=AliasChoices("lang", "languageCode"))

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("question", mode="before")
    @classmethod
    def clean_question(cls, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("question must be a string")
        return value.strip()[:settings.MAX_QUESTION_CHARS]

    @field_validator("imageBase64", mode="before")
    @classmethod
    def blank_image_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("imageBase64")
    @classmethod
    def image_must_be_base64(cls, value):
        if value is not None:
            try:
                decode_image(value)
            except ValueError as e:
                raise ValueError(f"imageBase64 is not valid base64 image data: {e}") from e
        return value


class AdvisoryResponse(BaseModel):
    title: str
    text: str # May carry **bold**, *italic* and bullet markers
    steps: List[str]
    lang: LangCode
    source: AdvisorySource = "template"

    model_config = ConfigDict(frozen=True)


class AdvisoryRecord(AdvisoryResponse):
    id: str
    userId: str
    createdAt: datetime


class SaveAdvisoryRequest(BaseModel):
    userId: str = Field(..., min_length=1)
    advisory: AdvisoryResponse


class SaveAdvisoryResponse(BaseModel):
    ok: bool = True
    id: str


class ListAdvisoriesResponse(BaseModel):
    items: List[AdvisoryRecord]
