"""
Request bodies.

Fields are deliberately loose (``Any``): the service layer owns the exact
validation messages and drops malformed sub-elements instead of rejecting the
whole request. Pydantic only guarantees that a body, when present, is a JSON
object.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ID_MAX = 256


class LenientBody(BaseModel):
    model_config = ConfigDict(extra="allow")

    def payload(self) -> dict:
        return self.model_dump()


class ArticleBody(LenientBody):
    """Create and update bodies for articles; every field is optional here."""


class ListMembershipRequest(BaseModel):
    listId: Any = None


class ListCreateRequest(BaseModel):
    name: Any = None
    color: Any = None


class ListUpdateRequest(LenientBody):
    pass


class ProjectCreateRequest(BaseModel):
    name: Any = None


class BoardCreateRequest(BaseModel):
    name: Any = None


class SessionRequest(BaseModel):
    idToken: Optional[str] = Field(default=None, max_length=8192)

    @field_validator("idToken", mode="before")
    @classmethod
    def normalize_token(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        return value.strip() or None


class ChatStreamRequest(LenientBody):
    provider: Any = None
    model: Any = None
    apiKey: Any = None
    systemPrompt: Any = None
    messages: Any = None


class ModelListRequest(LenientBody):
    provider: Any = None
    apiKey: Any = None


class SummarizeRequest(LenientBody):
    provider: Any = None
    model: Any = None
    apiKey: Any = None
    articleContent: Any = None
    articleTitle: Any = None
    summaryLength: Any = None


class PdfUploadForm(BaseModel):
    projectId: Optional[str] = Field(default=None, max_length=_ID_MAX)

    @field_validator("projectId", mode="before")
    @classmethod
    def normalize_project_id(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        return value.strip() or None
