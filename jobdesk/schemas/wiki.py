"""Pydantic schemas for the knowledge base."""

from uuid import UUID

from pydantic import Field

from ..models import WikiCategory
from .base import JobDeskBaseModel, TimestampMixin


class WikiArticleBase(JobDeskBaseModel):
    """Editable article fields."""

    title: str = Field(..., max_length=500)
    content: str = ""
    category: WikiCategory = WikiCategory.SOFTWARE
    media_urls: list[str] = Field(default_factory=list)


class WikiArticleCreate(WikiArticleBase):
    """New article, optionally written up from a task."""

    from_task_id: UUID | None = None


class WikiArticleUpdate(WikiArticleBase):
    pass


class WikiArticleResponse(WikiArticleBase, TimestampMixin):
    id: UUID
    author_id: UUID | None = None


class WikiDraftResponse(WikiArticleBase):
    """Editor contents pre-filled from a task."""

    from_task_id: UUID
