"""
Wiki Service: the knowledge base.

Articles are plain Markdown with a category and a list of media links. A
finished task can be written up as an article: ``convert_task_to_wiki``
builds the draft, and saving it with ``from_task_id`` links the task back.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Profile, Task, WikiArticle, WikiCategory
from .tasks import fetch_resolved_assignees

logger = logging.getLogger(__name__)

SOLUTION_PLACEHOLDER = "(Admin can edit this before saving)"


class WikiError(Exception):
    """Base exception for wiki operations."""
    pass


class WikiArticleNotFoundError(WikiError):
    pass


class InvalidArticleError(WikiError):
    pass


@dataclass
class ArticleInput:
    title: str
    content: str = ""
    category: WikiCategory = WikiCategory.SOFTWARE
    media_urls: list[str] = field(default_factory=list)


@dataclass
class ArticleDraft:
    """Pre-filled editor contents for a task write-up."""
    title: str
    content: str
    category: WikiCategory
    media_urls: list[str] = field(default_factory=list)


# =============================================================================
# TASK CONVERSION
# =============================================================================


def department_to_category(department: str | None) -> WikiCategory:
    """Guess the article category from the assignee's department name."""
    if not department:
        return WikiCategory.SOFTWARE
    d = department.strip().lower()
    if "network" in d:
        return WikiCategory.NETWORK
    if "server" in d or "infra" in d:
        return WikiCategory.SERVER
    if "electr" in d:
        return WikiCategory.ELECTRICAL
    return WikiCategory.SOFTWARE


def convert_task_to_wiki(task: Task, assignee: Profile | None = None) -> ArticleDraft:
    content = "\n".join([
        "### Original Task Description",
        (task.description or "").strip(),
        "",
        "### Solution Details",
        SOLUTION_PLACEHOLDER,
    ])
    return ArticleDraft(
        title=task.title,
        content=content,
        category=department_to_category(assignee.department if assignee else None),
    )


# =============================================================================
# SERVICE
# =============================================================================


class WikiService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_article(self, article_id: UUID) -> WikiArticle:
        article = await self.session.get(WikiArticle, article_id)
        if article is None:
            raise WikiArticleNotFoundError(f"Wiki article {article_id} not found")
        return article

    async def list_articles(
        self,
        category: WikiCategory | str | None = None,
        search: str | None = None,
    ) -> list[WikiArticle]:
        """Most recently edited first, optionally filtered."""
        query = select(WikiArticle).order_by(
            func.coalesce(WikiArticle.updated_at, WikiArticle.created_at).desc()
        )
        if category is not None:
            query = query.where(WikiArticle.category == WikiCategory(category))
        if search and search.strip():
            term = search.strip()
            query = query.where(or_(
                WikiArticle.title.icontains(term, autoescape=True),
                WikiArticle.content.icontains(term, autoescape=True),
            ))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create_article(
        self,
        data: ArticleInput,
        author: Profile | None,
        from_task_id: UUID | None = None,
    ) -> WikiArticle:
        """Save a new article; ``from_task_id`` links the source task to it."""
        title = self._clean_title(data.title)
        task = None
        if from_task_id is not None:
            task = await self.session.get(Task, from_task_id)
            if task is None:
                raise InvalidArticleError(f"Unknown task {from_task_id}")

        article = WikiArticle(
            title=title,
            content=(data.content or "").strip(),
            category=WikiCategory(data.category),
            author_id=author.id if author else None,
            media_urls=list(data.media_urls),
        )
        self.session.add(article)
        await self.session.flush()

        if task is not None:
            task.wiki_article_id = article.id
            await self.session.flush()

        logger.info(f"Created wiki article {article.id} ({title})")
        return article

    async def update_article(self, article_id: UUID, data: ArticleInput) -> WikiArticle:
        article = await self.get_article(article_id)
        article.title = self._clean_title(data.title)
        article.content = (data.content or "").strip()
        article.category = WikiCategory(data.category)
        article.media_urls = list(data.media_urls)
        await self.session.flush()
        return article

    async def delete_article(self, article_id: UUID) -> None:
        article = await self.get_article(article_id)
        await self.session.execute(
            update(Task).where(Task.wiki_article_id == article_id).values(wiki_article_id=None)
        )
        await self.session.delete(article)
        await self.session.flush()
        logger.info(f"Deleted wiki article {article_id}")

    async def draft_from_task(self, task_id: UUID) -> ArticleDraft:
        """Draft for the task's first assignee's department."""
        task = await self.session.get(Task, task_id)
        if task is None:
            raise InvalidArticleError(f"Unknown task {task_id}")

        assignee = None
        assignee_ids = await fetch_resolved_assignees(self.session, task)
        if assignee_ids:
            assignee = await self.session.get(Profile, assignee_ids[0])
        return convert_task_to_wiki(task, assignee)

    @staticmethod
    def _clean_title(title: str) -> str:
        title = (title or "").strip()
        if not title:
            raise InvalidArticleError("Title is required.")
        return title
