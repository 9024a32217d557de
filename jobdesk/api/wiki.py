"""Wiki Router: knowledge-base articles.

Any signed-in user may write and edit articles; deleting is admin only.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from ..core.dependencies import AdminDep, CurrentUserDep, SessionDep
from ..models import WikiCategory
from ..schemas import (
    WikiArticleCreate,
    WikiArticleResponse,
    WikiArticleUpdate,
    WikiDraftResponse,
)
from ..services.wiki import (
    ArticleInput,
    InvalidArticleError,
    WikiArticleNotFoundError,
    WikiService,
)

router = APIRouter(prefix="/wiki", tags=["wiki"])


def _article_input(request: WikiArticleCreate | WikiArticleUpdate) -> ArticleInput:
    return ArticleInput(
        title=request.title,
        content=request.content,
        category=request.category,
        media_urls=request.media_urls,
    )


@router.get("", response_model=list[WikiArticleResponse])
async def list_articles(
    current_user: CurrentUserDep,
    session: SessionDep,
    category: WikiCategory | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
):
    """Newest edits first; ``search`` matches title or content."""
    articles = await WikiService(session).list_articles(category=category, search=search)
    return [WikiArticleResponse.model_validate(a) for a in articles]


@router.get("/drafts/from-task/{task_id}", response_model=WikiDraftResponse)
async def draft_from_task(
    task_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """Pre-filled article for writing up a task."""
    try:
        draft = await WikiService(session).draft_from_task(task_id)
    except InvalidArticleError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return WikiDraftResponse(
        title=draft.title,
        content=draft.content,
        category=draft.category,
        media_urls=draft.media_urls,
        from_task_id=task_id,
    )


@router.post("", response_model=WikiArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    request: WikiArticleCreate,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    try:
        article = await WikiService(session).create_article(
            _article_input(request),
            current_user.profile,
            from_task_id=request.from_task_id,
        )
    except InvalidArticleError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await session.commit()
    return WikiArticleResponse.model_validate(article)


@router.get("/{article_id}", response_model=WikiArticleResponse)
async def get_article(
    article_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    try:
        article = await WikiService(session).get_article(article_id)
    except WikiArticleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return WikiArticleResponse.model_validate(article)


@router.put("/{article_id}", response_model=WikiArticleResponse)
async def update_article(
    article_id: UUID,
    request: WikiArticleUpdate,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    try:
        article = await WikiService(session).update_article(article_id, _article_input(request))
    except WikiArticleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidArticleError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await session.commit()
    return WikiArticleResponse.model_validate(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: UUID,
    current_user: AdminDep,
    session: SessionDep,
):
    """Remove an article; tasks linking to it are unlinked."""
    try:
        await WikiService(session).delete_article(article_id)
    except WikiArticleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    await session.commit()
