"""News posts with a draft/published lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_engine.models import News
from kudos_engine.models.base import utcnow
from kudos_engine.models.enums import NewsStatus
from kudos_engine.services.audit_service import AuditService
from kudos_engine.services.errors import (
    InvalidStateTransitionError,
    NewsNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

NEWS_FIELDS = ("title", "content", "description", "cover_image")


class NewsService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def get(self, news_id: UUID, *, published_only: bool = False) -> News:
        news = await self.session.get(News, news_id)
        if news is None or (published_only and news.status != NewsStatus.PUBLISHED.value):
            raise NewsNotFoundError(news_id)
        return news

    async def list(
        self,
        *,
        include_drafts: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[News], int]:
        """Published posts newest first; drafts included for the admin view."""
        query = select(News)
        if not include_drafts:
            query = query.where(News.status == NewsStatus.PUBLISHED.value)
        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0
        result = await self.session.execute(
            query.order_by(News.published_at.desc().nullsfirst(), News.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def create(
        self,
        *,
        title: str,
        content: str,
        actor_id: UUID | str | None = None,
        **details: Any,
    ) -> News:
        if not (title or "").strip() or not (content or "").strip():
            raise ValidationError("title and content are required")
        news = News(
            title=title.strip(),
            content=content,
            status=NewsStatus.DRAFT.value,
            created_by=str(actor_id) if actor_id is not None else None,
            **{k: v for k, v in details.items() if k in NEWS_FIELDS},
        )
        self.session.add(news)
        await self.session.flush()
        self.audit.record("CREATE_NEWS", "News", news.news_id, actor_id, {"title": news.title})
        await self.session.flush()
        return news

    async def update(
        self,
        news_id: UUID,
        changes: Mapping[str, Any],
        actor_id: UUID | str | None = None,
    ) -> News:
        news = await self.get(news_id)
        applied = {
            name: changes[name]
            for name in NEWS_FIELDS
            if name in changes and changes[name] is not None
        }
        if "title" in applied and not applied["title"].strip():
            raise ValidationError("title cannot be empty")
        for name, value in applied.items():
            setattr(news, name, value)
        if applied:
            self.audit.record("UPDATE_NEWS", "News", news_id, actor_id, {"fields": sorted(applied)})
        await self.session.flush()
        return news

    async def delete(self, news_id: UUID, actor_id: UUID | str | None = None) -> None:
        news = await self.get(news_id)
        await self.session.delete(news)
        self.audit.record("DELETE_NEWS", "News", news_id, actor_id, {"title": news.title})
        await self.session.flush()

    async def publish(self, news_id: UUID, actor_id: UUID | str | None = None) -> News:
        news = await self.get(news_id)
        if news.status == NewsStatus.PUBLISHED.value:
            raise InvalidStateTransitionError(news.status, NewsStatus.PUBLISHED.value)
        news.status = NewsStatus.PUBLISHED.value
        news.published_at = utcnow()
        self.audit.record("PUBLISH_NEWS", "News", news_id, actor_id)
        await self.session.flush()
        logger.info("news %s published", news_id)
        return news

    async def unpublish(self, news_id: UUID, actor_id: UUID | str | None = None) -> News:
        news = await self.get(news_id)
        if news.status != NewsStatus.PUBLISHED.value:
            raise InvalidStateTransitionError(news.status, NewsStatus.DRAFT.value)
        news.status = NewsStatus.DRAFT.value
        news.published_at = None
        self.audit.record("UNPUBLISH_NEWS", "News", news_id, actor_id)
        await self.session.flush()
        logger.info("news %s unpublished", news_id)
        return news
