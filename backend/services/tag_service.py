"""
Tag service for business logic.

Tag usage counters follow the posts that carry each tag. Post writes adjust
them in the same transaction through ``adjust_usage``; ``reconcile_usage_counts``
recomputes them from scratch and is safe to run at any time.
"""

from typing import Iterable

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import sanitize_plain_text
from models.exceptions import DuplicateTagException, TagNotFoundException
from repositories.post_repository import PostRepository
from repositories.tag_repository import TagRepository


class TagService:
    """Service for tag-related business logic."""

    @staticmethod
    def list_tags(
        db: Session, search: str | None, sort_by: str, skip: int, limit: int
    ) -> tuple[list[db_models.Tag], int]:
        return TagRepository(db).list_active(search, sort_by, skip, limit)

    @staticmethod
    def get_popular_tags(db: Session, limit: int = 10) -> list[db_models.Tag]:
        return TagRepository(db).get_popular(limit)

    @staticmethod
    def search_tags(db: Session, query: str, limit: int = 10) -> list[db_models.Tag]:
        return TagRepository(db).search_tags(query, limit)

    @staticmethod
    def get_tag_posts(
        db: Session, name: str, skip: int, limit: int
    ) -> tuple[db_models.Tag, list[db_models.Post], int]:
        """
        Get an active tag and the public posts carrying it.

        Raises:
            TagNotFoundException: If no active tag has this name
        """
        tag = TagRepository(db).get_by_name(name)
        if tag is None or not tag.is_active:
            raise TagNotFoundException()
        posts, total = PostRepository(db).list_by_tag(tag.name, skip, limit)
        return tag, posts, total

    @staticmethod
    def create_tag(
        db: Session, data: schemas.TagCreate, creator: db_models.User
    ) -> db_models.Tag:
        """
        Create a tag.

        Its usage count starts at the number of active posts already using
        the name.

        Raises:
            DuplicateTagException: If a tag with this name exists
        """
        repo = TagRepository(db)
        if repo.get_by_name(data.name):
            raise DuplicateTagException(data.name)

        usage = PostRepository(db).active_tag_usage().get(data.name, 0)
        tag = db_models.Tag(
            name=data.name,
            display_name=sanitize_plain_text(data.display_name) or data.name,
            description=sanitize_plain_text(data.description) or "",
            color=data.color or db_models.DEFAULT_TAG_COLOR,
            created_by=creator.id,
            usage_count=usage,
        )
        tag = repo.create(tag)
        logger.info(f"Tag '{tag.name}' created by user {creator.id}")
        return tag

    @staticmethod
    def update_tag(db: Session, tag_id: int, data: schemas.TagUpdate) -> db_models.Tag:
        repo = TagRepository(db)
        tag = repo.get_by_id(tag_id)
        if tag is None:
            raise TagNotFoundException()

        if data.display_name is not None:
            tag.display_name = sanitize_plain_text(data.display_name) or tag.name
        if data.description is not None:
            tag.description = sanitize_plain_text(data.description) or ""
        if data.color is not None:
            tag.color = data.color
        if data.is_active is not None:
            tag.is_active = data.is_active

        repo.commit()
        repo.refresh(tag)
        return tag

    @staticmethod
    def delete_tag(db: Session, tag_id: int) -> None:
        """Soft delete a tag. Posts keep the tag name."""
        repo = TagRepository(db)
        tag = repo.get_active_by_id(tag_id)
        if tag is None:
            raise TagNotFoundException()
        tag.is_active = False
        repo.commit()
        logger.info(f"Tag '{tag.name}' deactivated")

    @staticmethod
    def adjust_usage(
        db: Session, removed: Iterable[str] = (), added: Iterable[str] = ()
    ) -> None:
        """
        Move usage counters for registered tags without committing.

        Names without a Tag record are ignored. Counters never go below zero.
        """
        removed, added = list(removed), list(added)
        tags = {t.name: t for t in TagRepository(db).get_by_names(removed + added)}
        for name in removed:
            tag = tags.get(name)
            if tag is not None and tag.usage_count > 0:
                tag.usage_count -= 1
        for name in added:
            tag = tags.get(name)
            if tag is not None:
                tag.usage_count += 1

    @staticmethod
    def reconcile_usage_counts(db: Session) -> schemas.ReconcileResult:
        """
        Recompute every tag's usage count from active posts.

        Idempotent; fixes any drift between counters and posts.
        """
        usage = PostRepository(db).active_tag_usage()
        repo = TagRepository(db)
        tags = repo.all_tags()
        updated = 0
        for tag in tags:
            expected = usage.get(tag.name, 0)
            if tag.usage_count != expected:
                logger.warning(
                    f"Tag '{tag.name}' usage drifted: {tag.usage_count} -> {expected}"
                )
                tag.usage_count = expected
                updated += 1
        repo.commit()
        return schemas.ReconcileResult(tags_checked=len(tags), tags_updated=updated)
