"""
Unit tests for TagService.
"""

import pytest

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import DuplicateTagException, TagNotFoundException
from services.tag_service import TagService


class TestCreateTag:
    def test_create_seeds_usage_from_posts(self, db_session, test_post, admin_user):
        tag = TagService.create_tag(
            db_session, schemas.TagCreate(name=" FastAPI "), admin_user
        )

        assert tag.name == "fastapi"
        assert tag.display_name == "fastapi"
        assert tag.color == db_models.DEFAULT_TAG_COLOR
        assert tag.usage_count == 1

    def test_duplicate_name(self, db_session, test_tag, admin_user):
        with pytest.raises(DuplicateTagException):
            TagService.create_tag(db_session, schemas.TagCreate(name="Python"), admin_user)


class TestUpdateDeleteTag:
    def test_update(self, db_session, test_tag):
        tag = TagService.update_tag(
            db_session,
            test_tag.id,
            schemas.TagUpdate(display_name="Py", color="#FFF"),
        )

        assert tag.display_name == "Py"
        assert tag.color == "#FFF"
        assert tag.description == "The Python language"

    def test_delete_is_soft(self, db_session, test_tag):
        TagService.delete_tag(db_session, test_tag.id)

        db_session.refresh(test_tag)
        assert test_tag.is_active is False
        with pytest.raises(TagNotFoundException):
            TagService.get_tag_posts(db_session, "python", 0, 10)

    def test_update_missing(self, db_session):
        with pytest.raises(TagNotFoundException):
            TagService.update_tag(db_session, 999, schemas.TagUpdate(color="#000"))


class TestQueries:
    def test_tag_posts(self, db_session, test_tag, test_post, private_post):
        tag, posts, total = TagService.get_tag_posts(db_session, "PYTHON", 0, 10)

        assert tag.id == test_tag.id
        assert total == 1
        assert posts[0].id == test_post.id

    def test_popular_and_search(self, db_session, test_tag, admin_user):
        busy = db_models.Tag(
            name="pytest", display_name="pytest", created_by=admin_user.id, usage_count=7
        )
        db_session.add(busy)
        db_session.commit()

        assert [t.name for t in TagService.get_popular_tags(db_session, 2)] == [
            "pytest",
            "python",
        ]
        assert {t.name for t in TagService.search_tags(db_session, "py")} == {
            "pytest",
            "python",
        }

    def test_list_sorted_by_name(self, db_session, test_tag, admin_user):
        db_session.add(db_models.Tag(name="api", display_name="API", created_by=admin_user.id))
        db_session.commit()

        tags, total = TagService.list_tags(db_session, None, "name", 0, 10)

        assert total == 2
        assert [t.name for t in tags] == ["api", "python"]


class TestUsageCounts:
    def test_adjust_usage_ignores_unknown_and_floors_at_zero(self, db_session, test_tag):
        TagService.adjust_usage(db_session, removed=["python", "ghost"])
        TagService.adjust_usage(db_session, added=["ghost"])
        db_session.commit()

        db_session.refresh(test_tag)
        assert test_tag.usage_count == 0

    def test_reconcile_fixes_drift_and_is_idempotent(
        self, db_session, test_tag, make_post, test_user
    ):
        make_post(test_user, tags=("python",))
        make_post(test_user, tags=("python", "web"))
        make_post(test_user, tags=("python",), is_active=False)
        test_tag.usage_count = 42
        db_session.commit()

        first = TagService.reconcile_usage_counts(db_session)
        second = TagService.reconcile_usage_counts(db_session)

        db_session.refresh(test_tag)
        assert test_tag.usage_count == 2
        assert (first.tags_checked, first.tags_updated) == (1, 1)
        assert second.tags_updated == 0
