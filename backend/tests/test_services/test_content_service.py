"""Tests for ContentService."""

import pytest

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    ContentNotFoundException,
    ContentValidationException,
    GroupNotFoundException,
    GroupPermissionDeniedException,
    InsufficientPermissionsException,
    InvalidContentTypeException,
)
from services.content_service import ContentService


class TestCreateContent:
    def test_create_news(self, db_session, test_user) -> None:
        content = ContentService.create_content(
            db_session,
            test_user,
            "News",
            schemas.ContentCreate(
                title="Robotics wins regional",
                summary="<p>Great <script>alert(1)</script>result</p>",
                source_url="https://news.example.edu/robotics",
                visibility=db_models.Visibility.PUBLIC,
            ),
        )

        assert content.content_type == "News"
        assert content.author_id == test_user.id
        assert content.visibility == "public"
        assert content.likes == 0
        assert "<script>" not in (content.summary or "")

    def test_default_visibility_is_club_members(self, db_session, test_user) -> None:
        content = ContentService.create_content(
            db_session, test_user, "Resource", schemas.ContentCreate(title="Notes")
        )
        assert content.visibility == "club-members"
        assert content.views == 0

    def test_javascript_url_is_dropped(self, db_session, test_user) -> None:
        content = ContentService.create_content(
            db_session,
            test_user,
            "Resource",
            schemas.ContentCreate(title="Link", url="javascript:alert(1)"),
        )
        assert not content.url

    def test_title_required(self, db_session, test_user) -> None:
        with pytest.raises(ContentValidationException):
            ContentService.create_content(
                db_session, test_user, "Event", schemas.ContentCreate(title="  ")
            )

    def test_post_requires_content(self, db_session, test_user) -> None:
        with pytest.raises(ContentValidationException):
            ContentService.create_content(
                db_session, test_user, "SocialPost", schemas.ContentCreate()
            )

    def test_unknown_type(self, db_session, test_user) -> None:
        with pytest.raises(InvalidContentTypeException):
            ContentService.create_content(
                db_session, test_user, "Poll", schemas.ContentCreate(title="Q")
            )

    def test_group_post_needs_membership(
        self, db_session, make_group, test_user, other_user
    ) -> None:
        group = make_group(test_user)
        with pytest.raises(GroupPermissionDeniedException):
            ContentService.create_content(
                db_session,
                other_user,
                "SocialPost",
                schemas.ContentCreate(content="Hi all", group_id=group.id),
            )

    def test_group_post_by_member(self, db_session, make_group, test_user) -> None:
        group = make_group(test_user)
        content = ContentService.create_content(
            db_session,
            test_user,
            "SocialPost",
            schemas.ContentCreate(
                content="Meeting moved",
                group_id=group.id,
                visibility=db_models.Visibility.GROUP,
            ),
        )
        assert content.group_id == group.id

    def test_missing_group(self, db_session, test_user) -> None:
        with pytest.raises(GroupNotFoundException):
            ContentService.create_content(
                db_session,
                test_user,
                "Event",
                schemas.ContentCreate(title="Hackathon", group_id=321),
            )

    def test_news_cannot_target_group(self, db_session, make_group, test_user) -> None:
        group = make_group(test_user)
        with pytest.raises(ContentValidationException):
            ContentService.create_content(
                db_session,
                test_user,
                "News",
                schemas.ContentCreate(title="Update", group_id=group.id),
            )

    def test_group_visibility_requires_group(self, db_session, test_user) -> None:
        with pytest.raises(ContentValidationException):
            ContentService.create_content(
                db_session,
                test_user,
                "SocialPost",
                schemas.ContentCreate(
                    content="Where?", visibility=db_models.Visibility.GROUP
                ),
            )


class TestReadAndDelete:
    def test_soft_deleted_content_is_not_found(
        self, db_session, test_user, public_news
    ) -> None:
        ContentService.delete_content(db_session, test_user, "News", public_news.id)

        with pytest.raises(ContentNotFoundException):
            ContentService.get_content(db_session, test_user, "News", public_news.id)

    def test_only_author_deletes(self, db_session, other_user, public_news) -> None:
        with pytest.raises(InsufficientPermissionsException):
            ContentService.delete_content(
                db_session, other_user, "News", public_news.id
            )

    def test_feed_hides_invisible_items(
        self, db_session, make_content, test_user, guest_user
    ) -> None:
        make_content(test_user, title="Public")
        make_content(test_user, visibility="club-members", title="Members")

        feed = ContentService.list_visible(db_session, guest_user, "News")

        assert [item.title for item in feed.items] == ["Public"]
        assert feed.limit == 20

    def test_adjust_counter_on_missing_item(self, db_session) -> None:
        with pytest.raises(ContentNotFoundException):
            ContentService.adjust_counter(db_session, "News", 999, "likes", 1)
