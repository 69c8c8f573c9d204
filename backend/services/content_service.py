"""
Content service for news, events, resources and social posts.
"""

from typing import Any, Optional

from loguru import logger
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import sanitize_html, sanitize_plain_text, sanitize_url
from models.exceptions import (
    ContentNotFoundException,
    ContentValidationException,
    GroupNotFoundException,
    InsufficientPermissionsException,
    InvalidContentTypeException,
    UnavailableException,
)
from repositories.content_repository import ContentRepository, parse_content_type
from repositories.group_repository import GroupRepository
from services.visibility_service import VisibilityService

# Types whose items may be posted into a group
GROUP_CONTENT_TYPES = (db_models.ContentType.SOCIAL_POST, db_models.ContentType.EVENT)

# Title-bearing types; SocialPost carries free text in `content`
TITLED_TYPES = (
    db_models.ContentType.NEWS,
    db_models.ContentType.EVENT,
    db_models.ContentType.RESOURCE,
)


class ContentService:
    """Service for content-store business logic."""

    @staticmethod
    def resolve_type(content_type: str) -> db_models.ContentType:
        """
        Parse a content type tag.

        Raises:
            InvalidContentTypeException: If the tag is unknown
        """
        parsed = parse_content_type(content_type)
        if parsed is None:
            raise InvalidContentTypeException(content_type)
        return parsed

    @staticmethod
    def get_item(db: Session, content_type: str, content_id: int) -> Any:
        """
        Fetch a live content item without visibility checks.

        Args:
            db: Database session
            content_type: Content type tag
            content_id: Content ID

        Returns:
            Content model instance

        Raises:
            InvalidContentTypeException: Unknown tag
            ContentNotFoundException: Missing or soft-deleted
        """
        parsed = ContentService.resolve_type(content_type)
        item = ContentRepository(db, parsed).get_live(content_id)
        if item is None:
            raise ContentNotFoundException(
                f"{parsed.value} with ID {content_id} not found"
            )
        return item

    @staticmethod
    def get_visible_item(
        db: Session,
        viewer: Optional[db_models.User],
        content_type: str,
        content_id: int,
    ) -> Any:
        """
        Fetch a content item the viewer is allowed to see.

        Raises:
            InvalidContentTypeException: Unknown tag
            ContentNotFoundException: Missing or soft-deleted
            AuthenticationException: Anonymous viewer on non-public content
            VisibilityDeniedException: Denied by the visibility rules
        """
        item = ContentService.get_item(db, content_type, content_id)
        VisibilityService.ensure_can_view(db, viewer, item)
        return item

    @staticmethod
    def get_content(
        db: Session,
        viewer: Optional[db_models.User],
        content_type: str,
        content_id: int,
    ) -> schemas.Content:
        """Visible content item as a response schema."""
        item = ContentService.get_visible_item(db, viewer, content_type, content_id)
        return ContentService.to_schema(content_type, item)

    @staticmethod
    def create_content(
        db: Session,
        author: db_models.User,
        content_type: str,
        payload: schemas.ContentCreate,
    ) -> schemas.Content:
        """
        Create a content item.

        Args:
            db: Database session
            author: Authenticated author
            content_type: Content type tag
            payload: Content data

        Returns:
            Created content

        Raises:
            InvalidContentTypeException: Unknown tag
            ContentValidationException: Missing required fields
            GroupNotFoundException: Group does not exist
            GroupPermissionDeniedException: Author lacks CAN_POST in the group
        """
        parsed = ContentService.resolve_type(content_type)

        if parsed in TITLED_TYPES and not (payload.title and payload.title.strip()):
            raise ContentValidationException(f"{parsed.value} requires a title")
        if parsed == db_models.ContentType.SOCIAL_POST and not (
            payload.content and payload.content.strip()
        ):
            raise ContentValidationException("SocialPost requires content")

        group_id = payload.group_id
        if group_id is not None:
            if parsed not in GROUP_CONTENT_TYPES:
                raise ContentValidationException(
                    f"{parsed.value} cannot be posted to a group"
                )
            if GroupRepository(db).get_by_id(group_id) is None:
                raise GroupNotFoundException(f"Group with ID {group_id} not found")
            VisibilityService.ensure_group_permission(
                db, author, group_id, db_models.GroupPermission.CAN_POST
            )
        elif payload.visibility == db_models.Visibility.GROUP:
            raise ContentValidationException("Group visibility requires a group")

        item = ContentService._build_item(parsed, author.id, payload)
        repo = ContentRepository(db, parsed)
        try:
            repo.create(item)
        except OperationalError:
            repo.rollback()
            raise UnavailableException()

        logger.info(
            "Content created",
            content_type=parsed.value,
            content_id=item.id,
            author_id=author.id,
        )
        return ContentService.to_schema(parsed.value, item)

    @staticmethod
    def _build_item(
        content_type: db_models.ContentType,
        author_id: int,
        payload: schemas.ContentCreate,
    ) -> Any:
        common = {
            "author_id": author_id,
            "visibility": payload.visibility.value,
        }
        if content_type == db_models.ContentType.NEWS:
            return db_models.News(
                **common,
                title=sanitize_plain_text(payload.title),
                summary=sanitize_html(payload.summary),
                source_url=sanitize_url(payload.source_url),
            )
        if content_type == db_models.ContentType.EVENT:
            return db_models.Event(
                **common,
                title=sanitize_plain_text(payload.title),
                description=sanitize_html(payload.description),
                location=sanitize_plain_text(payload.location),
                starts_at=payload.starts_at,
                group_id=payload.group_id,
            )
        if content_type == db_models.ContentType.RESOURCE:
            return db_models.Resource(
                **common,
                title=sanitize_plain_text(payload.title),
                description=sanitize_html(payload.description),
                url=sanitize_url(payload.url),
            )
        return db_models.SocialPost(
            **common,
            content=sanitize_html(payload.content),
            group_id=payload.group_id,
            allow_comments=payload.allow_comments,
        )

    @staticmethod
    def delete_content(
        db: Session, actor: db_models.User, content_type: str, content_id: int
    ) -> None:
        """
        Soft-delete a content item. Only the author may delete.

        Raises:
            ContentNotFoundException: Missing or already deleted
            InsufficientPermissionsException: Actor is not the author
        """
        item = ContentService.get_item(db, content_type, content_id)
        if item.author_id != actor.id:
            raise InsufficientPermissionsException(
                "Only the author can delete this content"
            )
        ContentRepository(db, ContentService.resolve_type(content_type)).soft_delete(
            item
        )
        logger.info(
            "Content deleted",
            content_type=content_type,
            content_id=content_id,
            actor_id=actor.id,
        )

    @staticmethod
    def list_visible(
        db: Session,
        viewer: Optional[db_models.User],
        content_type: str,
        skip: int = 0,
        limit: int = 20,
    ) -> schemas.ContentFeed:
        """
        Feed page of active items the viewer may see, newest first.

        Items hidden from the viewer are dropped from the page, so a page can
        hold fewer than `limit` items.
        """
        parsed = ContentService.resolve_type(content_type)
        items = ContentRepository(db, parsed).list_active(skip=skip, limit=limit)
        visible = VisibilityService.filter_visible(db, viewer, items)
        return schemas.ContentFeed(
            items=[ContentService.to_schema(parsed.value, item) for item in visible],
            skip=skip,
            limit=limit,
        )

    @staticmethod
    def adjust_counter(
        db: Session, content_type: str, content_id: int, field: str, delta: int
    ) -> None:
        """
        Add delta to a counter inside the caller's transaction.

        Raises:
            ContentNotFoundException: No row was updated
        """
        repo = ContentRepository(db, ContentService.resolve_type(content_type))
        if repo.adjust_counter(content_id, field, delta) == 0:
            raise ContentNotFoundException(
                f"{content_type} with ID {content_id} not found"
            )

    @staticmethod
    def to_schema(content_type: str, item: Any) -> schemas.Content:
        status = item.status
        return schemas.Content(
            id=item.id,
            content_type=content_type,
            author_id=item.author_id,
            visibility=item.visibility,
            status=status.value if hasattr(status, "value") else str(status),
            created_at=item.created_at,
            likes=item.likes,
            saves=item.saves,
            shares=item.shares,
            comments=item.comments,
            views=getattr(item, "views", None),
            group_id=getattr(item, "group_id", None),
            title=getattr(item, "title", None),
            content=getattr(item, "content", None),
            summary=getattr(item, "summary", None),
            description=getattr(item, "description", None),
            source_url=getattr(item, "source_url", None),
            url=getattr(item, "url", None),
            location=getattr(item, "location", None),
            starts_at=getattr(item, "starts_at", None),
            allow_comments=item.allow_comments,
        )
