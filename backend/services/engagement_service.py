"""
Engagement ledger service: likes, saves, shares and views.

Every state change follows the same protocol inside one transaction:

1. insert the ledger row for the key if it is absent (ON CONFLICT DO NOTHING)
2. conditionally flip `active` to the target (WHERE active != target)
3. only if step 2 touched a row, adjust the content counter by +/-1 and
   append an outbox event

Concurrent callers wanting the same end state therefore change state once,
and a retried request with an explicit target state is a no-op.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import build_pagination
from models.exceptions import (
    ContentNotFoundException,
    InvalidActionTypeException,
    UnavailableException,
)
from repositories.content_repository import ContentRepository
from repositories.engagement_repository import (
    EngagementEventRepository,
    EngagementRepository,
)
from services.content_service import ContentService
from services.visibility_service import VisibilityService

COUNTER_FOR_ACTION: dict[db_models.EngagementAction, str] = {
    db_models.EngagementAction.LIKE: "likes",
    db_models.EngagementAction.SAVE: "saves",
    db_models.EngagementAction.SHARE: "shares",
    db_models.EngagementAction.VIEW: "views",
}

# Actions that can be switched off again
REVERSIBLE_ACTIONS = (db_models.EngagementAction.LIKE, db_models.EngagementAction.SAVE)

# Actions a user can list their content by
LISTABLE_ACTIONS = REVERSIBLE_ACTIONS


def _parse_action(action: str) -> db_models.EngagementAction:
    try:
        return db_models.EngagementAction(action)
    except ValueError:
        raise InvalidActionTypeException(action)


class EngagementService:
    """Service for engagement ledger business logic."""

    @staticmethod
    def engage(
        db: Session,
        user: db_models.User,
        action: str,
        content_type: str,
        content_id: int,
        desired: Optional[bool] = None,
    ) -> schemas.EngagementResult:
        """
        Single entry point for the engagement endpoint.

        Likes and saves toggle unless an explicit desired state is given.
        Shares and views are recorded once. On comments only `like` exists
        and is routed to comment likes.

        Args:
            db: Database session
            user: Authenticated user
            action: like, save, share or view
            content_type: Content type tag, or "Comment"
            content_id: Target ID
            desired: Explicit end state for retry-safe clients

        Returns:
            EngagementResult with the final state and counter

        Raises:
            InvalidActionTypeException: Unknown or unsupported action
            InvalidContentTypeException: Unknown content type
            ContentNotFoundException: Target missing
        """
        parsed_action = _parse_action(action)

        if content_type == db_models.COMMENT_TARGET:
            if parsed_action != db_models.EngagementAction.LIKE:
                raise InvalidActionTypeException(
                    action, "comments only support like"
                )
            from services.comment_like_service import CommentLikeService

            if desired is None:
                liked = CommentLikeService.toggle_like(db, content_id, user)
            else:
                liked = CommentLikeService.set_like(db, content_id, user, desired)
            return schemas.EngagementResult(
                active=bool(liked["liked"]),
                count=int(liked["like_count"]),
                changed=bool(liked["changed"]),
            )

        if parsed_action == db_models.EngagementAction.SHARE:
            if desired is False:
                raise InvalidActionTypeException(action, "shares cannot be undone")
            return EngagementService.record_share(db, user, content_type, content_id)
        if parsed_action == db_models.EngagementAction.VIEW:
            if desired is False:
                raise InvalidActionTypeException(action, "views cannot be undone")
            return EngagementService.record_view(db, user, content_type, content_id)

        if desired is None:
            return EngagementService.toggle(
                db, user, content_type, content_id, parsed_action.value
            )
        return EngagementService.set_engagement(
            db, user, content_type, content_id, parsed_action.value, desired
        )

    @staticmethod
    def set_engagement(
        db: Session,
        user: db_models.User,
        content_type: str,
        content_id: int,
        action: str,
        active: bool,
    ) -> schemas.EngagementResult:
        """
        Drive a ledger key to the desired state.

        Idempotent with respect to the end state: calling twice with the
        same target changes state at most once.

        Raises:
            InvalidActionTypeException: Unknown action or un-setting share/view
            InvalidContentTypeException: Unknown content type
            ContentNotFoundException: Content missing or deleted
            VisibilityDeniedException: Viewer may not see the content
            UnavailableException: Storage failure, nothing committed
        """
        parsed_action = _parse_action(action)
        if not active and parsed_action not in REVERSIBLE_ACTIONS:
            raise InvalidActionTypeException(
                action, f"{parsed_action.value} cannot be undone"
            )

        parsed_type = ContentService.resolve_type(content_type)
        item = ContentService.get_item(db, parsed_type.value, content_id)
        VisibilityService.ensure_can_view(db, user, item)

        ledger = EngagementRepository(db)
        content_repo = ContentRepository(db, parsed_type)
        field = COUNTER_FOR_ACTION[parsed_action]
        has_counter = field in content_repo.counter_fields

        try:
            ledger.ensure_row(user.id, parsed_type.value, content_id, parsed_action.value)
            changed = ledger.set_active(
                user.id, parsed_type.value, content_id, parsed_action.value, active
            )
            if changed:
                delta = 1 if active else -1
                if has_counter and content_repo.adjust_counter(
                    content_id, field, delta
                ) == 0:
                    raise ContentNotFoundException(
                        f"{parsed_type.value} with ID {content_id} not found"
                    )
                EngagementEventRepository(db).record(
                    user.id, parsed_type.value, content_id, parsed_action.value, delta
                )
            ledger.commit()
        except ContentNotFoundException:
            ledger.rollback()
            raise
        except OperationalError:
            ledger.rollback()
            logger.exception(
                "Engagement write failed",
                user_id=user.id,
                content_type=parsed_type.value,
                content_id=content_id,
                action=parsed_action.value,
            )
            raise UnavailableException()

        if has_counter:
            count = content_repo.get_counter(content_id, field) or 0
        else:
            count = ledger.count_active_by_action(parsed_type.value, content_id).get(
                parsed_action.value, 0
            )

        if changed:
            logger.info(
                "Engagement changed",
                user_id=user.id,
                content_type=parsed_type.value,
                content_id=content_id,
                action=parsed_action.value,
                active=active,
            )
        else:
            logger.debug(
                "Engagement already in desired state",
                user_id=user.id,
                content_type=parsed_type.value,
                content_id=content_id,
                action=parsed_action.value,
            )

        return schemas.EngagementResult(active=active, count=count, changed=changed)

    @staticmethod
    def toggle(
        db: Session,
        user: db_models.User,
        content_type: str,
        content_id: int,
        action: str,
    ) -> schemas.EngagementResult:
        """
        Flip a like or save.

        Raises:
            InvalidActionTypeException: Action is not like or save
        """
        parsed_action = _parse_action(action)
        if parsed_action not in REVERSIBLE_ACTIONS:
            raise InvalidActionTypeException(action, "only like and save toggle")
        current = EngagementRepository(db).is_active(
            user.id, content_type, content_id, parsed_action.value
        )
        return EngagementService.set_engagement(
            db, user, content_type, content_id, parsed_action.value, not current
        )

    @staticmethod
    def record_share(
        db: Session, user: db_models.User, content_type: str, content_id: int
    ) -> schemas.EngagementResult:
        """Record a share once per user; repeated shares change nothing."""
        return EngagementService.set_engagement(
            db,
            user,
            content_type,
            content_id,
            db_models.EngagementAction.SHARE.value,
            True,
        )

    @staticmethod
    def record_view(
        db: Session, user: db_models.User, content_type: str, content_id: int
    ) -> schemas.EngagementResult:
        """Record a view once per user; views are never un-set."""
        return EngagementService.set_engagement(
            db,
            user,
            content_type,
            content_id,
            db_models.EngagementAction.VIEW.value,
            True,
        )

    @staticmethod
    def _flags_to_schema(flags: dict[str, bool]) -> schemas.UserEngagement:
        return schemas.UserEngagement(
            liked=flags.get(db_models.EngagementAction.LIKE.value, False),
            saved=flags.get(db_models.EngagementAction.SAVE.value, False),
            shared=flags.get(db_models.EngagementAction.SHARE.value, False),
            viewed=flags.get(db_models.EngagementAction.VIEW.value, False),
        )

    @staticmethod
    def get_user_engagement(
        db: Session, user: db_models.User, content_type: str, content_id: int
    ) -> schemas.UserEngagement:
        """
        The user's flags on one item. Absent rows read as False.

        Raises:
            InvalidContentTypeException: Unknown content type
        """
        if content_type == db_models.COMMENT_TARGET:
            from repositories.comment_like_repository import CommentLikeRepository

            liked = CommentLikeRepository(db).is_liked(content_id, user.id)
            return schemas.UserEngagement(liked=liked)

        parsed_type = ContentService.resolve_type(content_type)
        flags = EngagementRepository(db).get_user_flags(
            user.id, parsed_type.value, content_id
        )
        return EngagementService._flags_to_schema(flags)

    @staticmethod
    def get_user_engagements(
        db: Session, user: db_models.User, content_type: str, content_ids: list[int]
    ) -> schemas.BatchEngagementResponse:
        """
        Batch version of get_user_engagement.

        Raises:
            InvalidContentTypeException: Unknown content type
        """
        parsed_type = ContentService.resolve_type(content_type)
        flags = EngagementRepository(db).get_user_flags_batch(
            user.id, parsed_type.value, content_ids
        )
        return schemas.BatchEngagementResponse(
            engagements={
                content_id: EngagementService._flags_to_schema(flags.get(content_id, {}))
                for content_id in content_ids
            }
        )

    @staticmethod
    def get_engagement_stats(
        db: Session,
        viewer: Optional[db_models.User],
        content_type: str,
        content_id: int,
    ) -> schemas.EngagementStats:
        """
        Stored counters plus totals derived from the ledger.

        Raises:
            InvalidContentTypeException: Unknown content type
            ContentNotFoundException: Content missing
            VisibilityDeniedException: Viewer may not see the content
        """
        item = ContentService.get_visible_item(db, viewer, content_type, content_id)
        ledger = EngagementRepository(db).count_active_by_action(
            content_type, content_id
        )
        return schemas.EngagementStats(
            content_type=content_type,
            content_id=content_id,
            likes=item.likes,
            saves=item.saves,
            shares=item.shares,
            comments=item.comments,
            views=getattr(item, "views", None),
            ledger=ledger,
        )

    @staticmethod
    def list_user_content(
        db: Session,
        user: db_models.User,
        content_type: str,
        action: str,
        page: int = 1,
        limit: int = 20,
    ) -> schemas.UserContentList:
        """
        Content the user currently likes or saves, most recent first.

        Items the user can no longer see (deleted, made private) are left
        out of the page.

        Raises:
            InvalidActionTypeException: Action is not like or save
            InvalidContentTypeException: Unknown content type
        """
        parsed_action = _parse_action(action)
        if parsed_action not in LISTABLE_ACTIONS:
            raise InvalidActionTypeException(action, "only likes and saves are listed")
        parsed_type = ContentService.resolve_type(content_type)

        ledger = EngagementRepository(db)
        skip = (page - 1) * limit
        ids = ledger.get_user_active_content_ids(
            user.id, parsed_type.value, parsed_action.value, skip=skip, limit=limit
        )
        total = ledger.count_user_active(user.id, parsed_type.value, parsed_action.value)

        items_by_id = {
            item.id: item
            for item in ContentRepository(db, parsed_type).get_live_by_ids(ids)
        }
        ordered = [items_by_id[i] for i in ids if i in items_by_id]
        visible = VisibilityService.filter_visible(db, user, ordered)

        return schemas.UserContentList(
            items=[ContentService.to_schema(parsed_type.value, item) for item in visible],
            pagination=build_pagination(page, limit, total),
        )
