"""Named activity dispatch: activity name -> point action -> badge evaluation."""

from __future__ import annotations

from typing import Any, Callable, Mapping
from uuid import UUID

from loguru import logger

from kudos_api.domain.gamification.point_actions import PointAction
from kudos_api.models.gamification import PointHistory
from kudos_api.services.badges import BadgeCriteriaEvaluator
from kudos_api.services.points import PointLedger

Resolution = tuple[PointAction, str]
Resolver = Callable[[Mapping[str, Any]], Resolution | None]

POSITIVE_RATING = 4

_EVENT_TYPE_ACTIONS: dict[str, PointAction] = {
    "TRIP": PointAction.JOIN_TRIP,
    "CAFE_MEETUP": PointAction.CAFE_MEETUP,
    "ILM": PointAction.ILM_EVENT,
    "VOLUNTEER": PointAction.VOLUNTEER,
}


def _described(action: PointAction, default: str, key: str | None = None, template: str = "") -> Resolver:
    def resolve(context: Mapping[str, Any]) -> Resolution:
        value = context.get(key) if key else None
        return action, (template.format(value) if value else default)

    return resolve


def _event_attended(context: Mapping[str, Any]) -> Resolution:
    event_type = str(context.get("eventType") or "").upper()
    action = _EVENT_TYPE_ACTIONS.get(event_type, PointAction.ATTEND_EVENT)
    title = context.get("eventTitle")
    return action, (f"Attended: {title}" if title else "Attended event")


def _positive_rating(context: Mapping[str, Any]) -> int | None:
    rating = context.get("rating")
    try:
        value = int(rating) if rating is not None else None
    except (TypeError, ValueError):
        return None
    if value is None or value < POSITIVE_RATING:
        return None
    return value


def _trust_moment_received(context: Mapping[str, Any]) -> Resolution | None:
    if _positive_rating(context) is None:
        return None
    giver = context.get("giverName")
    return (
        PointAction.RECEIVE_POSITIVE_TRUST_MOMENT,
        f"Positive trust moment from {giver}" if giver else "Received positive trust moment",
    )


def _marketplace_review_received(context: Mapping[str, Any]) -> Resolution | None:
    rating = _positive_rating(context)
    if rating is None:
        return None
    return PointAction.RECEIVE_POSITIVE_REVIEW, f"Received {rating}-star review"


def _homesurf_booking_completed(context: Mapping[str, Any]) -> Resolution | None:
    role = context.get("role")
    if role == "host":
        traveler = context.get("travelerName")
        return PointAction.HOST_TRAVELER, f"Hosted {traveler}" if traveler else "Hosted a traveler"
    if role == "traveler":
        host = context.get("hostName")
        return PointAction.STAY_AS_TRAVELER, f"Stayed with {host}" if host else "Stayed as traveler"
    return None


ACTIVITY_ROUTES: dict[str, Resolver] = {
    # Registration & profile
    "user.registered": _described(PointAction.REGISTER, "Welcome to Kudos!"),
    "user.email.verified": _described(PointAction.VERIFY_EMAIL, "Email verified"),
    "user.phone.verified": _described(PointAction.VERIFY_PHONE, "Phone verified"),
    "user.profile.photo.uploaded": _described(PointAction.UPLOAD_PROFILE_PHOTO, "Profile photo uploaded"),
    "user.profile.basic.completed": _described(PointAction.COMPLETE_PROFILE_BASIC, "Basic profile completed"),
    "user.profile.full.completed": _described(PointAction.COMPLETE_PROFILE_FULL, "Profile 100% complete"),
    # Events
    "event.attended": _event_attended,
    "event.hosted": _described(PointAction.HOST_EVENT, "Hosted event", "eventTitle", "Hosted: {}"),
    "event.donated": _described(PointAction.DONATE, "Made a donation", "amount", "Donated ${}"),
    "event.rsvp": _described(PointAction.RSVP_EVENT, "RSVP'd to event", "eventTitle", "RSVP: {}"),
    # Vouching & trust
    "vouch.received": _described(PointAction.RECEIVE_VOUCH, "Received a vouch", "voucherName", "Received vouch from {}"),
    "trust-moment.created": _described(
        PointAction.GIVE_TRUST_MOMENT, "Gave trust moment", "receiverName", "Gave trust moment to {}"
    ),
    "trust-moment.received": _trust_moment_received,
    "trust.milestone.reached": _described(
        PointAction.REACH_TRUST_MILESTONE, "Reached a trust milestone", "milestone", "Reached trust score {}"
    ),
    # Community
    "community.joined": _described(PointAction.JOIN_COMMUNITY, "Joined a community", "communityName", "Joined: {}"),
    "community.post.created": _described(
        PointAction.POST_IN_COMMUNITY, "Posted in community", "communityName", "Posted in: {}"
    ),
    "community.post.reacted": _described(PointAction.REACT_TO_COMMUNITY_POST, "Reacted to community post"),
    "community.moderator.assigned": _described(
        PointAction.BECOME_MODERATOR, "Became a moderator", "communityName", "Moderator of: {}"
    ),
    # Referrals
    "referral.successful": _described(PointAction.REFERRAL, "Successful referral", "refereeName", "Referred {}"),
    "referral.signup": _described(PointAction.REFEREE_SIGNUP, "Signed up with a referral code"),
    # Card game
    "cardgame.feedback.submitted": _described(
        PointAction.SUBMIT_TOPIC_FEEDBACK, "Submitted topic feedback", "topicName", "Feedback on: {}"
    ),
    "cardgame.feedback.helpful-vote": _described(PointAction.RECEIVE_HELPFUL_VOTE, "Received helpful vote on feedback"),
    "cardgame.feedback.replied": _described(PointAction.REPLY_TO_FEEDBACK, "Replied to feedback"),
    # Marketplace
    "marketplace.listing.created": _described(
        PointAction.CREATE_LISTING, "Created marketplace listing", "title", "Listed: {}"
    ),
    "marketplace.order.created": _described(PointAction.PURCHASE_ITEM, "Purchased item", "itemTitle", "Purchased: {}"),
    "marketplace.order.delivered": _described(PointAction.SELL_ITEM, "Sold item", "itemTitle", "Sold: {}"),
    "marketplace.review.created": _described(PointAction.LEAVE_REVIEW, "Left marketplace review"),
    "marketplace.review.received": _marketplace_review_received,
    # Guides
    "berseguide.profile.created": _described(PointAction.BECOME_GUIDE, "Became a guide", "title", "Became guide: {}"),
    "berseguide.booking.completed": _described(
        PointAction.COMPLETE_GUIDE_SESSION, "Completed guide session", "bookingId", "Completed booking: {}"
    ),
    "berseguide.review.received": _described(
        PointAction.RECEIVE_GUIDE_REVIEW, "Received guide review", "rating", "Received {}-star guide review"
    ),
    "berseguide.booking.created": _described(
        PointAction.BOOK_GUIDE_SESSION, "Booked guide session", "guideId", "Booked session with guide {}"
    ),
    # Home stays
    "homesurf.profile.created": _described(PointAction.LIST_HOME, "Listed home", "city", "Listed home in {}"),
    "homesurf.booking.completed": _homesurf_booking_completed,
    "homesurf.review.created": _described(PointAction.LEAVE_HOST_REVIEW, "Left host review"),
    "homesurf.review.received": _described(
        PointAction.RECEIVE_HOST_REVIEW, "Received host review", "rating", "Received {}-star host review"
    ),
    # Streaks
    "streak.week.maintained": _described(PointAction.MAINTAIN_STREAK_WEEK, "Kept a weekly streak"),
    "streak.month.maintained": _described(PointAction.MAINTAIN_STREAK_MONTH, "Kept a monthly streak"),
}


def resolve_activity(activity_name: str, context: Mapping[str, Any] | None = None) -> Resolution | None:
    """Point action and description for an activity, ``None`` when it earns nothing."""

    resolver = ACTIVITY_ROUTES.get(activity_name)
    if resolver is None:
        return None
    return resolver(context or {})


class ActivityRouter:
    """Collaborator-facing entry point turning named activities into points.

    ``notify`` never raises: unknown names are logged and dropped, ledger and
    evaluation failures are logged with their traceback.
    """

    def __init__(self, ledger: PointLedger, evaluator: BadgeCriteriaEvaluator) -> None:
        self._ledger = ledger
        self._evaluator = evaluator

    async def notify(
        self,
        activity_name: str,
        user_id: UUID,
        context: Mapping[str, Any] | None = None,
    ) -> PointHistory | None:
        if activity_name not in ACTIVITY_ROUTES:
            logger.warning("Unknown activity dropped", activity=activity_name, user_id=str(user_id))
            return None

        resolution = resolve_activity(activity_name, context)
        if resolution is None:
            logger.debug("Activity did not qualify for points", activity=activity_name, user_id=str(user_id))
            return None
        action, description = resolution

        try:
            entry = await self._ledger.award(user_id, action, description)
        except Exception:
            logger.exception(
                "Failed to award points for activity",
                activity=activity_name,
                user_id=str(user_id),
                action=action.value,
            )
            return None

        try:
            await self._evaluator.evaluate(user_id)
        except Exception:
            logger.exception("Failed to check badges after activity", activity=activity_name, user_id=str(user_id))
        return entry


__all__ = ["ACTIVITY_ROUTES", "ActivityRouter", "resolve_activity"]
