"""Static point values for every named ledger action."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PointAction(str, Enum):
    """Actions the ledger knows how to price."""

    # Registration & profile
    REGISTER = "REGISTER"
    COMPLETE_PROFILE_BASIC = "COMPLETE_PROFILE_BASIC"
    COMPLETE_PROFILE_FULL = "COMPLETE_PROFILE_FULL"
    VERIFY_EMAIL = "VERIFY_EMAIL"
    VERIFY_PHONE = "VERIFY_PHONE"
    UPLOAD_PROFILE_PHOTO = "UPLOAD_PROFILE_PHOTO"

    # Events
    ATTEND_EVENT = "ATTEND_EVENT"
    HOST_EVENT = "HOST_EVENT"
    RSVP_EVENT = "RSVP_EVENT"
    CANCEL_RSVP = "CANCEL_RSVP"
    JOIN_TRIP = "JOIN_TRIP"
    CAFE_MEETUP = "CAFE_MEETUP"
    ILM_EVENT = "ILM_EVENT"
    VOLUNTEER = "VOLUNTEER"
    DONATE = "DONATE"

    # Connections & trust
    FIRST_CONNECTION = "FIRST_CONNECTION"
    MAKE_CONNECTION = "MAKE_CONNECTION"
    RECEIVE_VOUCH = "RECEIVE_VOUCH"
    GIVE_TRUST_MOMENT = "GIVE_TRUST_MOMENT"
    RECEIVE_POSITIVE_TRUST_MOMENT = "RECEIVE_POSITIVE_TRUST_MOMENT"

    # Community
    JOIN_COMMUNITY = "JOIN_COMMUNITY"
    POST_IN_COMMUNITY = "POST_IN_COMMUNITY"
    REACT_TO_COMMUNITY_POST = "REACT_TO_COMMUNITY_POST"
    BECOME_MODERATOR = "BECOME_MODERATOR"

    # Referrals
    REFERRAL = "REFERRAL"
    REFEREE_SIGNUP = "REFEREE_SIGNUP"

    # Card game feedback
    SUBMIT_TOPIC_FEEDBACK = "SUBMIT_TOPIC_FEEDBACK"
    RECEIVE_HELPFUL_VOTE = "RECEIVE_HELPFUL_VOTE"
    REPLY_TO_FEEDBACK = "REPLY_TO_FEEDBACK"

    # Marketplace
    CREATE_LISTING = "CREATE_LISTING"
    PURCHASE_ITEM = "PURCHASE_ITEM"
    SELL_ITEM = "SELL_ITEM"
    LEAVE_REVIEW = "LEAVE_REVIEW"
    RECEIVE_POSITIVE_REVIEW = "RECEIVE_POSITIVE_REVIEW"

    # Guides
    BECOME_GUIDE = "BECOME_GUIDE"
    BOOK_GUIDE_SESSION = "BOOK_GUIDE_SESSION"
    COMPLETE_GUIDE_SESSION = "COMPLETE_GUIDE_SESSION"
    RECEIVE_GUIDE_REVIEW = "RECEIVE_GUIDE_REVIEW"

    # Home stays
    LIST_HOME = "LIST_HOME"
    HOST_TRAVELER = "HOST_TRAVELER"
    STAY_AS_TRAVELER = "STAY_AS_TRAVELER"
    LEAVE_HOST_REVIEW = "LEAVE_HOST_REVIEW"
    RECEIVE_HOST_REVIEW = "RECEIVE_HOST_REVIEW"

    # Achievements
    REACH_TRUST_MILESTONE = "REACH_TRUST_MILESTONE"
    MAINTAIN_STREAK_WEEK = "MAINTAIN_STREAK_WEEK"
    MAINTAIN_STREAK_MONTH = "MAINTAIN_STREAK_MONTH"

    # Penalties
    RECEIVE_NEGATIVE_TRUST_MOMENT = "RECEIVE_NEGATIVE_TRUST_MOMENT"
    REPORT_VALIDATED = "REPORT_VALIDATED"
    SPAM_DETECTED = "SPAM_DETECTED"

    # Ledger-internal
    REDEMPTION = "REDEMPTION"


POINT_VALUES: dict[PointAction, int] = {
    PointAction.REGISTER: 5,
    PointAction.COMPLETE_PROFILE_BASIC: 2,
    PointAction.COMPLETE_PROFILE_FULL: 2,
    PointAction.VERIFY_EMAIL: 2,
    PointAction.VERIFY_PHONE: 2,
    PointAction.UPLOAD_PROFILE_PHOTO: 2,
    PointAction.ATTEND_EVENT: 10,
    PointAction.HOST_EVENT: 15,
    PointAction.RSVP_EVENT: 1,
    PointAction.CANCEL_RSVP: -1,
    PointAction.JOIN_TRIP: 12,
    PointAction.CAFE_MEETUP: 8,
    PointAction.ILM_EVENT: 10,
    PointAction.VOLUNTEER: 12,
    PointAction.DONATE: 5,
    PointAction.FIRST_CONNECTION: 0,
    PointAction.MAKE_CONNECTION: 0,
    PointAction.RECEIVE_VOUCH: 8,
    PointAction.GIVE_TRUST_MOMENT: 2,
    PointAction.RECEIVE_POSITIVE_TRUST_MOMENT: 1,
    PointAction.JOIN_COMMUNITY: 3,
    PointAction.POST_IN_COMMUNITY: 2,
    PointAction.REACT_TO_COMMUNITY_POST: 1,
    PointAction.BECOME_MODERATOR: 5,
    PointAction.REFERRAL: 3,
    PointAction.REFEREE_SIGNUP: 2,
    PointAction.SUBMIT_TOPIC_FEEDBACK: 3,
    PointAction.RECEIVE_HELPFUL_VOTE: 1,
    PointAction.REPLY_TO_FEEDBACK: 2,
    PointAction.CREATE_LISTING: 5,
    PointAction.PURCHASE_ITEM: 3,
    PointAction.SELL_ITEM: 8,
    PointAction.LEAVE_REVIEW: 2,
    PointAction.RECEIVE_POSITIVE_REVIEW: 5,
    PointAction.BECOME_GUIDE: 20,
    PointAction.BOOK_GUIDE_SESSION: 5,
    PointAction.COMPLETE_GUIDE_SESSION: 15,
    PointAction.RECEIVE_GUIDE_REVIEW: 3,
    PointAction.LIST_HOME: 10,
    PointAction.HOST_TRAVELER: 20,
    PointAction.STAY_AS_TRAVELER: 15,
    PointAction.LEAVE_HOST_REVIEW: 3,
    PointAction.RECEIVE_HOST_REVIEW: 5,
    PointAction.REACH_TRUST_MILESTONE: 10,
    PointAction.MAINTAIN_STREAK_WEEK: 5,
    PointAction.MAINTAIN_STREAK_MONTH: 20,
    PointAction.RECEIVE_NEGATIVE_TRUST_MOMENT: -5,
    PointAction.REPORT_VALIDATED: -10,
    PointAction.SPAM_DETECTED: -20,
}

_DESCRIPTIONS: dict[PointAction, str] = {
    PointAction.REGISTER: "Welcome bonus for new users",
    PointAction.COMPLETE_PROFILE_BASIC: "Complete basic profile information",
    PointAction.COMPLETE_PROFILE_FULL: "Complete full profile (100%)",
    PointAction.VERIFY_EMAIL: "Verify your email address",
    PointAction.VERIFY_PHONE: "Verify your phone number",
    PointAction.UPLOAD_PROFILE_PHOTO: "Upload a profile photo",
    PointAction.ATTEND_EVENT: "Attend an event",
    PointAction.HOST_EVENT: "Host an event",
    PointAction.RSVP_EVENT: "RSVP to an event",
    PointAction.CANCEL_RSVP: "Penalty for canceling RSVP",
    PointAction.JOIN_TRIP: "Join a travel trip",
    PointAction.CAFE_MEETUP: "Attend a cafe meetup",
    PointAction.ILM_EVENT: "Attend an ILM event",
    PointAction.VOLUNTEER: "Volunteer at an event",
    PointAction.DONATE: "Make a donation",
    PointAction.FIRST_CONNECTION: "Make your first connection",
    PointAction.MAKE_CONNECTION: "Make a new connection",
    PointAction.RECEIVE_VOUCH: "Receive a vouch",
    PointAction.GIVE_TRUST_MOMENT: "Give a trust moment",
    PointAction.RECEIVE_POSITIVE_TRUST_MOMENT: "Receive a positive trust moment",
    PointAction.JOIN_COMMUNITY: "Join a community",
    PointAction.POST_IN_COMMUNITY: "Post in a community",
    PointAction.REACT_TO_COMMUNITY_POST: "React to a community post",
    PointAction.BECOME_MODERATOR: "Become a community moderator",
    PointAction.REFERRAL: "Successfully refer a friend",
    PointAction.REFEREE_SIGNUP: "Sign up using a referral code",
    PointAction.SUBMIT_TOPIC_FEEDBACK: "Submit card game feedback",
    PointAction.RECEIVE_HELPFUL_VOTE: "Receive a helpful vote on feedback",
    PointAction.REPLY_TO_FEEDBACK: "Reply to card game feedback",
    PointAction.CREATE_LISTING: "Create a marketplace listing",
    PointAction.PURCHASE_ITEM: "Purchase a marketplace item",
    PointAction.SELL_ITEM: "Sell a marketplace item",
    PointAction.LEAVE_REVIEW: "Leave a marketplace review",
    PointAction.RECEIVE_POSITIVE_REVIEW: "Receive a positive review",
    PointAction.BECOME_GUIDE: "Become a guide",
    PointAction.BOOK_GUIDE_SESSION: "Book a guide session",
    PointAction.COMPLETE_GUIDE_SESSION: "Complete a guide session",
    PointAction.RECEIVE_GUIDE_REVIEW: "Receive a guide review",
    PointAction.LIST_HOME: "List your home",
    PointAction.HOST_TRAVELER: "Host a traveler",
    PointAction.STAY_AS_TRAVELER: "Stay as a traveler",
    PointAction.LEAVE_HOST_REVIEW: "Leave a host review",
    PointAction.RECEIVE_HOST_REVIEW: "Receive a host review",
    PointAction.REACH_TRUST_MILESTONE: "Reach a trust score milestone",
    PointAction.MAINTAIN_STREAK_WEEK: "Maintain a weekly activity streak",
    PointAction.MAINTAIN_STREAK_MONTH: "Maintain a monthly activity streak",
    PointAction.RECEIVE_NEGATIVE_TRUST_MOMENT: "Penalty for negative trust moment",
    PointAction.REPORT_VALIDATED: "Penalty for validated report against you",
    PointAction.SPAM_DETECTED: "Penalty for spam activity",
}


@dataclass(frozen=True, slots=True)
class PointActionInfo:
    action: PointAction
    points: int
    description: str
    category: str


def resolve_action(action: PointAction | str) -> PointAction | None:
    """Normalise an action name; ``None`` when the name is not known."""

    if isinstance(action, PointAction):
        return action
    try:
        return PointAction(str(action).upper())
    except ValueError:
        return None


def points_for(action: PointAction | str) -> int:
    """Signed point amount for an action; unknown actions are worth nothing."""

    resolved = resolve_action(action)
    if resolved is None:
        return 0
    return POINT_VALUES.get(resolved, 0)


def describe_action(action: PointAction) -> str:
    return _DESCRIPTIONS.get(action, action.value.replace("_", " ").title())


def action_category(action: PointAction) -> str:
    name = action.value
    if name in {"RECEIVE_NEGATIVE_TRUST_MOMENT", "REPORT_VALIDATED", "SPAM_DETECTED", "CANCEL_RSVP"}:
        return "Penalties"
    if name.startswith(("COMPLETE_PROFILE", "VERIFY", "UPLOAD", "REGISTER")):
        return "Profile"
    if "MILESTONE" in name or "STREAK" in name:
        return "Achievements"
    if any(token in name for token in ("EVENT", "TRIP", "VOLUNTEER", "MEETUP", "DONATE")):
        return "Events"
    if any(token in name for token in ("CONNECTION", "VOUCH", "TRUST")):
        return "Social"
    if "COMMUNITY" in name or "MODERATOR" in name:
        return "Community"
    if "REFERRAL" in name or "REFEREE" in name:
        return "Referrals"
    if "FEEDBACK" in name or "HELPFUL" in name:
        return "Card Game"
    if any(token in name for token in ("LISTING", "ITEM", "REVIEW", "GUIDE", "HOME", "TRAVELER")):
        return "Marketplace"
    return "Other"


def list_point_actions() -> list[PointActionInfo]:
    """Catalog of priced actions for "how to earn" surfaces."""

    return [
        PointActionInfo(
            action=action,
            points=points,
            description=describe_action(action),
            category=action_category(action),
        )
        for action, points in POINT_VALUES.items()
    ]


__all__ = [
    "POINT_VALUES",
    "PointAction",
    "PointActionInfo",
    "action_category",
    "describe_action",
    "list_point_actions",
    "points_for",
    "resolve_action",
]
