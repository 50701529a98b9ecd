"""Notification templates for achievement and redemption events."""

from __future__ import annotations

import html
from dataclasses import dataclass


@dataclass
class RenderedTemplate:
    subject: str
    text_body: str
    html_body: str


def _greeting(contact_name: str | None) -> str:
    return f"Hi {contact_name}," if contact_name else "Hi there,"


def render_achievement(title: str, message: str, contact_name: str | None) -> RenderedTemplate:
    subject = title
    greeting = _greeting(contact_name)

    text_body = "\n".join(
        [
            greeting,
            "",
            message,
            "",
            "Your badge is now visible on your profile.",
            "",
            "Keep going!",
            "The Kudos Team",
        ]
    )

    html_body = f"""<html>
  <body>
    <p>{html.escape(greeting)}</p>
    <p>{html.escape(message)}</p>
    <p>Your badge is now visible on your profile.</p>
    <p>Keep going!</p>
    <p>The Kudos Team</p>
  </body>
</html>"""

    return RenderedTemplate(subject=subject, text_body=text_body, html_body=html_body)


def render_redemption_confirmation(
    reward_title: str,
    points_spent: int,
    contact_name: str | None,
) -> RenderedTemplate:
    subject = f"Redemption received: {reward_title}"
    greeting = _greeting(contact_name)

    text_body = "\n".join(
        [
            greeting,
            "",
            f"You redeemed {reward_title} for {points_spent} points.",
            "Your request is pending review; we will let you know once it is processed.",
            "",
            "The Kudos Team",
        ]
    )

    html_body = f"""<html>
  <body>
    <p>{html.escape(greeting)}</p>
    <p>You redeemed <strong>{html.escape(reward_title)}</strong> for <strong>{points_spent}</strong> points.</p>
    <p>Your request is pending review; we will let you know once it is processed.</p>
    <p>The Kudos Team</p>
  </body>
</html>"""

    return RenderedTemplate(subject=subject, text_body=text_body, html_body=html_body)


__all__ = ["RenderedTemplate", "render_achievement", "render_redemption_confirmation"]
