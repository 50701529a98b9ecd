from kudos_api.services.notifications.templates import render_achievement, render_redemption_confirmation


def test_render_achievement_escapes_html() -> None:
    template = render_achievement("New badge earned!", "You earned <Host Master>", "Nur")

    assert template.subject == "New badge earned!"
    assert template.text_body.startswith("Hi Nur,")
    assert "You earned <Host Master>" in template.text_body
    assert "&lt;Host Master&gt;" in template.html_body


def test_render_redemption_without_name() -> None:
    template = render_redemption_confirmation("Free coffee", 50, None)

    assert "Free coffee" in template.subject
    assert template.text_body.startswith("Hi there,")
    assert "50" in template.text_body
