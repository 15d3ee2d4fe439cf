import pytest

from errors import FormValidationError
from sections import (
    DEFAULT_ABOUT,
    render_about,
    render_contact,
    render_footer,
    render_hero,
    render_home,
    render_project,
    render_projects,
    render_stats,
    send_message,
)


def test_projects_fall_back_to_demo_when_store_fails(offline_store):
    projects = render_projects(offline_store)

    assert [p.title for p in projects] == ["E-Commerce Platform", "Task Management App", "Weather Dashboard"]


def test_projects_fall_back_when_table_is_empty(store):
    assert len(render_projects(store)) == 3


def test_projects_render_rows_in_order(store):
    store.table("projects").insert([
        {"title": "Second One", "sort_order": 1, "tech_stack": None, "image_urls": ["http://img/2.png"], "featured": None},
        {"title": "First", "sort_order": 0, "tech_stack": ["Python"], "image_urls": []},
    ]).execute()

    projects = render_projects(store)

    assert [p.title for p in projects] == ["First", "Second One"]
    assert projects[0].cover is None
    assert projects[0].monogram == "F"
    assert projects[1].tech_stack == []
    assert projects[1].featured is False
    assert projects[1].cover == "http://img/2.png"
    assert projects[1].monogram == "SO"


def test_project_detail(store):
    [row] = store.table("projects").insert({"title": "Demo", "description": "Thing", "sort_order": 0}).execute().data

    assert render_project(store, row["id"]).title == "Demo"
    assert render_project(store, "missing") is None


def test_hero_placeholder_and_profile(store):
    hero = render_hero(store)
    assert hero.name == "Your Name"
    assert hero.tagline == "Full Stack Developer & Designer"
    assert hero.monogram == "Y"

    store.table("profiles").insert(
        {"user_id": "u", "name": "ada lovelace", "tagline": None, "location": "London", "about": "Hi"}
    ).execute()

    hero = render_hero(store)
    assert hero.name == "ada lovelace"
    assert hero.tagline is None
    assert hero.location == "London"
    assert hero.monogram == "A"


def test_about_uses_profile_and_services(store):
    about = render_about(store)
    assert about.about == DEFAULT_ABOUT
    assert [h.title for h in about.highlights] == ["Development", "Design", "Performance"]

    store.table("profiles").insert({"user_id": "u", "name": "Ada", "about": "Numbers and engines."}).execute()
    store.table("services").insert({"title": "Mobile", "description": "Apps", "icon_name": "Smartphone", "sort_order": 0}).execute()

    about = render_about(store)
    assert about.about == "Numbers and engines."
    assert [h.title for h in about.highlights] == ["Mobile"]


def test_stats_and_contact_fallbacks(offline_store, store):
    assert len(render_stats(offline_store)) == 3
    assert [c.type for c in render_contact(offline_store)] == ["email", "phone", "location"]

    store.table("stats").insert({"label": "Talks", "value": "12", "sort_order": 0}).execute()
    assert [s.label for s in render_stats(store)] == ["Talks"]


def test_footer(store, offline_store):
    fallback = render_footer(offline_store, year=2025)
    assert [link.label for link in fallback.social] == ["GitHub", "LinkedIn", "Email"]
    assert fallback.copyright == "© 2025 Your Name. All rights reserved."

    store.table("footer_info").insert([
        {"type": "copyright", "label": "Copyright", "value": "Ada. All rights reserved.", "sort_order": 1},
        {"type": "social", "label": "GitHub", "value": "GitHub", "href": "https://github.com/ada", "sort_order": 0},
    ]).execute()

    footer = render_footer(store, year=2025)
    assert [link.href for link in footer.social] == ["https://github.com/ada"]
    assert footer.copyright == "© 2025 Ada. All rights reserved."


def test_home_is_never_blank(offline_store):
    page = render_home(offline_store)

    assert page.hero.name == "Your Name"
    assert len(page.projects) == 3
    assert page.about.highlights
    assert page.stats
    assert page.contact
    assert page.footer.social


def test_send_message(store, toaster):
    assert send_message(store, toaster, {"name": "Grace", "email": "grace@mail.com", "message": "Let's build something."})

    [row] = store.table("contact_submissions").select("*").execute().data
    assert row["name"] == "Grace"
    assert toaster.last.title == "Message sent!"


def test_send_message_validates_first(store, toaster, calls):
    with pytest.raises(FormValidationError):
        send_message(store, toaster, {"name": "Grace", "email": "grace@mail.com", "message": "short"})

    assert calls == []


def test_send_message_store_failure(offline_store, toaster):
    assert not send_message(offline_store, toaster, {"name": "Grace", "email": "grace@mail.com", "message": "Let's build something."})
    assert toaster.last.variant == "destructive"
    assert toaster.last.description == "Database not available"
