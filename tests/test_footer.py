import pytest

from database import Store
from errors import FormValidationError
from managers import FooterManager

ITEMS = [
    {"type": "social", "label": "GitHub", "value": "GitHub", "href": "https://github.com", "icon_name": "Github", "sort_order": 0},
    {"type": "social", "label": "LinkedIn", "value": "LinkedIn", "href": "https://linkedin.com", "icon_name": "Linkedin", "sort_order": 1},
    {"type": "social", "label": "Email", "value": "Email", "href": "mailto:me@mail.com", "icon_name": "Mail", "sort_order": 2},
    {"type": "copyright", "label": "Copyright Text", "value": "Me. All rights reserved.", "href": None, "icon_name": None, "sort_order": 3},
]


@pytest.fixture
def footer(store, toaster):
    store.table("footer_info").insert(ITEMS).execute()
    manager = FooterManager(store, toaster)
    assert manager.fetch()
    return manager


def updates(calls):
    return [c for c in calls if c[0] == "update"]


def test_batch_save_sends_one_update_per_changed_row(footer, toaster, calls):
    for row in footer.rows[:3]:
        footer.edit(row["id"], "label", row["label"] + " (new)")
    calls.clear()

    assert footer.save_all()

    assert len(updates(calls)) == 3
    assert [r["label"] for r in footer.rows] == [
        "GitHub (new)",
        "LinkedIn (new)",
        "Email (new)",
        "Copyright Text",
    ]
    assert toaster.last.title == "Footer updated"


def test_unchanged_rows_are_not_sent(footer, toaster, calls):
    row = footer.rows[0]
    footer.edit(row["id"], "label", "Temp")
    footer.edit(row["id"], "label", row["label"])
    calls.clear()

    assert footer.save_all()

    assert updates(calls) == []
    assert toaster.last.title == "No changes"


def test_only_changed_fields_are_sent(footer):
    row = footer.rows[3]
    footer.edit(row["id"], "value", "Someone Else.")

    assert footer.changed_rows() == [(row["id"], {"value": "Someone Else."})]


def test_blank_href_matches_missing_href(footer):
    row = footer.rows[3]
    footer.edit(row["id"], "href", "")

    assert footer.changed_rows() == []


def test_edit_is_restricted_to_known_rows_and_fields(footer):
    with pytest.raises(FormValidationError):
        footer.edit(footer.rows[0]["id"], "sort_order", 9)
    with pytest.raises(FormValidationError):
        footer.edit("missing", "label", "x")


def test_invalid_edit_blocks_the_whole_batch(footer, calls):
    row = footer.rows[0]
    footer.edit(row["id"], "label", "")
    footer.edit(footer.rows[1]["id"], "label", "Fine")
    calls.clear()

    with pytest.raises(FormValidationError) as exc_info:
        footer.save_all()

    assert exc_info.value.errors == {f"{row['id']}.label": "Label is required"}
    assert calls == []


def test_failed_save_keeps_local_edits(footer, toaster):
    row = footer.rows[0]
    footer.edit(row["id"], "label", "Code")
    footer.store = Store(None)

    assert not footer.save_all()

    assert footer.rows[0]["label"] == "Code"
    assert toaster.last.variant == "destructive"


def test_new_item_appends(footer, toaster):
    assert footer.submit({"type": "social", "label": "Mastodon", "value": "Mastodon", "href": "https://mastodon.social"})

    assert footer.rows[-1]["label"] == "Mastodon"
    assert footer.rows[-1]["sort_order"] == 4
