import pytest
from pydantic import ValidationError

from schemas import ContactSubmissionForm, ExperienceForm, ProfileForm, ProjectForm, SkillForm, field_errors


def errors_for(form_cls, values):
    with pytest.raises(ValidationError) as exc_info:
        form_cls.model_validate(values)
    return field_errors(exc_info.value)


def test_missing_required_fields_use_form_messages():
    errors = errors_for(ExperienceForm, {})

    assert errors == {
        "company": "Company name must be at least 2 characters",
        "position": "Position must be at least 2 characters",
        "start_date": "Start date is required",
    }


def test_blank_optional_text_becomes_none():
    form = ExperienceForm.model_validate(
        {"company": "Acme", "position": "Engineer", "start_date": "2021-01", "location": ""}
    )

    assert form.location is None
    assert form.is_current is False


def test_url_fields_accept_blank_and_reject_garbage():
    form = ProjectForm.model_validate(
        {"title": "Demo", "description": "A demo project", "live_url": "", "github_url": "https://github.com/x"}
    )
    assert form.live_url is None
    assert form.github_url == "https://github.com/x"

    errors = errors_for(ProjectForm, {"title": "Demo", "description": "A demo project", "live_url": "not a url"})
    assert errors == {"live_url": "Invalid url"}


def test_profile_email_is_checked():
    errors = errors_for(ProfileForm, {"name": "Ada Lovelace", "email": "nope"})

    assert errors == {"email": "Invalid email"}


def test_skill_choices_are_enforced():
    errors = errors_for(SkillForm, {"name": "Python", "category": "Cooking", "proficiency_level": "guru"})

    assert errors == {
        "category": "Category is required",
        "proficiency_level": "Proficiency level is required",
    }


def test_contact_submission_rules():
    errors = errors_for(ContactSubmissionForm, {"name": "A", "email": "bad", "message": "hi"})

    assert errors == {
        "name": "Name must be at least 2 characters",
        "email": "Please enter a valid email address",
        "message": "Message must be at least 10 characters",
    }


def test_unknown_keys_are_dropped():
    form = SkillForm.model_validate(
        {"id": "abc", "name": "Python", "category": "Programming Languages", "proficiency_level": "expert"}
    )

    assert "id" not in form.model_dump()
