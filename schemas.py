"""
Form Schemas for the Portfolio CMS

Each form model validates what the dashboard submits for one MongoDB
collection. Rules mirror the dashboard's inline errors:
minimum lengths, required choices and URL format where a link is expected.
"""

from typing import Annotated, Dict, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, HttpUrl, TypeAdapter, ValidationError

SKILL_CATEGORIES = (
    "Programming Languages",
    "Frameworks & Libraries",
    "Databases",
    "Tools & Platforms",
    "Cloud Services",
    "Design",
    "Soft Skills",
    "Other",
)

# value -> (label, stars)
PROFICIENCY_LEVELS = {
    "beginner": ("Beginner", 1),
    "intermediate": ("Intermediate", 2),
    "advanced": ("Advanced", 3),
    "expert": ("Expert", 4),
}

SERVICE_ICONS = ("Code", "Palette", "Zap", "Monitor", "Smartphone")
CONTACT_TYPES = ("email", "phone", "location")
FOOTER_TYPES = ("social", "copyright")

_URL = TypeAdapter(HttpUrl)
_EMAIL = TypeAdapter(EmailStr)


def at_least(n: int, message: str) -> AfterValidator:
    def check(value: str) -> str:
        if len(value) < n:
            raise ValueError(message)
        return value

    return AfterValidator(check)


def one_of(choices, message: str) -> AfterValidator:
    def check(value: str) -> str:
        if value not in choices:
            raise ValueError(message)
        return value

    return AfterValidator(check)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


def _optional_url(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        _URL.validate_python(value)
    except ValidationError:
        raise ValueError("Invalid url")
    return value


def _optional_email(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        _EMAIL.validate_python(value)
    except ValidationError:
        raise ValueError("Invalid email")
    return value


def _required_email(value: str) -> str:
    try:
        _EMAIL.validate_python(value)
    except ValidationError:
        raise ValueError("Please enter a valid email address")
    return value


OptionalText = Annotated[Optional[str], AfterValidator(_blank_to_none)]
OptionalUrl = Annotated[Optional[str], AfterValidator(_optional_url)]
OptionalEmail = Annotated[Optional[str], AfterValidator(_optional_email)]


def field_errors(exc: ValidationError) -> Dict[str, str]:
    """Flatten a pydantic error into {field: first message}."""
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "__root__"
        message = err["msg"]
        if err["type"] == "value_error" and "error" in err.get("ctx", {}):
            message = str(err["ctx"]["error"])
        errors.setdefault(field, message)
    return errors


class Form(BaseModel):
    # unknown keys (id, timestamps) are dropped; defaults go through the rules too
    model_config = ConfigDict(extra="ignore", validate_default=True)


class ProfileForm(Form):
    name: Annotated[str, at_least(2, "Name must be at least 2 characters")] = ""
    tagline: OptionalText = None
    about: OptionalText = None
    email: OptionalEmail = None
    phone: OptionalText = None
    location: OptionalText = None
    years_of_experience: OptionalText = None
    availability_status: OptionalText = None
    linkedin_url: OptionalUrl = None
    github_url: OptionalUrl = None
    website_url: OptionalUrl = None
    resume_url: OptionalUrl = None


class ProjectForm(Form):
    title: Annotated[str, at_least(2, "Title must be at least 2 characters")] = ""
    description: Annotated[str, at_least(10, "Description must be at least 10 characters")] = ""
    # comma separated, split by the manager
    tech_stack: str = ""
    live_url: OptionalUrl = None
    github_url: OptionalUrl = None
    featured: bool = False


class ExperienceForm(Form):
    company: Annotated[str, at_least(2, "Company name must be at least 2 characters")] = ""
    position: Annotated[str, at_least(2, "Position must be at least 2 characters")] = ""
    description: OptionalText = None
    location: OptionalText = None
    start_date: Annotated[str, at_least(1, "Start date is required")] = ""
    end_date: OptionalText = None
    is_current: bool = False


class EducationForm(Form):
    institution: Annotated[str, at_least(2, "Institution name must be at least 2 characters")] = ""
    degree: Annotated[str, at_least(2, "Degree must be at least 2 characters")] = ""
    field_of_study: OptionalText = None
    start_date: Annotated[str, at_least(1, "Start date is required")] = ""
    end_date: OptionalText = None
    gpa: OptionalText = None
    description: OptionalText = None
    is_current: bool = False


class SkillForm(Form):
    name: Annotated[str, at_least(2, "Skill name must be at least 2 characters")] = ""
    category: Annotated[str, one_of(SKILL_CATEGORIES, "Category is required")] = ""
    proficiency_level: Annotated[str, one_of(PROFICIENCY_LEVELS, "Proficiency level is required")] = ""


class ServiceForm(Form):
    title: Annotated[str, at_least(1, "Title is required")] = ""
    description: Annotated[str, at_least(1, "Description is required")] = ""
    icon_name: Annotated[str, one_of(SERVICE_ICONS, "Icon is required")] = ""
    sort_order: Optional[int] = Field(default=None, ge=0)


class StatForm(Form):
    label: Annotated[str, at_least(1, "Label is required")] = ""
    value: Annotated[str, at_least(1, "Value is required")] = ""
    sort_order: Optional[int] = Field(default=None, ge=0)


class ContactInfoForm(Form):
    type: Annotated[str, one_of(CONTACT_TYPES, "Type is required")] = ""
    label: Annotated[str, at_least(1, "Label is required")] = ""
    value: Annotated[str, at_least(1, "Value is required")] = ""
    href: OptionalText = None


class FooterItemForm(Form):
    type: Annotated[str, one_of(FOOTER_TYPES, "Type is required")] = "social"
    label: Annotated[str, at_least(1, "Label is required")] = ""
    value: Annotated[str, at_least(1, "Value is required")] = ""
    href: OptionalText = None
    icon_name: OptionalText = None


class ContactSubmissionForm(Form):
    name: Annotated[str, at_least(2, "Name must be at least 2 characters")] = ""
    email: Annotated[str, AfterValidator(_required_email)] = ""
    message: Annotated[str, at_least(10, "Message must be at least 10 characters")] = ""
