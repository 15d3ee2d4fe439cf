"""
Public site sections.

Each renderer reads one or more tables and projects them into the layout
the marketing page shows. When the store fails or a table is empty the
section falls back to placeholder content, so the page is never blank.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, computed_field, field_validator

from database import Store
from errors import FormValidationError
from notifications import Toaster
from schemas import ContactSubmissionForm, field_errors

logger = logging.getLogger(__name__)

HERO_COLUMNS = (
    "name, tagline, profile_photo_url, location, years_of_experience, "
    "availability_status, phone, resume_url, website_url"
)

DEFAULT_ABOUT = (
    "I'm a passionate full-stack developer with over 5 years of experience creating beautiful, "
    "functional, and user-centered digital experiences. I love turning complex problems into "
    "simple, elegant solutions that users enjoy."
)

DEFAULT_COPYRIGHT = "Your Name. All rights reserved."


class HeroSection(BaseModel):
    name: str = "Your Name"
    tagline: Optional[str] = "Full Stack Developer & Designer"
    profile_photo_url: Optional[str] = ""
    location: Optional[str] = None
    years_of_experience: Optional[str] = None
    availability_status: Optional[str] = None
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    website_url: Optional[str] = None

    @computed_field
    @property
    def monogram(self) -> str:
        return self.name[:1].upper()


class ProjectCard(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list)
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    featured: bool = False

    @field_validator("tech_stack", "image_urls", mode="before")
    @classmethod
    def _null_list(cls, value):
        return value or []

    @field_validator("featured", mode="before")
    @classmethod
    def _null_flag(cls, value):
        return bool(value)

    @computed_field
    @property
    def cover(self) -> Optional[str]:
        return self.image_urls[0] if self.image_urls else None

    @computed_field
    @property
    def monogram(self) -> str:
        return "".join(word[0] for word in self.title.split())


class Highlight(BaseModel):
    title: str
    description: str
    icon_name: str = "Code"


class AboutSection(BaseModel):
    about: str = DEFAULT_ABOUT
    highlights: List[Highlight] = Field(default_factory=list)


class StatItem(BaseModel):
    label: str
    value: str


class ContactItem(BaseModel):
    type: str
    label: str
    value: str
    href: Optional[str] = None


class FooterLink(BaseModel):
    id: str
    label: str
    value: str
    href: Optional[str] = None
    icon_name: Optional[str] = None


class FooterSection(BaseModel):
    social: List[FooterLink]
    copyright: str


class HomePage(BaseModel):
    hero: HeroSection
    projects: List[ProjectCard]
    about: AboutSection
    stats: List[StatItem]
    contact: List[ContactItem]
    footer: FooterSection


DEMO_PROJECTS = [
    ProjectCard(
        id="1",
        title="E-Commerce Platform",
        description="A full-stack e-commerce solution with React, Node.js, and Stripe integration.",
        tech_stack=["React", "Node.js", "PostgreSQL", "Stripe"],
        live_url="https://example.com",
        github_url="https://github.com",
        featured=True,
    ),
    ProjectCard(
        id="2",
        title="Task Management App",
        description="A collaborative task management application with real-time updates.",
        tech_stack=["Next.js", "TypeScript", "Supabase"],
        live_url="https://example.com",
        github_url="https://github.com",
        featured=True,
    ),
    ProjectCard(
        id="3",
        title="Weather Dashboard",
        description="A beautiful weather dashboard with location-based forecasts.",
        tech_stack=["React", "Tailwind CSS", "OpenWeather API"],
        live_url="https://example.com",
        github_url="https://github.com",
        featured=False,
    ),
]

DEFAULT_HIGHLIGHTS = [
    Highlight(
        title="Development",
        description="Full-stack development with modern frameworks like React, Next.js, and Node.js.",
        icon_name="Code",
    ),
    Highlight(
        title="Design",
        description="Creating beautiful, intuitive user interfaces with attention to detail and user experience.",
        icon_name="Palette",
    ),
    Highlight(
        title="Performance",
        description="Building fast, scalable applications optimized for performance and accessibility.",
        icon_name="Zap",
    ),
]

DEFAULT_STATS = [
    StatItem(label="Years Experience", value="5+"),
    StatItem(label="Projects Completed", value="50+"),
    StatItem(label="Happy Clients", value="30+"),
]

DEFAULT_CONTACT = [
    ContactItem(type="email", label="Email", value="hello@example.com", href="mailto:hello@example.com"),
    ContactItem(type="phone", label="Phone", value="+1 (555) 123-4567", href="tel:+15551234567"),
    ContactItem(type="location", label="Location", value="San Francisco, CA"),
]

DEFAULT_FOOTER = [
    FooterLink(id="1", label="GitHub", value="GitHub", href="https://github.com", icon_name="Github"),
    FooterLink(id="2", label="LinkedIn", value="LinkedIn", href="https://linkedin.com", icon_name="Linkedin"),
    FooterLink(id="3", label="Email", value="Email", href="mailto:hello@example.com", icon_name="Mail"),
]


def _rows(store: Store, table: str, columns: str = "*", order=("sort_order",)) -> List[Dict[str, Any]]:
    query = store.table(table).select(columns)
    for column in order:
        query = query.order(column)
    result = query.execute()
    if result.error:
        logger.warning("Using placeholder content for %s: %s", table, result.error.message)
        return []
    return result.data


def _profile(store: Store, columns: str) -> Optional[Dict[str, Any]]:
    rows = _rows(store, "profiles", columns, order=("created_at",))
    return rows[0] if rows else None


def render_hero(store: Store) -> HeroSection:
    profile = _profile(store, HERO_COLUMNS)
    if not profile or not profile.get("name"):
        return HeroSection()
    return HeroSection(**profile)


def render_projects(store: Store) -> List[ProjectCard]:
    rows = _rows(store, "projects")
    if not rows:
        return list(DEMO_PROJECTS)
    return [ProjectCard(**row) for row in rows]


def render_project(store: Store, project_id: str) -> Optional[ProjectCard]:
    result = store.table("projects").select("*").eq("id", project_id).single().execute()
    if result.error:
        return None
    return ProjectCard(**result.data)


def render_about(store: Store) -> AboutSection:
    profile = _profile(store, "about")
    services = _rows(store, "services")
    return AboutSection(
        about=(profile or {}).get("about") or DEFAULT_ABOUT,
        highlights=[Highlight(**row) for row in services] or list(DEFAULT_HIGHLIGHTS),
    )


def render_stats(store: Store) -> List[StatItem]:
    rows = _rows(store, "stats")
    return [StatItem(**row) for row in rows] or list(DEFAULT_STATS)


def render_contact(store: Store) -> List[ContactItem]:
    rows = _rows(store, "contact_info", order=("type", "label"))
    return [ContactItem(**row) for row in rows] or list(DEFAULT_CONTACT)


def render_footer(store: Store, year: Optional[int] = None) -> FooterSection:
    rows = _rows(store, "footer_info")
    year = year or datetime.now(timezone.utc).year
    if not rows:
        return FooterSection(social=list(DEFAULT_FOOTER), copyright=f"© {year} {DEFAULT_COPYRIGHT}")

    social = [FooterLink(**row) for row in rows if row.get("type") == "social"]
    notice = next((row.get("value") for row in rows if row.get("type") == "copyright"), None)
    return FooterSection(social=social, copyright=f"© {year} {notice or DEFAULT_COPYRIGHT}")


def render_home(store: Store) -> HomePage:
    return HomePage(
        hero=render_hero(store),
        projects=render_projects(store),
        about=render_about(store),
        stats=render_stats(store),
        contact=render_contact(store),
        footer=render_footer(store),
    )


def send_message(store: Store, toaster: Toaster, values: Mapping[str, Any]) -> bool:
    """Validate the public contact form and store the submission."""
    try:
        form = ContactSubmissionForm.model_validate(dict(values))
    except ValidationError as exc:
        raise FormValidationError(field_errors(exc))

    result = store.table("contact_submissions").insert(form.model_dump()).execute()
    if result.error:
        toaster.error(result.error.message or "Failed to send message. Please try again.")
        return False

    toaster.success("Message sent!", "Thank you for your message. I'll get back to you soon.")
    logger.info("Contact message received from %s", form.email)
    return True
