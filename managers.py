"""
Entity managers, one per content table.

A manager owns an in-memory copy of its table. Every write validates the
form first, makes a single table call, reports the outcome through the
request's Toaster and then refetches, so `rows` always mirrors the store
rather than a client-side guess.
"""

import copy
import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import ValidationError

from database import Query, Store, StoreResult
from errors import ConfirmationRequired, FormValidationError, StoreError
from notifications import Toaster
from schemas import (
    PROFICIENCY_LEVELS,
    ContactInfoForm,
    EducationForm,
    ExperienceForm,
    FooterItemForm,
    Form,
    ProfileForm,
    ProjectForm,
    ServiceForm,
    SkillForm,
    StatForm,
    field_errors,
)
from storage import PROFILE_PHOTOS, PROJECT_IMAGES, ObjectStorage, UploadedFile, key_prefix

logger = logging.getLogger(__name__)

MAX_PARALLEL_CALLS = 8


def _millis() -> int:
    return int(time.time() * 1000)


class EntityManager:
    """Fetch / submit / delete cycle over one table."""

    table: str = ""
    form: Optional[Type[Form]] = None
    noun: str = "Item"
    created: str = "added"
    order_by: Tuple[Tuple[str, bool], ...] = (("sort_order", False),)

    def __init__(self, store: Store, toaster: Toaster):
        self.store = store
        self.toaster = toaster
        self.rows: List[Dict[str, Any]] = []
        self.is_loading = False
        self.last_error: Optional[StoreError] = None

    # -- reads -----------------------------------------------------------

    def select(self) -> Query:
        query = self.store.table(self.table).select("*")
        for column, desc in self.order_by:
            query = query.order(column, desc=desc)
        return query

    def fetch(self) -> bool:
        """Reload `rows`. On a store error the previous rows are kept."""
        result = self.select().execute()
        if result.error:
            self._report(result.error, f"Failed to fetch {self.noun.lower()} entries.")
            return False
        self.rows = result.data
        return True

    def find(self, row_id: str) -> Optional[Dict[str, Any]]:
        return next((row for row in self.rows if row["id"] == row_id), None)

    # -- writes ----------------------------------------------------------

    def validate(self, values: Mapping[str, Any]) -> Form:
        try:
            return self.form.model_validate(dict(values))
        except ValidationError as exc:
            raise FormValidationError(field_errors(exc))

    def payload(self, form: Form) -> Dict[str, Any]:
        return form.model_dump()

    def stored(self, editing_id: Optional[str]) -> Optional[Dict[str, Any]]:
        """The row an update starts from, or None for an insert."""
        return self.find(editing_id) if editing_id is not None else None

    def form_values(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """A stored row in the shape the form accepts."""
        return dict(row)

    def submitted(self, payload: Dict[str, Any], values: Mapping[str, Any]) -> Dict[str, Any]:
        """Keep only what the caller sent; untouched columns stay as stored."""
        return {key: value for key, value in payload.items() if key in values}

    def insert_defaults(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"sort_order": len(self.rows)}

    def write_query(self, payload: Dict[str, Any], editing_id: Optional[str]) -> Query:
        table = self.store.table(self.table)
        if editing_id is None:
            return table.insert({**self.insert_defaults(payload), **payload})
        return table.update(payload).eq("id", editing_id)

    def success_message(self, editing: bool) -> Tuple[str, str]:
        verb = "updated" if editing else self.created
        return f"{self.noun} {verb}", f"{self.noun} has been {verb} successfully."

    def submit(self, values: Mapping[str, Any], editing_id: Optional[str] = None) -> bool:
        """Insert (no `editing_id`) or update one row from raw form values.

        Raises FormValidationError before any store call when the form is
        invalid. Returns False when the store call failed. An update only
        writes the fields present in `values`; required fields it leaves out
        are checked against the stored row.
        """
        row = self.stored(editing_id)
        form = self.validate({**self.form_values(row), **values} if row else values)
        if self.is_loading:
            return False

        payload = self.payload(form)
        if row:
            payload = self.submitted(payload, values)
        if payload.get("sort_order") is None:
            payload.pop("sort_order", None)

        result = self._run(self.write_query(payload, editing_id))
        if result.error:
            self._report(result.error, f"Failed to save {self.noun.lower()}.")
            return False
        if editing_id is not None and not result.data:
            self._report(StoreError(f"{self.noun} {editing_id} not found", code="not_found"))
            return False

        title, description = self.success_message(editing_id is not None)
        self.toaster.success(title, description)
        logger.info("%s %s in %s", "Updated" if editing_id else "Inserted", self.noun.lower(), self.table)
        self.fetch()
        return True

    def delete(self, row_id: str, confirmed: bool = False) -> bool:
        if not confirmed:
            raise ConfirmationRequired(f"delete this {self.noun.lower()}")

        result = self._run(self.store.table(self.table).delete().eq("id", row_id))
        if result.error:
            self._report(result.error, f"Failed to delete {self.noun.lower()}.")
            return False
        if not result.data:
            self._report(StoreError(f"{self.noun} {row_id} not found", code="not_found"))
            return False

        self.toaster.success(f"{self.noun} deleted", f"{self.noun} has been deleted successfully.")
        logger.info("Deleted %s %s from %s", self.noun.lower(), row_id, self.table)
        self.fetch()
        return True

    def _run(self, query: Query) -> StoreResult:
        self.is_loading = True
        try:
            return query.execute()
        finally:
            self.is_loading = False

    def _report(self, error: StoreError, fallback: str = "Something went wrong.") -> None:
        self.last_error = error
        self.toaster.error(error.message or fallback)


class TimelineManager(EntityManager):
    """Experience and education: an ongoing entry never keeps an end date."""

    def payload(self, form: Form) -> Dict[str, Any]:
        data = form.model_dump()
        if data["is_current"]:
            data["end_date"] = None
        return data

    def submitted(self, payload: Dict[str, Any], values: Mapping[str, Any]) -> Dict[str, Any]:
        data = super().submitted(payload, values)
        if payload["is_current"]:
            data["end_date"] = None
        return data


class ExperienceManager(TimelineManager):
    table = "experiences"
    form = ExperienceForm
    noun = "Experience"


class EducationManager(TimelineManager):
    table = "educations"
    form = EducationForm
    noun = "Education"


class ProjectsManager(EntityManager):
    table = "projects"
    form = ProjectForm
    noun = "Project"
    created = "created"

    def __init__(self, store: Store, toaster: Toaster, storage: Optional[ObjectStorage] = None):
        super().__init__(store, toaster)
        self.storage = storage

    def payload(self, form: Form) -> Dict[str, Any]:
        data = form.model_dump()
        data["tech_stack"] = [tech.strip() for tech in form.tech_stack.split(",") if tech.strip()]
        return data

    def form_values(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        return {**row, "tech_stack": ", ".join(row.get("tech_stack") or [])}

    def insert_defaults(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"image_urls": [], "sort_order": len(self.rows)}

    def _upload_one(self, project_id: str, upload: UploadedFile) -> Tuple[Optional[str], Optional[StoreError]]:
        key = f"{project_id}-{_millis()}-{uuid.uuid4().hex[:8]}.{upload.extension}"
        error = self.storage.upload(PROJECT_IMAGES, key, upload.data)
        if error:
            return None, error
        return self.storage.get_public_url(PROJECT_IMAGES, key), None

    def upload_images(self, project_id: str, files: Sequence[UploadedFile]) -> bool:
        """Upload every file at once and append the URLs to the project."""
        project = self.find(project_id)
        if project is None:
            self._report(StoreError(f"Project {project_id} not found", code="not_found"))
            return False
        if not files:
            return True

        with ThreadPoolExecutor(max_workers=min(MAX_PARALLEL_CALLS, len(files))) as pool:
            results = list(pool.map(lambda f: self._upload_one(project_id, f), files))

        errors = [error for _, error in results if error]
        if errors:
            self.last_error = errors[0]
            self.toaster.error(errors[0].message or "Failed to upload images.", title="Upload failed")
            return False

        image_urls = list(project.get("image_urls") or []) + [url for url, _ in results]
        result = self._run(self.store.table(self.table).update({"image_urls": image_urls}).eq("id", project_id))
        if result.error:
            self.last_error = result.error
            self.toaster.error(result.error.message or "Failed to upload images.", title="Upload failed")
            return False

        self.toaster.success("Images uploaded", "Project images have been uploaded successfully.")
        self.fetch()
        return True


class SkillsManager(EntityManager):
    table = "skills"
    form = SkillForm
    noun = "Skill"
    order_by = (("category", False), ("sort_order", False))

    def insert_defaults(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        in_category = [row for row in self.rows if row.get("category") == payload["category"]]
        return {"sort_order": len(in_category)}

    def grouped(self) -> Dict[str, List[Dict[str, Any]]]:
        groups: Dict[str, List[Dict[str, Any]]] = {}
        for row in self.rows:
            groups.setdefault(row["category"], []).append(row)
        return groups

    @staticmethod
    def stars(proficiency_level: str) -> int:
        return PROFICIENCY_LEVELS.get(proficiency_level, ("", 1))[1]


class ServicesManager(EntityManager):
    table = "services"
    form = ServiceForm
    noun = "Service"
    created = "created"


class StatsManager(EntityManager):
    table = "stats"
    form = StatForm
    noun = "Statistic"
    created = "created"


class ContactInfoManager(EntityManager):
    table = "contact_info"
    form = ContactInfoForm
    noun = "Contact info"
    order_by = (("type", False), ("label", False))

    def insert_defaults(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {}


class ProfileManager(EntityManager):
    """The single profile row owned by the signed-in viewer."""

    table = "profiles"
    form = ProfileForm
    noun = "Profile"
    order_by = ()

    def __init__(self, store: Store, toaster: Toaster, user_id: str, storage: Optional[ObjectStorage] = None):
        super().__init__(store, toaster)
        self.user_id = user_id
        self.storage = storage

    @property
    def profile(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None

    def stored(self, editing_id: Optional[str]) -> Optional[Dict[str, Any]]:
        return self.profile

    def select(self) -> Query:
        return self.store.table(self.table).select("*").eq("user_id", self.user_id)

    def write_query(self, payload: Dict[str, Any], editing_id: Optional[str]) -> Query:
        table = self.store.table(self.table)
        payload = {**payload, "user_id": self.user_id}
        if self.profile is None:
            return table.insert(payload)
        return table.update(payload).eq("user_id", self.user_id)

    def success_message(self, editing: bool) -> Tuple[str, str]:
        return "Profile updated", "Your profile has been successfully updated."

    def upload_photo(self, upload: UploadedFile) -> bool:
        if self.profile is None:
            self._report(StoreError("Save your profile before uploading a photo.", code="not_found"))
            return False

        key = f"{key_prefix(self.user_id)}-{_millis()}-{uuid.uuid4().hex[:8]}.{upload.extension}"
        error = self.storage.upload(PROFILE_PHOTOS, key, upload.data)
        if error is None:
            url = self.storage.get_public_url(PROFILE_PHOTOS, key)
            result = self._run(
                self.store.table(self.table).update({"profile_photo_url": url}).eq("user_id", self.user_id)
            )
            error = result.error
        if error:
            self.last_error = error
            self.toaster.error(error.message or "Failed to upload photo.", title="Upload failed")
            return False

        self.toaster.success("Photo uploaded", "Your profile photo has been updated.")
        self.fetch()
        return True


class FooterManager(EntityManager):
    """Footer links edited in place and saved together.

    `edit` only touches the in-memory rows; `save_all` compares them with the
    snapshot taken at the last fetch and sends one update per changed row.
    """

    table = "footer_info"
    form = FooterItemForm
    noun = "Footer item"
    editable = ("label", "value", "href", "icon_name")

    def __init__(self, store: Store, toaster: Toaster):
        super().__init__(store, toaster)
        self._snapshot: Dict[str, Dict[str, Any]] = {}

    def fetch(self) -> bool:
        if not super().fetch():
            return False
        self._snapshot = {row["id"]: copy.deepcopy(row) for row in self.rows}
        return True

    def edit(self, row_id: str, field: str, value: Any) -> None:
        if field not in self.editable:
            raise FormValidationError({field: "This field cannot be edited"})
        row = self.find(row_id)
        if row is None:
            raise FormValidationError({"id": f"Unknown footer item {row_id}"})
        row[field] = value

    def changed_rows(self) -> List[Tuple[str, Dict[str, Any]]]:
        """(id, changed fields) for every row that differs from the snapshot."""
        changed = []
        errors: Dict[str, str] = {}
        for row in self.rows:
            original = self._snapshot.get(row["id"], {})
            if all(row.get(f) == original.get(f) for f in self.editable):
                continue
            try:
                form = self.validate(row)
            except FormValidationError as exc:
                errors.update({f"{row['id']}.{field}": msg for field, msg in exc.errors.items()})
                continue
            diff = {f: getattr(form, f) for f in self.editable if getattr(form, f) != original.get(f)}
            if diff:
                changed.append((row["id"], diff))
        if errors:
            raise FormValidationError(errors)
        return changed

    def save_all(self) -> bool:
        changes = self.changed_rows()
        if not changes:
            self.toaster.success("No changes", "There are no footer changes to save.")
            return True

        table = self.store.table(self.table)
        queries = [table.update(diff).eq("id", row_id) for row_id, diff in changes]
        self.is_loading = True
        try:
            with ThreadPoolExecutor(max_workers=min(MAX_PARALLEL_CALLS, len(queries))) as pool:
                results = list(pool.map(lambda q: q.execute(), queries))
        finally:
            self.is_loading = False

        errors = [result.error for result in results if result.error]
        if errors:
            self._report(errors[0], "Failed to update footer items.")
            return False

        self.toaster.success("Footer updated", f"{len(changes)} footer item(s) saved successfully.")
        logger.info("Saved %d footer item(s)", len(changes))
        self.fetch()
        return True


class ContactMessagesManager(EntityManager):
    """Read and delete what visitors sent through the contact form."""

    table = "contact_submissions"
    noun = "Message"
    order_by = (("created_at", True),)

    @staticmethod
    def is_recent(row: Mapping[str, Any], now: Optional[datetime] = None) -> bool:
        created = row.get("created_at")
        if isinstance(created, str):
            created = datetime.fromisoformat(created.replace("Z", "+00:00"))
        if created is None:
            return False
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        return now - created < timedelta(hours=24)

    def count_label(self) -> str:
        n = len(self.rows)
        return f"{n} {'message' if n == 1 else 'messages'}"


# dashboard tab -> manager class, in tab order
MANAGERS: Dict[str, Type[EntityManager]] = {
    "profile": ProfileManager,
    "services": ServicesManager,
    "stats": StatsManager,
    "contact-info": ContactInfoManager,
    "experiences": ExperienceManager,
    "skills": SkillsManager,
    "educations": EducationManager,
    "projects": ProjectsManager,
    "messages": ContactMessagesManager,
    "footer": FooterManager,
}
