import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from auth import LoginRequest, Token, Viewer, allow_dashboard_read, authenticate, create_access_token, require_admin
from config import CORS_ORIGINS, LOG_LEVEL
from database import Store, store as default_store
from errors import ConfirmationRequired, FormValidationError
from managers import (
    MANAGERS,
    ContactMessagesManager,
    EntityManager,
    FooterManager,
    ProfileManager,
    ProjectsManager,
    SkillsManager,
)
from notifications import Toaster
from sections import (
    AboutSection,
    ContactItem,
    FooterSection,
    HeroSection,
    HomePage,
    ProjectCard,
    StatItem,
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
from storage import ObjectStorage, UploadedFile, storage as default_storage

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# ==================
# FastAPI app config
# ==================
app = FastAPI(title="Portfolio API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FormValidationError)
async def form_validation_handler(request: Request, exc: FormValidationError):
    return JSONResponse(status_code=422, content={"errors": exc.errors})


@app.exception_handler(ConfirmationRequired)
async def confirmation_handler(request: Request, exc: ConfirmationRequired):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ============
# Dependencies
# ============
def get_store() -> Store:
    return default_store


def get_storage() -> ObjectStorage:
    return default_storage


def get_toaster() -> Toaster:
    return Toaster()


def build_manager(
    name: str,
    store: Store,
    toaster: Toaster,
    storage: ObjectStorage,
    viewer: Optional[Viewer],
) -> EntityManager:
    manager_cls = MANAGERS.get(name)
    if manager_cls is None:
        raise HTTPException(status_code=404, detail=f"Unknown section: {name}")
    if manager_cls is ProfileManager:
        if viewer is None:
            raise HTTPException(status_code=401, detail="Sign in to manage your profile")
        return ProfileManager(store, toaster, viewer.user_id, storage=storage)
    if manager_cls is ProjectsManager:
        return ProjectsManager(store, toaster, storage=storage)
    return manager_cls(store, toaster)


def mounted(manager: EntityManager, toaster: Toaster) -> EntityManager:
    """Fetch the manager's rows or fail the request."""
    if not manager.fetch():
        fail(manager, toaster)
    return manager


def fail(manager: EntityManager, toaster: Toaster):
    error = manager.last_error
    status = 404 if error is not None and error.code == "not_found" else 502
    note = toaster.last
    raise HTTPException(status_code=status, detail=note.model_dump() if note else "Request failed")


def written(manager: EntityManager, toaster: Toaster) -> Dict[str, Any]:
    return {"rows": listing(manager)["rows"], "notification": toaster.last}


def listing(manager: EntityManager) -> Dict[str, Any]:
    body: Dict[str, Any] = {"rows": manager.rows}
    if isinstance(manager, ContactMessagesManager):
        body["rows"] = [{**row, "is_recent": manager.is_recent(row)} for row in manager.rows]
        body["summary"] = manager.count_label()
    elif isinstance(manager, SkillsManager):
        body["groups"] = manager.grouped()
    elif isinstance(manager, ProfileManager):
        body["profile"] = manager.profile
    return body


def writable(manager: EntityManager) -> EntityManager:
    if manager.form is None:
        raise HTTPException(status_code=405, detail=f"{manager.noun} entries are read-only")
    return manager


# ======
# Routes
# ======
@app.get("/")
def root():
    return {"status": "ok", "service": "portfolio-api"}


@app.get("/test")
def test_database(store: Store = Depends(get_store)):
    ok = store.db is not None
    collections = []
    if ok:
        try:
            collections = store.collections()
        except Exception as exc:
            logger.warning("Could not list collections: %s", exc)
            ok = False
    return {"backend": "running", "database": "connected" if ok else "not-available", "collections": collections[:10]}


# Auth
@app.post("/api/auth/login", response_model=Token)
def login(data: LoginRequest):
    viewer = authenticate(data.email, data.password)
    if viewer is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = create_access_token({"sub": viewer.email, "role": viewer.role})
    return Token(access_token=token)


# Public site
@app.get("/api/home", response_model=HomePage)
def home(store: Store = Depends(get_store)):
    return render_home(store)


@app.get("/api/sections/hero", response_model=HeroSection)
def hero_section(store: Store = Depends(get_store)):
    return render_hero(store)


@app.get("/api/sections/projects", response_model=List[ProjectCard])
def projects_section(store: Store = Depends(get_store)):
    return render_projects(store)


@app.get("/api/sections/about", response_model=AboutSection)
def about_section(store: Store = Depends(get_store)):
    return render_about(store)


@app.get("/api/sections/stats", response_model=List[StatItem])
def stats_section(store: Store = Depends(get_store)):
    return render_stats(store)


@app.get("/api/sections/contact", response_model=List[ContactItem])
def contact_section(store: Store = Depends(get_store)):
    return render_contact(store)


@app.get("/api/sections/footer", response_model=FooterSection)
def footer_section(store: Store = Depends(get_store)):
    return render_footer(store)


@app.get("/api/projects/{project_id}", response_model=ProjectCard)
def get_project(project_id: str, store: Store = Depends(get_store)):
    project = render_project(store, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Not found")
    return project


@app.post("/api/contact")
def contact(values: Dict[str, Any] = Body(...), store: Store = Depends(get_store), toaster: Toaster = Depends(get_toaster)):
    if not send_message(store, toaster, values):
        raise HTTPException(status_code=502, detail=toaster.last.model_dump())
    return {"notification": toaster.last}


# Object storage
@app.get("/storage/{bucket}/{key}")
def storage_object(bucket: str, key: str, storage: ObjectStorage = Depends(get_storage)):
    path = storage.path_for(bucket, key)
    if path is None or not path.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(path)


# Admin dashboard
@app.get("/api/admin")
def dashboard(viewer: Optional[Viewer] = Depends(allow_dashboard_read)):
    body: Dict[str, Any] = {"tabs": list(MANAGERS), "viewer": None, "notice": None}
    if viewer is None:
        body["notice"] = "You are accessing the admin panel without authentication. Some features may be limited."
    else:
        body["viewer"] = {"email": viewer.email, "role": viewer.role}
    return body


@app.put("/api/admin/footer")
def save_footer(
    items: List[Dict[str, Any]] = Body(..., embed=True),
    viewer: Viewer = Depends(require_admin),
    store: Store = Depends(get_store),
    toaster: Toaster = Depends(get_toaster),
):
    manager = mounted(FooterManager(store, toaster), toaster)
    for item in items:
        row_id = item.get("id")
        for field in FooterManager.editable:
            if field in item:
                manager.edit(row_id, field, item[field])
    if not manager.save_all():
        fail(manager, toaster)
    return written(manager, toaster)


@app.put("/api/admin/profile")
def save_profile(
    values: Dict[str, Any] = Body(...),
    viewer: Viewer = Depends(require_admin),
    store: Store = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    toaster: Toaster = Depends(get_toaster),
):
    manager = mounted(build_manager("profile", store, toaster, storage, viewer), toaster)
    if not manager.submit(values):
        fail(manager, toaster)
    return {**listing(manager), "notification": toaster.last}


@app.post("/api/admin/profile/photo")
def upload_profile_photo(
    file: UploadFile = File(...),
    viewer: Viewer = Depends(require_admin),
    store: Store = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    toaster: Toaster = Depends(get_toaster),
):
    manager = mounted(build_manager("profile", store, toaster, storage, viewer), toaster)
    upload = UploadedFile(filename=file.filename or "photo", data=file.file.read(), content_type=file.content_type)
    if not manager.upload_photo(upload):
        fail(manager, toaster)
    return {**listing(manager), "notification": toaster.last}


@app.post("/api/admin/projects/{project_id}/images")
def upload_project_images(
    project_id: str,
    files: List[UploadFile] = File(...),
    viewer: Viewer = Depends(require_admin),
    store: Store = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    toaster: Toaster = Depends(get_toaster),
):
    manager = mounted(ProjectsManager(store, toaster, storage=storage), toaster)
    uploads = [
        UploadedFile(filename=f.filename or "image", data=f.file.read(), content_type=f.content_type) for f in files
    ]
    if not manager.upload_images(project_id, uploads):
        fail(manager, toaster)
    return written(manager, toaster)


@app.get("/api/admin/{name}")
def list_rows(
    name: str,
    viewer: Optional[Viewer] = Depends(allow_dashboard_read),
    store: Store = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    toaster: Toaster = Depends(get_toaster),
):
    manager = mounted(build_manager(name, store, toaster, storage, viewer), toaster)
    return listing(manager)


@app.post("/api/admin/{name}")
def create_row(
    name: str,
    values: Dict[str, Any] = Body(...),
    viewer: Viewer = Depends(require_admin),
    store: Store = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    toaster: Toaster = Depends(get_toaster),
):
    manager = writable(build_manager(name, store, toaster, storage, viewer))
    mounted(manager, toaster)
    if not manager.submit(values):
        fail(manager, toaster)
    return written(manager, toaster)


@app.put("/api/admin/{name}/{row_id}")
def update_row(
    name: str,
    row_id: str,
    values: Dict[str, Any] = Body(...),
    viewer: Viewer = Depends(require_admin),
    store: Store = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    toaster: Toaster = Depends(get_toaster),
):
    manager = writable(build_manager(name, store, toaster, storage, viewer))
    mounted(manager, toaster)
    if not manager.submit(values, editing_id=row_id):
        fail(manager, toaster)
    return written(manager, toaster)


@app.delete("/api/admin/{name}/{row_id}")
def delete_row(
    name: str,
    row_id: str,
    confirm: bool = Query(False),
    viewer: Viewer = Depends(require_admin),
    store: Store = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    toaster: Toaster = Depends(get_toaster),
):
    manager = mounted(build_manager(name, store, toaster, storage, viewer), toaster)
    if not manager.delete(row_id, confirmed=confirm):
        fail(manager, toaster)
    return written(manager, toaster)
