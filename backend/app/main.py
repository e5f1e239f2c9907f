from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware.exceptions import register_exception_handlers
from app.routers import health, projects, sales_handover, wizard_inputs

app = FastAPI(
    title="Onboarding",
    description="Customer onboarding: handover-driven wizards and step inputs",
    version="0.1.0",
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(sales_handover.router, prefix="/api/sales-handover", tags=["sales-handover"])
app.include_router(wizard_inputs.router, prefix="/api/wizard-inputs", tags=["wizard-inputs"])
app.include_router(projects.router, prefix="/api/projects", tags=["projects"])
