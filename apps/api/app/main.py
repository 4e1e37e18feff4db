from fastapi import FastAPI

from apps.api.app.api.ops import router as ops_router
from apps.api.app.api.prop_accounts import router as prop_accounts_router
from apps.api.app.api.risk import router as risk_router
from apps.api.app.core.logging import configure_logging
from apps.api.app.db.init_db import init_db

configure_logging()

app = FastAPI(title="prop-risk API")

init_db()

app.include_router(ops_router)
app.include_router(risk_router)
app.include_router(prop_accounts_router)

@app.get("/healthz")
def healthz():
    return {"status": "ok"}

@app.get("/")
def root():
    return {"app": "prop-risk", "docs": "/docs"}
