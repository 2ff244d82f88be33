"""
Rent Collection Dashboard API
=============================
Backend for the MPIRE rent collection dashboard.

Flow:
- Upload: the monthly GENERAL_REPORT.xlsx is parsed into a normalized
  report (summary series, tenants, per-period payments, payment history,
  vacancy) and stored as one JSON blob
- Dashboard: read endpoints compute KPIs and view data from the stored report
- Reports: a weekly cron triggers an HTML summary email
"""
import logging
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rentdash.api.dashboard import router as dashboard_router
from rentdash.api.reports import router as reports_router
from rentdash.api.uploads import router as uploads_router
from rentdash.config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Rent Collection Dashboard API",
    description="""
    API for the rent collection dashboard.

    ## Modules
    - **Workbook**: Upload GENERAL_REPORT.xlsx, fetch/store/clear the parsed data
    - **Dashboard**: Overview KPIs, tenants, per-period payments, payment history
    - **Reports**: Weekly email summary (token protected) and test sends
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        get_settings().frontend_url,
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

app.include_router(uploads_router, prefix="/api")
app.include_router(dashboard_router, prefix="/api")
app.include_router(reports_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Rent Collection Dashboard API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running",
    }


@app.get("/api/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now().isoformat()}
