# backend/estoque/routes/system.py
"""
System banner and health endpoints.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Product, Inflow, Outflow
from estoque.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        inflow_count = db.session.query(Inflow).count()
        outflow_count = db.session.query(Outflow).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "inflows": inflow_count,
                "outflows": outflow_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/")
def home():
    """Plain-text banner so a browser hit confirms the API is up."""
    return "Estoque API is running.", 200, {"Content-Type": "text/plain; charset=utf-8"}


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }
    return body, (200 if healthy else 503)
