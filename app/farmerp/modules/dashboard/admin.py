from flask import Blueprint, render_template

from app.farmerp.db import data_service, query_cache
from app.farmerp.modules.dashboard.service import dashboard_stats
from app.farmerp.rbac import require_login
from app.farmerp.shell import require_module

bp = Blueprint("dashboard", __name__)


@bp.get("/dashboard")
@require_login
@require_module("dashboard")
def index():
    stats = dashboard_stats(data_service(), query_cache())
    return render_template("dashboard/index.html", stats=stats)
