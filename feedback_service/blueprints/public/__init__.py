from flask import Blueprint

# Ingestion surface for customer apps/widgets; authenticated by API key
bp = Blueprint("public", __name__)

from . import routes  # noqa: E402,F401
