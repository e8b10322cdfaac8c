from flask import Blueprint

bp = Blueprint("feedback", __name__)

# Importing registers the @bp routes
from . import routes    # /feedback, /feedback/<id>  # noqa: E402,F401
from . import comments  # /feedback/<id>/comments    # noqa: E402,F401
