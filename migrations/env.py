import importlib
import logging
import os
import pkgutil
from logging.config import fileConfig
from pathlib import Path

from flask import current_app
from alembic import context

config = context.config

# alembic.ini may sit in migrations/ or the repo root; neither is required
_ini = config.config_file_name
if _ini and Path(_ini).exists():
    fileConfig(_ini)
elif (Path(__file__).resolve().parents[1] / "alembic.ini").exists():
    fileConfig(str(Path(__file__).resolve().parents[1] / "alembic.ini"))
else:
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger("alembic.env")

migrate_ext = current_app.extensions["migrate"]


def get_engine():
    # Flask-SQLAlchemy 3.x
    return migrate_ext.db.engine


config.set_main_option(
    "sqlalchemy.url",
    get_engine().url.render_as_string(hide_password=False).replace("%", "%%"),
)


def get_metadata():
    if hasattr(migrate_ext.db, "metadatas"):
        return migrate_ext.db.metadatas[None]
    return migrate_ext.db.metadata


def _autoload_models():
    """Import every module under feedback_service.models so autogenerate sees all tables."""
    import feedback_service.models as models_pkg
    for m in pkgutil.iter_modules(models_pkg.__path__):
        importlib.import_module(f"feedback_service.models.{m.name}")
    logger.info("Loaded models from feedback_service.models/*")


# Index drops proposed by autogenerate are skipped unless allowlisted
_DROP_INDEX_ALLOWLIST = {
    name.strip()
    for name in os.getenv("ALEMBIC_DROP_INDEX_ALLOWLIST", "").split(",")
    if name.strip()
}

def _include_object(object, name, type_, reflected, compare_to):
    if type_ == "index" and reflected and compare_to is None:
        return name in _DROP_INDEX_ALLOWLIST
    return True


def run_migrations_offline():
    _autoload_models()
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=get_metadata(),
        literal_binds=True,
        compare_type=True,
        include_object=_include_object,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    def process_revision_directives(context_, revision, directives):
        # No empty revision files
        if getattr(config.cmd_opts, "autogenerate", False):
            if directives[0].upgrade_ops.is_empty():
                directives[:] = []
                logger.info("No changes in schema detected.")

    conf_args = {
        **migrate_ext.configure_args,
        "compare_type": True,
        "include_object": _include_object,
        "target_metadata": get_metadata(),
    }
    conf_args.setdefault("process_revision_directives", process_revision_directives)

    _autoload_models()
    with get_engine().connect() as connection:
        context.configure(connection=connection, **conf_args)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
