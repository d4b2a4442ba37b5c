# Domain layer: ORM models, managers and access control.
# Import submodules directly, e.g. `from dreamlight.core.db.models import Project`.
