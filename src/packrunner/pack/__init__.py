"""Pack and project loading plus run orchestration."""

from .loader import PACK_SCHEMA, PROJECTS_SCHEMA, ProjectCatalog, load_pack, load_projects
from .session import SessionOutcome, run_session

__all__ = [
    "PACK_SCHEMA",
    "PROJECTS_SCHEMA",
    "ProjectCatalog",
    "SessionOutcome",
    "load_pack",
    "load_projects",
    "run_session",
]
