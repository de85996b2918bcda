"""Subject resolution and stage dispatch."""

from .dispatch import MODEL_DEFAULTS, QA_OPTION_KEYS, StageDispatcher  # noqa: F401
from .paths import SubjectLocation, locate_subject  # noqa: F401
from .resolve import ResolutionContext, resolve_subjects  # noqa: F401
from .types import SubjectRecord  # noqa: F401

__all__ = [
    "StageDispatcher",
    "QA_OPTION_KEYS",
    "MODEL_DEFAULTS",
    "SubjectLocation",
    "locate_subject",
    "ResolutionContext",
    "resolve_subjects",
    "SubjectRecord",
]
