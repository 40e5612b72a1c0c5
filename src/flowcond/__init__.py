from __future__ import annotations

# Runtime package version, provided by setuptools_scm during build.
try:
    # created at build time by setuptools_scm (see [tool.setuptools_scm].version_file)
    from ._version import __version__
except ImportError:  # pragma: no cover
    from importlib.metadata import PackageNotFoundError, version as _pkg_version

    try:
        __version__ = _pkg_version("flowcond")
    except PackageNotFoundError:
        __version__ = "0.0.0"

from .core.config import ValidatorConfig
from .core.errors import ConditionError
from .security.display import sanitize_for_display
from .validation.result import Invalid, Valid, ValidationResult
from .validation.validator import (
    ConditionValidator,
    pre_validate_condition_expression,
    validate_condition_expression,
)

__all__ = [
    "ConditionError",
    "ConditionValidator",
    "Invalid",
    "Valid",
    "ValidationResult",
    "ValidatorConfig",
    "__version__",
    "pre_validate_condition_expression",
    "sanitize_for_display",
    "validate_condition_expression",
]
