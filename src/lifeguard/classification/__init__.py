"""Error classification exports."""

from .interfaces import ErrorClassifier
from .rules import (
    ClassificationRules,
    CodeMatchingClassifier,
    ErrorDescription,
    describe_error,
    parse_arm_error,
)

__all__ = [
    "ClassificationRules",
    "CodeMatchingClassifier",
    "ErrorClassifier",
    "ErrorDescription",
    "describe_error",
    "parse_arm_error",
]
