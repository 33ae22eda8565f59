"""
Error taxonomy for the city and facade generators.

InvalidParameter is raised before any output is produced. MissingDependency is
a warning category: it is logged and collected on the result, never raised.
Capacity overruns (damage or vehicle counts above their caps) clamp silently.
"""

from typing import Any


class InvalidParameter(ValueError):
    """An out-of-range or missing required input."""

    def __init__(self, field: str, value: Any = None, reason: str = ""):
        self.field = field
        self.value = value
        self.reason = reason
        message = f"Invalid parameter '{field}'"
        if reason:
            message += f": {reason}"
        if value is not None:
            message += f" (got {value!r})"
        super().__init__(message)


class MissingDependency(UserWarning):
    """An optional visual reference (template, material) is absent."""

    def __init__(self, dependency: str, feature: str):
        self.dependency = dependency
        self.feature = feature
        super().__init__(f"Missing dependency '{dependency}': skipping {feature}")

    def to_dict(self):
        return {"dependency": self.dependency, "feature": self.feature, "message": str(self)}
