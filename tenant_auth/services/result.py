"""
Uniform result returned by every orchestrator call.

Success carries a payload dict; failure carries a human-readable reason
(or, for registration, the list of validation messages of the failing entity).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass(frozen=True)
class ServiceResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    errors: Optional[Union[str, list[str]]] = None

    @classmethod
    def ok(cls, **data: Any) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, errors: Union[str, list[str]]) -> "ServiceResult":
        return cls(success=False, errors=errors)

    @property
    def failure(self) -> bool:
        return not self.success

    @property
    def error(self) -> Optional[str]:
        """The first failure reason, or None on success."""
        if isinstance(self.errors, list):
            return self.errors[0] if self.errors else None
        return self.errors
