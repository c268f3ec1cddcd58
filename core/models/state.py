"""Execution state shared by the steps of one build."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Tuple

from core.models.config import BuildConfig

if TYPE_CHECKING:
    from core.interfaces.driver_interface import IDriver


class StepAction(Enum):
    """Control signal a step returns to the runner."""
    CONTINUE = "continue"
    HALT = "halt"


@dataclass
class ExecutionState:
    """Typed context passed by reference between pipeline steps.

    Well-known values are attributes. Any other step-produced value lives in
    ``extras`` and is reachable through the same ``put``/``get`` API, so a
    step can read ``state.get("instance_ip")`` or ``state.get("image_id")``
    without caring which kind of entry it is.

    A well-known entry counts as present once it is not ``None``.
    """

    config: Optional[BuildConfig] = None
    driver: Optional["IDriver"] = None
    instance_name: Optional[str] = None
    instance_ip: Optional[str] = None
    error: Optional[BaseException] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS: ClassVar[Tuple[str, ...]] = (
        "config",
        "driver",
        "instance_name",
        "instance_ip",
        "error",
    )

    def put(self, key: str, value: Any) -> None:
        """Store a value under ``key``."""
        if key in self.KNOWN_KEYS:
            setattr(self, key, value)
        else:
            self.extras[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value under ``key`` or ``default`` when absent."""
        value, ok = self.get_ok(key)
        return value if ok else default

    def get_ok(self, key: str) -> Tuple[Any, bool]:
        """Return ``(value, present)`` for ``key``."""
        if key in self.KNOWN_KEYS:
            value = getattr(self, key)
            return value, value is not None
        if key in self.extras:
            return self.extras[key], True
        return None, False

    def remove(self, key: str) -> None:
        """Remove ``key``; removing an absent key is a no-op."""
        if key in self.KNOWN_KEYS:
            setattr(self, key, None)
        else:
            self.extras.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self.get_ok(key)[1]

    def snapshot(self) -> Dict[str, Any]:
        """Return a shallow copy of every present entry."""
        entries = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extras" and getattr(self, f.name) is not None
        }
        entries.update(self.extras)
        return entries
