"""
Callable-by-name wrappers around the transcription engine.

A TranscriptionTool declares its inputs as ToolParameters and reports its
outcome as a ToolResult. The registry, the /tools HTTP routes and any agent
front end see only this interface, never the engine directly.

Contract:
    tool(**params) validates first, then runs execute(). It never raises;
    bad input and runtime failures both come back as success=False.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class ToolParameter:
    """One named input of a tool.

    `type` is checked with isinstance, with two exceptions: a float
    parameter also takes ints (duration=10), and a bool never passes
    for int or float even though bool subclasses int.
    """

    name: str
    type: type
    description: str
    required: bool = True
    default: Any = None

    def validate(self, value: Any) -> tuple[bool, str | None]:
        """Check one value. Returns (ok, error_message)."""
        if value is None:
            if self.required:
                return False, f"Required parameter '{self.name}' is missing"
            return True, None

        accepted: tuple[type, ...] = (float, int) if self.type is float else (self.type,)
        if (isinstance(value, bool) and self.type is not bool) or not isinstance(
            value, accepted
        ):
            return (
                False,
                f"Parameter '{self.name}' must be {self.type.__name__}, got {type(value).__name__}",
            )
        return True, None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.__name__,
            "description": self.description,
            "required": self.required,
            "default": self.default,
        }


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a tool call.

    `data` holds the transcription payload, `metadata` how it was produced
    (source file, algorithm, timing). `error` is set only on failure.
    """

    success: bool
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TranscriptionTool(ABC):
    """Base class for tools discovered by ToolRegistry.

    Subclasses provide name, description, parameters and execute().
    Callers use __call__, which rejects unknown or ill-typed parameters
    before execute() sees them.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, lowercase with underscores (e.g. 'transcribe_audio')."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool returns and which inputs it needs."""

    @property
    @abstractmethod
    def parameters(self) -> list[ToolParameter]: ...

    @abstractmethod
    def execute(self, **kwargs: Any) -> ToolResult:
        """Run the tool on already-validated parameters."""

    def validate_inputs(self, **kwargs: Any) -> tuple[bool, str | None]:
        """Reject unknown names, then check each declared parameter in order."""
        known = {p.name for p in self.parameters}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            return False, f"Unknown parameter(s) for '{self.name}': {', '.join(unknown)}"

        for param in self.parameters:
            ok, error = param.validate(kwargs.get(param.name))
            if not ok:
                return False, error
        return True, None

    def __call__(self, **kwargs: Any) -> ToolResult:
        ok, error = self.validate_inputs(**kwargs)
        if not ok:
            return ToolResult(success=False, error=error)

        try:
            return self.execute(**kwargs)
        except Exception as exc:
            return ToolResult(success=False, error=f"Tool execution failed: {exc}")

    def to_dict(self) -> dict[str, Any]:
        """Name, description and parameter schema, as served by GET /tools."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
        }
