"""Script registry.

Maps event type names to the scripts launched for them.  Built once at
startup from the scripts file and read-only afterwards, so concurrent
dispatches can share it without locking.  A lookup miss is normal and yields
no invocations.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from synchook.bridge.log import component_logger
from synchook.bridge.models.enums import EventType
from synchook.bridge.models.scripts import ScriptInvocation, ScriptsFile

if TYPE_CHECKING:
    from loguru import Logger

_SCRIPTS_FILE: TypeAdapter[ScriptsFile] = TypeAdapter(ScriptsFile)


class RegistryError(ValueError):
    """The scripts file is missing, unreadable, or malformed."""


def _format_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error["loc"]) or "<root>"
        parts.append(f"{loc}: {error['msg']}")
    return "; ".join(parts)


class ScriptRegistry:
    """Immutable event type -> script invocations mapping."""

    def __init__(
        self,
        entries: Mapping[str, Sequence[ScriptInvocation]] | None = None,
        *,
        source: str = "<memory>",
    ) -> None:
        self.source = source
        self._entries: Mapping[str, tuple[ScriptInvocation, ...]] = MappingProxyType(
            {event_type: tuple(invocations) for event_type, invocations in (entries or {}).items()}
        )

    # -- Construction ----------------------------------------------------------

    @classmethod
    def load(cls, source: str | Path, *, log: Logger | None = None) -> ScriptRegistry:
        """Read and validate a JSON scripts file.  Raises ``RegistryError``."""
        path = Path(source)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            msg = f"Cannot read scripts file {path}: {exc.strerror or exc}"
            raise RegistryError(msg) from exc

        try:
            parsed = _SCRIPTS_FILE.validate_json(raw)
        except ValidationError as exc:
            msg = f"Invalid scripts file {path}: {_format_errors(exc)}"
            raise RegistryError(msg) from exc

        return cls._build(parsed, source=str(path), log=log)

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Any],
        *,
        source: str = "<memory>",
        log: Logger | None = None,
    ) -> ScriptRegistry:
        """Validate an in-memory mapping with the scripts file schema."""
        try:
            parsed = _SCRIPTS_FILE.validate_python(dict(mapping))
        except ValidationError as exc:
            msg = f"Invalid scripts mapping {source}: {_format_errors(exc)}"
            raise RegistryError(msg) from exc

        return cls._build(parsed, source=source, log=log)

    @classmethod
    def _build(cls, parsed: ScriptsFile, *, source: str, log: Logger | None) -> ScriptRegistry:
        log = log or component_logger("registry")
        entries: dict[str, list[ScriptInvocation]] = {}
        for event_type, value in parsed.items():
            if not event_type.strip():
                msg = f"Invalid scripts file {source}: event type names must not be empty"
                raise RegistryError(msg)
            if not EventType.is_known(event_type):
                log.warning("Scripts file {}: '{}' is not a known Syncthing event type", source, event_type)
            entries[event_type] = [value] if isinstance(value, ScriptInvocation) else list(value)

        registry = cls(entries, source=source)
        log.info(
            "Loaded {} script(s) for {} event type(s) from {}",
            registry.invocation_count,
            len(registry),
            source,
        )
        return registry

    # -- Query -----------------------------------------------------------------

    def lookup(self, event_type: str) -> tuple[ScriptInvocation, ...]:
        """Invocations registered for *event_type*; empty when there are none."""
        return self._entries.get(event_type, ())

    @property
    def event_types(self) -> list[str]:
        return list(self._entries)

    @property
    def invocation_count(self) -> int:
        return sum(len(invocations) for invocations in self._entries.values())

    def items(self) -> Iterator[tuple[str, tuple[ScriptInvocation, ...]]]:
        return iter(self._entries.items())

    def __contains__(self, event_type: object) -> bool:
        return event_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)
