"""Script invocation models.

A scripts file maps event type names to the scripts launched for them::

    {
        "ItemFinished": [
            {"path": "/usr/local/bin/notify", "args": ["--folder", "photos"]},
            {"path": "./backup.sh", "cwd": "/srv/backup"}
        ],
        "DeviceDisconnected": {"path": "/usr/local/bin/alert"}
    }

A single invocation object is accepted in place of a one-element list.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScriptInvocation(BaseModel):
    """One configured script launch."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(description="Executable to run; resolved via PATH when it has no directory part")
    args: tuple[str, ...] = Field(default=(), description="Arguments passed after the executable")
    cwd: str | None = Field(default=None, description="Working directory; inherits the bridge's when unset")
    env: dict[str, str] = Field(
        default_factory=dict, description="Extra environment variables layered over the bridge's environment"
    )

    @field_validator("path")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            msg = "path must not be empty"
            raise ValueError(msg)
        return value

    @property
    def argv(self) -> list[str]:
        return [self.path, *self.args]

    def describe(self) -> str:
        return " ".join(self.argv)


ScriptsFile = dict[str, list[ScriptInvocation] | ScriptInvocation]
"""Schema of a scripts file before normalisation."""
