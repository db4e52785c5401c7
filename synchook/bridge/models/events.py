"""Syncthing event models.

Defines the wire record (``RawEvent``), the parsed ``Event`` and the payload
variants carried in its ``data`` field.

Syncthing does not tag ``data`` with its shape; the shape only follows from
the event ``type``.  Payloads are therefore matched structurally: ``parse``
tries every variant in ``PAYLOAD_VARIANTS`` order and keeps the first one that
validates, falling back to ``Unknown`` which holds the value verbatim.  The
``type`` string, not the matched variant, is what scripts are dispatched on.

The order is part of the behaviour.  A variant whose required fields are a
subset of a later variant's fields wins for both shapes.  Known consequences:

- ``RemoteIndexUpdated``, ``RemoteDownloadProgress`` and ``FolderCompletion``
  payloads all carry ``device`` and match ``ClusterConfigReceived``.
- ``FolderResumed`` payloads match ``FolderPaused``.
- ``StateChanged`` payloads match ``FolderWatchStateChanged``.
- ``ItemStarted`` payloads match ``ItemFinished`` (``error`` is optional).
- ``RemoteChangeDetected`` payloads match ``LocalChangeDetected``.
- An empty map matches ``DownloadProgress``.
- ``PendingFoldersChanged`` payloads whose removals all name a ``deviceID``
  match ``PendingDevicesChanged``.

Changing the order changes which variant these payloads land in; treat any
reordering as a behaviour change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)
from pydantic.alias_generators import to_camel, to_pascal

Count = Annotated[StrictInt, Field(ge=0)]
"""Non-negative integer; numeric strings are rejected."""

Rate = Annotated[StrictFloat, Field(ge=0)]
"""Non-negative number; ints are accepted, numeric strings are rejected."""


# ---------------------------------------------------------------------------
# Wire record
# ---------------------------------------------------------------------------


class RawEvent(BaseModel):
    """One record of the ``/rest/events`` JSON array."""

    model_config = ConfigDict(frozen=True)

    id: Count
    global_id: Count = Field(alias="globalID")
    type: StrictStr
    time: StrictStr
    """RFC 3339 timestamp with nanosecond precision, kept as sent."""
    data: Any = None


RAW_EVENTS: TypeAdapter[list[RawEvent]] = TypeAdapter(list[RawEvent])


# ---------------------------------------------------------------------------
# Payload building blocks
# ---------------------------------------------------------------------------


class _Payload(BaseModel):
    """Base for map-shaped payloads.

    Keys are matched by their camelCase wire names.  Keys a variant does not
    declare are kept in ``model_extra`` so nothing sent by the server is lost.
    """

    model_config = ConfigDict(frozen=True, extra="allow", alias_generator=to_camel)


class FileProgress(_Payload):
    total: Count
    pulling: Count
    copied_from_origin: Count
    reused: Count
    copied_from_elsewhere: Count
    pulled: Count
    bytes_total: Count
    bytes_done: Count


class FolderError(_Payload):
    error: StrictStr
    path: StrictStr


class FolderSummaryData(_Payload):
    global_bytes: Count
    global_deleted: Count
    global_files: Count
    ignore_patterns: StrictBool
    in_sync_bytes: Count
    in_sync_files: Count
    invalid: StrictStr
    local_bytes: Count
    local_deleted: Count
    local_files: Count
    need_bytes: Count
    need_files: Count
    state: StrictStr
    state_changed: StrictStr
    version: Count


class ListenAddress(BaseModel):
    """A Go ``net/url.URL`` as marshalled by Syncthing (PascalCase keys)."""

    model_config = ConfigDict(frozen=True, extra="allow", alias_generator=to_pascal)

    scheme: StrictStr
    opaque: StrictStr
    user: Any = None
    host: StrictStr
    path: StrictStr
    raw_path: StrictStr
    force_query: StrictBool
    raw_query: StrictStr
    fragment: StrictStr


class DeviceAddition(_Payload):
    address: StrictStr
    device_id: StrictStr = Field(alias="deviceID")
    name: StrictStr


class DeviceRemoval(_Payload):
    device_id: StrictStr = Field(alias="deviceID")


class FolderAddition(_Payload):
    device_id: StrictStr = Field(alias="deviceID")
    folder_id: StrictStr = Field(alias="folderID")
    folder_label: StrictStr
    receive_encrypted: Any
    remote_encrypted: Any


class FolderRemoval(_Payload):
    """A withdrawn folder offer; ``device_id`` is absent when no device offers it anymore."""

    folder_id: StrictStr = Field(alias="folderID")
    device_id: StrictStr | None = Field(default=None, alias="deviceID")


# ---------------------------------------------------------------------------
# Payload variants (in match priority order)
# ---------------------------------------------------------------------------


class DeviceConnected(_Payload):
    addr: StrictStr
    id: StrictStr
    device_name: StrictStr
    client_name: StrictStr
    client_version: StrictStr
    type: StrictStr


class DeviceDisconnected(_Payload):
    error: StrictStr
    id: StrictStr


class ClusterConfigReceived(_Payload):
    device: StrictStr


class ConfigSaved(_Payload):
    version: Count
    folders: list[dict[str, Any]]
    devices: list[dict[str, Any]]
    gui: dict[str, Any]
    ldap: dict[str, Any]
    options: dict[str, Any]
    remote_ignored_devices: list[dict[str, Any]]
    defaults: dict[str, Any]


class DownloadProgress(RootModel[dict[StrictStr, dict[StrictStr, FileProgress]]]):
    """Per-folder, per-file pull progress: ``{folder: {file: FileProgress}}``."""

    model_config = ConfigDict(frozen=True)


class Failure(RootModel[StrictStr]):
    """Anonymous failure report; the payload is a bare message string."""

    model_config = ConfigDict(frozen=True)


class FolderCompletion(_Payload):
    completion: Rate
    device: StrictStr
    folder: StrictStr
    global_bytes: Count
    global_items: Count
    need_bytes: Count
    need_deletes: Count
    need_items: Count
    remote_state: StrictStr
    sequence: Count


class FolderErrors(_Payload):
    errors: list[FolderError]
    folder: StrictStr


class FolderPaused(_Payload):
    id: StrictStr
    label: StrictStr


class FolderResumed(_Payload):
    id: StrictStr
    label: StrictStr


class FolderScanProgress(_Payload):
    total: Count
    rate: Rate
    current: Count
    folder: StrictStr


class FolderSummary(_Payload):
    folder: StrictStr
    summary: FolderSummaryData


class FolderWatchStateChanged(_Payload):
    folder: StrictStr
    from_: StrictStr = Field(alias="from")
    to: StrictStr


class ItemFinished(_Payload):
    item: StrictStr
    folder: StrictStr
    type: StrictStr
    action: StrictStr
    error: StrictStr | None = None


class ItemStarted(_Payload):
    item: StrictStr
    folder: StrictStr
    type: StrictStr
    action: StrictStr


class ListenAddressesChanged(_Payload):
    address: ListenAddress
    wan: list[ListenAddress]
    lan: list[ListenAddress]


class LocalChangeDetected(_Payload):
    action: StrictStr
    folder: StrictStr
    folder_id: StrictStr = Field(alias="folderID")
    label: StrictStr
    path: StrictStr
    type: StrictStr


class LocalIndexUpdated(_Payload):
    folder: StrictStr
    items: Count
    filenames: list[StrictStr]
    sequence: Count
    version: Count


class LoginAttempt(_Payload):
    remote_address: StrictStr
    username: StrictStr
    success: StrictBool


class PendingDevicesChanged(_Payload):
    added: list[DeviceAddition]
    removed: list[DeviceRemoval]


class PendingFoldersChanged(_Payload):
    added: list[FolderAddition]
    removed: list[FolderRemoval]


class RemoteChangeDetected(_Payload):
    type: StrictStr
    action: StrictStr
    folder: StrictStr
    folder_id: StrictStr = Field(alias="folderID")
    path: StrictStr
    label: StrictStr
    modified_by: StrictStr


class RemoteDownloadProgress(_Payload):
    state: dict[str, Any]
    device: StrictStr
    folder: StrictStr


class RemoteIndexUpdated(_Payload):
    device: StrictStr
    folder: StrictStr
    items: Count


class Starting(_Payload):
    home: StrictStr


class StateChanged(_Payload):
    folder: StrictStr
    from_: StrictStr = Field(alias="from")
    to: StrictStr
    duration: Rate


class Unknown(RootModel[Any]):
    """Catch-all for payloads no known variant matches, kept verbatim."""

    model_config = ConfigDict(frozen=True)

    @property
    def fields(self) -> dict[str, Any]:
        """The payload as a key/value map (empty when it is not a map)."""
        return dict(self.root) if isinstance(self.root, dict) else {}


PAYLOAD_VARIANTS: tuple[type[BaseModel], ...] = (
    DeviceConnected,
    DeviceDisconnected,
    ClusterConfigReceived,
    ConfigSaved,
    DownloadProgress,
    Failure,
    FolderCompletion,
    FolderErrors,
    FolderPaused,
    FolderResumed,
    FolderScanProgress,
    FolderSummary,
    FolderWatchStateChanged,
    ItemFinished,
    ItemStarted,
    ListenAddressesChanged,
    LocalChangeDetected,
    LocalIndexUpdated,
    LoginAttempt,
    PendingDevicesChanged,
    PendingFoldersChanged,
    RemoteChangeDetected,
    RemoteDownloadProgress,
    RemoteIndexUpdated,
    Starting,
    StateChanged,
)
"""Known payload shapes, tried first to last."""

EventPayload = Union[  # noqa: UP007
    DeviceConnected,
    DeviceDisconnected,
    ClusterConfigReceived,
    ConfigSaved,
    DownloadProgress,
    Failure,
    FolderCompletion,
    FolderErrors,
    FolderPaused,
    FolderResumed,
    FolderScanProgress,
    FolderSummary,
    FolderWatchStateChanged,
    ItemFinished,
    ItemStarted,
    ListenAddressesChanged,
    LocalChangeDetected,
    LocalIndexUpdated,
    LoginAttempt,
    PendingDevicesChanged,
    PendingFoldersChanged,
    RemoteChangeDetected,
    RemoteDownloadProgress,
    RemoteIndexUpdated,
    Starting,
    StateChanged,
    Unknown,
]


# ---------------------------------------------------------------------------
# Parsed event
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Event:
    """A parsed event, consumed once by the dispatcher and then dropped."""

    id: int
    global_id: int
    type: str
    time: str
    payload: EventPayload

    @property
    def variant(self) -> str:
        """Name of the payload variant that matched ``data``."""
        return type(self.payload).__name__

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view using wire key names."""
        return {
            "id": self.id,
            "globalID": self.global_id,
            "type": self.type,
            "time": self.time,
            "variant": self.variant,
            "data": self.payload.model_dump(mode="json", by_alias=True),
        }


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_payload(data: Any) -> EventPayload:
    """Classify a raw ``data`` value.  Never raises."""
    for variant in PAYLOAD_VARIANTS:
        try:
            return variant.model_validate(data)  # type: ignore[return-value]
        except ValidationError:
            continue
    return Unknown(data)


def parse(raw: RawEvent) -> EventPayload:
    """Classify the payload of *raw*.  Never raises."""
    return parse_payload(raw.data)


def to_event(raw: RawEvent) -> Event:
    """Build the immutable ``Event`` for *raw*; ``type`` is taken from the wire."""
    return Event(
        id=raw.id,
        global_id=raw.global_id,
        type=raw.type,
        time=raw.time,
        payload=parse(raw),
    )
