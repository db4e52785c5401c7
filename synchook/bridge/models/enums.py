"""Shared enumerations used across the bridge."""

from __future__ import annotations

from enum import StrEnum


class EventType(StrEnum):
    """Event type names emitted by Syncthing's ``/rest/events`` endpoint.

    Dispatch never requires a type to be listed here; the wire ``type`` string
    is used as-is.  The enum exists to flag likely typos in script registries.
    """

    # Devices
    CLUSTER_CONFIG_RECEIVED = "ClusterConfigReceived"
    DEVICE_CONNECTED = "DeviceConnected"
    DEVICE_DISCONNECTED = "DeviceDisconnected"
    DEVICE_DISCOVERED = "DeviceDiscovered"
    DEVICE_PAUSED = "DevicePaused"
    DEVICE_REJECTED = "DeviceRejected"
    DEVICE_RESUMED = "DeviceResumed"
    PENDING_DEVICES_CHANGED = "PendingDevicesChanged"

    # Folders
    FOLDER_COMPLETION = "FolderCompletion"
    FOLDER_ERRORS = "FolderErrors"
    FOLDER_PAUSED = "FolderPaused"
    FOLDER_REJECTED = "FolderRejected"
    FOLDER_RESUMED = "FolderResumed"
    FOLDER_SCAN_PROGRESS = "FolderScanProgress"
    FOLDER_SUMMARY = "FolderSummary"
    FOLDER_WATCH_STATE_CHANGED = "FolderWatchStateChanged"
    PENDING_FOLDERS_CHANGED = "PendingFoldersChanged"
    STATE_CHANGED = "StateChanged"

    # Items and indexes
    DOWNLOAD_PROGRESS = "DownloadProgress"
    ITEM_FINISHED = "ItemFinished"
    ITEM_STARTED = "ItemStarted"
    LOCAL_CHANGE_DETECTED = "LocalChangeDetected"
    LOCAL_INDEX_UPDATED = "LocalIndexUpdated"
    REMOTE_CHANGE_DETECTED = "RemoteChangeDetected"
    REMOTE_DOWNLOAD_PROGRESS = "RemoteDownloadProgress"
    REMOTE_INDEX_UPDATED = "RemoteIndexUpdated"

    # Daemon
    CONFIG_SAVED = "ConfigSaved"
    FAILURE = "Failure"
    LISTEN_ADDRESSES_CHANGED = "ListenAddressesChanged"
    LOGIN_ATTEMPT = "LoginAttempt"
    STARTING = "Starting"
    STARTUP_COMPLETE = "StartupComplete"

    @classmethod
    def is_known(cls, name: str) -> bool:
        return name in cls._value2member_map_
