"""synchook - run scripts in response to Syncthing events."""

__version__ = "0.1.0"
