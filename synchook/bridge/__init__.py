"""Event bridge between the Syncthing REST event stream and local scripts.

- **models**: wire records, payload variants and script invocations
- **client**: authenticated ``/rest/events`` fetch
- **registry**: immutable event type -> invocations mapping
- **dispatcher**: detached script launches
- **poller**: cursor, timer and per-cycle orchestration
"""
