"""Real-time notification delivery service.

The package keeps a per-session cache of a user's notifications in sync with
the remote store, decides which incoming notifications deserve an interactive
alert and reconciles read-state changes back to the store.
"""
