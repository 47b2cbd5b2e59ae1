"""State/store layer.

This package is the single source of truth for how remote snapshots and
local intents are turned into the in-process view of the shared list.
"""
