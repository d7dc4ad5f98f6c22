"""
Core resolution engine.

This package contains the primary logic. `ResolutionPipeline` drives a run
from product id to files on disk, `ResponseCorrelator` turns the SyncUpdates
document into update identities, and `SyncDocument` is the indexed tree both
operate on.
"""
