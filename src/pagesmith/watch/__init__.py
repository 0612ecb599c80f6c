"""Dependency tracking and incremental rebuilds."""

from pagesmith.watch.tracker import DependencyTracker
from pagesmith.watch.tracking import TrackingCache, TrackingPipelineIO

__all__ = ["DependencyTracker", "TrackingCache", "TrackingPipelineIO"]
