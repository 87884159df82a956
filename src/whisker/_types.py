"""Shared type definitions for whisker."""

from collections.abc import Mapping
from typing import Any, Literal

# Cleaned item/layout identifier (e.g., "/", "/blog/first-post/")
type Identifier = str

# Representation name, unique within an item
type RepName = str

# Snapshot slot name (raw, pre, post, last, or user-defined)
type SnapshotName = str

# Filter parameters as given in a compile rule
type FilterParams = Mapping[str, Any]

# One step of a resolved filter chain
type FilterStep = tuple[str, FilterParams]

# Modification time in seconds since the epoch; None when unknown
type Mtime = float | None

# What happened to an output file when a rep was written
type WriteAction = Literal["create", "update", "identical"]
