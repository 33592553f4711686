#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Persistent build cache deciding which files need recompilation.

The cache is one JSON document mapping each source file key to the content
hash it was last compiled from and the artifact that compilation produced.
The content hash is the sole validity key; modification times are never
consulted. The document is loaded wholesale into an immutable snapshot at
the start of a build and replaced wholesale, atomically, after a successful
compilation.
"""

import os
import enum
import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple
from dataclasses import dataclass, field

from jbuild.constants import CACHE_FORMAT_VERSION, CacheCorruptionError
from jbuild.graph_types import SourceFile

logger = logging.getLogger(__name__)

REASON_FORCED = "forced"
REASON_NOT_CACHED = "not cached"
REASON_CONTENT_CHANGED = "content changed"
REASON_ARTIFACT_MISSING = "artifact missing"
REASON_DEPENDENCY_CHANGED = "dependency changed"


class InvalidationPolicy(enum.Enum):
    """How far a content change spreads through the changed set.

    CONTENT: only files whose own content changed are recompiled. A dependent
        of a changed file is kept when its own content is unchanged.
    TRANSITIVE: every file that transitively depends on a recompiled file is
        recompiled too.
    """

    CONTENT = "content"
    TRANSITIVE = "transitive"


@dataclass(frozen=True)
class CacheEntry:
    """Last successful compilation of one source file.

    Attributes:
        hash: SHA-256 hex digest of the file content that was compiled
        artifact: Path of the artifact the compilation produced
    """

    hash: str
    artifact: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to the persisted JSON shape."""
        return {"hash": self.hash, "artifact": self.artifact}


@dataclass(frozen=True)
class CacheSnapshot:
    """Immutable view of the build cache at one point in time.

    Attributes:
        entries: Cache entries keyed by source file key
        version: Cache document format version
    """

    entries: Mapping[str, CacheEntry] = field(default_factory=dict)
    version: int = CACHE_FORMAT_VERSION

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for a file, or None if it was never compiled."""
        return self.entries.get(key)

    def with_entries(self, updates: Mapping[str, CacheEntry]) -> "CacheSnapshot":
        """Return a new snapshot with the given entries added or replaced."""
        merged = dict(self.entries)
        merged.update(updates)
        return CacheSnapshot(entries=merged, version=self.version)

    def to_document(self) -> Dict[str, Any]:
        """Convert to the persisted JSON document."""
        return {"version": self.version, "entries": {key: self.entries[key].to_dict() for key in sorted(self.entries)}}


def parse_cache_document(document: Any) -> CacheSnapshot:
    """Validate a decoded cache document and build a snapshot from it.

    Args:
        document: Decoded JSON value

    Returns:
        CacheSnapshot holding every entry

    Raises:
        CacheCorruptionError: If the document does not have the cache shape
    """
    if not isinstance(document, dict):
        raise CacheCorruptionError("cache document is not a JSON object")

    version = document.get("version")
    if version != CACHE_FORMAT_VERSION:
        raise CacheCorruptionError(f"unsupported cache version {version!r} (expected {CACHE_FORMAT_VERSION})")

    raw_entries = document.get("entries")
    if not isinstance(raw_entries, dict):
        raise CacheCorruptionError("cache document has no 'entries' object")

    entries: Dict[str, CacheEntry] = {}
    for key, value in raw_entries.items():
        if not isinstance(value, dict) or not isinstance(value.get("hash"), str) or not isinstance(value.get("artifact"), str):
            raise CacheCorruptionError(f"malformed cache entry for {key!r}")
        entries[key] = CacheEntry(hash=value["hash"], artifact=value["artifact"])

    return CacheSnapshot(entries=entries, version=version)


def read_cache_document(cache_path: str) -> CacheSnapshot:
    """Load the cache strictly.

    Args:
        cache_path: Path to the cache file

    Returns:
        CacheSnapshot (empty if the file does not exist)

    Raises:
        CacheCorruptionError: If the file cannot be read or is not a valid cache document
    """
    if not os.path.exists(cache_path):
        logger.debug("Cache miss: %s does not exist", cache_path)
        return CacheSnapshot()

    try:
        with open(cache_path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CacheCorruptionError(f"cannot read cache {cache_path}: {e}") from e

    return parse_cache_document(document)


def load_cache(cache_path: str) -> CacheSnapshot:
    """Load the cache, discarding it if it is corrupt.

    A corrupt cache is never fatal: every file is simply treated as uncached
    and the next successful build rewrites the document from scratch.

    Args:
        cache_path: Path to the cache file

    Returns:
        CacheSnapshot (empty if missing or corrupt)
    """
    try:
        snapshot = read_cache_document(cache_path)
    except CacheCorruptionError as e:
        logger.warning("Discarding corrupt build cache (%s), rebuilding from scratch", e)
        return CacheSnapshot()

    logger.debug("Loaded %s cache entries from %s", len(snapshot), cache_path)
    return snapshot


def save_cache(cache_path: str, snapshot: CacheSnapshot) -> bool:
    """Write the cache document.

    Uses atomic write (temp file + rename) so an interrupted write leaves the
    previous document intact.

    Args:
        cache_path: Path to the cache file
        snapshot: Snapshot to persist

    Returns:
        True if successful, False otherwise
    """
    temp_path = cache_path + ".tmp"
    try:
        cache_dir = os.path.dirname(cache_path)
        if cache_dir:
            os.makedirs(cache_dir, exist_ok=True)

        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_document(), f, indent=2)
            f.write("\n")

        os.replace(temp_path, cache_path)
        logger.debug("Saved cache: %s (%s entries)", cache_path, len(snapshot))
        return True

    except (OSError, TypeError, ValueError) as e:
        logger.warning("Failed to save cache %s: %s", cache_path, e)
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as cleanup_error:
                logger.debug("Could not remove %s: %s", temp_path, cleanup_error)
        return False


def should_recompile(source: SourceFile, snapshot: CacheSnapshot, force: bool = False) -> Tuple[bool, str]:
    """Decide whether one file needs recompilation.

    Args:
        source: Current snapshot of the file
        snapshot: Cache state from before this build
        force: Force-rebuild override for this invocation

    Returns:
        Tuple of (needs recompilation, reason). The reason is empty when the file is up to date.
    """
    if force:
        return True, REASON_FORCED

    entry = snapshot.get(source.key)
    if entry is None:
        return True, REASON_NOT_CACHED

    if entry.hash != source.content_hash:
        return True, REASON_CONTENT_CHANGED

    if not os.path.exists(entry.artifact):
        return True, REASON_ARTIFACT_MISSING

    return False, ""


def compute_changed_set(
    plan_order: Iterable[str],
    sources: Mapping[str, SourceFile],
    snapshot: CacheSnapshot,
    force: bool = False,
    policy: InvalidationPolicy = InvalidationPolicy.CONTENT,
    dependents_of: Optional[Callable[[Set[str]], Set[str]]] = None,
) -> Tuple[List[str], Dict[str, str]]:
    """Compute the files to recompile for a build plan.

    Under InvalidationPolicy.CONTENT the result is not closed over dependents.
    A file whose own hash is unchanged stays cached even if a dependency
    changed. Under TRANSITIVE, dependents_of (a callable mapping a set of keys
    to the set of their transitive dependents) extends the set.

    Args:
        plan_order: Build order
        sources: Current file snapshots by key
        snapshot: Cache state from before this build
        force: Recompile the entire plan
        policy: Invalidation policy
        dependents_of: Dependents lookup, required for TRANSITIVE

    Returns:
        Tuple of (changed keys in plan order, reason per changed key)
    """
    order = list(plan_order)
    reasons: Dict[str, str] = {}

    for key in order:
        needed, reason = should_recompile(sources[key], snapshot, force)
        if needed:
            reasons[key] = reason

    if policy is InvalidationPolicy.TRANSITIVE and reasons and not force:
        if dependents_of is None:
            raise ValueError("TRANSITIVE invalidation needs a dependents lookup")
        in_plan = set(order)
        for key in sorted(dependents_of(set(reasons)) & in_plan):
            reasons.setdefault(key, REASON_DEPENDENCY_CHANGED)

    changed = [key for key in order if key in reasons]
    logger.debug("Changed set: %s of %s files (%s)", len(changed), len(order), policy.value)
    return changed, reasons
