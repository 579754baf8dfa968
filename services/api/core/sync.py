# services/api/core/sync.py
"""
Two-way synchronization between the asset library and the desks.

Flow:
  1. Library -> desks: after a canonical question is edited, overwrite the
     shared fields of every desk copy carrying its reference.
  2. Desk -> library: after a desk copy is edited, push its shared fields
     back to the one canonical question it references.

Desk-local fields (ids, marks, creator, course/group/category bindings,
timestamps) are never touched here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from adapters.base import DeskStore, LibraryStore
from core.asset_ref import InvalidAssetRefError, encode_asset_ref, parse_asset_ref
from core.lookup import resolve
from core.remote_persist import RemotePersister
from models import DeskKind

logger = logging.getLogger(__name__)


@dataclass
class DeskSet:
    """The three desk stores, injected together."""

    personal: DeskStore
    group: DeskStore
    coaching: DeskStore

    def for_kind(self, kind: DeskKind) -> DeskStore:
        return {
            DeskKind.PERSONAL: self.personal,
            DeskKind.GROUP: self.group,
            DeskKind.COACHING: self.coaching,
        }[kind]


@dataclass
class SyncCounts:
    personal: int = 0
    group: int = 0
    coaching: int = 0

    @property
    def total(self) -> int:
        return self.personal + self.group + self.coaching

    def as_dict(self) -> Dict[str, int]:
        return {
            "personal": self.personal,
            "group": self.group,
            "coaching": self.coaching,
            "total": self.total,
        }


# ---------- library -> desks ----------

def sync_library_to_desk(
    library: LibraryStore,
    desk: DeskStore,
    asset_id: str,
    question_id: str,
    persister: Optional[RemotePersister] = None,
) -> int:
    """
    Overwrite the shared fields of every record in `desk` that references
    (asset_id, question_id). Returns the number of records updated; 0 when
    the reference no longer resolves.

    Desks whose kind persists remotely also hand each updated record to
    `persister`. That write is fire-and-forget: its failure never undoes the
    in-memory update.
    """
    try:
        asset_ref = encode_asset_ref(asset_id, question_id)
    except InvalidAssetRefError as e:
        logger.warning(f"Skipping {desk.kind.value} sync: {e}")
        return 0

    canonical = resolve(library, asset_ref)
    if canonical is None:
        return 0

    persist_remotely = desk.kind.persists_remotely and persister is not None

    synced = 0
    for record in desk.get_current_records():
        if record.asset_ref != asset_ref:
            continue

        updated = record.with_shared_fields(canonical)
        desk.update_record(updated)
        if persist_remotely:
            persister.persist(desk.kind.collection, updated.id, updated.to_storage())
        synced += 1

    if synced:
        logger.info(f"Synced {synced} {desk.kind.value} record(s) from {asset_ref}")
    return synced


def sync_library_to_personal(
    library: LibraryStore,
    desk: DeskStore,
    asset_id: str,
    question_id: str,
    persister: Optional[RemotePersister] = None,
) -> int:
    return sync_library_to_desk(library, desk, asset_id, question_id, persister)


def sync_library_to_group(
    library: LibraryStore,
    desk: DeskStore,
    asset_id: str,
    question_id: str,
    persister: Optional[RemotePersister] = None,
) -> int:
    return sync_library_to_desk(library, desk, asset_id, question_id, persister)


def sync_library_to_coaching(
    library: LibraryStore,
    desk: DeskStore,
    asset_id: str,
    question_id: str,
    persister: Optional[RemotePersister] = None,
) -> int:
    return sync_library_to_desk(library, desk, asset_id, question_id, persister)


def sync_all_desks_from_library(
    library: LibraryStore,
    desks: DeskSet,
    asset_id: str,
    question_id: str,
    persister: Optional[RemotePersister] = None,
) -> SyncCounts:
    """Broadcast one canonical question to all three desks."""
    return SyncCounts(
        personal=sync_library_to_personal(library, desks.personal, asset_id, question_id, persister),
        group=sync_library_to_group(library, desks.group, asset_id, question_id, persister),
        coaching=sync_library_to_coaching(
            library, desks.coaching, asset_id, question_id, persister
        ),
    )


# ---------- desk -> library ----------

def sync_desk_to_library(library: LibraryStore, desk: DeskStore, record_id: str) -> bool:
    """
    Push one desk record's shared fields to the canonical question it
    references. Returns False when the record is missing, untracked, or its
    reference cannot be decoded. Never fans out to other desk copies.
    """
    record = desk.get_record(record_id)
    if record is None or not record.asset_ref:
        return False

    parsed = parse_asset_ref(record.asset_ref)
    if parsed is None:
        return False

    library.update_canonical_question(
        parsed.asset_id,
        parsed.question_id,
        record.shared_fields(),
    )
    logger.info(f"Pushed {desk.kind.value} record {record_id} to library {record.asset_ref}")
    return True


def sync_personal_to_library(library: LibraryStore, desk: DeskStore, record_id: str) -> bool:
    return sync_desk_to_library(library, desk, record_id)


def sync_group_to_library(library: LibraryStore, desk: DeskStore, record_id: str) -> bool:
    return sync_desk_to_library(library, desk, record_id)


def sync_coaching_to_library(library: LibraryStore, desk: DeskStore, record_id: str) -> bool:
    return sync_desk_to_library(library, desk, record_id)
