"""Previous-rank snapshots, persisted between leaderboard refreshes."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

import streamlit as st

import firebase_admin
from firebase_admin import credentials, firestore

from leaderboard_logic import LeaderboardEntry, apply_rank_changes, rank_snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_DOCUMENT = "previous_ranks"

_db = None


def _get_db():
    global _db
    if _db is None:
        if not firebase_admin._apps:
            cred = credentials.Certificate(dict(st.secrets["firebase"]))
            firebase_admin.initialize_app(cred)
        _db = firestore.client()
    return _db


class InMemoryRankStore:
    """Keeps the snapshot for the lifetime of the process."""

    def __init__(self, ranks: Optional[Mapping[str, int]] = None):
        self._ranks = dict(ranks) if ranks else {}

    def load(self) -> Dict[str, int]:
        return dict(self._ranks)

    def save(self, ranks: Mapping[str, int]) -> None:
        self._ranks = dict(ranks)


class FirestoreRankStore:
    """Stores the snapshot as a single Firestore document.

    The store is best-effort: read and write failures are logged and the
    leaderboard carries on without rank changes.
    """

    def __init__(self, collection: str, document: str = SNAPSHOT_DOCUMENT):
        self.collection = collection
        self.document = document

    def _ref(self):
        return _get_db().collection(self.collection).document(self.document)

    def load(self) -> Dict[str, int]:
        try:
            snapshot = self._ref().get()
        except Exception:
            logger.warning("Could not read previous ranks from Firestore", exc_info=True)
            return {}
        if not getattr(snapshot, "exists", False):
            return {}
        data = snapshot.to_dict() or {}
        ranks = {}
        for name, rank in dict(data.get("ranks", {}) or {}).items():
            try:
                ranks[str(name)] = int(rank)
            except (TypeError, ValueError):
                continue
        return ranks

    def save(self, ranks: Mapping[str, int]) -> None:
        try:
            self._ref().set({"ranks": dict(ranks)})
        except Exception:
            logger.warning("Could not write previous ranks to Firestore", exc_info=True)


def make_rank_store(collection: str = ""):
    return FirestoreRankStore(collection) if collection else InMemoryRankStore()


def should_persist(first_refresh: bool, previous: Optional[Mapping[str, int]]) -> bool:
    """Write on every later refresh; on the first one only if nothing was stored."""
    return not first_refresh or not previous


class RankSnapshotSync:
    """Diff a new all-time leaderboard against the stored snapshot.

    One instance lives for one session. Its first :meth:`sync` leaves an
    existing snapshot alone so a page reload does not wipe out the baseline
    the rank changes are measured against.
    """

    def __init__(self, store):
        self.store = store
        self.first_refresh = True

    def sync(self, board: Sequence[LeaderboardEntry]) -> List[LeaderboardEntry]:
        previous = self.store.load()
        annotated = apply_rank_changes(board, previous)
        if should_persist(self.first_refresh, previous):
            self.store.save(rank_snapshot(annotated))
        self.first_refresh = False
        return annotated
