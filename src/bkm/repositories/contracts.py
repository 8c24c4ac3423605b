from __future__ import annotations

from typing import Iterable, Optional, Protocol


class LedgerRepository(Protocol):
    def get_all(self, collection: str) -> list[dict]: ...
    def get(self, collection: str, doc_id: str) -> Optional[dict]: ...
    def add(self, collection: str, doc: dict) -> str: ...
    def update(self, collection: str, doc_id: str, changes: dict) -> bool: ...
    def delete(self, collection: str, doc_id: str) -> bool: ...
    def bulk_put(self, collection: str, docs: Iterable[dict]) -> int: ...
    def clear(self, collection: str) -> None: ...
    def get_settings(self) -> dict: ...
    def update_settings(self, changes: dict) -> dict: ...
    def save_state(
        self,
        transactions: Iterable[dict],
        inventory: Iterable[dict],
        partners: Iterable[dict],
        settings: dict,
    ) -> None: ...
    def integrity_check(self) -> str: ...
