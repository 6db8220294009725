from __future__ import annotations

import json
from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, TypeVar

from .addresses import short_address

T = TypeVar("T")


def _read_json(path: str, logger, table: str) -> Optional[Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        if logger is not None:
            logger.warning("lookup_table_unavailable", extra={"table": table, "path": path, "error": "missing"})
    except (OSError, json.JSONDecodeError) as exc:
        if logger is not None:
            logger.warning("lookup_table_unavailable", extra={"table": table, "path": path, "error": str(exc)})
    return None


def parse_programs(data: Any) -> Optional[Mapping[str, str]]:
    rows = data.get("data") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        return None
    names = {}
    for row in rows:
        if not isinstance(row, dict):
            continue
        program_id = row.get("programId")
        name = row.get("programName")
        if isinstance(program_id, str) and program_id and isinstance(name, str) and name:
            names[program_id] = name
    return MappingProxyType(names)


def parse_accounts(data: Any) -> Optional[FrozenSet[str]]:
    rows = data.get("accounts") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        return None
    return frozenset(
        row["ownerAddress"]
        for row in rows
        if isinstance(row, dict) and isinstance(row.get("ownerAddress"), str) and row["ownerAddress"]
    )


class LookupTableIndex:
    """Read-only reference tables: known program names and known (excluded) accounts.

    Either table may be missing. Without program names, ids are shown shortened;
    without known accounts, nothing is filtered.
    """

    def __init__(
        self,
        programs: Optional[Mapping[str, str]] = None,
        accounts: Optional[FrozenSet[str]] = None,
    ):
        self.programs = programs
        self.accounts = accounts

    @classmethod
    def load(cls, programs_path: str, accounts_path: str, logger=None) -> "LookupTableIndex":
        programs = None
        raw = _read_json(programs_path, logger, "programs")
        if raw is not None:
            programs = parse_programs(raw)
            if programs is None and logger is not None:
                logger.warning(
                    "lookup_table_unavailable",
                    extra={"table": "programs", "path": programs_path, "error": "unexpected shape"},
                )

        accounts = None
        raw = _read_json(accounts_path, logger, "accounts")
        if raw is not None:
            accounts = parse_accounts(raw)
            if accounts is None and logger is not None:
                logger.warning(
                    "lookup_table_unavailable",
                    extra={"table": "accounts", "path": accounts_path, "error": "unexpected shape"},
                )

        if logger is not None:
            logger.info(
                "lookup_tables_loaded",
                extra={
                    "programs": len(programs) if programs is not None else None,
                    "accounts": len(accounts) if accounts is not None else None,
                },
            )
        return cls(programs, accounts)

    @property
    def has_programs(self) -> bool:
        return self.programs is not None

    @property
    def has_accounts(self) -> bool:
        return self.accounts is not None

    def program_name(self, program_id: str) -> Optional[str]:
        if self.programs is None:
            return None
        return self.programs.get(program_id)

    def resolve_program_name(self, program_id: str) -> str:
        return self.program_name(program_id) or short_address(program_id)

    def is_known_account(self, address: str) -> bool:
        if self.accounts is None:
            return False
        return address in self.accounts

    def filter_unknown(self, items: Iterable[T], key=lambda item: item.owner_address) -> List[T]:
        if self.accounts is None:
            return list(items)
        return [item for item in items if not self.is_known_account(key(item))]
