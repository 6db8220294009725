import json
import logging

from alayeseke_bot.config import DATA_DIR
from alayeseke_bot.lookup import LookupTableIndex

PROGRAM_ID = "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"
EXCHANGE = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"

logger = logging.getLogger("test_lookup")


class Holder:
    def __init__(self, owner_address):
        self.owner_address = owner_address


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_loads_both_tables(tmp_path):
    programs = write_json(
        tmp_path / "programs.json",
        {"data": [{"programId": PROGRAM_ID, "programName": "Orca Whirlpools"}, {"bad": 1}]},
    )
    accounts = write_json(tmp_path / "accounts.json", {"accounts": [{"ownerAddress": EXCHANGE}]})
    index = LookupTableIndex.load(programs, accounts, logger)
    assert index.resolve_program_name(PROGRAM_ID) == "Orca Whirlpools"
    assert index.is_known_account(EXCHANGE) is True
    assert index.is_known_account("someone") is False


def test_missing_files_degrade(tmp_path):
    index = LookupTableIndex.load(
        str(tmp_path / "nope.json"), str(tmp_path / "also_nope.json"), logger
    )
    assert index.has_programs is False
    assert index.has_accounts is False
    assert index.resolve_program_name(PROGRAM_ID) == "whir...tyCc"
    holders = [Holder(EXCHANGE), Holder("other")]
    assert index.filter_unknown(holders) == holders


def test_malformed_table_only_disables_that_table(tmp_path):
    bad = tmp_path / "programs.json"
    bad.write_text("{not json", encoding="utf-8")
    accounts = write_json(tmp_path / "accounts.json", {"accounts": [{"ownerAddress": EXCHANGE}]})
    index = LookupTableIndex.load(str(bad), accounts, logger)
    assert index.has_programs is False
    assert index.has_accounts is True
    holders = [Holder(EXCHANGE), Holder("other")]
    assert [h.owner_address for h in index.filter_unknown(holders)] == ["other"]


def test_wrong_shape_is_unavailable(tmp_path):
    programs = write_json(tmp_path / "programs.json", {"programs": []})
    accounts = write_json(tmp_path / "accounts.json", ["not", "an", "object"])
    index = LookupTableIndex.load(programs, accounts, logger)
    assert index.has_programs is False
    assert index.has_accounts is False


def test_bundled_tables_load():
    index = LookupTableIndex.load(
        f"{DATA_DIR}/known_programs.json", f"{DATA_DIR}/known_accounts.json", logger
    )
    assert index.resolve_program_name(PROGRAM_ID) == "Orca Whirlpools"
    assert index.is_known_account(EXCHANGE)
