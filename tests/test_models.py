from alayeseke_bot.models import (
    ProgramInfo,
    WalletNfts,
    WalletPnl,
    WalletTokens,
    candles_from_json,
    transfers_from_json,
)


def test_numeric_strings_are_coerced():
    tokens = WalletTokens.from_json(
        {
            "data": [{"symbol": "SOL", "amount": "1.5", "valueUsd": "300.25", "priceUsd": "200.1666"}],
            "totalTokenValueUsd": "300.25",
            "solValueUsd": None,
        }
    )
    assert tokens.tokens[0].amount == 1.5
    assert tokens.total_token_value_usd == 300.25
    assert tokens.sol_value_usd == 0.0
    assert tokens.total_token_count == 1


def test_nan_and_garbage_become_zero():
    pnl = WalletPnl.from_json(
        {"summary": {"winRate": "NaN", "realizedPnlUsd": "abc", "unrealizedPnlUsd": float("inf")}}
    )
    assert pnl.summary.win_rate_pct == 0.0
    assert pnl.summary.realized_pnl_usd == 0.0
    assert pnl.summary.unrealized_pnl_usd == 0.0


def test_non_dict_payloads_do_not_raise():
    assert WalletPnl.from_json("oops").tokens == []
    assert WalletNfts.from_json(None).collections == []
    assert candles_from_json({"data": "nope"}) == []
    assert ProgramInfo.from_json([]).name == ""


def test_list_payloads_accepted_directly():
    candles = candles_from_json([{"time": 1, "open": "1", "high": "2", "low": "0.5", "close": "1.5", "volume": "10"}, "x"])
    assert len(candles) == 1
    assert candles[0].high == 2.0


def test_transfers_under_either_key():
    row = {"senderAddress": "a", "receiverAddress": "b", "amount": "5", "signature": "sig"}
    assert transfers_from_json({"transfers": [row]})[0].amount == 5.0
    assert transfers_from_json({"data": [row]})[0].signature == "sig"


def test_program_info_accepts_both_shapes():
    flat = ProgramInfo.from_json({"friendlyName": "Orca", "dau": 120, "labels": ["DEX", None]})
    nested = ProgramInfo.from_json({"data": {"name": "Orca", "stats": {"activeUsers": 120}}})
    assert flat.name == nested.name == "Orca"
    assert flat.active_users_1d == nested.active_users_1d == 120
    assert flat.labels == ["DEX"]
