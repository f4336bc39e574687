"""
초기 데이터 스크립트 테스트
"""
from decimal import Decimal

from wallet_ledger.models.player import Player
from wallet_ledger.scripts.initialize_db import DEFAULT_PLAYERS, initialize_database


def test_initialize_database_seeds_default_players(db_session):
    added = initialize_database()

    assert added == len(DEFAULT_PLAYERS)
    for player_id, name, balance in DEFAULT_PLAYERS:
        player = db_session.get(Player, player_id)
        assert player is not None
        assert player.name == name
        assert player.balance == Decimal("100.00")


def test_initialize_database_is_repeatable(create_player, get_balance):
    player_id, _, _ = DEFAULT_PLAYERS[0]
    create_player("5.00", player_id=player_id)

    # 이미 있는 플레이어의 잔액은 덮어쓰지 않음
    assert initialize_database() == len(DEFAULT_PLAYERS) - 1
    assert initialize_database() == 0
    assert get_balance(player_id) == Decimal("5.00")
