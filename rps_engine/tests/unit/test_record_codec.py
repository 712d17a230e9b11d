"""
记录编解码单元测试
"""

import struct

import pytest

from rps_engine.core.commitment import create_commitment
from rps_engine.core.snapshot import (
    DeserializationError, RecordCodec, RecordKind, SerializationError, max_record_size,
    max_tournament_record_size
)
from rps_engine.core.types import (
    Choice, CurrencyMode, Game, GameMode, GamePhase, Player, Tournament, MAX_U64
)


def sample_game():
    salt = bytes(range(32))
    return Game(
        game_id="game-α",
        host="host",
        min_players=3,
        max_players=4,
        required_player_count=4,
        total_rounds=5,
        entry_fee=MAX_U64,
        required_timeout=60,
        last_action_timestamp=1_700_000_000,
        players=[
            Player(identity="host", choice=Choice.PAPER, revealed=True, score=7, claimed=True),
            Player(identity="bot_" + "f" * 28, commitment=create_commitment(Choice.ROCK, salt),
                   salt=salt, is_bot=True),
        ],
        state=GamePhase.FINISHED,
        current_round=5,
        game_pot=123,
        fee_collected=4,
        losers_can_rejoin=True,
        game_mode=GameMode.AUTOMATED,
        auto_round_delay=30,
        max_auto_rounds=3,
        current_auto_round=2,
        currency_mode=CurrencyMode.TOKEN,
        token_id="mint",
        version=9,
        total_deposited=200,
        total_paid_out=73,
        winning_score=7,
        winner_count=1,
        payout_share=61,
    )


class TestGameCodec:
    """测试对局记录编解码"""

    def test_round_trip(self):
        game = sample_game()
        assert RecordCodec.decode_game(RecordCodec.encode_game(game)) == game

    def test_unsettled_game_round_trip(self):
        game = sample_game()
        game.clear_settlement()
        game.token_id = None
        decoded = RecordCodec.decode_game(RecordCodec.encode_game(game))
        assert decoded.winning_score is None
        assert decoded.token_id is None

    def test_record_is_padded_to_capacity(self):
        game = sample_game()
        data = RecordCodec.encode_game(game)
        assert len(data) == max_record_size(4)
        assert max_record_size(4) > max_record_size(3)
        assert data[0] == RecordKind.GAME

    def test_entry_fee_is_little_endian(self):
        game = sample_game()
        game.entry_fee = 1
        data = RecordCodec.encode_game(game)
        # 类型标记1字节 + 两个身份槽 + 6个u8字段
        offset = 1 + 32 + 32 + 6
        assert struct.unpack_from('<Q', data, offset)[0] == 1

    def test_too_many_players(self):
        game = sample_game()
        game.max_players = 1
        with pytest.raises(SerializationError):
            RecordCodec.encode_game(game)

    def test_identity_too_long(self):
        game = sample_game()
        game.host = "h" * 33
        with pytest.raises(SerializationError):
            RecordCodec.encode_game(game)

    def test_truncated_record(self):
        data = RecordCodec.encode_game(sample_game())
        with pytest.raises(DeserializationError):
            RecordCodec.decode_game(data[:100])

    def test_wrong_kind(self):
        tournament = Tournament(tournament_id="t", host="h", max_players=2, entry_fee=0)
        with pytest.raises(DeserializationError):
            RecordCodec.decode_game(RecordCodec.encode_tournament(tournament))

    def test_invalid_phase_byte(self):
        data = bytearray(RecordCodec.encode_game(sample_game()))
        data[1 + 32 + 32 + 3] = 9
        with pytest.raises(DeserializationError):
            RecordCodec.decode_game(bytes(data))

    def test_dict_view_round_trip(self):
        game = sample_game()
        view = RecordCodec.game_to_dict(game)
        assert view['state'] == 'FINISHED'
        assert view['players'][1]['is_bot'] is True
        assert RecordCodec.game_from_dict(view) == game

    def test_dict_view_missing_field(self):
        view = RecordCodec.game_to_dict(sample_game())
        del view['players']
        with pytest.raises(DeserializationError):
            RecordCodec.game_from_dict(view)


class TestTournamentCodec:
    """测试锦标赛记录编解码"""

    def test_round_trip(self):
        tournament = Tournament(
            tournament_id="cup", host="host", max_players=8, entry_fee=500,
            players=["a", "b", "c"], prize_pool=1500, version=3,
        )
        data = RecordCodec.encode_tournament(tournament)
        assert len(data) == max_tournament_record_size(8)
        assert RecordCodec.decode_tournament(data) == tournament

    def test_dict_round_trip(self):
        tournament = Tournament(tournament_id="cup", host="host", max_players=2, entry_fee=0,
                                currency_mode=CurrencyMode.TOKEN, token_id="mint")
        view = RecordCodec.tournament_to_dict(tournament)
        assert RecordCodec.tournament_from_dict(view) == tournament
