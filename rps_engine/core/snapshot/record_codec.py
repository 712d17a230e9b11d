"""
记录编解码

对局与锦标赛记录使用小端定长布局：身份槽32字节（UTF-8，尾部补零），
承诺槽64字节，盐值槽32字节。记录按容量补齐到 max_record_size，存储槽大小在创建时确定。
另外提供字典视图，便于日志与调试输出。
"""

import struct
from typing import Any, Dict, List, Optional, Tuple

from ..types import (
    Choice, CurrencyMode, Game, GameMode, GamePhase, Player, Tournament,
    COMMITMENT_SIZE, IDENTITY_SIZE, SALT_SIZE
)

__all__ = [
    'RecordKind',
    'RecordCodec',
    'SerializationError',
    'DeserializationError',
    'max_record_size',
    'max_tournament_record_size',
]


class SerializationError(Exception):
    """序列化错误"""
    pass


class DeserializationError(Exception):
    """反序列化错误"""
    pass


class RecordKind:
    """记录首字节类型标记"""
    GAME = 1
    TOURNAMENT = 2


_KIND = struct.Struct('<B')
_COUNT = struct.Struct('<I')

# 对局头部（身份槽与代币槽另行写入）
_GAME_HEADER = struct.Struct(
    '<'
    'BBBBBB'    # min, max, required, state, current_round, total_rounds
    'QQQQq'     # entry_fee, game_pot, fee_collected, required_timeout, last_action_timestamp
    'BB'        # losers_can_rejoin, game_mode
    'QQQ'       # auto_round_delay, max_auto_rounds, current_auto_round
    'B'         # currency_mode
    'QQQ'       # version, total_deposited, total_paid_out
    'BQBQ'      # has_winning_score, winning_score, winner_count, payout_share
)

_PLAYER_FLAGS = struct.Struct('<B')
_PLAYER_TAIL = struct.Struct('<BQBB')   # revealed, score, claimed, is_bot

_TOURNAMENT_HEADER = struct.Struct('<BQBQBQ')   # max_players, entry_fee, currency_mode, prize_pool, is_started, version

_OPTIONAL_IDENTITY_SIZE = 1 + IDENTITY_SIZE
_PLAYER_SIZE = IDENTITY_SIZE + _PLAYER_FLAGS.size + COMMITMENT_SIZE + SALT_SIZE + _PLAYER_TAIL.size


def max_record_size(max_players: int) -> int:
    """容量为max_players的对局记录所需字节数"""
    return (_KIND.size + 2 * IDENTITY_SIZE + _GAME_HEADER.size + _OPTIONAL_IDENTITY_SIZE
            + _COUNT.size + max_players * _PLAYER_SIZE)


def max_tournament_record_size(max_players: int) -> int:
    """容量为max_players的锦标赛记录所需字节数"""
    return (_KIND.size + 2 * IDENTITY_SIZE + _TOURNAMENT_HEADER.size + _OPTIONAL_IDENTITY_SIZE
            + _COUNT.size + max_players * IDENTITY_SIZE)


def _pack_identity(identity: str) -> bytes:
    raw = identity.encode('utf-8')
    if not raw or len(raw) > IDENTITY_SIZE:
        raise SerializationError(f"身份无法放入{IDENTITY_SIZE}字节身份槽: {identity!r}")
    return raw.ljust(IDENTITY_SIZE, b'\x00')


def _pack_optional_identity(identity: Optional[str]) -> bytes:
    if identity is None:
        return bytes(_OPTIONAL_IDENTITY_SIZE)
    return b'\x01' + _pack_identity(identity)


class _Reader:
    """按偏移顺序读取定长字段"""

    def __init__(self, data: bytes):
        self._data = data
        self._offset = 0

    def take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise DeserializationError(f"记录长度不足: 需要 {end} 字节, 实际 {len(self._data)}")
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> Tuple:
        return fmt.unpack(self.take(fmt.size))

    def identity(self) -> str:
        raw = self.take(IDENTITY_SIZE).rstrip(b'\x00')
        if not raw:
            raise DeserializationError("身份槽为空")
        return raw.decode('utf-8')

    def optional_identity(self) -> Optional[str]:
        present = self.take(1)[0]
        value = self.take(IDENTITY_SIZE)
        if not present:
            return None
        return value.rstrip(b'\x00').decode('utf-8')


class RecordCodec:
    """
    记录编解码器

    对局与锦标赛记录的二进制编解码，以及对应的字典视图。
    """

    # ------------------------------------------------------------------
    # 对局
    # ------------------------------------------------------------------

    @staticmethod
    def encode_game(game: Game) -> bytes:
        """
        将对局记录编码为定长字节串

        Raises:
            SerializationError: 字段超出布局范围或人数超过容量
        """
        if len(game.players) > game.max_players:
            raise SerializationError(
                f"玩家人数 {len(game.players)} 超过容量 {game.max_players}")
        try:
            parts = [
                _KIND.pack(RecordKind.GAME),
                _pack_identity(game.game_id),
                _pack_identity(game.host),
                _GAME_HEADER.pack(
                    game.min_players, game.max_players, game.required_player_count,
                    int(game.state), game.current_round, game.total_rounds,
                    game.entry_fee, game.game_pot, game.fee_collected, game.required_timeout,
                    game.last_action_timestamp,
                    int(game.losers_can_rejoin), int(game.game_mode),
                    game.auto_round_delay, game.max_auto_rounds, game.current_auto_round,
                    int(game.currency_mode),
                    game.version, game.total_deposited, game.total_paid_out,
                    int(game.winning_score is not None), game.winning_score or 0,
                    game.winner_count, game.payout_share,
                ),
                _pack_optional_identity(game.token_id),
                _COUNT.pack(len(game.players)),
            ]
            for player in game.players:
                parts.append(_pack_identity(player.identity))
                parts.append(_PLAYER_FLAGS.pack(int(player.choice)))
                parts.append(bytes(player.commitment))
                parts.append(bytes(player.salt))
                parts.append(_PLAYER_TAIL.pack(
                    int(player.revealed), player.score, int(player.claimed), int(player.is_bot)))
        except struct.error as e:
            raise SerializationError(f"对局 {game.game_id} 编码失败: {e}") from e

        data = b''.join(parts)
        return data.ljust(max_record_size(game.max_players), b'\x00')

    @staticmethod
    def decode_game(data: bytes) -> Game:
        """
        从字节串解码对局记录

        Raises:
            DeserializationError: 长度不足、类型标记不符或字段非法
        """
        reader = _Reader(bytes(data))
        try:
            kind, = reader.unpack(_KIND)
            if kind != RecordKind.GAME:
                raise DeserializationError(f"不是对局记录: 类型标记 {kind}")
            game_id = reader.identity()
            host = reader.identity()
            (min_players, max_players, required, state, current_round, total_rounds,
             entry_fee, game_pot, fee_collected, required_timeout, last_action_timestamp,
             losers_can_rejoin, game_mode, auto_round_delay, max_auto_rounds, current_auto_round,
             currency_mode, version, total_deposited, total_paid_out,
             has_winning_score, winning_score, winner_count, payout_share) = reader.unpack(_GAME_HEADER)
            token_id = reader.optional_identity()
            count, = reader.unpack(_COUNT)
            if count > max_players:
                raise DeserializationError(f"玩家人数 {count} 超过容量 {max_players}")

            players: List[Player] = []
            for _ in range(count):
                identity = reader.identity()
                choice, = reader.unpack(_PLAYER_FLAGS)
                commitment = reader.take(COMMITMENT_SIZE)
                salt = reader.take(SALT_SIZE)
                revealed, score, claimed, is_bot = reader.unpack(_PLAYER_TAIL)
                players.append(Player(
                    identity=identity,
                    choice=Choice(choice),
                    commitment=commitment,
                    salt=salt,
                    revealed=bool(revealed),
                    score=score,
                    claimed=bool(claimed),
                    is_bot=bool(is_bot),
                ))

            return Game(
                game_id=game_id,
                host=host,
                min_players=min_players,
                max_players=max_players,
                required_player_count=required,
                total_rounds=total_rounds,
                entry_fee=entry_fee,
                required_timeout=required_timeout,
                last_action_timestamp=last_action_timestamp,
                players=players,
                state=GamePhase(state),
                current_round=current_round,
                game_pot=game_pot,
                fee_collected=fee_collected,
                losers_can_rejoin=bool(losers_can_rejoin),
                game_mode=GameMode(game_mode),
                auto_round_delay=auto_round_delay,
                max_auto_rounds=max_auto_rounds,
                current_auto_round=current_auto_round,
                currency_mode=CurrencyMode(currency_mode),
                token_id=token_id,
                version=version,
                total_deposited=total_deposited,
                total_paid_out=total_paid_out,
                winning_score=winning_score if has_winning_score else None,
                winner_count=winner_count,
                payout_share=payout_share,
            )
        except DeserializationError:
            raise
        except (ValueError, UnicodeDecodeError, struct.error) as e:
            raise DeserializationError(f"对局记录解码失败: {e}") from e

    # ------------------------------------------------------------------
    # 锦标赛
    # ------------------------------------------------------------------

    @staticmethod
    def encode_tournament(tournament: Tournament) -> bytes:
        if len(tournament.players) > tournament.max_players:
            raise SerializationError(
                f"报名人数 {len(tournament.players)} 超过容量 {tournament.max_players}")
        try:
            parts = [
                _KIND.pack(RecordKind.TOURNAMENT),
                _pack_identity(tournament.tournament_id),
                _pack_identity(tournament.host),
                _TOURNAMENT_HEADER.pack(
                    tournament.max_players, tournament.entry_fee, int(tournament.currency_mode),
                    tournament.prize_pool, int(tournament.is_started), tournament.version),
                _pack_optional_identity(tournament.token_id),
                _COUNT.pack(len(tournament.players)),
            ]
            parts.extend(_pack_identity(p) for p in tournament.players)
        except struct.error as e:
            raise SerializationError(f"锦标赛 {tournament.tournament_id} 编码失败: {e}") from e

        data = b''.join(parts)
        return data.ljust(max_tournament_record_size(tournament.max_players), b'\x00')

    @staticmethod
    def decode_tournament(data: bytes) -> Tournament:
        reader = _Reader(bytes(data))
        try:
            kind, = reader.unpack(_KIND)
            if kind != RecordKind.TOURNAMENT:
                raise DeserializationError(f"不是锦标赛记录: 类型标记 {kind}")
            tournament_id = reader.identity()
            host = reader.identity()
            (max_players, entry_fee, currency_mode,
             prize_pool, is_started, version) = reader.unpack(_TOURNAMENT_HEADER)
            token_id = reader.optional_identity()
            count, = reader.unpack(_COUNT)
            if count > max_players:
                raise DeserializationError(f"报名人数 {count} 超过容量 {max_players}")
            players = [reader.identity() for _ in range(count)]

            return Tournament(
                tournament_id=tournament_id,
                host=host,
                max_players=max_players,
                entry_fee=entry_fee,
                currency_mode=CurrencyMode(currency_mode),
                token_id=token_id,
                players=players,
                prize_pool=prize_pool,
                is_started=bool(is_started),
                version=version,
            )
        except DeserializationError:
            raise
        except (ValueError, UnicodeDecodeError, struct.error) as e:
            raise DeserializationError(f"锦标赛记录解码失败: {e}") from e

    @staticmethod
    def record_kind(data: bytes) -> int:
        """读取记录类型标记"""
        if not data:
            raise DeserializationError("空记录")
        return data[0]

    # ------------------------------------------------------------------
    # 字典视图
    # ------------------------------------------------------------------

    @staticmethod
    def game_to_dict(game: Game) -> Dict[str, Any]:
        return {
            'game_id': game.game_id,
            'host': game.host,
            'state': game.state.name,
            'min_players': game.min_players,
            'max_players': game.max_players,
            'required_player_count': game.required_player_count,
            'current_round': game.current_round,
            'total_rounds': game.total_rounds,
            'entry_fee': game.entry_fee,
            'game_pot': game.game_pot,
            'fee_collected': game.fee_collected,
            'required_timeout': game.required_timeout,
            'last_action_timestamp': game.last_action_timestamp,
            'losers_can_rejoin': game.losers_can_rejoin,
            'game_mode': game.game_mode.name,
            'auto_round_delay': game.auto_round_delay,
            'max_auto_rounds': game.max_auto_rounds,
            'current_auto_round': game.current_auto_round,
            'currency_mode': game.currency_mode.name,
            'token_id': game.token_id,
            'version': game.version,
            'total_deposited': game.total_deposited,
            'total_paid_out': game.total_paid_out,
            'winning_score': game.winning_score,
            'winner_count': game.winner_count,
            'payout_share': game.payout_share,
            'players': [
                {
                    'identity': p.identity,
                    'choice': p.choice.name,
                    'commitment': p.commitment.hex(),
                    'salt': p.salt.hex(),
                    'revealed': p.revealed,
                    'score': p.score,
                    'claimed': p.claimed,
                    'is_bot': p.is_bot,
                }
                for p in game.players
            ],
        }

    @staticmethod
    def game_from_dict(data: Dict[str, Any]) -> Game:
        """从字典视图还原对局记录"""
        try:
            players = [
                Player(
                    identity=p['identity'],
                    choice=Choice[p['choice']],
                    commitment=bytes.fromhex(p['commitment']),
                    salt=bytes.fromhex(p['salt']),
                    revealed=p['revealed'],
                    score=p['score'],
                    claimed=p['claimed'],
                    is_bot=p['is_bot'],
                )
                for p in data['players']
            ]
            fields = {k: v for k, v in data.items() if k != 'players'}
            fields['state'] = GamePhase[fields['state']]
            fields['game_mode'] = GameMode[fields['game_mode']]
            fields['currency_mode'] = CurrencyMode[fields['currency_mode']]
            return Game(players=players, **fields)
        except (KeyError, TypeError, ValueError) as e:
            raise DeserializationError(f"对局字典还原失败: {e}") from e

    @staticmethod
    def tournament_to_dict(tournament: Tournament) -> Dict[str, Any]:
        return {
            'tournament_id': tournament.tournament_id,
            'host': tournament.host,
            'max_players': tournament.max_players,
            'entry_fee': tournament.entry_fee,
            'currency_mode': tournament.currency_mode.name,
            'token_id': tournament.token_id,
            'players': list(tournament.players),
            'prize_pool': tournament.prize_pool,
            'is_started': tournament.is_started,
            'version': tournament.version,
        }

    @staticmethod
    def tournament_from_dict(data: Dict[str, Any]) -> Tournament:
        try:
            fields = dict(data)
            fields['currency_mode'] = CurrencyMode[fields['currency_mode']]
            fields['players'] = list(fields['players'])
            return Tournament(**fields)
        except (KeyError, TypeError, ValueError) as e:
            raise DeserializationError(f"锦标赛字典还原失败: {e}") from e
