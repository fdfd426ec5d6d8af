# chess_patterns/core/move_sequencer.py
"""
Turns move-notation records into the application's internal `MoveSequence`.

This module acts as an Anti-Corruption Layer, translating data from PGN text
or `python-chess` game objects into our domain's pure data structures
(`MoveSequence`, `MoveRecord`). The board used for replay is private to each
call, and the returned sequence holds only immutable values.

Parsing is strict: the first token that cannot be played raises
`MalformedSequenceError` carrying its offset among the record's move tokens.
Nothing is skipped silently.
"""
import re
from dataclasses import replace
from typing import List, Mapping, Optional, Tuple

import chess
import chess.pgn
import structlog

from chess_patterns.core.chess_utils import (RESULT_TOKENS, outcome_from_result,
                                             piece_kind_of, side_of)
from chess_patterns.core.move_characterizer import characterize_move
from chess_patterns.exceptions import MalformedSequenceError
from chess_patterns.types import (FEN, GameMetadata, InitialOccupant, MoveRecord,
                                  MoveSequence)
from chess_patterns.utils.metrics import (SEQUENCES_MALFORMED_TOTAL,
                                          SEQUENCES_PARSED_TOTAL)

logger = structlog.get_logger(__name__)

_TAG_PAIR_RE = re.compile(r'^\s*\[\s*([A-Za-z0-9_]+)\s+"((?:[^"\\]|\\.)*)"\s*\]\s*$')
_MOVE_NUMBER_RE = re.compile(r'^\d+\.+')
_NAG_RE = re.compile(r'^\$\d+$')
_GLYPH_SUFFIX_RE = re.compile(r'[!?]+$')

def _known(value: Optional[str]) -> Optional[str]:
    """PGN uses "?" for an unknown tag value."""
    return None if value in (None, "", "?") else value

def _metadata_from_headers(headers: Mapping[str, str]) -> GameMetadata:
    return GameMetadata(
        white_player=headers.get("White", "Unknown Player"),
        black_player=headers.get("Black", "Unknown Player"),
        result=headers.get("Result", "*"),
        event=headers.get("Event", "Unknown Event"),
        site=headers.get("Site", "Unknown Site"),
        date=headers.get("Date", "????.??.??"),
        opening=_known(headers.get("Opening")),
        eco=_known(headers.get("ECO")),
    )

def _initial_occupants(board: chess.Board) -> Tuple[InitialOccupant, ...]:
    return tuple(
        InitialOccupant(square=square, piece_kind=piece_kind_of(piece.piece_type), side=side_of(piece.color))
        for square, piece in sorted(board.piece_map().items())
    )

def split_record(raw_record: str) -> Tuple[dict, str]:
    """
    Separates the tag-pair section of a PGN record from its movetext.

    Returns:
        A `(tags, movetext)` tuple. Lines that look like tag pairs are only
        read before the first movetext line.
    """
    tags: dict = {}
    movetext_lines: List[str] = []
    in_headers = True
    for line in raw_record.splitlines():
        if in_headers:
            if not line.strip():
                continue
            match = _TAG_PAIR_RE.match(line)
            if match:
                tags[match.group(1)] = match.group(2).replace('\\"', '"').replace('\\\\', '\\')
                continue
            in_headers = False
        # Lines starting with '%' are escape lines and carry no moves.
        if line.startswith('%'):
            continue
        movetext_lines.append(line)
    return tags, "\n".join(movetext_lines)

def _strip_annotations(movetext: str) -> str:
    """Removes `{...}` and `;...` comments and `(...)` variations, at any nesting depth."""
    out: List[str] = []
    depth = 0
    i = 0
    length = len(movetext)
    while i < length:
        char = movetext[i]
        if char == '{':
            end = movetext.find('}', i + 1)
            i = length if end == -1 else end + 1
            out.append(' ')
            continue
        if char == ';':
            end = movetext.find('\n', i + 1)
            i = length if end == -1 else end + 1
            out.append(' ')
            continue
        if char == '(':
            depth += 1
        elif char == ')':
            depth = max(0, depth - 1)
            out.append(' ')
        elif depth == 0:
            out.append(char)
        i += 1
    return "".join(out)

def tokenize_movetext(movetext: str) -> Tuple[List[str], Optional[str]]:
    """
    Splits movetext into move tokens.

    Move numbers (`12.` and `12...`), NAGs (`$1`), annotation glyphs (`!`, `?`)
    and result tokens are dropped.

    Returns:
        A `(move_tokens, trailing_result)` tuple.
    """
    tokens: List[str] = []
    result: Optional[str] = None
    for raw in _strip_annotations(movetext).split():
        token = _MOVE_NUMBER_RE.sub('', raw)
        if not token or _NAG_RE.match(token):
            continue
        if token in RESULT_TOKENS:
            result = token
            continue
        token = _GLYPH_SUFFIX_RE.sub('', token)
        if token:
            tokens.append(token)
    return tokens, result

def _parse_token(board: chess.Board, token: str) -> chess.Move:
    """Parses a token as SAN, falling back to UCI. Raises ValueError if neither is legal."""
    try:
        move = board.parse_san(token)
    except ValueError as san_error:
        try:
            move = board.parse_uci(token)
        except ValueError:
            raise san_error
    if not move:
        raise ValueError(f"Null move '{token}' is not a playable move.")
    return move

def _build_board(fen: Optional[FEN]) -> chess.Board:
    if fen is None:
        return chess.Board()
    try:
        return chess.Board(fen)
    except ValueError as e:
        SEQUENCES_MALFORMED_TOTAL.inc()
        logger.warning("Rejected record with an invalid starting position.", fen=fen, error=str(e))
        raise MalformedSequenceError(f"Invalid starting FEN: {e}", offset=-1, token=fen) from e

def sequence_moves(raw_record: str, initial_fen: Optional[FEN] = None) -> MoveSequence:
    """
    Replays a PGN record (tag pairs optional) or bare movetext into a `MoveSequence`.

    A `[FEN "..."]` tag sets the starting position unless `initial_fen` is given.

    Args:
        raw_record: The record text.
        initial_fen: An explicit starting position. Wins over any FEN tag.

    Returns:
        The replayed sequence. `len(sequence)` equals the number of move tokens.

    Raises:
        MalformedSequenceError: On the first token that is not a legal move in
            the position reached so far, or on an invalid starting FEN.
    """
    tags, movetext = split_record(raw_record)
    board = _build_board(initial_fen if initial_fen is not None else tags.get("FEN"))
    start_fen = board.fen()
    occupants = _initial_occupants(board)
    tokens, trailing_result = tokenize_movetext(movetext)

    records: List[MoveRecord] = []
    for offset, token in enumerate(tokens):
        try:
            move = _parse_token(board, token)
        except ValueError as e:
            SEQUENCES_MALFORMED_TOTAL.inc()
            logger.warning("Rejected record with an unplayable move token.", offset=offset, token=token, error=str(e))
            raise MalformedSequenceError(f"Unplayable move token: {e}", offset=offset, token=token) from e
        record = characterize_move(board, move, offset + 1)
        board.push(move)
        records.append(replace(record, fen_after=board.fen()))

    result_tag = tags.get("Result")
    if result_tag in (None, "*") and trailing_result is not None:
        result_tag = trailing_result
    headers = dict(tags)
    if result_tag is not None:
        headers["Result"] = result_tag

    SEQUENCES_PARSED_TOTAL.inc()
    logger.debug("Sequenced record.", moves=len(records))
    return MoveSequence(
        records=tuple(records),
        initial_fen=start_fen,
        final_fen=board.fen(),
        initial_occupants=occupants,
        metadata=_metadata_from_headers(headers),
        outcome=outcome_from_result(result_tag),
    )

def sequence_game(game: chess.pgn.Game) -> MoveSequence:
    """
    Replays an already parsed `python-chess` game's mainline into a `MoveSequence`.

    Raises:
        MalformedSequenceError: If the reader recorded errors for the game, or a
            mainline move is illegal. The offset is the failing ply.
    """
    headers = game.headers
    try:
        board = game.board()
    except ValueError as e:
        SEQUENCES_MALFORMED_TOTAL.inc()
        raise MalformedSequenceError(f"Invalid starting FEN: {e}", offset=-1, token=headers.get("FEN")) from e

    start_fen = board.fen()
    occupants = _initial_occupants(board)
    records: List[MoveRecord] = []
    for offset, move in enumerate(game.mainline_moves()):
        if not move or not board.is_legal(move):
            SEQUENCES_MALFORMED_TOTAL.inc()
            logger.warning("Rejected game with an illegal mainline move.", offset=offset, move=move.uci())
            raise MalformedSequenceError("Illegal mainline move.", offset=offset, token=move.uci())
        record = characterize_move(board, move, offset + 1)
        board.push(move)
        records.append(replace(record, fen_after=board.fen()))

    # The PGN reader stops the mainline at the first bad token and records why.
    if game.errors:
        SEQUENCES_MALFORMED_TOTAL.inc()
        error = game.errors[0]
        logger.warning("Rejected game with reader errors.", offset=len(records), error=str(error))
        raise MalformedSequenceError(f"PGN reader error: {error}", offset=len(records))

    SEQUENCES_PARSED_TOTAL.inc()
    return MoveSequence(
        records=tuple(records),
        initial_fen=start_fen,
        final_fen=board.fen(),
        initial_occupants=occupants,
        metadata=_metadata_from_headers(headers),
        outcome=outcome_from_result(headers.get("Result")),
    )
