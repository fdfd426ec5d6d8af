# chess_patterns/core/palette.py
"""Maps a (side, piece kind) pair to the color a visit is painted with."""

from typing import TYPE_CHECKING, Dict, Optional

from chess_patterns.types import PieceKind, Side

if TYPE_CHECKING:
    from chess_patterns.config.settings import PaletteSettings


class ColorPalette:
    """An immutable lookup from side and piece kind to a color string."""

    def __init__(self, primary: Dict[PieceKind, str], secondary: Dict[PieceKind, str], fallback: str):
        self._colors: Dict[Side, Dict[PieceKind, str]] = {
            Side.PRIMARY: dict(primary),
            Side.SECONDARY: dict(secondary),
        }
        self._fallback = fallback

    @classmethod
    def from_settings(cls, palette_settings: Optional["PaletteSettings"] = None) -> "ColorPalette":
        if palette_settings is None:
            from chess_patterns.config.settings import PaletteSettings
            palette_settings = PaletteSettings()
        return cls(palette_settings.primary, palette_settings.secondary, palette_settings.fallback)

    def color_for(self, side: Side, piece_kind: PieceKind) -> str:
        return self._colors[side].get(piece_kind, self._fallback)
