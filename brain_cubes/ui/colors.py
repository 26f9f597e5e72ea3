"""Palette for the game window."""

from brain_cubes.core.models import GameMode


class GameColors:
    BG = "#0A0E1A"
    CARD_BG = "#141B2D"
    CARD_BG_ALT = "#1E2640"
    BORDER = "#2D3748"

    TEXT_PRIMARY = "#FFFFFF"
    TEXT_SECONDARY = "#A0A8B8"
    TEXT_DISABLED = "#4A5568"

    SUCCESS = "#48BB78"
    ERROR = "#F56565"
    WARNING = "#ECC94B"


MODE_COLORS = {
    GameMode.CLASSIC: "#4ECDC4",
    GameMode.DEPTH: "#8B4513",
    GameMode.STRATEGIC: "#FFD700",
    GameMode.TACTICAL: "#FF6B6B",
    GameMode.DEUS: "#A855F7",
}


def mode_color(mode: GameMode) -> str:
    return MODE_COLORS.get(mode, MODE_COLORS[GameMode.CLASSIC])


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    a = a.strip()
    b = b.strip()
    if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
        return a
    try:
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
    except ValueError:
        return a
    t = max(0.0, min(1.0, float(t)))
    r = int(ar + (br - ar) * t)
    g = int(ag + (bg - ag) * t)
    bl = int(ab + (bb - ab) * t)
    return f"#{r:02X}{g:02X}{bl:02X}"
