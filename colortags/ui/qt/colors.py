from typing import List, Optional

from PySide6.QtGui import QColor


def to_qcolor(color: str) -> Optional[QColor]:
    """QColor for a tag color name or #RRGGBB literal; None if Qt can't parse it."""
    qcolor = QColor(color)
    return qcolor if qcolor.isValid() else None


def is_dark_color(color) -> bool:
    """
    Determines if a color is dark (needs white text) or light (needs dark text).
    Uses the luminance formula: 0.299*R + 0.587*G + 0.114*B
    """
    if isinstance(color, str):
        color = QColor(color)

    luminance = (0.299 * color.red() + 0.587 * color.green() + 0.114 * color.blue()) / 255
    return luminance < 0.5


def palette_names() -> List[str]:
    """Named colors offered by the tag prompt."""
    return list(QColor.colorNames())
