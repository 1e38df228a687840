"""Theme palettes and font stacks for the generated stylesheet.

The color scheme and font are closed enumerations (see ``config``). Unknown
values fall back to the default palette and the system font stack.
"""

from __future__ import annotations

PALETTES: dict[str, str] = {
    "pika-beach": "--bg-color: 255, 252, 245; --text-color: 40, 59, 67; --accent-color: #048AA2; --secondary-color: #6c6f85;",
    "catppuccin-latte": "--bg-color: 239, 241, 245; --text-color: 76, 79, 105; --accent-color: #8839ef; --secondary-color: #6c6f85;",
    "catppuccin-frappe": "--bg-color: 48, 52, 70; --text-color: 198, 208, 245; --accent-color: #ca9ee6; --secondary-color: #838ba7;",
    "catppuccin-macchiato": "--bg-color: 36, 39, 58; --text-color: 202, 211, 245; --accent-color: #c6a0f6; --secondary-color: #8087a2;",
    "catppuccin-mocha": "--bg-color: 30, 30, 46; --text-color: 205, 214, 244; --accent-color: #cba6f7; --secondary-color: #7f849c;",
    "dracula": "--bg-color: 40, 42, 54; --text-color: 248, 248, 242; --accent-color: #bd93f9; --secondary-color: #6272a4;",
    "nord": "--bg-color: 46, 52, 64; --text-color: 216, 222, 233; --accent-color: #88c0d0; --secondary-color: #4c566a;",
    "tokyo-night": "--bg-color: 26, 27, 38; --text-color: 169, 177, 214; --accent-color: #7aa2f7; --secondary-color: #565f89;",
    "3li7e": "--bg-color: 0, 0, 0; --text-color: 0, 255, 0; --accent-color: #00ff41; --secondary-color: #008f11;",
}

DEFAULT_PALETTE = PALETTES["pika-beach"]

FONT_STACKS: dict[str, str] = {
    "pika-serif": "'Source Serif 4', Georgia, serif",
    "serif": "Georgia, serif",
    "monospace": "'Courier New', monospace",
    "arial": "Arial, sans-serif",
    "helvetica": "'Helvetica Neue', Helvetica, sans-serif",
    "georgia": "Georgia, serif",
    "times": "'Times New Roman', Times, serif",
}

# "system" and unknown fonts share this stack.
DEFAULT_FONT_STACK = "system-ui, -apple-system, sans-serif"


def css_variables(color_scheme: str, font: str) -> str:
    """Return the ``:root`` custom properties for a scheme and font.

    Examples:
        >>> css_variables("nord", "serif").endswith("--font-family: Georgia, serif;")
        True
    """
    palette = PALETTES.get(color_scheme, DEFAULT_PALETTE)
    stack = FONT_STACKS.get(font, DEFAULT_FONT_STACK)
    return f"{palette} --font-family: {stack};"
