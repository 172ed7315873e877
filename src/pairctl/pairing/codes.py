"""Session code generation and normalisation."""

import secrets

from pairctl.config import DEFAULT_CODE_ALPHABET

GROUP_SIZE = 3
SEPARATOR = "-"


def generate_code(length: int = 6, alphabet: str = DEFAULT_CODE_ALPHABET) -> str:
    """Generate a random session code.

    Args:
        length: Number of characters.
        alphabet: Characters to draw from.

    Returns:
        Code string, e.g. "K7QM2X".
    """
    if length <= 0:
        raise ValueError(f"Code length must be positive, got {length}")
    if not alphabet:
        raise ValueError("Code alphabet must not be empty")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_code(text: str) -> str:
    """Normalise user input for comparison ("k7q-m2x " -> "K7QM2X")."""
    return "".join(text.split()).replace(SEPARATOR, "").upper()


def format_code(code: str) -> str:
    """Group a code for display ("K7QM2X" -> "K7Q-M2X")."""
    groups = [code[i : i + GROUP_SIZE] for i in range(0, len(code), GROUP_SIZE)]
    return SEPARATOR.join(groups)
