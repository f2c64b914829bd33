"""
Random token generators: pure, side-effect-free functions.

The fallback challenge is never checked against anything, so it uses the
system PRNG rather than the ``secrets`` module.
"""

from __future__ import annotations

import random
import string

FALLBACK_CHALLENGE_ALPHABET = string.ascii_lowercase + string.digits
FALLBACK_CHALLENGE_LENGTH = 32


def generate_fallback_challenge() -> str:
    """Generate the challenge handed out while GeeTest is in bypass mode.

    Characters are drawn without replacement, so a token never repeats a
    character.

    Returns:
        32-character string over ``[a-z0-9]``.
    """
    return "".join(
        random.sample(FALLBACK_CHALLENGE_ALPHABET, FALLBACK_CHALLENGE_LENGTH)
    )
