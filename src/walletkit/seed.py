"""BIP-39 seed phrase utilities.

Generation and validation are delegated to bip_utils; this module only fixes
the word count and normalizes bad input to False instead of raising.
"""

import logging
from typing import Any

from bip_utils import Bip39MnemonicGenerator, Bip39MnemonicValidator, Bip39WordsNum

from walletkit.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_WORDS_NUM = 12

SUPPORTED_WORDS_NUM = (12, 15, 18, 21, 24)


def generate_seed_phrase(words_num: int = DEFAULT_WORDS_NUM) -> str:
    """Generate a random English BIP-39 seed phrase.

    Args:
        words_num: Number of words (12, 15, 18, 21 or 24)

    Returns:
        Space-separated mnemonic

    Raises:
        InvalidArgumentError: If words_num is not a BIP-39 word count
    """
    if words_num not in SUPPORTED_WORDS_NUM:
        raise InvalidArgumentError(
            f"Unsupported seed phrase length {words_num}. Expected one of {SUPPORTED_WORDS_NUM}"
        )

    mnemonic = Bip39MnemonicGenerator().FromWordsNumber(Bip39WordsNum(words_num))
    return mnemonic.ToStr()


def is_valid_seed_phrase(seed_phrase: Any) -> bool:
    """Check a BIP-39 seed phrase (word list and checksum).

    Returns False for empty, non-string or malformed input.
    """
    if not isinstance(seed_phrase, str) or not seed_phrase.strip():
        return False

    try:
        return Bip39MnemonicValidator().IsValid(seed_phrase)
    except ValueError:
        return False
