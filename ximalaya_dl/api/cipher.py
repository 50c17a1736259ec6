"""
Ciphers used by the Ximalaya web player to hide the file path and signed
parameters of VIP tracks.

The algorithms are dictated by the provider and change from time to time, so
the entitlement resolver receives them as a pluggable strategy.
"""

import base64
import binascii
import logging
from typing import Protocol

from ximalaya_dl.exceptions import EntitlementError
from ximalaya_dl.models.album import UrlParams

log = logging.getLogger(__name__)

_FILE_NAME_ALPHABET = (
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ/\\:._-1234567890"
)

# Scrambled RC4 key and the permutation table the player unscrambles it with.
_SCRAMBLED_KEY = "d" + "g3utf1k6yxdwi0" + "9"
_KEY_PERMUTATION = (
    19, 1, 4, 7, 30, 14, 28, 8, 24, 17, 6, 35, 34, 16, 9, 10, 13, 22,
    32, 29, 31, 21, 18, 3, 2, 23, 25, 27, 11, 20, 5, 15, 12, 0, 33, 26,
)  # fmt: skip


class EntitlementCipher(Protocol):
    """The two transforms needed to turn a pay envelope into a download URL."""

    def decrypt_file_name(self, seed: int, file_id: str) -> str: ...

    def decrypt_url_params(self, encrypted: str) -> UrlParams: ...


def _derive_key(scrambled: str, permutation: tuple[int, ...]) -> str:
    """Maps each ``[a-z0-9]`` symbol to the position where the table holds it."""
    chars = []
    for ch in scrambled:
        code = ord(ch) - ord("a") if "a" <= ch <= "z" else ord(ch) - ord("0") + 26
        code = permutation.index(code)
        chars.append(chr(code - 26 + ord("0")) if code > 25 else chr(code + ord("a")))
    return "".join(chars)


def rc4(key: bytes, data: bytes) -> bytes:
    """Plain RC4; encryption and decryption are the same operation."""
    state = list(range(256))
    j = 0
    for i in range(256):
        j = (j + state[i] + key[i % len(key)]) % 256
        state[i], state[j] = state[j], state[i]

    out = bytearray()
    i = j = 0
    for byte in data:
        i = (i + 1) % 256
        j = (j + state[i]) % 256
        state[i], state[j] = state[j], state[i]
        out.append(byte ^ state[(state[i] + state[j]) % 256])
    return bytes(out)


class XimalayaCipher:
    """The cipher pair currently shipped in the Ximalaya web player."""

    def __init__(self) -> None:
        self.key = _derive_key(_SCRAMBLED_KEY, _KEY_PERMUTATION)

    @staticmethod
    def shuffle_alphabet(seed: int) -> str:
        """Shuffles the file-name alphabet with the player's linear congruential generator."""
        source = _FILE_NAME_ALPHABET
        shuffled = []
        for _ in range(len(_FILE_NAME_ALPHABET)):
            seed = (211 * seed + 30031) % 65536
            index = int(seed / 65536 * len(source))
            shuffled.append(source[index])
            source = source.replace(source[index], "")
        return "".join(shuffled)

    def decrypt_file_name(self, seed: int, file_id: str) -> str:
        """
        Decodes a ``*``-separated list of indices into the shuffled alphabet.

        Args:
            seed: The ``seed`` field of the pay envelope.
            file_id: The ``fileId`` field, e.g. ``"12*5*40*"``.

        Returns:
            The path fragment appended after ``/download/{apiVersion}``.
        """
        alphabet = self.shuffle_alphabet(seed)
        try:
            return "".join(alphabet[int(part)] for part in file_id.split("*") if part)
        except (ValueError, IndexError) as e:
            raise EntitlementError(f"Could not decode file id '{file_id}': {e}") from e

    def decrypt_url_params(self, encrypted: str) -> UrlParams:
        """Decrypts the ``ep`` blob into ``sign``, ``buy_key``, ``token`` and ``timestamp``."""
        try:
            raw = base64.b64decode(encrypted)
        except (binascii.Error, ValueError) as e:
            raise EntitlementError(f"Encrypted params are not valid Base64: {e}") from e

        plain = rc4(self.key.encode("ascii"), raw).decode("latin-1")
        parts = plain.split("-")
        if len(parts) != 4:
            raise EntitlementError(
                f"Expected 4 encrypted params, got {len(parts)}: '{plain}'"
            )

        sign, buy_key, token, timestamp = parts
        try:
            return UrlParams(
                sign=sign, buy_key=buy_key, token=int(token), timestamp=int(timestamp)
            )
        except ValueError as e:
            raise EntitlementError(f"Malformed encrypted params '{plain}': {e}") from e
