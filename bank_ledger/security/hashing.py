"""
Password hashing with bcrypt.
"""

import bcrypt

from bank_ledger.exceptions import InvalidArgumentError

# bcrypt only looks at the first 72 bytes of the input
BCRYPT_MAX_BYTES = 72


class PasswordHasher:

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        raw = plaintext.encode("utf-8")
        if len(raw) > BCRYPT_MAX_BYTES:
            raise InvalidArgumentError(
                f"Password must be at most {BCRYPT_MAX_BYTES} bytes"
            )
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return False for a mismatch and for a digest bcrypt can't read."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except ValueError:
            return False
