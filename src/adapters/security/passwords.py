"""
bcrypt credential adapter - Implements CredentialVerifier protocol.

bcrypt's comparison is constant-time and its work factor dominates
response time, which masks other timing differences in login.
"""

import bcrypt

# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class BcryptCredentialVerifier:
    """
    Implements CredentialVerifier protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    def hash(self, raw: str) -> str:
        """
        Hash a password with a fresh salt.

        Raises:
            ValueError: If the password is longer than MAX_PASSWORD_BYTES
        """
        encoded = raw.encode()
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode()

    def compare(self, raw: str, hashed: str) -> bool:
        encoded = raw.encode()
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, hashed.encode())
        except ValueError:
            # Malformed stored hash
            return False
