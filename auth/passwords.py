"""bcrypt password hashing."""

import bcrypt
from errors import ValidationError

# bcrypt only looks at this many bytes of input
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Hashes and verifies passwords with bcrypt.

    Args:
        rounds: bcrypt cost factor (log2 of the number of rounds, 4-31).
    """

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Hash a password with a fresh salt.

        Args:
            plaintext: The password as typed by the user.

        Returns:
            The bcrypt digest as a string, salt included.

        Raises:
            ValidationError: If the password is longer than bcrypt accepts.
        """
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes"
            )
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Check a password against a stored digest.

        Returns False for an empty or malformed digest instead of raising.
        """
        if not plaintext or not digest:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except ValueError:
            # Digest is not a bcrypt hash
            return False
