"""
auth/passwords.py -- bcrypt password hashing and verification.

Security design decisions:
  Passwords: bcrypt directly (no passlib wrapper). Bcrypt is the right choice
       for low-entropy secrets because its cost factor makes brute-force
       expensive. The cost factor is injected by the caller (BCRYPT_ROUNDS in
       core.config) and embedded in every hash, so hashes made under an older
       cost keep verifying after the setting changes.

  Salt: bcrypt.gensalt() draws a fresh 128-bit salt on every hash() call, so
       two hashes of the same secret never match byte-for-byte. verify() is
       the only way to compare a secret against a stored hash.

  Timing: bcrypt.checkpw compares digests in constant time. The dummy hash
       built in __init__ lets AuthService.login() pay the full bcrypt cost
       even when the identity does not exist [C1], so response time does not
       reveal which identities are registered.

  Blocking: hash() and verify() are CPU-bound and block the calling thread
       for the whole work factor. Call them from a worker thread, never from
       the event loop (see api/routes/v1/auth.py).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

_DUMMY_SECRET = "policylab_timing_dummy"


class PasswordHasher:
    """Salted, cost-parameterized one-way hashing.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("Secret123")
        hasher.verify("Secret123", stored)   # True
    """

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31.")
        self.rounds = rounds
        # Computed once so the first unknown-identity login is not measurably
        # slower than later ones.
        self._dummy_hash = self.hash(_DUMMY_SECRET)

    def hash(self, plaintext: str) -> str:
        """Return a self-describing bcrypt hash ($2b$<cost>$<salt+digest>).

        Raises ValueError for input longer than 72 bytes -- bcrypt refuses it.
        auth.validation caps registration passwords below that limit.
        """
        return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Return True if plaintext matches hashed. Any malformed input is a mismatch."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Over-long secret or a hash that is not valid bcrypt.
            return False

    def verify_dummy(self, plaintext: str) -> None:
        """Burn one bcrypt verification without a real target [C1]."""
        self.verify(plaintext, self._dummy_hash)
