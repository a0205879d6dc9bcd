"""
Password hashing utilities using bcrypt.
"""

import bcrypt

# Number of rounds for bcrypt hashing
BCRYPT_ROUNDS = 12

# bcrypt ignores everything past 72 bytes
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Password hashing service."""
    
    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    
    @staticmethod
    def hash(password: str) -> str:
        """
        Hash a password using bcrypt.
        
        Args:
            password: Plain text password
            
        Returns:
            Hashed password string
        """
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(PasswordHasher._encode(password), salt).decode("utf-8")
    
    @staticmethod
    def verify(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.
        
        Returns False for a malformed stored hash instead of raising.
        """
        try:
            return bcrypt.checkpw(
                PasswordHasher._encode(plain_password),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            return False


def hash_password(password: str) -> str:
    """Hash a password."""
    return PasswordHasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password."""
    return PasswordHasher.verify(plain_password, hashed_password)
