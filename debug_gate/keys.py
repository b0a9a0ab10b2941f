"""
Key management module for the debug gate.

Provides the signature primitive used to check operator signatures,
and operator key generation for tooling and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .util import hex_decode, sha256_hex


class SignatureScheme(ABC):
    """Abstract hash/sign/verify capability over hex-encoded keys and signatures."""

    @abstractmethod
    def hash(self, data: bytes) -> str:
        """Return the hex digest of data."""
        pass

    @abstractmethod
    def sign(self, payload: bytes, signing_key: str) -> str:
        """
        Sign a payload.

        Args:
            payload: The bytes to sign
            signing_key: Hex-encoded private key seed

        Returns:
            Hex-encoded detached signature
        """
        pass

    @abstractmethod
    def verify(self, payload: bytes, signature: str, public_key: str) -> bool:
        """
        Verify a detached signature.

        Returns False for a well-formed signature that does not match.
        Raises for malformed signatures or keys.
        """
        pass


class Ed25519Scheme(SignatureScheme):
    """Ed25519 (RFC 8032) via PyNaCl, SHA-256 for message digests."""

    def hash(self, data: bytes) -> str:
        return sha256_hex(data)

    def sign(self, payload: bytes, signing_key: str) -> str:
        sk = SigningKey(signing_key, encoder=HexEncoder)
        return sk.sign(payload).signature.hex()

    def verify(self, payload: bytes, signature: str, public_key: str) -> bool:
        vk = VerifyKey(public_key, encoder=HexEncoder)
        try:
            vk.verify(payload, hex_decode(signature))
            return True
        except BadSignatureError:
            return False


@dataclass(frozen=True)
class OperatorKeyPair:
    """Hex-encoded Ed25519 operator key pair."""
    public_key: str
    signing_key: str


def generate_operator_key() -> OperatorKeyPair:
    """Generate a new operator key pair."""
    sk = SigningKey.generate()
    return OperatorKeyPair(
        public_key=sk.verify_key.encode(encoder=HexEncoder).decode('ascii'),
        signing_key=sk.encode(encoder=HexEncoder).decode('ascii')
    )


def public_key_for(signing_key: str) -> str:
    """Derive the hex public key from a hex signing key seed."""
    sk = SigningKey(signing_key, encoder=HexEncoder)
    return sk.verify_key.encode(encoder=HexEncoder).decode('ascii')
