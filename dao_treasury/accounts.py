"""
Account identities: compressed secp256k1 public keys in hex
"""

import hashlib
from typing import Optional, Tuple

from ecdsa import BadSignatureError, SigningKey, SECP256k1, VerifyingKey
from ecdsa.errors import MalformedPointError


class AccountKey:
    """Key pair whose compressed public key is the account id"""

    def __init__(self, private_key: Optional[bytes] = None):
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()

    @property
    def account_id(self) -> str:
        return self.get_public_key_hex()

    def get_public_key_hex(self) -> str:
        """Get compressed public key in hex format"""
        point = self.public_key.pubkey.point
        x = point.x()
        y = point.y()

        # 02 for even y, 03 for odd y
        prefix = b'\x02' if y % 2 == 0 else b'\x03'
        return (prefix + x.to_bytes(32, 'big')).hex()

    def sign_message(self, message: bytes) -> str:
        """Sign message and return signature in hex"""
        return self.private_key.sign(message, hashfunc=hashlib.sha256).hex()

    @staticmethod
    def verify_signature(message: bytes, signature_hex: str, pubkey_hex: str) -> bool:
        """Verify signature against message and an account id"""
        try:
            vk = VerifyingKey.from_string(bytes.fromhex(pubkey_hex), curve=SECP256k1)
            return vk.verify(bytes.fromhex(signature_hex), message, hashfunc=hashlib.sha256)
        except (BadSignatureError, MalformedPointError, ValueError):
            return False

    @classmethod
    def from_seed(cls, seed: bytes) -> 'AccountKey':
        """Deterministic key derived from an arbitrary seed"""
        return cls(hashlib.sha256(b"DAO_TREASURY_ACCOUNT_V1" + seed).digest())

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate new key pair and return (private_key_hex, account_id)"""
        key = AccountKey()
        return key.private_key.to_string().hex(), key.account_id


def contract_account_for(asset_id: int) -> str:
    """Account id owned by the DAO contract governing ``asset_id``"""
    return AccountKey.from_seed(b"contract:" + asset_id.to_bytes(4, 'little')).account_id


def is_account_id(value: str) -> bool:
    """Check the shape of a compressed public key in hex"""
    try:
        raw = bytes.fromhex(value)
    except (TypeError, ValueError):
        return False
    return len(raw) == 33 and raw[0] in (2, 3)
