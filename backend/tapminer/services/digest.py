import hashlib


def compute_digest(identity: str, timestamp: int, attempt_count) -> str:
    """SHA-256 hex digest of identity, timestamp and attempt count, concatenated in that order."""
    material = f"{identity}{timestamp}{attempt_count}"
    return hashlib.sha256(material.encode('utf-8')).hexdigest()


def count_leading_zero_chars(digest: str) -> int:
    """Number of '0' characters at the start of the digest string.

    Character-wise, not bit-wise: '0003ab' -> 3, '000000' -> 6.
    """
    for idx, ch in enumerate(digest):
        if ch != '0':
            return idx
    return len(digest)
