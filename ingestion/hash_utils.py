import hashlib


def content_hash(text: str) -> str:
    """Change-detection digest of a chunk's content. Not a security hash."""
    return hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()
