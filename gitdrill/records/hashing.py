FULL_HASH_LENGTH = 40


def shorten_hash(oid: str, length: int) -> str:
    """Returns the fixed-length hex prefix of an object id used as a join key.

    A length of 0 (or anything at least as long as the id) keeps the full id.
    Prefix collisions are not detected.
    """
    if len(oid) < FULL_HASH_LENGTH:
        raise ValueError(f"Invalid Object ID: {oid}")
    if length <= 0 or length >= len(oid):
        return oid
    return oid[:length]
