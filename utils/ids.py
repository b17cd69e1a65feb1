import secrets
import string
import time

_ALPHABET = string.digits + string.ascii_lowercase


def new_id(prefix: str) -> str:
    """<prefix>_<epoch ms>_<9 base36 chars>, e.g. order_1718000000000_k3j9x0q2a"""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"
