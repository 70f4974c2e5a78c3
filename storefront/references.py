import secrets
import string
import time

REFERENCE_PREFIX = "LA"
ALPHABET = string.ascii_letters + string.digits


def generate_reference(compact: bool = False, prefix: str = REFERENCE_PREFIX) -> str:
    """LA-<epoch ms>-<8 alphanumerics>-<int>, or LA-<epoch ms>-<int> when compact."""
    timestamp = int(time.time() * 1000)
    number = secrets.randbelow(1_000_000)
    if compact:
        return f"{prefix}-{timestamp}-{number}"

    token = "".join(secrets.choice(ALPHABET) for _ in range(8))
    return f"{prefix}-{timestamp}-{token}-{number}"
