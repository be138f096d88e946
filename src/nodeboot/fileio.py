"""File writing helpers"""

import os
from pathlib import Path

PRIVATE_MODE = 0o600


def write_private_file(path: Path, content: str, mode: int = PRIVATE_MODE) -> None:
    """Write text so that only the owner can read it, even if the file existed."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "w") as f:
        f.write(content)
    os.chmod(path, mode)
