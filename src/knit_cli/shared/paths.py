"""Path management for knit.

Manages the ~/.knit/ directory used for the optional config file and logs.
"""

from pathlib import Path

# Base directory for all knit data
KNIT_DIR = Path.home() / ".knit"

# Optional bootstrap parameters file
CONFIG_FILE = KNIT_DIR / "config.yaml"

# Log directory (same as base for simplicity)
LOG_DIR = KNIT_DIR


def ensure_dirs() -> None:
    """Create ~/.knit/ (mode 0o700) if missing.

    Only called when a log file is requested; a bootstrap run needs no
    local state otherwise.
    """
    KNIT_DIR.mkdir(mode=0o700, exist_ok=True)


def get_log_file(name: str = "bootstrap") -> Path:
    """Get path to a log file.

    Args:
        name: Log file name (without extension)

    Returns:
        Path to the log file
    """
    return LOG_DIR / f"{name}.log"
