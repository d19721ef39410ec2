"""Manages the discovery and provision of fixed paths for the MarkGuard application."""
# src/markguard/paths.py

from pathlib import Path
from typing import Final

CONFIG_FILE_NAMES: Final[list[str]] = ["main.yaml", "main.yml"]
ANCHOR_DIR: Final[Path] = Path(".markguard")


def find_project_root(start_path: Path | None = None) -> Path:
    """
    Find the project root by searching upwards from the start_path (or CWD) for the '.markguard' anchor.

    The directory containing the '.markguard' directory is considered the project root.

    Args:
        start_path: The path to start searching from. Defaults to CWD.

    Raises:
        FileNotFoundError: If the anchor config file is not found in any parent directory.

    """
    current_dir = (start_path or Path.cwd()).resolve()
    if current_dir.is_file():
        current_dir = current_dir.parent
    for parent in [current_dir, *current_dir.parents]:
        config_dir = parent / ANCHOR_DIR / "configs"
        if config_dir.is_dir():
            for config_file in CONFIG_FILE_NAMES:
                if (config_dir / config_file).is_file():
                    return parent

    msg = f"Could not find a configuration file ({' or '.join(CONFIG_FILE_NAMES)}) in a '{ANCHOR_DIR / 'configs'}' directory from the current location upwards. Run 'markguard init' first."
    raise FileNotFoundError(msg)


def get_config_dir(root_path: Path) -> Path:
    """Return the configuration directory of a project root (it may not exist yet)."""
    return root_path / ANCHOR_DIR / "configs"


def get_config_file_path(root_path: Path | None = None) -> Path:
    """Find and return the full path to the main.yaml or main.yml config file."""
    root = find_project_root(root_path)
    config_dir = get_config_dir(root)
    for config_file in CONFIG_FILE_NAMES:
        path = config_dir / config_file
        if path.is_file():
            return path
    # This part should be unreachable if find_project_root() succeeds.
    msg = "Configuration file disappeared after being found."
    raise FileNotFoundError(msg)


def get_log_dir(root_path: Path | None = None) -> Path:
    """Return the path to the log directory."""
    return find_project_root(root_path) / ANCHOR_DIR / "logs"


def get_report_dir(root_path: Path | None = None) -> Path:
    """Return the path to the report directory."""
    return find_project_root(root_path) / ANCHOR_DIR / "reports"


def ensure_dir_exists(path: Path) -> None:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
