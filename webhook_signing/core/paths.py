"""
Centralized path configuration for webhook-signing.

Supports:
- Local config: ./config/*.yaml
- External overlay: CONFIG_DIR=/path/to/private/config
- Fallback to .example.yaml when .yaml missing

Usage:
    from webhook_signing.core.paths import get_config_path

    keys_path = get_config_path("signing_keys.yaml")
"""
import os
import logging
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# From webhook_signing/core/paths.py -> webhook_signing/core -> webhook_signing -> repo root
_REPO_ROOT = Path(__file__).parent.parent.parent
_DEFAULT_CONFIG_DIR = _REPO_ROOT / "config"


def get_config_dir() -> Path:
    """Config directory, overridable via CONFIG_DIR."""
    return Path(os.getenv("CONFIG_DIR", str(_DEFAULT_CONFIG_DIR)))


def _candidates(directory: Path, filename: str) -> List[Path]:
    paths = [directory / filename]
    if filename.endswith('.yaml'):
        paths.append(directory / filename.replace('.yaml', '.example.yaml'))
    return paths


def get_config_path(filename: str, required: bool = False) -> Optional[Path]:
    """
    Resolve config file path with fallback logic.

    Resolution order:
    1. CONFIG_DIR / filename
    2. CONFIG_DIR / filename.example.yaml (if .yaml)
    3. Default config dir / filename
    4. Default config dir / filename.example.yaml

    Args:
        filename: Config filename (e.g., "signing_keys.yaml")
        required: If True, raise FileNotFoundError when not found

    Returns:
        Path to config file, or None if not found and not required

    Raises:
        FileNotFoundError: If required=True and file not found
    """
    config_dir = get_config_dir()
    candidates = _candidates(config_dir, filename)
    if config_dir != _DEFAULT_CONFIG_DIR:
        candidates.extend(_candidates(_DEFAULT_CONFIG_DIR, filename))

    for path in candidates:
        if path.exists():
            logger.debug(f"Config '{filename}' resolved to: {path}")
            return path

    if required:
        searched = [str(c) for c in candidates]
        raise FileNotFoundError(
            f"Required config file '{filename}' not found.\n"
            f"Searched: {searched}\n"
            f"Set CONFIG_DIR or create the file."
        )
    return None
