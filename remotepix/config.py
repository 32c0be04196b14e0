"""Configuration management for remotepix."""
import math
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

# Keybinding options the host can bind the upload commands to
KEYBINDING_OPTIONS = ("ctrl+alt+v", "ctrl+shift+v", "alt+v", "ctrl+v", "f12")
DEFAULT_KEYBINDING = "ctrl+v"

# Timeout configuration (milliseconds)
DEFAULT_CLIPBOARD_TIMEOUT_MS = 10000
DEFAULT_UPLOAD_TIMEOUT_MS = 30000
MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 60000

# Directory created under the remote home for uploaded images
IMAGE_DIR_NAME = "remotepix"

ENV_PREFIX = "REMOTEPIX_"


class TimeoutConfig:
    """Clipboard and upload timeouts."""

    def __init__(self, clipboard_ms: int = DEFAULT_CLIPBOARD_TIMEOUT_MS,
                 upload_ms: int = DEFAULT_UPLOAD_TIMEOUT_MS):
        self.clipboard_ms = clipboard_ms
        self.upload_ms = upload_ms

    @property
    def clipboard_seconds(self) -> float:
        return self.clipboard_ms / 1000.0

    @property
    def upload_seconds(self) -> float:
        return self.upload_ms / 1000.0

    def to_dict(self) -> Dict[str, int]:
        return {"clipboard": self.clipboard_ms, "upload": self.upload_ms}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeoutConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"TimeoutConfig(clipboard_ms={self.clipboard_ms}, upload_ms={self.upload_ms})"


def validate_keybinding(value: Any) -> str:
    """Return value if it is a known keybinding, otherwise the default."""
    if isinstance(value, str) and value in KEYBINDING_OPTIONS:
        return value
    return DEFAULT_KEYBINDING


def validate_timeout(value: Any, default: int) -> int:
    """
    Validate a single timeout.

    Args:
        value: Candidate timeout in milliseconds
        default: Value returned when the candidate is not usable

    Returns:
        The floored timeout if it lies in [1000, 60000], otherwise default
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if MIN_TIMEOUT_MS <= value <= MAX_TIMEOUT_MS:
        return int(math.floor(value))
    return default


def validate_timeouts(value: Any) -> TimeoutConfig:
    """Build a TimeoutConfig from a {"clipboard": ..., "upload": ...} mapping."""
    if isinstance(value, dict):
        return TimeoutConfig(
            clipboard_ms=validate_timeout(value.get("clipboard"), DEFAULT_CLIPBOARD_TIMEOUT_MS),
            upload_ms=validate_timeout(value.get("upload"), DEFAULT_UPLOAD_TIMEOUT_MS)
        )
    return TimeoutConfig()


class ConfigValidator:
    """Strict checks used when a value must be valid as given."""

    @staticmethod
    def is_valid_keybinding(value: Any) -> bool:
        return isinstance(value, str) and value in KEYBINDING_OPTIONS

    @staticmethod
    def is_valid_timeout(value: Any) -> bool:
        return (
            isinstance(value, int)
            and not isinstance(value, bool)
            and MIN_TIMEOUT_MS <= value <= MAX_TIMEOUT_MS
        )


def is_timeout_config(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and ConfigValidator.is_valid_timeout(obj.get("clipboard"))
        and ConfigValidator.is_valid_timeout(obj.get("upload"))
    )


def is_config(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and ConfigValidator.is_valid_keybinding(obj.get("keybinding"))
        and is_timeout_config(obj.get("timeouts"))
    )


def detect_remote_name(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the configured remote connection name, if any."""
    env = os.environ if env is None else env
    return env.get(ENV_PREFIX + "REMOTE_NAME") or None


def _env_number(name: str) -> Optional[float]:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return None
    try:
        return float(raw.strip())
    except ValueError:
        return None


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(ENV_PREFIX + name)
    return Path(raw).expanduser() if raw else None


class Config:
    """Remotepix configuration."""

    def __init__(self):
        self.keybinding: str = validate_keybinding(os.getenv(ENV_PREFIX + "KEYBINDING"))
        self.timeouts: TimeoutConfig = TimeoutConfig(
            clipboard_ms=validate_timeout(_env_number("CLIPBOARD_TIMEOUT_MS"), DEFAULT_CLIPBOARD_TIMEOUT_MS),
            upload_ms=validate_timeout(_env_number("UPLOAD_TIMEOUT_MS"), DEFAULT_UPLOAD_TIMEOUT_MS)
        )
        self.remote_name: Optional[str] = detect_remote_name()
        self.workspace: Optional[Path] = _env_path("WORKSPACE")
        self.home_dir: Optional[Path] = _env_path("HOME_DIR")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Create a Config from a settings mapping.

        Unknown or invalid entries fall back to defaults instead of raising.
        """
        config = cls()
        config.keybinding = validate_keybinding(data.get("keybinding"))
        config.timeouts = validate_timeouts(data.get("timeouts"))
        if data.get("remote_name"):
            config.remote_name = str(data["remote_name"])
        if data.get("workspace"):
            config.workspace = Path(data["workspace"]).expanduser()
        if data.get("home_dir"):
            config.home_dir = Path(data["home_dir"]).expanduser()
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keybinding": self.keybinding,
            "timeouts": self.timeouts.to_dict(),
            "remote_name": self.remote_name,
            "workspace": str(self.workspace) if self.workspace else None,
            "home_dir": str(self.home_dir) if self.home_dir else None,
        }
