"""
Configuration for the interpreter and its browser bootstrap.
"""

import os
import tempfile
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

ENV_PREFIX = "BROMATO_"


def _default_user_data_dir() -> str:
    return os.path.join(os.path.expanduser("~"), ".bromato", "browser-user-data")


def _default_upload_dir() -> str:
    return os.path.join(tempfile.gettempdir(), "bromato-uploads")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BromatoConfig:
    """Settings shared by the dispatcher, the upload stager and the CLI."""
    user_data_dir: str = field(default_factory=_default_user_data_dir)
    upload_dir: str = field(default_factory=_default_upload_dir)
    root_selector: str = "body"
    wait_for_timeout_ms: int = 5000
    headless: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "BromatoConfig":
        """
        Build a config from ``BROMATO_*`` environment variables.

        Keyword overrides that are not None win over the environment, e.g.
        ``BROMATO_UPLOAD_DIR`` is replaced by ``upload_dir="/srv/uploads"``.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            if f.type in (bool, "bool"):
                values[f.name] = _parse_bool(raw)
            elif f.type in (int, "int"):
                values[f.name] = int(raw)
            else:
                values[f.name] = raw

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
