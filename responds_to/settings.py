"""
Process settings read from the environment.

  RESPONDS_TO_ORACLE_HOST       bind / connect host         (127.0.0.1)
  RESPONDS_TO_ORACLE_PORT       bind / connect port         (4567)
  RESPONDS_TO_ORACLE_TIMEOUT    socket timeout in seconds   (10)
  RESPONDS_TO_ORACLE_CONFIG     static JSON config served by the oracle
  RESPONDS_TO_ORACLE_MODULES    comma-separated modules to reflect on
  RESPONDS_TO_ORACLE_OVERRIDES  var=Class pairs, comma-separated
"""

import os
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

_PREFIX = "RESPONDS_TO_ORACLE_"


class OracleSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=4567, ge=0, le=65535)
    timeout: float = Field(default=10.0, gt=0)
    config_path: Optional[str] = None
    modules: List[str] = Field(default_factory=list)
    overrides: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OracleSettings":
        env = os.environ if environ is None else environ
        values = {}
        for key in ("host", "port", "timeout"):
            raw = env.get(_PREFIX + key.upper(), "").strip()
            if raw:
                values[key] = raw
        config_path = env.get(_PREFIX + "CONFIG", "").strip()
        if config_path:
            values["config_path"] = config_path
        modules = env.get(_PREFIX + "MODULES", "")
        values["modules"] = [m.strip() for m in modules.split(",") if m.strip()]
        values["overrides"] = parse_overrides(env.get(_PREFIX + "OVERRIDES", ""))
        return cls.model_validate(values)


def parse_overrides(spec: str) -> Dict[str, str]:
    """Parse 'user=SemUser,acct=Account' into {'user': 'SemUser', 'acct': 'Account'}."""
    overrides = {}
    for item in spec.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ValueError(f"override must look like var=Class, got {item!r}")
        var_name, class_name = item.split("=", 1)
        overrides[var_name.strip()] = class_name.strip()
    return overrides
