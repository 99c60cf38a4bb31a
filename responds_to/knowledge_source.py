"""
Knowledge Sources

A knowledge source answers three questions about the class presumed for a
variable name:

  1. can_map_variable — can the name be associated with a class at all?
  2. responds_to      — does that class define the method?
  3. supports_arity   — does the method accept that many arguments?

Every answer is a plain bool.  "Unknown" is a normal negative answer and
never an exception.

This module holds the protocol, the pydantic config models, the in-memory
StaticKnowledgeSource and the JSON config loader.  The socket-backed source
lives in remote.py and the reflective one in reflection.py.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from responds_to import arity as arity_rules
from responds_to.errors import ConfigError

logger = logging.getLogger(__name__)


@runtime_checkable
class KnowledgeSource(Protocol):
    """The three-query contract between the checker and whatever knows the classes."""

    def can_map_variable(self, var_name: str) -> bool:
        ...

    def responds_to(self, var_name: str, method_name: str) -> bool:
        ...

    def supports_arity(self, var_name: str, method_name: str, num_received: int) -> bool:
        ...


# ═══════════════════════════════════════════════════════════════════════
#  Config models
# ═══════════════════════════════════════════════════════════════════════

class MethodSignature(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    arity: int


# method name -> signature
ClassSpec = Dict[str, MethodSignature]


class CheckerConfig(BaseModel):
    """Backing store of a StaticKnowledgeSource: variable -> class, class -> methods."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    variable_to_class: Dict[str, str] = Field(alias="variableToClass")
    method_map: Dict[str, ClassSpec] = Field(alias="methodMap")

    @field_validator("method_map", mode="before")
    @classmethod
    def _normalise_method_map(cls, value: Any) -> Any:
        """Accept `{"name": 0}` and `{"name": {"arity": 0}}` method entries."""
        if not isinstance(value, Mapping):
            return value
        normalised = {}
        for class_id, methods in value.items():
            if not isinstance(methods, Mapping):
                normalised[class_id] = methods
                continue
            spec = {}
            for method_name, entry in methods.items():
                if isinstance(entry, bool):
                    # bool is an int subclass; let validation reject it
                    spec[method_name] = entry
                elif isinstance(entry, int):
                    spec[method_name] = {"name": method_name, "arity": entry}
                elif isinstance(entry, Mapping):
                    spec[method_name] = {"name": method_name, **entry}
                else:
                    spec[method_name] = entry
            normalised[class_id] = spec
        return normalised


# ═══════════════════════════════════════════════════════════════════════
#  Static implementation
# ═══════════════════════════════════════════════════════════════════════

class StaticKnowledgeSource:
    """Pure lookups into an immutable CheckerConfig.  Never fails, never does I/O."""

    def __init__(self, config: CheckerConfig):
        self.config = config

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StaticKnowledgeSource":
        return cls(CheckerConfig.model_validate(data))

    def _class_spec(self, var_name: str) -> Optional[ClassSpec]:
        class_id = self.config.variable_to_class.get(var_name)
        if class_id is None:
            return None
        return self.config.method_map.get(class_id)

    def can_map_variable(self, var_name: str) -> bool:
        return var_name in self.config.variable_to_class

    def responds_to(self, var_name: str, method_name: str) -> bool:
        spec = self._class_spec(var_name)
        if spec is None:
            return False
        return method_name in spec

    def supports_arity(self, var_name: str, method_name: str, num_received: int) -> bool:
        spec = self._class_spec(var_name)
        if spec is None:
            return False
        signature = spec.get(method_name)
        if signature is None:
            return False
        return arity_rules.supports(signature.arity, num_received)


# ═══════════════════════════════════════════════════════════════════════
#  Loading
# ═══════════════════════════════════════════════════════════════════════

def load_config(config_path: str) -> CheckerConfig:
    """Read a JSON config file.  Raises ConfigError on any problem."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.error("Config file not found: %s", config_path)
        raise ConfigError(f"Config file not found: {config_path}")
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", config_path, e)
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e
    except UnicodeDecodeError as e:
        logger.error("Cannot read %s, file may be binary", config_path)
        raise ConfigError(f"Cannot read {config_path}: not UTF-8 text") from e

    try:
        config = CheckerConfig.model_validate(data)
    except ValidationError as e:
        logger.error("Invalid config in %s: %s", config_path, e)
        raise ConfigError(f"Invalid config in {config_path}: {e}") from e

    logger.info(
        "Loaded config %s: %d variables, %d classes",
        config_path, len(config.variable_to_class), len(config.method_map),
    )
    return config
