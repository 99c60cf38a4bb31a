"""
Reflective Knowledge Source — answers from live Python classes.

This is what an oracle process normally serves.  A variable name is
resolved to a class with the following heuristics, first hit wins:

  0. explicit override table        {"user": "SemUser"}
  1. exact camel-case class name    user_account -> UserAccount
  2. unique substring match         acct -> BankAcctEntry (bank_acct_entry)
  3. unique acronym match           ua -> UserAccount (u_a)

The method table is the class's real one: public callables, properties and
dataclass fields.  Names with a single leading underscore are private and
never answer yes.  Arity comes from inspect.signature, encoded the same
way as config arities.
"""

import dataclasses
import importlib
import inspect
import logging
import re
from types import ModuleType
from typing import Dict, Iterable, List, Mapping, Optional

from responds_to.arity import ANY_ARITY, arity_from_parameters, supports
from responds_to.errors import ClassNotResolved

logger = logging.getLogger(__name__)

_MISSING = object()
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def camelize(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def underscore(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def acronym(snake_name: str) -> str:
    return "".join(part[0] for part in snake_name.split("_") if part)


# ═══════════════════════════════════════════════════════════════════════
#  Class registry
# ═══════════════════════════════════════════════════════════════════════

class ClassRegistry:
    """The known class list, keyed by class name."""

    def __init__(self, classes: Iterable[type] = ()):
        self._classes: Dict[str, type] = {}
        for cls in classes:
            self.add(cls)

    @classmethod
    def from_modules(cls, modules: Iterable) -> "ClassRegistry":
        """Collect the classes defined (not merely imported) in each module.

        Modules may be given as module objects or dotted names.
        """
        registry = cls()
        for module in modules:
            if not isinstance(module, ModuleType):
                module = importlib.import_module(module)
            for obj in vars(module).values():
                if inspect.isclass(obj) and obj.__module__ == module.__name__:
                    registry.add(obj)
        logger.info("ClassRegistry: %d classes", len(registry))
        return registry

    def add(self, cls: type):
        self._classes[cls.__name__] = cls

    def get(self, name: str) -> Optional[type]:
        return self._classes.get(name)

    def names(self) -> List[str]:
        return sorted(self._classes)

    def __len__(self):
        return len(self._classes)

    def __contains__(self, name):
        return name in self._classes


# ═══════════════════════════════════════════════════════════════════════
#  Method table
# ═══════════════════════════════════════════════════════════════════════

def method_arity(cls: type, method_name: str) -> Optional[int]:
    """Encoded arity of cls#method_name, or None when the class lacks it."""
    if method_name.startswith("_") and not method_name.startswith("__"):
        return None

    if dataclasses.is_dataclass(cls):
        if method_name in {f.name for f in dataclasses.fields(cls)}:
            return 0

    try:
        attr = inspect.getattr_static(cls, method_name)
    except AttributeError:
        return None

    if isinstance(attr, property):
        return 0
    if isinstance(attr, staticmethod):
        func, skip = attr.__func__, 0
    elif isinstance(attr, classmethod):
        func, skip = attr.__func__, 1
    elif callable(attr) and not inspect.isclass(attr):
        func, skip = attr, 1
    else:
        return None

    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        # builtins without signature metadata
        return ANY_ARITY
    return arity_from_parameters(params[skip:])


# ═══════════════════════════════════════════════════════════════════════
#  Knowledge source
# ═══════════════════════════════════════════════════════════════════════

class ReflectiveKnowledgeSource:
    def __init__(self, registry: ClassRegistry, overrides: Optional[Mapping[str, str]] = None):
        self.registry = registry
        self.overrides = dict(overrides or {})

    def class_for(self, var_name: str) -> type:
        if var_name in self.overrides:
            cls = self.registry.get(self.overrides[var_name])
            if cls is None:
                raise ClassNotResolved(
                    f"override {var_name} -> {self.overrides[var_name]} names an unknown class"
                )
            return cls

        cls = self.registry.get(camelize(var_name))
        if cls is not None:
            return cls

        snake_names = {underscore(name): name for name in self.registry.names()}

        candidates = [name for snake, name in snake_names.items() if var_name in snake]
        if len(candidates) == 1:
            return self.registry.get(candidates[0])

        candidates = [name for snake, name in snake_names.items() if acronym(snake) == var_name]
        if len(candidates) == 1:
            return self.registry.get(candidates[0])

        raise ClassNotResolved(var_name)

    def _arity(self, var_name: str, method_name: str) -> Optional[int]:
        try:
            cls = self.class_for(var_name)
        except ClassNotResolved as e:
            logger.debug("No class for %r: %s", var_name, e)
            return None
        return method_arity(cls, method_name)

    def can_map_variable(self, var_name: str) -> bool:
        try:
            self.class_for(var_name)
        except ClassNotResolved:
            return False
        return True

    def responds_to(self, var_name: str, method_name: str) -> bool:
        return self._arity(var_name, method_name) is not None

    def supports_arity(self, var_name: str, method_name: str, num_received: int) -> bool:
        arity = self._arity(var_name, method_name)
        if arity is None:
            return False
        return supports(arity, num_received)
