"""
Execution context for the Dicenic interpreter.

Holds the five variable pools a script can see:
- locals: plain names (hp, 回合数)
- a: attributes, read-write ($a力量)
- r: role info, read-only ($rname)
- s: system info, read-only ($sversion)
- d: dice-persona info, read-write ($dmood)

Reads of missing variables return a default instead of failing.
"""

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..tokens import SourceSpan
from ..errors import error_read_only_variable, error_unknown_prefix
from .values import Value, number_val, string_val
from .convert import to_value

# Host types a pool entry may hold
HOST_TYPES = (Value, str, int, float)


# prefix -> writable
WRITE_PERMISSIONS = {"a": True, "r": False, "s": False, "d": True}

# prefix -> default on read
SPECIAL_DEFAULTS = {
    "a": number_val(0),
    "r": string_val(""),
    "s": string_val(""),
    "d": number_val(0),
}

# Keys accepted by create_context, including the camelCase forms used by
# JSON context files.
POOL_ALIASES = {
    "locals": "locals",
    "variables": "locals",
    "attributes": "a",
    "role": "r",
    "roleInfo": "r",
    "role_info": "r",
    "system": "s",
    "systemInfo": "s",
    "system_info": "s",
    "dice_persona": "d",
    "dicePersona": "d",
    "diceInfo": "d",
    "dice_info": "d",
}


@dataclass
class ExecutionContext:
    """
    The variable environment for one script execution.

    Special pools persist across `clear_locals()`, so an embedder can
    keep one context for a long-lived character or session.
    """
    locals: Dict[str, Value] = field(default_factory=dict)
    attributes: Dict[str, Value] = field(default_factory=dict)
    role: Dict[str, Value] = field(default_factory=dict)
    system: Dict[str, Value] = field(default_factory=dict)
    dice_persona: Dict[str, Value] = field(default_factory=dict)

    def _pool(self, prefix: str, span: Optional[SourceSpan] = None) -> Dict[str, Value]:
        if prefix == "a":
            return self.attributes
        if prefix == "r":
            return self.role
        if prefix == "s":
            return self.system
        if prefix == "d":
            return self.dice_persona
        raise error_unknown_prefix(prefix, span or SourceSpan.unknown())

    # --- locals ---

    def get_local(self, name: str) -> Value:
        """Look up a local variable; missing names read as Number(0)."""
        return self.locals.get(name, number_val(0))

    def set_local(self, name: str, value: Value) -> None:
        self.locals[name] = value

    def has_local(self, name: str) -> bool:
        return name in self.locals

    # --- special variables ---

    @staticmethod
    def can_write(prefix: str) -> bool:
        """Whether a special pool accepts writes. Unknown prefixes do not."""
        return WRITE_PERMISSIONS.get(prefix, False)

    def get_special(self, prefix: str, name: str, span: Optional[SourceSpan] = None) -> Value:
        """Look up $<prefix><name>; missing names read as the pool's default."""
        pool = self._pool(prefix, span)
        if name in pool:
            return pool[name]
        return SPECIAL_DEFAULTS[prefix]

    def set_special(self, prefix: str, name: str, value: Value,
                    span: Optional[SourceSpan] = None) -> None:
        """
        Assign $<prefix><name>.

        Raises:
            VariableAccessError: for the read-only $r and $s pools
            ScriptRuntimeError: for an unknown prefix
        """
        pool = self._pool(prefix, span)
        if not self.can_write(prefix):
            raise error_read_only_variable(prefix, name, span or SourceSpan.unknown())
        pool[name] = value

    def has_special(self, prefix: str, name: str) -> bool:
        return name in self._pool(prefix)

    def pool(self, prefix: str) -> Mapping[str, Value]:
        """Read-only view of a special pool."""
        return MappingProxyType(self._pool(prefix))

    # --- embedder helpers ---

    def clear_locals(self) -> None:
        """Forget local variables; special pools are kept."""
        self.locals.clear()

    def snapshot(self) -> Dict[str, Dict[str, Value]]:
        """Deep copy of all pools."""
        return copy.deepcopy({
            "locals": self.locals,
            "attributes": self.attributes,
            "role": self.role,
            "system": self.system,
            "dice_persona": self.dice_persona,
        })


def create_context(pools: Optional[Mapping[str, Mapping[str, Any]]] = None) -> ExecutionContext:
    """
    Create an execution context from plain mappings.

    Args:
        pools: Mapping of pool name to {variable name: value}. Pool names
            are locals, attributes, role, system and dice_persona (or
            variables, roleInfo, systemInfo, diceInfo). Values may be
            Values or plain str/int/float/bool.

    Returns:
        A new ExecutionContext

    Raises:
        ValueError: for an unrecognized pool name, a pool that is not a
            mapping, or a value that is not a Value, str, int, float,
            bool or None
    """
    ctx = ExecutionContext()
    for key, entries in (pools or {}).items():
        if key not in POOL_ALIASES:
            raise ValueError(f"Unknown variable pool: {key!r}")
        if entries is not None and not isinstance(entries, Mapping):
            raise ValueError(f"Variable pool {key!r} must be a mapping, got {type(entries).__name__}")
        prefix = POOL_ALIASES[key]
        target = ctx.locals if prefix == "locals" else ctx._pool(prefix)
        for name, raw in (entries or {}).items():
            if raw is not None and not isinstance(raw, HOST_TYPES):
                raise ValueError(
                    f"Unsupported value for {key}.{name}: {type(raw).__name__}"
                )
            target[str(name)] = to_value(raw)
    return ctx
