"""Resolving the value of expressions found in a plan's configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from carbonifer.terraform import TerraformError


def split_module_reference(reference: str) -> tuple[str, str]:
    """Split ``kind.name...`` into its kind and name."""
    parts = reference.split(".")
    if len(parts) > 1:
        return parts[0], parts[1]
    return parts[0], ""


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def get_value_of_expression(
    expression: dict,
    plan: dict,
    config_module: dict | None = None,
    console: Callable[[str], str] | None = None,
) -> Any:
    """Return the value of a configuration expression.

    A constant is returned as is. Otherwise the first resolvable reference gives
    the value, looked up in the plan variables, the module variables and module
    outputs, then, if ``console`` is given, by evaluating the reference with it.
    A local reference gives ``None``. Raises ``LookupError`` when nothing resolves.
    """
    if config_module is not None:
        root_module: dict | None = config_module
    else:
        root_module = _mapping(plan.get("configuration")).get("root_module")

    constant = expression.get("constant_value")
    if constant is not None:
        return constant

    for reference in expression.get("references") or []:
        ref_type, ref = split_module_reference(reference)
        value: Any = None

        if ref_type == "local":
            return None
        if ref_type == "var":
            variables = _mapping(plan.get("variables"))
            if ref in variables:
                value = _mapping(variables[ref]).get("value")
            if root_module is not None:
                root_variables = _mapping(root_module.get("variables"))
                if ref in root_variables:
                    value = _mapping(root_variables[ref]).get("default")
                for call in _mapping(root_module.get("module_calls")).values():
                    called_variables = _mapping(_mapping(_mapping(call).get("module")).get("variables"))
                    if ref in called_variables and value is None:
                        value = _mapping(called_variables[ref]).get("default")
        elif ref_type == "module" and root_module is not None:
            call = _mapping(root_module.get("module_calls")).get(ref)
            parts = reference.split(".")
            if call is not None and len(parts) >= 3:
                module = _mapping(_mapping(call).get("module"))
                output = _mapping(module.get("outputs")).get(parts[2])
                if output is not None:
                    try:
                        resolved = get_value_of_expression(
                            _mapping(_mapping(output).get("expression")), plan, module, console
                        )
                    except LookupError:
                        continue
                    if resolved is not None:
                        value = resolved

        if value is None:
            if console is None:
                continue
            try:
                value = console(reference)
            except (TerraformError, OSError):
                continue
        return value

    raise LookupError("no value found for expression")