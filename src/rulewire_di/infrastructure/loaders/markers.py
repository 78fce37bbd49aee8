"""Translation of rule-file marker objects into domain markers."""

import functools
from typing import Any, Callable, Optional, Sequence

from rulewire_di.domain import Constant, IContainer, Instance, MalformedRuleError
from rulewire_di.infrastructure.loaders.callback import Callback

INSTANCE_KEY = "instance"
PARAMS_KEY = "params"
CONSTANT_KEY = "constant"


def instance_marker(target: str, container: IContainer, params: Optional[Sequence[Any]] = None) -> Instance:
    """Build an Instance marker for a type identifier or a callback spec.

    Raises:
        MalformedRuleError: If the target is not a non-empty string, or if
            params are given for a callback, which carries its own arguments.
    """
    if not isinstance(target, str) or not target.strip():
        raise MalformedRuleError(f"'{INSTANCE_KEY}' must name a type or a callback, got {target!r}")
    if Callback.is_callback(target):
        if params:
            raise MalformedRuleError(f"Callback '{target}' takes its arguments inline, not from '{PARAMS_KEY}'")
        return Callback(target).to_instance(container)
    return Instance(target, params=params)


def factory_for(target: Any, container: IContainer) -> Any:
    """Turn a callback spec used as ``instanceOf`` into a zero-argument factory."""
    if Callback.is_callback(target):
        factory: Callable[[], Any] = functools.partial(Callback(target).run, container)
        return factory
    return target


def translate(value: Any, container: IContainer) -> Any:
    """Replace ``{"instance": ...}`` and ``{"constant": ...}`` objects with markers.

    Example:
        >>> translate([{"instance": "app.Mailer"}, {"constant": "logging.INFO"}], container)
        [Instance(target='app.Mailer', params=None), Constant(name='logging.INFO')]
    """
    if isinstance(value, dict):
        keys = set(value)
        if INSTANCE_KEY in keys and keys <= {INSTANCE_KEY, PARAMS_KEY}:
            params = value.get(PARAMS_KEY)
            if params is not None:
                params = translate(list(params), container)
            return instance_marker(value[INSTANCE_KEY], container, params)
        if keys == {CONSTANT_KEY}:
            return Constant(value[CONSTANT_KEY])
        return {key: translate(item, container) for key, item in value.items()}

    if isinstance(value, list):
        return [translate(item, container) for item in value]

    return value
