"""Application layer - Signature inspection."""

import inspect
import types
import typing
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union, get_args, get_origin, get_type_hints

from rulewire_di.application.type_registry import TypeRegistry
from rulewire_di.domain import ParameterDescriptor, ParameterKind, SignatureDescriptor, normalize_identifier

# Annotations with these types are plain values, never injected.
SCALAR_TYPES: Tuple[type, ...] = (
    str,
    bytes,
    bytearray,
    int,
    float,
    complex,
    bool,
    list,
    tuple,
    dict,
    set,
    frozenset,
    object,
    type,
)

_UNION_TYPES = tuple(t for t in (Union, getattr(types, "UnionType", None)) if t is not None)

_KINDS = {
    inspect.Parameter.POSITIONAL_ONLY: ParameterKind.POSITIONAL,
    inspect.Parameter.POSITIONAL_OR_KEYWORD: ParameterKind.POSITIONAL,
    inspect.Parameter.VAR_POSITIONAL: ParameterKind.VARIADIC,
    inspect.Parameter.KEYWORD_ONLY: ParameterKind.KEYWORD,
}


def _class_hint(annotation: Any) -> Tuple[Optional[type], bool]:
    """Split an annotation into its injectable class and nullability."""
    if annotation is inspect.Parameter.empty or annotation is None:
        return None, False

    nullable = False
    if get_origin(annotation) in _UNION_TYPES:
        members = get_args(annotation)
        concrete = [member for member in members if member is not type(None)]
        nullable = len(concrete) < len(members)
        if len(concrete) != 1:
            return None, nullable
        annotation = concrete[0]

    if not isinstance(annotation, type) or annotation in SCALAR_TYPES or get_origin(annotation) is not None:
        return None, nullable
    return annotation, nullable


def _safe_type_hints(func: Any) -> Dict[str, Any]:
    try:
        return get_type_hints(func)
    except Exception:  # one unresolvable annotation fails the whole lookup
        return {}


def _evaluate_annotation(annotation: Any, func: Any) -> Any:
    """Evaluate one postponed annotation against the globals of ``func``.

    Returns ``inspect.Parameter.empty`` when the name cannot be resolved,
    for example when it is only imported under ``TYPE_CHECKING``.
    """
    if isinstance(annotation, typing.ForwardRef):
        annotation = annotation.__forward_arg__
    if not isinstance(annotation, str):
        return annotation

    globalns = getattr(inspect.unwrap(func), "__globals__", {})
    try:
        return eval(annotation, globalns)
    except Exception:
        return inspect.Parameter.empty


class SignatureInspector:
    """Builds and caches signature descriptors for classes and callables.

    Uses Python's inspect module and type hints. A descriptor is computed once
    per class or callable and reused for the lifetime of the container.

    Attributes:
        _registry: Type registry that learns every class seen in a signature.
        _constructors: Cached constructor descriptors by class.
        _callables: Cached descriptors by underlying function.
    """

    def __init__(self, registry: TypeRegistry) -> None:
        """Initialize the inspector with empty caches.

        Args:
            registry: Registry to record declared parameter classes in.
        """
        self._registry = registry
        self._constructors: Dict[type, Optional[SignatureDescriptor]] = {}
        self._callables: Dict[Any, SignatureDescriptor] = {}

    def describe_constructor(self, cls: Type[Any]) -> Optional[SignatureDescriptor]:
        """Describe the parameters a class is constructed with.

        Args:
            cls: The class to inspect.

        Returns:
            The descriptor, or None when the class has no constructor of its own
            (neither ``__init__`` nor ``__new__`` is overridden).
        """
        if cls not in self._constructors:
            if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
                self._constructors[cls] = None
            else:
                source = cls.__init__ if cls.__init__ is not object.__init__ else cls.__new__
                self._constructors[cls] = self._describe(cls, source)
        return self._constructors[cls]

    def describe_callable(self, func: Callable[..., Any]) -> SignatureDescriptor:
        """Describe the parameters of a function or bound method.

        Bound methods are cached by their underlying function, so every
        instance of a class shares one descriptor per method.
        """
        key = getattr(func, "__func__", func)
        if key not in self._callables:
            self._callables[key] = self._describe(func, func)
        return self._callables[key]

    def _describe(self, target: Any, hint_source: Any) -> SignatureDescriptor:
        try:
            signature = inspect.signature(target)
        except (TypeError, ValueError):
            return SignatureDescriptor(accepts_any=True)

        hints = _safe_type_hints(hint_source)
        parameters = []
        for name, param in signature.parameters.items():
            kind = _KINDS.get(param.kind)
            if kind is None:
                continue

            annotation = hints.get(name, param.annotation)
            if isinstance(annotation, (str, typing.ForwardRef)):
                annotation = _evaluate_annotation(annotation, hint_source)
            hint, nullable = _class_hint(annotation)
            has_default = param.default is not inspect.Parameter.empty

            identifier = None
            if hint is not None:
                self._registry.register(hint)
                identifier = normalize_identifier(hint)

            parameters.append(
                ParameterDescriptor(
                    name=name,
                    kind=kind,
                    type_hint=hint,
                    identifier=identifier,
                    allows_null=nullable or (has_default and param.default is None),
                    has_default=has_default,
                    default=param.default if has_default else None,
                )
            )

        return SignatureDescriptor(parameters=parameters)

    def clear(self) -> None:
        """Drop every cached descriptor."""
        self._constructors.clear()
        self._callables.clear()
