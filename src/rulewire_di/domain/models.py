from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rulewire_di.domain.enums import ParameterKind
from rulewire_di.domain.exceptions import MalformedRuleError
from rulewire_di.domain.identifiers import is_identifier, normalize_identifier


def _normalized(value: Any) -> str:
    try:
        return normalize_identifier(value)
    except MalformedRuleError as e:
        raise ValueError(str(e)) from e


class Instance(BaseModel):
    """Deferred-instance marker resolved when an argument list is built.

    The target decides how the value is produced:
    - a type identifier (class or string) is created through the container;
    - a callable is invoked, with ``params`` when given;
    - a ``(target, method)`` pair invokes ``method`` on the expanded target.

    Attributes:
        target: What to resolve.
        params: Optional arguments, expanded before use.

    Example:
        >>> rule = Rule(construct_params=[Instance("$Mailer"), Instance(make_clock)])
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    target: Any = Field(..., description="Identifier, factory callable or (target, method) pair.")
    params: Optional[List[Any]] = Field(default=None, description="Arguments passed to the target.")

    def __init__(self, target: Any, params: Optional[Sequence[Any]] = None, **data: Any) -> None:
        super().__init__(target=target, params=params, **data)

    @field_validator("target")
    @classmethod
    def _check_target(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value.strip():
                raise ValueError("instance target cannot be an empty string")
            return value
        if is_identifier(value) or callable(value):
            return value
        if isinstance(value, (list, tuple)) and len(value) == 2 and isinstance(value[1], str):
            return tuple(value)
        raise ValueError(
            f"instance target must be a type identifier, a callable or a (target, method) pair, got {value!r}"
        )


class Constant(BaseModel):
    """Marker resolved to the value of a named constant (``package.module.NAME``)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Dotted name of the constant.")

    def __init__(self, name: str, **data: Any) -> None:
        super().__init__(name=name, **data)


class MethodCall(BaseModel):
    """A method invoked on a freshly constructed object.

    Attributes:
        method: Name of the method to invoke.
        args: Argument specs, expanded and matched against the method signature.
        callback: Optional callable receiving the method's return value.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: str = Field(..., min_length=1, description="Name of the method to invoke.")
    args: List[Any] = Field(default_factory=list, description="Arguments for the method.")
    callback: Optional[Callable[[Any], Any]] = Field(
        default=None,
        description="Receives the method's return value.",
    )

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if not 1 <= len(data) <= 3:
                raise ValueError(f"call entries take (method, args[, callback]), got {data!r}")
            fields = dict(zip(("method", "args", "callback"), data))
            if fields.get("args") is None:
                fields.pop("args", None)
            return fields
        return data


class Rule(BaseModel):
    """Declarative configuration for how a type identifier is constructed.

    Only explicitly set fields take part in merging, so a fragment such as
    ``Rule(shared=True)`` leaves every other field of the rule it is merged
    into untouched.

    Attributes:
        instance_of: Class or identifier actually built, or a zero-argument factory.
        shared: Keep the first instance and return it for later requests.
        inherit: Whether the rule also applies to subclasses.
        construct_params: Values offered to the constructor before matching.
        substitutions: Replacement values keyed by declared parameter type.
        share_instances: Types built once per ``create`` call tree.
        call: Methods invoked after construction.
        new_instances: Types always built fresh when injected.
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        populate_by_name=True,
        extra="forbid",
    )

    instance_of: Optional[Any] = Field(
        default=None,
        alias="instanceOf",
        description="Type to instantiate instead of the requested one, or a factory.",
    )
    shared: bool = Field(default=False, description="Whether one instance is reused.")
    inherit: bool = Field(default=True, description="Whether the rule applies to subclasses.")
    construct_params: List[Any] = Field(
        default_factory=list,
        alias="constructParams",
        description="Literal values or markers offered to the constructor.",
    )
    substitutions: Dict[str, Any] = Field(
        default_factory=dict,
        description="Replacement values keyed by normalized type identifier.",
    )
    share_instances: List[Any] = Field(
        default_factory=list,
        alias="shareInstances",
        description="Types shared by every dependent within one create call.",
    )
    call: List[MethodCall] = Field(default_factory=list, description="Post-construction method calls.")
    new_instances: List[str] = Field(
        default_factory=list,
        alias="newInstances",
        description="Normalized identifiers always constructed fresh.",
    )

    @field_validator("instance_of")
    @classmethod
    def _check_instance_of(cls, value: Any) -> Any:
        if value is None or is_identifier(value) or callable(value):
            return value
        raise ValueError(f"instance_of must be a type identifier or a factory, got {value!r}")

    @field_validator("substitutions", mode="before")
    @classmethod
    def _normalize_substitutions(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {_normalized(key): sub for key, sub in value.items()}
        return value

    @field_validator("new_instances", mode="before")
    @classmethod
    def _normalize_new_instances(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple, set, frozenset)):
            return [_normalized(item) for item in value]
        return value

    @field_validator("share_instances")
    @classmethod
    def _check_share_instances(cls, value: List[Any]) -> List[Any]:
        for item in value:
            if not is_identifier(item):
                raise ValueError(f"share_instances entries must be type identifiers, got {item!r}")
        return value

    @property
    def is_named_instance(self) -> bool:
        """A rule with ``instance_of`` set never applies to subclasses."""
        return self.instance_of is not None

    @property
    def has_factory(self) -> bool:
        return self.instance_of is not None and not is_identifier(self.instance_of)

    def explicit_fields(self) -> Dict[str, Any]:
        """Return the fields that were set explicitly, by field name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


def _merge_values(base: Any, override: Any) -> Any:
    if isinstance(base, Mapping) and isinstance(override, Mapping):
        merged = dict(base)
        for key, value in override.items():
            merged[key] = _merge_values(merged[key], value) if key in merged else value
        return merged

    if isinstance(base, list) and isinstance(override, list):
        merged_list = list(base)
        for index, value in enumerate(override):
            if index < len(merged_list):
                merged_list[index] = _merge_values(merged_list[index], value)
            else:
                merged_list.append(value)
        return merged_list

    return override


def merge_rules(base: Rule, fragment: Rule) -> Rule:
    """Merge ``fragment`` on top of ``base``, field by field.

    Mappings merge by key and lists merge by index, recursively; any other
    value set on the fragment replaces the base value.

    Example:
        >>> merged = merge_rules(Rule(construct_params=["a", "b"]), Rule(construct_params=["c"]))
        >>> merged.construct_params
        ['c', 'b']
    """
    fields = base.explicit_fields()
    for name, value in fragment.explicit_fields().items():
        fields[name] = _merge_values(fields[name], value) if name in fields else value
    return Rule(**fields)


class ParameterDescriptor(BaseModel):
    """Describes one parameter of a constructor or method.

    Attributes:
        name: Parameter name.
        kind: How the resolved value is passed.
        type_hint: Declared class, or None when the parameter is untyped.
        identifier: Normalized identifier of ``type_hint``.
        allows_null: Whether None is an acceptable value.
        has_default: Whether the parameter declares a default.
        default: The declared default value.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: ParameterKind = ParameterKind.POSITIONAL
    type_hint: Optional[Type[Any]] = None
    identifier: Optional[str] = None
    allows_null: bool = False
    has_default: bool = False
    default: Any = None


class SignatureDescriptor(BaseModel):
    """Inspected signature of a callable, computed once and cached.

    Attributes:
        parameters: Parameters in signature order.
        accepts_any: True when the signature could not be inspected; every
            supplied value is then passed through positionally.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    parameters: List[ParameterDescriptor] = Field(default_factory=list)
    accepts_any: bool = False


class SharedPool(list):
    """Instances shared by every dependent within one ``create`` call tree.

    Behaves as an ordered list of instances and additionally remembers which
    identifier produced each member, so a type listed in ``share_instances``
    is built at most once per tree.
    """

    def __init__(self, items: Iterable[Any] = (), members: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(items)
        inherited = getattr(items, "members", {})
        self.members: Dict[str, Any] = {**inherited, **(members or {})}

    @classmethod
    def of(cls, share: Optional[Iterable[Any]]) -> "SharedPool":
        if isinstance(share, SharedPool):
            return share
        return cls(share or ())

    def has(self, identifier: Any) -> bool:
        return normalize_identifier(identifier) in self.members

    def member(self, identifier: Any) -> Any:
        return self.members[normalize_identifier(identifier)]

    def add(self, identifier: Any, instance: Any) -> None:
        self.members[normalize_identifier(identifier)] = instance
        self.append(instance)

    def extended(self, identifier: Any, instance: Any) -> "SharedPool":
        """Return a new pool with ``instance`` added, leaving this pool untouched."""
        pool = SharedPool(self)
        pool.add(identifier, instance)
        return pool
