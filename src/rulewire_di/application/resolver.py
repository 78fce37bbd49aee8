"""Application layer - Matching supplied values to parameters."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from rulewire_di.application.expander import LazyValueExpander
from rulewire_di.domain import (
    IContainer,
    ParameterDescriptor,
    ParameterKind,
    Rule,
    SharedPool,
    SignatureDescriptor,
)

LOG = logging.getLogger(__name__)

ResolvedArguments = Tuple[List[Any], Dict[str, Any]]


def extend_shared_pool(container: IContainer, identifiers: Iterable[Any], share: Optional[Sequence[Any]]) -> SharedPool:
    """Create each identifier once for this call tree and add it to the pool.

    Identifiers already present in the pool are skipped. The given pool is
    never mutated; a new pool is returned when anything is added.
    """
    pool = SharedPool.of(share)
    for identifier in identifiers:
        if not pool.has(identifier):
            pool = pool.extended(identifier, container.create(identifier, [], pool))
    return pool


def _matches(param: ParameterDescriptor, value: Any) -> bool:
    if value is None:
        return param.allows_null
    return isinstance(value, param.type_hint)


class ParameterResolver:
    """Turns supplied values and a rule into the arguments for one callable.

    Matching is type-directed: a supplied value goes to the first parameter
    whose declared class it is an instance of, wherever it appears in the
    supplied list. Remaining typed parameters are substituted or built through
    the container; untyped parameters take the remaining values in order.

    Attributes:
        _descriptor: Signature of the target callable.
        _rule: Rule providing construct params, substitutions and sharing.
        _container: Container used to build typed dependencies.
        _expander: Expander for markers inside values.
    """

    def __init__(
        self,
        descriptor: SignatureDescriptor,
        rule: Rule,
        container: IContainer,
        expander: LazyValueExpander,
    ) -> None:
        self._descriptor = descriptor
        self._rule = rule
        self._container = container
        self._expander = expander
        self._new_instances = frozenset(rule.new_instances)

    def __call__(self, args: Sequence[Any] = (), share: Optional[Sequence[Any]] = None) -> ResolvedArguments:
        """Resolve the arguments for one invocation.

        Args:
            args: Values supplied by the caller, in any order.
            share: The current shared-instance pool.

        Returns:
            Positional arguments and keyword-only arguments.

        Example:
            >>> positional, keywords = resolver([ExtendedB(), "literal"], [])
            >>> target(*positional, **keywords)
        """
        pool = extend_shared_pool(self._container, self._rule.share_instances, share)

        working = list(args)
        if self._rule.construct_params:
            working.extend(self._expander.expand(list(self._rule.construct_params), pool))

        if self._descriptor.accepts_any:
            return [self._expander.expand(value, pool) for value in working], {}

        positional: List[Any] = []
        keywords: Dict[str, Any] = {}
        parameters = self._descriptor.parameters

        for index, param in enumerate(parameters):
            if param.kind is ParameterKind.VARIADIC and param.type_hint is None:
                positional.extend(self._expander.expand(value, pool) for value in working)
                working = []
                continue

            value = self._resolve_parameter(param, parameters[index + 1 :], working, pool)
            if param.kind is ParameterKind.KEYWORD:
                keywords[param.name] = value
            else:
                positional.append(value)

        if working:
            LOG.debug("dropping %d unmatched argument(s)", len(working))

        return positional, keywords

    def _resolve_parameter(
        self,
        param: ParameterDescriptor,
        later: Sequence[ParameterDescriptor],
        working: List[Any],
        pool: SharedPool,
    ) -> Any:
        if param.type_hint is not None:
            for position, value in enumerate(working):
                if _matches(param, value):
                    return working.pop(position)

            for member in pool:
                if isinstance(member, param.type_hint):
                    return member

            if param.identifier in self._rule.substitutions:
                return self._expander.expand(self._rule.substitutions[param.identifier], pool)

            return self._container.create(
                param.type_hint,
                [],
                pool,
                force_new_instance=param.identifier in self._new_instances,
            )

        claimed = [other.type_hint for other in later if other.type_hint is not None]
        for position, value in enumerate(working):
            if not any(isinstance(value, hint) for hint in claimed):
                return self._expander.expand(working.pop(position), pool)

        return param.default if param.has_default else None
