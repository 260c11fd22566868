"""Capability interface that matcher expressions are evaluated against.

The evaluator never inspects credential objects directly. It goes through a
CredentialView, which exposes an identifier, a scope, the runtime type names
and named property lookup. BeanCredentialView adapts ordinary Python objects
(and mappings) to that interface using getter-style accessors.
"""

import inspect
import keyword
from collections.abc import Mapping, Sequence
from typing import Any, Final, Protocol, runtime_checkable

from credcore.matchers.exceptions import PropertyLookupFailure
from credcore.matchers.scope import CredentialsScope


class _Absent:
    """Sentinel type for a property that a candidate does not have."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Final = _Absent()


@runtime_checkable
class CredentialView(Protocol):
    """Read-only view of a credential for query evaluation."""

    @property
    def id(self) -> str | None:
        """The credential identifier, if it has one."""
        ...

    @property
    def scope(self) -> CredentialsScope | None:
        """The credential scope, if it has one."""
        ...

    def type_names(self) -> Sequence[str]:
        """Fully qualified names of the runtime type and all its supertypes."""
        ...

    def get_property(self, name: str) -> Any:
        """Return the named property value, or ABSENT.

        Raises:
            PropertyLookupFailure: If the accessor exists but failed
        """
        ...


def qualified_name(cls: type) -> str:
    """Return the fully qualified name of a class."""
    module = cls.__module__
    if module == "builtins":
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"


def is_property_name(name: str) -> bool:
    """Whether name may be looked up on a candidate.

    Private and dunder names are never exposed to queries.
    """
    return name.isidentifier() and not keyword.iskeyword(name) and not name.startswith("_")


class BeanCredentialView:
    """Adapts an arbitrary object to the CredentialView interface.

    Property ``name`` is resolved, in order, through:

    1. a ``get_<name>()`` accessor method,
    2. an ``is_<name>()`` accessor method,
    3. a non-callable attribute or property called ``<name>``,
    4. a ``<name>`` key, when the wrapped object is a mapping.

    Example:
        class UsernamePassword:
            def __init__(self, username):
                self._username = username

            def get_username(self):
                return self._username

        view = BeanCredentialView(UsernamePassword("bob"))
        view.get_property("username")  # "bob"
    """

    __slots__ = ("_target",)

    def __init__(self, target: Any):
        self._target = target

    def __repr__(self) -> str:
        return f"BeanCredentialView({qualified_name(type(self._target))})"

    @property
    def target(self) -> Any:
        """The wrapped object."""
        return self._target

    @property
    def id(self) -> str | None:
        try:
            value = self.get_property("id")
        except PropertyLookupFailure:
            return None
        return value if isinstance(value, str) else None

    @property
    def scope(self) -> CredentialsScope | None:
        try:
            value = self.get_property("scope")
        except PropertyLookupFailure:
            return None
        return value if isinstance(value, CredentialsScope) else None

    def type_names(self) -> Sequence[str]:
        return [qualified_name(cls) for cls in type(self._target).__mro__]

    def get_property(self, name: str) -> Any:
        if not is_property_name(name):
            return ABSENT

        target = self._target
        for prefix in ("get_", "is_"):
            accessor = getattr(target, prefix + name, None)
            if callable(accessor):
                return self._invoke(name, accessor)

        try:
            value = getattr(target, name)
        except AttributeError:
            value = ABSENT
        except Exception as e:
            # Properties may raise anything; treat as an unreadable property
            raise PropertyLookupFailure(name, e) from e

        if value is not ABSENT:
            return ABSENT if callable(value) else value

        if isinstance(target, Mapping):
            return target.get(name, ABSENT)
        return ABSENT

    @staticmethod
    def _invoke(name: str, accessor: Any) -> Any:
        try:
            return accessor()
        except Exception as e:
            raise PropertyLookupFailure(name, e) from e


_VIEW_MEMBERS = ("id", "scope", "type_names", "get_property")


def is_credential_view(candidate: Any) -> bool:
    """Whether candidate structurally implements CredentialView.

    Members are looked up statically, so properties on the candidate are
    never run.
    """
    for member in _VIEW_MEMBERS:
        try:
            inspect.getattr_static(candidate, member)
        except AttributeError:
            return False
    return True


def as_view(candidate: Any) -> CredentialView:
    """Return candidate as a CredentialView, wrapping it if needed."""
    if is_credential_view(candidate):
        return candidate
    return BeanCredentialView(candidate)
