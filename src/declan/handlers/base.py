"""Abstract base class for declaration handlers.

A handler implements one semantic concern (e.g. "this class is a
component") as three steps driven by the pipeline:

* ``detect(declaration)`` returns a detection payload, or ``None`` when
  the handler does not apply.  Pure; never mutates the declaration.
* ``analyze(declaration, detection)`` turns the detection into an
  analysis payload plus soft diagnostics.  Raises ``HandlerError`` (or
  lets a ``ResourceLoadError`` propagate) for problems it cannot
  recover from.
* ``compile(declaration, analysis)`` returns one ``CompiledArtifact`` or
  a non-empty sequence of them.  Pure function of its inputs.

Each handler class states whether it is ``EXCLUSIVE`` (at most one such
handler may match a declaration) or ``COMBINABLE``.

Handlers receive their read-only collaborators at construction, so they
can be built in tests with a stub checker and an in-memory resource
loader.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Generic, TypeVar

from declan.ast.nodes import AssignStatement, Declaration, Expression, Member
from declan.checker import ConstantChecker, StaticChecker
from declan.diagnostics import Diagnostic
from declan.evaluator import StaticEvaluator
from declan.resources import InMemoryResourceLoader, ResourceLoader
from declan.scopes import ScopeRegistry

D = TypeVar("D")
A = TypeVar("A")


class Exclusivity(Enum):
    """Whether a handler may share a declaration with other matches."""

    EXCLUSIVE = auto()
    COMBINABLE = auto()


class HandlerError(Exception):
    """Raised by a handler for an annotation shape it cannot recover from.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    member:
        The member the problem is attached to, if any.
    """

    def __init__(self, message: str, member: Member | None = None) -> None:
        self.message = message
        self.member = member
        super().__init__(message)


@dataclass(frozen=True)
class CompiledArtifact:
    """A generated code fragment for one declaration.

    Parameters
    ----------
    name:
        Identifier the fragment is bound to, e.g. ``"componentDef"``.
    initializer:
        Expression tree the identifier is initialised with.
    type:
        Optional type annotation for the identifier.
    statements:
        Supporting statements emitted alongside, in order.
    """

    name: str
    initializer: Expression
    type: str | None = None
    statements: tuple[AssignStatement, ...] = ()


@dataclass(frozen=True)
class AnalysisOutput(Generic[A]):
    """What ``Handler.analyze`` returns: the payload and any soft diagnostics."""

    analysis: A
    diagnostics: tuple[Diagnostic, ...] = field(default=())


@dataclass(frozen=True)
class Collaborators:
    """Read-only capabilities injected into every handler.

    Parameters
    ----------
    checker:
        Resolves identifiers to constant bindings.
    scopes:
        Program-wide scope registry, filled before analysis.
    resource_loader:
        Loads out-of-declaration content such as templates.
    """

    checker: ConstantChecker = field(default_factory=StaticChecker)
    scopes: ScopeRegistry = field(default_factory=ScopeRegistry)
    resource_loader: ResourceLoader = field(default_factory=InMemoryResourceLoader)


class Handler(ABC, Generic[D, A]):
    """Abstract base class for pluggable declaration handlers.

    Subclasses set ``name`` and, when they may coexist with other
    matches, ``exclusivity = Exclusivity.COMBINABLE``.

    Parameters
    ----------
    collaborators:
        Read-only capabilities.  Defaults to an empty checker, scope
        registry and resource loader.
    """

    name: ClassVar[str] = ""
    exclusivity: ClassVar[Exclusivity] = Exclusivity.EXCLUSIVE

    def __init__(self, collaborators: Collaborators | None = None) -> None:
        self._collaborators = collaborators if collaborators is not None else Collaborators()
        self._evaluator = StaticEvaluator(self._collaborators.checker)

    @property
    def collaborators(self) -> Collaborators:
        return self._collaborators

    @property
    def evaluator(self) -> StaticEvaluator:
        return self._evaluator

    @property
    def is_exclusive(self) -> bool:
        return self.exclusivity is Exclusivity.EXCLUSIVE

    @abstractmethod
    def detect(self, declaration: Declaration) -> D | None:
        """Return a detection payload if this handler applies to ``declaration``."""

    @abstractmethod
    def analyze(self, declaration: Declaration, detection: D) -> AnalysisOutput[A]:
        """Analyze ``declaration`` given its detection payload.

        Raises
        ------
        HandlerError
            If the annotations have a shape the handler cannot recover from.
        """

    @abstractmethod
    def compile(
        self, declaration: Declaration, analysis: A
    ) -> CompiledArtifact | Sequence[CompiledArtifact]:
        """Compile the analysis payload into one or more artifacts."""

    def scope_members(self, declaration: Declaration) -> tuple[str, ...]:
        """Names of the declarations ``declaration`` puts into its scope.

        Called during the scope pre-pass, before any analysis.  Most
        handlers contribute nothing.
        """
        return ()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, {self.exclusivity.name.lower()})"
