"""AST node definitions for parsed declarations.

Every node handed to the pipeline is a frozen dataclass so that parsed
files are immutable and compare structurally.  The ``Expression`` union
covers all annotation-argument shapes; downstream code should use
``isinstance`` checks or the ``expression_kind`` helper to dispatch.

Annotation kinds are resolved once, when an ``Annotation`` is built,
so detection logic compares ``AnnotationKind`` members rather than
annotation names.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Union


# ---------------------------------------------------------------------------
# Source location
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open byte range ``[start, end)`` within the source text.

    Parameters
    ----------
    start:
        0-based byte offset of the first character.
    end:
        0-based byte offset *past* the last character.
    line:
        1-based line number of the first character.
    col:
        1-based column number of the first character.
    """

    start: int
    end: int
    line: int
    col: int

    def __repr__(self) -> str:
        return f"Span({self.line}:{self.col})"

    @classmethod
    def unknown(cls) -> "Span":
        """Return a sentinel span used when position info is unavailable."""
        return cls(start=0, end=0, line=0, col=0)


_UNKNOWN_SPAN = Span.unknown()


# ---------------------------------------------------------------------------
# Literal expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StringLit:
    """A string literal value."""

    value: str
    span: Span = _UNKNOWN_SPAN


@dataclass(frozen=True, slots=True)
class NumberLit:
    """An integer or floating-point literal value."""

    value: int | float
    span: Span = _UNKNOWN_SPAN


@dataclass(frozen=True, slots=True)
class BoolLit:
    """A boolean literal (``true`` or ``false``)."""

    value: bool
    span: Span = _UNKNOWN_SPAN


@dataclass(frozen=True, slots=True)
class NullLit:
    """The ``null`` literal."""

    span: Span = _UNKNOWN_SPAN


Literal = Union[StringLit, NumberLit, BoolLit, NullLit]


# ---------------------------------------------------------------------------
# Reference and composite expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Identifier:
    """A bare identifier, e.g. ``TEMPLATE_URL``."""

    name: str
    span: Span = _UNKNOWN_SPAN


# Forward reference: composites are recursive.
Expression = Union[
    "StringLit",
    "NumberLit",
    "BoolLit",
    "NullLit",
    "Identifier",
    "ArrayLit",
    "ObjectLit",
    "CallExpr",
    "MemberAccess",
    "OpaqueExpr",
]


@dataclass(frozen=True, slots=True)
class ArrayLit:
    """An array literal, e.g. ``[FooComponent, BarDirective]``."""

    elements: tuple["Expression", ...] = ()
    span: Span = _UNKNOWN_SPAN


@dataclass(frozen=True, slots=True)
class ObjectLit:
    """An object literal with string keys, e.g. ``{selector: "app-root"}``.

    Entries keep their source order.  Duplicate keys are allowed in the
    tree; the evaluator keeps the last one, as object literals do.
    """

    entries: tuple[tuple[str, "Expression"], ...] = ()
    span: Span = _UNKNOWN_SPAN

    def get(self, key: str) -> "Expression | None":
        """Return the last expression bound to ``key``, or ``None``."""
        found = None
        for entry_key, value in self.entries:
            if entry_key == key:
                found = value
        return found

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(key for key, _ in self.entries)


@dataclass(frozen=True, slots=True)
class CallExpr:
    """A call expression, e.g. ``forwardRef(Other)``.  Never statically resolved."""

    callee: "Expression"
    arguments: tuple["Expression", ...] = ()
    span: Span = _UNKNOWN_SPAN


@dataclass(frozen=True, slots=True)
class MemberAccess:
    """A member access, e.g. ``config.selector``.  Never statically resolved."""

    target: "Expression"
    name: str
    span: Span = _UNKNOWN_SPAN


@dataclass(frozen=True, slots=True)
class OpaqueExpr:
    """Any other expression shape, kept as source text for diagnostics."""

    text: str
    span: Span = _UNKNOWN_SPAN


class ExpressionKind(Enum):
    """Discriminator for the ``Expression`` union."""

    STRING = auto()
    NUMBER = auto()
    BOOL = auto()
    NULL = auto()
    IDENTIFIER = auto()
    ARRAY = auto()
    OBJECT = auto()
    CALL = auto()
    MEMBER_ACCESS = auto()
    OPAQUE = auto()


_KIND_BY_TYPE: dict[type, ExpressionKind] = {
    StringLit: ExpressionKind.STRING,
    NumberLit: ExpressionKind.NUMBER,
    BoolLit: ExpressionKind.BOOL,
    NullLit: ExpressionKind.NULL,
    Identifier: ExpressionKind.IDENTIFIER,
    ArrayLit: ExpressionKind.ARRAY,
    ObjectLit: ExpressionKind.OBJECT,
    CallExpr: ExpressionKind.CALL,
    MemberAccess: ExpressionKind.MEMBER_ACCESS,
    OpaqueExpr: ExpressionKind.OPAQUE,
}


def expression_kind(node: object) -> ExpressionKind | None:
    """Return the ``ExpressionKind`` of ``node``, or ``None`` if it is not an expression."""
    return _KIND_BY_TYPE.get(type(node))


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


class AnnotationKind(Enum):
    """Semantic kind of an annotation, resolved from its name."""

    INPUT = "Input"
    OUTPUT = "Output"
    COMPONENT = "Component"
    DIRECTIVE = "Directive"
    INJECTABLE = "Injectable"
    MODULE = "Module"
    PIPE = "Pipe"
    SERVICE = "Service"
    UNKNOWN = ""

    @classmethod
    def from_name(cls, name: str) -> "AnnotationKind":
        """Map an annotation name to its kind; unrecognised names are ``UNKNOWN``."""
        for kind in cls:
            if kind.value and kind.value == name:
                return kind
        return cls.UNKNOWN


@dataclass(frozen=True)
class Annotation:
    """A named marker with ordered argument expressions.

    Parameters
    ----------
    name:
        The annotation name as written in source, e.g. ``"Input"``.
    arguments:
        Argument expressions in source order.
    span:
        Source location.
    kind:
        Resolved from ``name`` at construction; not passed by callers.
    """

    name: str
    arguments: tuple[Expression, ...] = ()
    span: Span = _UNKNOWN_SPAN
    kind: AnnotationKind = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", AnnotationKind.from_name(self.name))

    @property
    def first_argument(self) -> Expression | None:
        return self.arguments[0] if self.arguments else None


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Member:
    """A property or method of a declaration, with its own annotations."""

    name: str
    annotations: tuple[Annotation, ...] = ()
    span: Span = _UNKNOWN_SPAN

    def annotations_of(self, kind: AnnotationKind) -> tuple[Annotation, ...]:
        return tuple(a for a in self.annotations if a.kind is kind)


@dataclass(frozen=True)
class Declaration:
    """A class-like unit of source carrying members and annotations.

    Parameters
    ----------
    name:
        The declared name, e.g. ``"AppComponent"``.
    members:
        Members in source order.
    annotations:
        Declaration-level annotations in source order.
    source_path:
        Path of the file the declaration was parsed from.
    span:
        Source location.
    """

    name: str
    members: tuple[Member, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    source_path: str = ""
    span: Span = _UNKNOWN_SPAN

    @property
    def identity(self) -> tuple[str, str]:
        """Key identifying this declaration across a program."""
        return (self.source_path, self.name)

    def annotations_of(self, kind: AnnotationKind) -> tuple[Annotation, ...]:
        return tuple(a for a in self.annotations if a.kind is kind)

    def get_member(self, name: str) -> Member | None:
        for member in self.members:
            if member.name == name:
                return member
        return None


@dataclass(frozen=True)
class ConstantBinding:
    """A file-level constant, e.g. ``const SELECTOR = "app-root"``."""

    name: str
    value: Expression
    span: Span = _UNKNOWN_SPAN


@dataclass(frozen=True, slots=True)
class SourceFile:
    """Reference to the file a ``ParsedFile`` came from."""

    path: str


@dataclass(frozen=True)
class ParsedFile:
    """The declarations and constant bindings of one source file."""

    source_file: SourceFile
    declarations: tuple[Declaration, ...] = ()
    constants: tuple[ConstantBinding, ...] = ()

    @property
    def path(self) -> str:
        return self.source_file.path

    def get_declaration(self, name: str) -> Declaration | None:
        for declaration in self.declarations:
            if declaration.name == name:
                return declaration
        return None


# ---------------------------------------------------------------------------
# Generated code
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AssignStatement:
    """A supporting statement emitted next to an artifact: ``target = value``."""

    target: str
    value: Expression
