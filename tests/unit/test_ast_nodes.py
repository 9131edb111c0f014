"""Unit tests for declan.ast.nodes — node construction, annotation kind
resolution, structural equality, and lookup helpers.
"""
from __future__ import annotations

import dataclasses

import pytest

from declan.ast.nodes import (
    Annotation,
    AnnotationKind,
    ArrayLit,
    BoolLit,
    CallExpr,
    Declaration,
    ExpressionKind,
    Identifier,
    Member,
    MemberAccess,
    NullLit,
    NumberLit,
    ObjectLit,
    OpaqueExpr,
    ParsedFile,
    SourceFile,
    Span,
    StringLit,
    expression_kind,
)


# ===========================================================================
# Span
# ===========================================================================


class TestSpan:
    def test_unknown_is_all_zero(self) -> None:
        assert Span.unknown() == Span(0, 0, 0, 0)

    def test_repr_shows_line_and_col(self) -> None:
        assert repr(Span(0, 4, 3, 7)) == "Span(3:7)"

    def test_is_frozen(self) -> None:
        span = Span(0, 1, 1, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            span.line = 2  # type: ignore[misc]


# ===========================================================================
# Expressions
# ===========================================================================


class TestExpressions:
    def test_structural_equality_of_composites(self) -> None:
        left = ObjectLit(entries=(("a", ArrayLit(elements=(NumberLit(1), StringLit("x")))),))
        right = ObjectLit(entries=(("a", ArrayLit(elements=(NumberLit(1), StringLit("x")))),))
        assert left == right
        assert left is not right

    def test_composites_are_hashable(self) -> None:
        expr = ArrayLit(elements=(Identifier("A"), BoolLit(True)))
        assert hash(expr) == hash(ArrayLit(elements=(Identifier("A"), BoolLit(True))))

    def test_object_get_returns_last_duplicate(self) -> None:
        obj = ObjectLit(entries=(("k", StringLit("first")), ("k", StringLit("second"))))
        assert obj.get("k") == StringLit("second")

    def test_object_get_missing_returns_none(self) -> None:
        assert ObjectLit().get("missing") is None

    def test_object_keys_in_source_order(self) -> None:
        obj = ObjectLit(entries=(("b", NullLit()), ("a", NullLit())))
        assert obj.keys == ("b", "a")

    @pytest.mark.parametrize(
        ("node", "kind"),
        [
            (StringLit("s"), ExpressionKind.STRING),
            (NumberLit(1.5), ExpressionKind.NUMBER),
            (BoolLit(False), ExpressionKind.BOOL),
            (NullLit(), ExpressionKind.NULL),
            (Identifier("X"), ExpressionKind.IDENTIFIER),
            (ArrayLit(), ExpressionKind.ARRAY),
            (ObjectLit(), ExpressionKind.OBJECT),
            (CallExpr(callee=Identifier("f")), ExpressionKind.CALL),
            (MemberAccess(target=Identifier("a"), name="b"), ExpressionKind.MEMBER_ACCESS),
            (OpaqueExpr("a ? b : c"), ExpressionKind.OPAQUE),
        ],
    )
    def test_expression_kind(self, node: object, kind: ExpressionKind) -> None:
        assert expression_kind(node) is kind

    def test_expression_kind_of_non_expression_is_none(self) -> None:
        assert expression_kind("not a node") is None


# ===========================================================================
# Annotations
# ===========================================================================


class TestAnnotationKind:
    @pytest.mark.parametrize(
        ("name", "kind"),
        [
            ("Input", AnnotationKind.INPUT),
            ("Output", AnnotationKind.OUTPUT),
            ("Component", AnnotationKind.COMPONENT),
            ("Service", AnnotationKind.SERVICE),
            ("Module", AnnotationKind.MODULE),
        ],
    )
    def test_from_name(self, name: str, kind: AnnotationKind) -> None:
        assert AnnotationKind.from_name(name) is kind

    def test_unrecognised_name_is_unknown(self) -> None:
        assert AnnotationKind.from_name("Deprecated") is AnnotationKind.UNKNOWN

    def test_empty_name_is_unknown(self) -> None:
        assert AnnotationKind.from_name("") is AnnotationKind.UNKNOWN

    def test_lookup_is_case_sensitive(self) -> None:
        assert AnnotationKind.from_name("input") is AnnotationKind.UNKNOWN


class TestAnnotation:
    def test_kind_resolved_at_construction(self) -> None:
        assert Annotation(name="Component").kind is AnnotationKind.COMPONENT

    def test_kind_is_not_an_init_argument(self) -> None:
        with pytest.raises(TypeError):
            Annotation(name="Input", kind=AnnotationKind.OUTPUT)  # type: ignore[call-arg]

    def test_first_argument(self) -> None:
        annotation = Annotation(name="Input", arguments=(StringLit("a"), StringLit("b")))
        assert annotation.first_argument == StringLit("a")

    def test_first_argument_none_without_arguments(self) -> None:
        assert Annotation(name="Output").first_argument is None

    def test_equality_compares_name_and_arguments(self) -> None:
        assert Annotation(name="Input") == Annotation(name="Input")
        assert Annotation(name="Input") != Annotation(name="Output")


# ===========================================================================
# Declarations
# ===========================================================================


class TestDeclaration:
    def _declaration(self) -> Declaration:
        return Declaration(
            name="AppComponent",
            members=(
                Member(name="title", annotations=(Annotation(name="Input"),)),
                Member(name="changed", annotations=(Annotation(name="Output"),)),
            ),
            annotations=(Annotation(name="Component"), Annotation(name="Deprecated")),
            source_path="app.ts",
        )

    def test_identity_is_path_and_name(self) -> None:
        assert self._declaration().identity == ("app.ts", "AppComponent")

    def test_annotations_of_kind(self) -> None:
        found = self._declaration().annotations_of(AnnotationKind.COMPONENT)
        assert [a.name for a in found] == ["Component"]

    def test_member_annotations_of_kind(self) -> None:
        member = self._declaration().get_member("title")
        assert member is not None
        assert len(member.annotations_of(AnnotationKind.INPUT)) == 1
        assert member.annotations_of(AnnotationKind.OUTPUT) == ()

    def test_get_member_missing(self) -> None:
        assert self._declaration().get_member("nope") is None

    def test_is_hashable(self) -> None:
        assert hash(self._declaration()) == hash(self._declaration())


class TestParsedFile:
    def test_path_comes_from_source_file(self) -> None:
        parsed = ParsedFile(source_file=SourceFile("a/b.ts"))
        assert parsed.path == "a/b.ts"

    def test_get_declaration(self) -> None:
        decl = Declaration(name="Foo")
        parsed = ParsedFile(source_file=SourceFile("x.ts"), declarations=(decl,))
        assert parsed.get_declaration("Foo") is decl
        assert parsed.get_declaration("Bar") is None
