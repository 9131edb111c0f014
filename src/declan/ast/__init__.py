"""Declaration AST module.

Exports all node types and the serializer for converting parsed files
to and from JSON/YAML.
"""
from __future__ import annotations

from declan.ast.nodes import (
    Annotation,
    AnnotationKind,
    ArrayLit,
    AssignStatement,
    BoolLit,
    CallExpr,
    ConstantBinding,
    Declaration,
    Expression,
    ExpressionKind,
    Identifier,
    Literal,
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
from declan.ast.serializer import (
    DeclarationSourceError,
    ParsedFileSerializer,
    load_parsed_file,
)

__all__ = [
    # Declarations
    "Span",
    "SourceFile",
    "ParsedFile",
    "Declaration",
    "Member",
    "Annotation",
    "AnnotationKind",
    "ConstantBinding",
    "AssignStatement",
    # Expression types
    "Expression",
    "ExpressionKind",
    "expression_kind",
    "Literal",
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
    # Serializer
    "ParsedFileSerializer",
    "DeclarationSourceError",
    "load_parsed_file",
]
