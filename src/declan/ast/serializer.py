"""Serialization of parsed files to and from JSON and YAML.

The pipeline never parses source text.  Upstream front-ends hand over
their parse results as plain dict/list documents, which this module
turns into ``ParsedFile`` trees (and back).  Expression unions carry a
``"kind"`` discriminator so that deserialization is unambiguous.

Usage
-----
::

    from declan.ast.serializer import ParsedFileSerializer

    serializer = ParsedFileSerializer()
    parsed = serializer.from_yaml(Path("app.decl.yaml").read_text())
    text = serializer.to_json(parsed)
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from declan.ast.nodes import (
    Annotation,
    ArrayLit,
    BoolLit,
    CallExpr,
    ConstantBinding,
    Declaration,
    Expression,
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
)


class DeclarationSourceError(ValueError):
    """Raised when a parsed-file document is malformed.

    Parameters
    ----------
    message:
        What is wrong with the document.
    path:
        Dotted location inside the document, e.g. ``"declarations[0].name"``.
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        location = f" at {path}" if path else ""
        super().__init__(f"Invalid declaration document{location}: {message}")


class ParsedFileSerializer:
    """Converts between ``ParsedFile`` objects and plain Python dicts."""

    # ------------------------------------------------------------------
    # Serialization (AST -> dict)
    # ------------------------------------------------------------------

    def to_dict(self, parsed: ParsedFile) -> dict[str, object]:
        """Serialize a ``ParsedFile`` to a JSON-compatible dict."""
        return {
            "path": parsed.path,
            "constants": [
                {"name": c.name, "value": self.expr_to_dict(c.value)}
                for c in parsed.constants
            ],
            "declarations": [self._declaration_to_dict(d) for d in parsed.declarations],
        }

    def _span_to_dict(self, span: Span) -> dict[str, int]:
        return {"start": span.start, "end": span.end, "line": span.line, "col": span.col}

    def _annotation_to_dict(self, annotation: Annotation) -> dict[str, object]:
        return {
            "name": annotation.name,
            "arguments": [self.expr_to_dict(a) for a in annotation.arguments],
            "span": self._span_to_dict(annotation.span),
        }

    def _member_to_dict(self, member: Member) -> dict[str, object]:
        return {
            "name": member.name,
            "annotations": [self._annotation_to_dict(a) for a in member.annotations],
            "span": self._span_to_dict(member.span),
        }

    def _declaration_to_dict(self, declaration: Declaration) -> dict[str, object]:
        return {
            "name": declaration.name,
            "annotations": [self._annotation_to_dict(a) for a in declaration.annotations],
            "members": [self._member_to_dict(m) for m in declaration.members],
            "span": self._span_to_dict(declaration.span),
        }

    def expr_to_dict(self, expr: Expression) -> dict[str, object]:
        """Serialize a single expression node."""
        if isinstance(expr, StringLit):
            return {"kind": "string", "value": expr.value}
        if isinstance(expr, NumberLit):
            return {"kind": "number", "value": expr.value}
        if isinstance(expr, BoolLit):
            return {"kind": "bool", "value": expr.value}
        if isinstance(expr, NullLit):
            return {"kind": "null"}
        if isinstance(expr, Identifier):
            return {"kind": "identifier", "name": expr.name}
        if isinstance(expr, ArrayLit):
            return {"kind": "array", "elements": [self.expr_to_dict(e) for e in expr.elements]}
        if isinstance(expr, ObjectLit):
            return {
                "kind": "object",
                "entries": [[key, self.expr_to_dict(value)] for key, value in expr.entries],
            }
        if isinstance(expr, CallExpr):
            return {
                "kind": "call",
                "callee": self.expr_to_dict(expr.callee),
                "arguments": [self.expr_to_dict(a) for a in expr.arguments],
            }
        if isinstance(expr, MemberAccess):
            return {"kind": "member", "target": self.expr_to_dict(expr.target), "name": expr.name}
        if isinstance(expr, OpaqueExpr):
            return {"kind": "opaque", "text": expr.text}
        raise TypeError(f"Unknown expression type: {type(expr)!r}")

    # ------------------------------------------------------------------
    # Deserialization (dict -> AST)
    # ------------------------------------------------------------------

    def from_dict(self, data: object, default_path: str = "") -> ParsedFile:
        """Deserialize a ``ParsedFile`` from a dict produced by ``to_dict``.

        Parameters
        ----------
        data:
            The document.  Only ``declarations`` is required.
        default_path:
            Used as the source path when the document carries none.

        Raises
        ------
        DeclarationSourceError
            If the document does not have the expected shape.
        """
        doc = self._mapping(data, "")
        path = doc.get("path") or default_path
        if not isinstance(path, str):
            raise DeclarationSourceError("'path' must be a string", "path")

        constants = tuple(
            ConstantBinding(
                name=self._name(c, f"constants[{i}]"),
                value=self.expr_from_dict(
                    self._mapping(c, f"constants[{i}]").get("value"), f"constants[{i}].value"
                ),
            )
            for i, c in enumerate(self._sequence(doc.get("constants", []), "constants"))
        )
        declarations = tuple(
            self._declaration_from_dict(d, path, f"declarations[{i}]")
            for i, d in enumerate(self._sequence(doc.get("declarations"), "declarations"))
        )
        return ParsedFile(
            source_file=SourceFile(path=path),
            declarations=declarations,
            constants=constants,
        )

    def _mapping(self, data: object, where: str) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise DeclarationSourceError("expected a mapping", where)
        return data

    def _sequence(self, data: object, where: str) -> list[Any]:
        if not isinstance(data, list):
            raise DeclarationSourceError("expected a list", where)
        return data

    def _name(self, data: object, where: str) -> str:
        name = self._mapping(data, where).get("name")
        if not isinstance(name, str) or not name:
            raise DeclarationSourceError("'name' must be a non-empty string", f"{where}.name")
        return name

    def _span_from_dict(self, data: object, where: str) -> Span:
        if not isinstance(data, dict):
            return Span.unknown()
        fields: dict[str, int] = {}
        for key in ("start", "end", "line", "col"):
            value = data.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int):
                raise DeclarationSourceError(f"span {key!r} must be an integer", f"{where}.span.{key}")
            fields[key] = value
        return Span(**fields)

    def _annotations_from(self, data: dict[str, Any], where: str) -> tuple[Annotation, ...]:
        items = self._sequence(data.get("annotations", []), f"{where}.annotations")
        annotations = []
        for i, item in enumerate(items):
            item_where = f"{where}.annotations[{i}]"
            raw_args = self._sequence(
                self._mapping(item, item_where).get("arguments", []), f"{item_where}.arguments"
            )
            annotations.append(
                Annotation(
                    name=self._name(item, item_where),
                    arguments=tuple(
                        self.expr_from_dict(a, f"{item_where}.arguments[{j}]")
                        for j, a in enumerate(raw_args)
                    ),
                    span=self._span_from_dict(item.get("span"), item_where),
                )
            )
        return tuple(annotations)

    def _declaration_from_dict(self, data: object, path: str, where: str) -> Declaration:
        doc = self._mapping(data, where)
        members = tuple(
            Member(
                name=self._name(m, f"{where}.members[{i}]"),
                annotations=self._annotations_from(m, f"{where}.members[{i}]"),
                span=self._span_from_dict(m.get("span"), f"{where}.members[{i}]"),
            )
            for i, m in enumerate(self._sequence(doc.get("members", []), f"{where}.members"))
        )
        return Declaration(
            name=self._name(doc, where),
            members=members,
            annotations=self._annotations_from(doc, where),
            source_path=path,
            span=self._span_from_dict(doc.get("span"), where),
        )

    def expr_from_dict(self, data: object, where: str = "") -> Expression:  # noqa: PLR0911
        """Deserialize a single expression node.

        Raises
        ------
        DeclarationSourceError
            If ``data`` has no recognised ``"kind"``.
        """
        doc = self._mapping(data, where)
        kind = doc.get("kind")
        if kind == "string":
            if not isinstance(doc.get("value"), str):
                raise DeclarationSourceError("string literal needs a string 'value'", where)
            return StringLit(value=doc["value"])
        if kind == "number":
            value = doc.get("value")
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise DeclarationSourceError("number literal needs a numeric 'value'", where)
            return NumberLit(value=value)
        if kind == "bool":
            if not isinstance(doc.get("value"), bool):
                raise DeclarationSourceError("bool literal needs a boolean 'value'", where)
            return BoolLit(value=doc["value"])
        if kind == "null":
            return NullLit()
        if kind == "identifier":
            return Identifier(name=self._name(doc, where))
        if kind == "array":
            elements = self._sequence(doc.get("elements", []), f"{where}.elements")
            return ArrayLit(
                elements=tuple(
                    self.expr_from_dict(e, f"{where}.elements[{i}]") for i, e in enumerate(elements)
                )
            )
        if kind == "object":
            entries = []
            for i, entry in enumerate(self._sequence(doc.get("entries", []), f"{where}.entries")):
                entry_where = f"{where}.entries[{i}]"
                if not (isinstance(entry, list) and len(entry) == 2 and isinstance(entry[0], str)):
                    raise DeclarationSourceError("object entry must be [key, value]", entry_where)
                entries.append((entry[0], self.expr_from_dict(entry[1], f"{entry_where}[1]")))
            return ObjectLit(entries=tuple(entries))
        if kind == "call":
            arguments = self._sequence(doc.get("arguments", []), f"{where}.arguments")
            return CallExpr(
                callee=self.expr_from_dict(doc.get("callee"), f"{where}.callee"),
                arguments=tuple(
                    self.expr_from_dict(a, f"{where}.arguments[{i}]") for i, a in enumerate(arguments)
                ),
            )
        if kind == "member":
            return MemberAccess(
                target=self.expr_from_dict(doc.get("target"), f"{where}.target"),
                name=str(doc.get("name", "")),
            )
        if kind == "opaque":
            return OpaqueExpr(text=str(doc.get("text", "")))
        raise DeclarationSourceError(f"unknown expression kind {kind!r}", where)

    # ------------------------------------------------------------------
    # JSON helpers
    # ------------------------------------------------------------------

    def to_json(self, parsed: ParsedFile, indent: int = 2) -> str:
        """Serialize a ``ParsedFile`` to a JSON string."""
        return json.dumps(self.to_dict(parsed), indent=indent, ensure_ascii=False)

    def from_json(self, text: str, default_path: str = "") -> ParsedFile:
        """Deserialize a ``ParsedFile`` from a JSON string."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DeclarationSourceError(f"not valid JSON ({exc})") from exc
        return self.from_dict(data, default_path=default_path)

    # ------------------------------------------------------------------
    # YAML helpers
    # ------------------------------------------------------------------

    def to_yaml(self, parsed: ParsedFile) -> str:
        """Serialize a ``ParsedFile`` to a YAML string."""
        return yaml.dump(self.to_dict(parsed), default_flow_style=False, allow_unicode=True)

    def from_yaml(self, text: str, default_path: str = "") -> ParsedFile:
        """Deserialize a ``ParsedFile`` from a YAML string."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise DeclarationSourceError(f"not valid YAML ({exc})") from exc
        return self.from_dict(data, default_path=default_path)


def load_parsed_file(path: str | Path) -> ParsedFile:
    """Read a parsed-file document from disk, choosing JSON or YAML by suffix.

    The document's own ``path`` wins; otherwise the file path is used as
    the source path of every declaration.
    """
    file_path = Path(path)
    try:
        with file_path.open(encoding="utf-8") as handle:
            text = handle.read()
    except UnicodeDecodeError as exc:
        raise DeclarationSourceError(f"not valid UTF-8 text ({exc.reason} at byte {exc.start})") from exc
    serializer = ParsedFileSerializer()
    if file_path.suffix.lower() == ".json":
        return serializer.from_json(text, default_path=str(file_path))
    return serializer.from_yaml(text, default_path=str(file_path))
