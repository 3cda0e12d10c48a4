# survey_assistant/authoring/validation.py
"""
Single validation gate for documents crossing a stage boundary.

Every adapter output and every stage input goes through validate() before
any field is read.
"""

import json
import logging
from enum import Enum
from typing import Any, get_args, get_origin

from pydantic import BaseModel, ValidationError

from .errors import ReferentialIntegrityError, SchemaViolation
from .schemas import END, FollowUp, QuestionSet, Requirements

logger = logging.getLogger(__name__)


class DocumentShape(Enum):
    """The three document shapes exchanged between stages."""

    REQUIREMENTS = "requirements"
    QUESTION_SET = "question_set"
    FOLLOW_UP = "follow_up"


_MODELS: dict[DocumentShape, type[BaseModel]] = {
    DocumentShape.REQUIREMENTS: Requirements,
    DocumentShape.QUESTION_SET: QuestionSet,
    DocumentShape.FOLLOW_UP: FollowUp,
}

_TYPE_NAMES: dict[str, str] = {
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "float_parsing": "number",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
    "list_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
}

_BOUNDS: tuple[tuple[str, str], ...] = (("ge", ">="), ("gt", ">"), ("le", "<="), ("lt", "<"))

_PLAIN_NAMES: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


def serialize(document: BaseModel) -> dict[str, Any]:
    """Wire form of a document (camelCase keys, JSON-safe values)."""
    return document.model_dump(mode="json", by_alias=True)


def validate(document: Any, shape: DocumentShape) -> Any:
    """
    Validate and normalize a document against one of the three shapes.

    Args:
        document: A dict, a JSON string, or a model instance
        shape: Expected document shape

    Returns:
        Validated model instance with defaults applied

    Raises:
        SchemaViolation: If the document does not match the shape
        ReferentialIntegrityError: If a QuestionSet's branch rules point
            at questions that do not exist
    """
    model = _MODELS[shape]

    if isinstance(document, BaseModel):
        document = serialize(document)
    elif isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise SchemaViolation("", f"{shape.value} JSON", f"not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise SchemaViolation("", f"{shape.value} object", f"got {type(document).__name__}")

    try:
        validated = model.model_validate(document)
    except ValidationError as e:
        raise _to_violation(e, shape) from e

    if shape is DocumentShape.QUESTION_SET:
        check_branch_rules(validated)

    return validated


def check_branch_rules(question_set: QuestionSet) -> None:
    """
    Enforce referential integrity and the depth limit of branch rules.

    Raises:
        ReferentialIntegrityError: A from/goTo/else value is neither END nor
            an existing question id
        SchemaViolation: The rules form a cycle or exceed constraints.maxDepth
    """
    ids = set(question_set.question_ids)
    graph: dict[str, set[str]] = {}

    for i, rule in enumerate(question_set.branch_rules):
        targets = {"from": rule.from_, "goTo": rule.go_to, "else": rule.else_}
        for key, ref in targets.items():
            if ref is not None and ref != END and ref not in ids:
                raise ReferentialIntegrityError(f"branchRules.{i}.{key}", ref)
        for ref in (rule.go_to, rule.else_):
            if ref is not None and ref != END:
                graph.setdefault(rule.from_, set()).add(ref)

    depth = _longest_chain(graph)
    max_depth = question_set.constraints.max_depth
    if max_depth is not None and depth > max_depth:
        raise SchemaViolation(
            "branchRules", f"at most {max_depth} chained rules", f"chain of {depth} rules"
        )


def _longest_chain(graph: dict[str, set[str]]) -> int:
    memo: dict[str, int] = {}
    visiting: set[str] = set()

    def walk(node: str) -> int:
        if node in memo:
            return memo[node]
        if node in visiting:
            raise SchemaViolation("branchRules", "an acyclic branch graph", f"cycle through '{node}'")
        visiting.add(node)
        best = max((1 + walk(nxt) for nxt in graph.get(node, ())), default=0)
        visiting.discard(node)
        memo[node] = best
        return best

    return max((walk(node) for node in graph), default=0)


def _to_violation(error: ValidationError, shape: DocumentShape) -> SchemaViolation:
    issues = error.errors()
    first = issues[0]
    path = ".".join(str(part) for part in first["loc"])
    logger.debug(f"{shape.value} failed validation with {len(issues)} issue(s): {error}")
    return SchemaViolation(path, _expected(first, _MODELS[shape]), first["msg"])


def _expected(issue: dict[str, Any], model: type[BaseModel]) -> str:
    """Expected type for one pydantic issue, in wire terms."""
    ctx = issue.get("ctx") or {}
    if "expected" in ctx:
        return f"one of {ctx['expected']}"
    for key, op in _BOUNDS:
        if key in ctx:
            return f"number {op} {ctx[key]}"
    if issue["type"] in _TYPE_NAMES:
        return _TYPE_NAMES[issue["type"]]
    annotation = _annotation_at(model, issue["loc"])
    return _type_name(annotation) if annotation is not None else issue["type"]


def _annotation_at(model: type[BaseModel], loc: tuple) -> Any:
    """Declared type at an error location (field names or aliases), or None."""
    annotation: Any = model
    for part in loc:
        if isinstance(part, int):
            args = get_args(annotation)
            if not args:
                return None
            annotation = args[0]
            continue
        if get_origin(annotation) is dict:
            annotation = get_args(annotation)[1]
            continue
        target = _model_in(annotation)
        if target is None:
            return None
        field = next(
            (f for name, f in target.model_fields.items() if part in (name, f.alias)),
            None,
        )
        if field is None:
            return None
        annotation = field.annotation
    return annotation


def _model_in(annotation: Any) -> type[BaseModel] | None:
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    for arg in get_args(annotation):
        found = _model_in(arg)
        if found is not None:
            return found
    return None


def _type_name(annotation: Any) -> str:
    if isinstance(annotation, type):
        if issubclass(annotation, BaseModel):
            return f"{annotation.__name__} object"
        return _PLAIN_NAMES.get(annotation, annotation.__name__)
    return str(annotation).replace("typing.", "")
