"""JSON-Patch (RFC 6902) processing for stored documents.

A patch body is decoded into tagged operation models, then each operation is
applied with ``jsonpatch`` to a deep copy of the document. The first
operation that cannot be applied aborts the whole batch with a
``JsonPatchError``, and the caller's document is never touched.

Error names follow the vocabulary of the widely used JavaScript
``fast-json-patch`` validator so clients see familiar codes.
"""

import copy
from typing import Annotated, Any, Literal, Union

import jsonpatch
from jsonpointer import JsonPointerException
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

OPERATIONS = ("add", "remove", "replace", "move", "copy", "test")


class JsonPatchError(Exception):
    """Raised when a patch sequence is malformed or cannot be applied."""

    def __init__(
        self,
        name: str,
        message: str,
        index: int | None = None,
        operation: Any = None,
    ) -> None:
        super().__init__(message)
        self.name = name
        self.message = message
        self.index = index
        self.operation = operation

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"name": self.name, "message": self.message}
        if self.index is not None:
            body["index"] = self.index
            body["operation"] = self.operation
        return body


class _Operation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    path: str


class PatchAdd(_Operation):
    op: Literal["add"]
    value: Any


class PatchRemove(_Operation):
    op: Literal["remove"]


class PatchReplace(_Operation):
    op: Literal["replace"]
    value: Any


class PatchMove(_Operation):
    op: Literal["move"]
    from_: str = Field(alias="from")


class PatchCopy(_Operation):
    op: Literal["copy"]
    from_: str = Field(alias="from")


class PatchTest(_Operation):
    op: Literal["test"]
    value: Any


PatchOperation = Annotated[
    Union[PatchAdd, PatchRemove, PatchReplace, PatchMove, PatchCopy, PatchTest],
    Field(discriminator="op"),
]

_operation_adapter: TypeAdapter[PatchOperation] = TypeAdapter(PatchOperation)


def _is_pointer(value: str) -> bool:
    return value == "" or value.startswith("/")


def parse_patch(raw: Any) -> list[PatchOperation]:
    """Decode a raw JSON patch body into typed operations.

    Raises:
        JsonPatchError: If the body is not a list of well-formed operations.
    """
    if not isinstance(raw, list):
        raise JsonPatchError("SEQUENCE_NOT_AN_ARRAY", "Patch sequence must be an array")
    operations: list[PatchOperation] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise JsonPatchError(
                "OPERATION_NOT_AN_OBJECT", "Operation is not an object", index, item
            )
        op = item.get("op")
        if op not in OPERATIONS:
            raise JsonPatchError(
                "OPERATION_OP_INVALID",
                "Operation `op` property is not one of operations defined in RFC-6902",
                index,
                item,
            )
        if not isinstance(item.get("path"), str):
            raise JsonPatchError(
                "OPERATION_PATH_INVALID", "Operation `path` property is not a string", index, item
            )
        if not _is_pointer(item["path"]):
            raise JsonPatchError(
                "OPERATION_PATH_INVALID", "Operation `path` is not a JSON Pointer", index, item
            )
        if op in ("move", "copy") and not isinstance(item.get("from"), str):
            raise JsonPatchError(
                "OPERATION_FROM_REQUIRED",
                "Operation `from` property is not present (applicable in `move` and `copy` operations)",
                index,
                item,
            )
        if op in ("add", "replace", "test") and "value" not in item:
            raise JsonPatchError(
                "OPERATION_VALUE_REQUIRED",
                "Operation `value` property is not present (applicable in `add`, `replace` and `test` operations)",
                index,
                item,
            )
        if op in ("move", "copy") and not _is_pointer(item["from"]):
            raise JsonPatchError(
                "OPERATION_PATH_INVALID", "Operation `from` is not a JSON Pointer", index, item
            )
        operations.append(_operation_adapter.validate_python(item))
    return operations


def targets_field(raw_operation: Any, field: str) -> bool:
    """True if a raw operation reads or writes ``/<field>`` or below it."""
    if not isinstance(raw_operation, dict):
        return False
    prefix = "/" + field.replace("~", "~0").replace("/", "~1")
    for key in ("path", "from"):
        pointer = raw_operation.get(key)
        if isinstance(pointer, str) and (pointer == prefix or pointer.startswith(prefix + "/")):
            return True
    return False


def apply_patch(document: dict[str, Any], raw: Any, protected: str | None = None) -> Any:
    """Apply a patch to a copy of ``document`` and return the copy.

    Operations addressing the ``protected`` field are skipped. Error indices
    refer to positions in ``raw``.

    Raises:
        JsonPatchError: On the first operation that is malformed or does not
            apply. ``document`` is left unchanged.
    """
    operations = parse_patch(raw)
    result: Any = copy.deepcopy(document)
    for index, operation in enumerate(operations):
        if protected is not None and targets_field(raw[index], protected):
            continue
        step = jsonpatch.JsonPatch([operation.model_dump(by_alias=True)])
        try:
            result = step.apply(result, in_place=True)
        except jsonpatch.JsonPatchTestFailed as e:
            raise JsonPatchError("TEST_OPERATION_FAILED", str(e), index, raw[index]) from e
        except (jsonpatch.JsonPatchConflict, JsonPointerException) as e:
            raise JsonPatchError("OPERATION_PATH_UNRESOLVABLE", str(e), index, raw[index]) from e
        except jsonpatch.JsonPatchException as e:
            raise JsonPatchError("OPERATION_PATH_INVALID", str(e), index, raw[index]) from e
    return result
