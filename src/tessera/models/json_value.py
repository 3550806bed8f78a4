"""
Tagged representation of JSON values.

Each value kind is its own frozen model with a literal `kind` discriminator so
integers stay distinct from floats and numeric text stays distinct from numbers.
"""
import json
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr


class _JsonNode(BaseModel):
    model_config = ConfigDict(frozen=True)


class JsonNull(_JsonNode):
    kind: Literal["null"] = "null"


class JsonBool(_JsonNode):
    kind: Literal["bool"] = "bool"
    value: StrictBool


class JsonInt(_JsonNode):
    kind: Literal["int"] = "int"
    value: StrictInt


class JsonFloat(_JsonNode):
    kind: Literal["float"] = "float"
    value: StrictFloat


class JsonString(_JsonNode):
    kind: Literal["string"] = "string"
    value: StrictStr


class JsonArray(_JsonNode):
    kind: Literal["array"] = "array"
    items: List["JsonValue"] = Field(default_factory=list)


class JsonObject(_JsonNode):
    kind: Literal["object"] = "object"
    members: Dict[str, "JsonValue"] = Field(default_factory=dict)


JsonValue = Annotated[
    Union[JsonNull, JsonBool, JsonInt, JsonFloat, JsonString, JsonArray, JsonObject],
    Field(discriminator="kind"),
]

JsonArray.model_rebuild()
JsonObject.model_rebuild()

JsonRecord = Dict[str, JsonValue]

PRIMITIVE_TYPES = (JsonNull, JsonBool, JsonInt, JsonFloat, JsonString)


def from_python(obj: Any) -> JsonValue:
    """Convert a json.loads() result into the tagged form."""
    if obj is None:
        return JsonNull()
    # bool is a subclass of int, so it must be checked first
    if isinstance(obj, bool):
        return JsonBool(value=obj)
    if isinstance(obj, int):
        return JsonInt(value=obj)
    if isinstance(obj, float):
        return JsonFloat(value=obj)
    if isinstance(obj, str):
        return JsonString(value=obj)
    if isinstance(obj, (list, tuple)):
        return JsonArray(items=[from_python(item) for item in obj])
    if isinstance(obj, dict):
        return JsonObject(members={str(k): from_python(v) for k, v in obj.items()})
    raise TypeError(f"Unsupported JSON value type: {type(obj).__name__}")


def to_python(value: JsonValue) -> Any:
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, (JsonBool, JsonInt, JsonFloat, JsonString)):
        return value.value
    if isinstance(value, JsonArray):
        return [to_python(item) for item in value.items]
    if isinstance(value, JsonObject):
        return {k: to_python(v) for k, v in value.members.items()}
    raise TypeError(f"Unsupported JSON node: {type(value).__name__}")


def is_primitive(value: JsonValue) -> bool:
    return isinstance(value, PRIMITIVE_TYPES)


def dumps_compact(value: JsonValue) -> str:
    return json.dumps(to_python(value), ensure_ascii=False, separators=(",", ":"))


class JsonDocument(BaseModel):
    """Top-level JSON array of records."""
    records: List[JsonRecord] = Field(default_factory=list)

    @classmethod
    def from_python(cls, data: List[Dict[str, Any]]) -> "JsonDocument":
        return cls(records=[{str(k): from_python(v) for k, v in rec.items()} for rec in data])

    def to_python(self) -> List[Dict[str, Any]]:
        return [{k: to_python(v) for k, v in rec.items()} for rec in self.records]

    def dumps(self, indent: int = 2) -> str:
        return json.dumps(self.to_python(), ensure_ascii=False, indent=indent)
