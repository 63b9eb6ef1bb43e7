"""
Bed command schema.

The five garden-bed actions the backend understands. Each action name maps
to one pydantic model; a payload coming back from the language model is
validated against the model registered for its action.

Field names are snake_case in Python and camelCase on the wire
(``bedId``, ``rowPosition``, ...). Both spellings are accepted on input,
output always uses the wire names.
"""

import typing
from datetime import datetime
from typing import Annotated, Any, ClassVar, Dict, Optional, Type, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictFloat, StrictInt, ValidationError
from pydantic.alias_generators import to_camel

from .errors import InvalidValue, MissingField, SchemaError, TypeMismatch, UnknownAction

# pydantic error types that mean "right type, wrong value"
CONSTRAINT_ERRORS = {
    "greater_than",
    "greater_than_equal",
    "less_than",
    "less_than_equal",
    "finite_number",
}


def parse_timestamp(value: str) -> datetime:
    # fromisoformat only learned the "Z" suffix in Python 3.11
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _iso_timestamp(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO 8601 string, got {type(value).__name__}")
    try:
        parse_timestamp(value)
    except ValueError:
        raise ValueError(f"{value!r} is not an ISO 8601 timestamp")
    return value


# Kept as the text the model sent, so the backend receives it unchanged.
IsoTimestamp = Annotated[str, BeforeValidator(_iso_timestamp), Field(description="ISO 8601 timestamp")]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Dimensions(_WireModel):
    width: float = Field(strict=True)
    length: float = Field(strict=True)


class BedCommandBase(_WireModel):
    action: ClassVar[str] = ""
    description: ClassVar[str] = ""

    bed_id: str


class _Timed(BedCommandBase):
    started: IsoTimestamp

    @property
    def started_at(self) -> datetime:
        return parse_timestamp(self.started)


class PrepareBed(BedCommandBase):
    action: ClassVar[str] = "prepare"
    description: ClassVar[str] = "Register and initialize a garden bed"

    name: str
    dimensions: Dimensions


class PlantSeedlingInBed(BedCommandBase):
    action: ClassVar[str] = "plant"
    description: ClassVar[str] = "Plant a seedling at a grid position of the bed"

    row_position: StrictInt = Field(ge=0)
    cell_position_in_row: StrictInt = Field(ge=0)
    plant_type: str
    plant_cultivar: str


class FertilizeBed(_Timed):
    action: ClassVar[str] = "fertilize"
    description: ClassVar[str] = "Apply fertilizer to the bed"

    volume: float = Field(gt=0, allow_inf_nan=False, strict=True)
    fertilizer: str


class WaterBed(_Timed):
    action: ClassVar[str] = "water"
    description: ClassVar[str] = "Water the bed"

    volume: float = Field(gt=0, allow_inf_nan=False, strict=True)


class HarvestBed(_Timed):
    action: ClassVar[str] = "harvest"
    description: ClassVar[str] = "Record a harvest from the bed"

    plant_type: str
    plant_cultivar: str
    # at least one of these is expected, neither is required
    quantity: Optional[StrictInt] = None
    weight: Optional[StrictFloat] = None


BedCommand = Union[PrepareBed, PlantSeedlingInBed, FertilizeBed, WaterBed, HarvestBed]

# Registration order is the order actions are listed in the prompt.
ACTIONS: Dict[str, Type[BedCommandBase]] = {
    model.action: model
    for model in (PrepareBed, PlantSeedlingInBed, FertilizeBed, WaterBed, HarvestBed)
}


def _field_path(loc) -> str:
    return ".".join(str(part) for part in loc) or "payload"


def _to_schema_error(action: str, exc: ValidationError) -> SchemaError:
    first = exc.errors()[0]
    field = _field_path(first.get("loc", ()))
    kind = first.get("type", "")
    if kind == "missing":
        return MissingField(action, field)
    if kind in CONSTRAINT_ERRORS:
        return InvalidValue(action, field, first.get("msg", ""))
    return TypeMismatch(action, field, first.get("msg", ""))


def validate(action_name: str, payload: Any) -> BedCommand:
    """
    Validate a raw payload against the command registered for ``action_name``.

    Returns the typed command, or raises UnknownAction, MissingField,
    TypeMismatch or InvalidValue (all SchemaError).
    """
    model = ACTIONS.get(action_name)
    if model is None:
        raise UnknownAction(action_name)
    if not isinstance(payload, dict):
        raise TypeMismatch(action_name, "payload", f"expected an object, got {type(payload).__name__}")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise _to_schema_error(action_name, e) from e


def _body(model: BaseModel, raw: Any) -> Dict[str, Any]:
    raw = raw if isinstance(raw, dict) else {}
    body = {}
    for name, info in type(model).model_fields.items():
        value = getattr(model, name)
        if value is None:
            continue
        key = info.alias or name
        original = raw[key] if key in raw else raw.get(name)
        if isinstance(value, BaseModel):
            body[key] = _body(value, original)
        elif isinstance(value, float) and type(original) is int:
            # 2 stays 2, not 2.0
            body[key] = original
        else:
            body[key] = value
    return body


def serialize(command: BedCommandBase, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Request body for a command: wire names only, unset optionals left out.

    Pass the payload the command was validated from to keep its numbers
    exactly as written; extra keys in it are still dropped.
    """
    return _body(command, payload)


def action_for(command: BedCommandBase) -> str:
    return type(command).action


def _type_name(annotation) -> str:
    if typing.get_origin(annotation) is Annotated:
        return _type_name(typing.get_args(annotation)[0])
    args = [a for a in typing.get_args(annotation) if a is not type(None)]
    if typing.get_origin(annotation) is Union and len(args) == 1:
        return f"{_type_name(args[0])} (optional)"
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        inner = ", ".join(
            f"{info.alias or name}: {_type_name(info.annotation)}"
            for name, info in annotation.model_fields.items()
        )
        return f"object {{{inner}}}"
    return getattr(annotation, "__name__", str(annotation))


def describe_actions() -> str:
    """Human readable listing of every action and its fields, used in the prompt."""
    lines = []
    for action, model in ACTIONS.items():
        lines.append(f'"{action}" ({model.__name__}): {model.description}')
        for name, info in model.model_fields.items():
            line = f"- {info.alias or name}: {_type_name(info.annotation)}"
            if info.description:
                line = f"{line} ({info.description})"
            lines.append(line)
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
