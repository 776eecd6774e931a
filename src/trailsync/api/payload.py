"""Request body helpers for routes that accept JSON or multipart forms.

Learn: Registration, post creation, and profile edits may carry image
files, so those routes read the body themselves instead of declaring a
pydantic body parameter. Multipart fields written as "location[city]"
are folded into nested dicts so the same pydantic schema validates
both body styles.
"""

import json
import re
from typing import Any, TypeVar

import pydantic
from fastapi import Request
from starlette.datastructures import UploadFile

from trailsync.errors import ValidationError

SchemaT = TypeVar("SchemaT", bound=pydantic.BaseModel)

_NESTED_KEY = re.compile(r"^(\w+)\[(\w+)\]$")
_DOTTED_KEY = re.compile(r"^(\w+)\.(\w+)$")


class Payload:
    """Parsed body: plain fields plus uploaded files grouped by field name."""

    def __init__(self, fields: dict[str, Any], files: dict[str, list[UploadFile]]):
        self.fields = fields
        self.files = files

    def files_for(self, name: str) -> list[UploadFile]:
        return self.files.get(name, [])

    def file_for(self, name: str) -> UploadFile | None:
        files = self.files_for(name)
        return files[0] if files else None


def _set_field(fields: dict[str, Any], key: str, value: Any) -> None:
    match = _NESTED_KEY.match(key) or _DOTTED_KEY.match(key)
    if match:
        outer, inner = match.groups()
        nested = fields.setdefault(outer, {})
        if isinstance(nested, dict):
            nested[inner] = value
        return
    fields[key] = value


async def read_payload(request: Request) -> Payload:
    """Read a JSON, urlencoded, or multipart body into a Payload."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        fields: dict[str, Any] = {}
        files: dict[str, list[UploadFile]] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if value.filename:
                    files.setdefault(key, []).append(value)
            else:
                _set_field(fields, key, value)
        return Payload(fields, files)

    raw = await request.body()
    if not raw.strip():
        return Payload({}, {})
    try:
        data = json.loads(raw)
    except ValueError:
        raise ValidationError("Malformed JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return Payload(data, {})


def parse_json_list(value: Any, field: str) -> list[str]:
    """Accept a list, or a JSON-encoded list as sent in multipart forms."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationError(f"Invalid {field} format")
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"Invalid {field} format")
    return value


def validate(schema: type[SchemaT], data: dict[str, Any]) -> SchemaT:
    """Validate a dict against a schema, mapping failures to a 400."""
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(errors or "Invalid request")
