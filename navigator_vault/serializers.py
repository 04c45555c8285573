"""
Payload serializers — turn the vault value into bytes and back.

- ``JSONSerializer`` (default): orjson; supports str, int, float, dict,
  list, bytes, bool, None. Top-level bytes values are wrapped as
  ``{"__vault_bytes_b64__": "<base64>"}`` for a safe JSON round-trip. A
  top-level dict with that single key is itself wrapped in
  ``{"__vault_escaped__": ...}`` so it loads back unchanged.
- ``PickleSerializer``: jsonpickle, for datetimes, datamodel and pydantic
  models and other Python objects jsonpickle can restore.

Only load vaults you wrote yourself with ``PickleSerializer``: jsonpickle
instantiates the classes named in the payload. Authentication happens before
decoding, so a payload is only decoded when it was produced with the vault
password.
"""
import base64
from typing import Any

import jsonpickle
import orjson
from jsonpickle.unpickler import loadclass
from datamodel import BaseModel
from pydantic import BaseModel as PydanticBaseModel

from .exceptions import DeserializationError, SerializationError

_BYTES_WRAPPER_KEY = "__vault_bytes_b64__"
_ESCAPE_KEY = "__vault_escaped__"


def _is_marker(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and len(value) == 1
        and next(iter(value)) in (_BYTES_WRAPPER_KEY, _ESCAPE_KEY)
    )


class ModelHandler(jsonpickle.handlers.BaseHandler):
    """ModelHandler.
    This class can handle with serializable Data Models.
    """
    def flatten(self, obj, data):
        data['__dict__'] = self.context.flatten(obj.__dict__, reset=False)
        return data

    def restore(self, obj):
        mdl = loadclass(obj['py/object'])
        instance = mdl.__new__(mdl)
        instance.__dict__ = self.context.restore(obj['__dict__'], reset=False)
        return instance


class PydanticHandler(jsonpickle.handlers.BaseHandler):
    """PydanticHandler.
    Round-trips Pydantic models through validation of their dumped fields.
    """
    def flatten(self, obj, data):
        data['fields'] = self.context.flatten(obj.model_dump(), reset=False)
        return data

    def restore(self, obj):
        mdl = loadclass(obj['py/object'])
        return mdl.model_validate(self.context.restore(obj['fields'], reset=False))


jsonpickle.handlers.registry.register(BaseModel, ModelHandler, base=True)
jsonpickle.handlers.registry.register(PydanticBaseModel, PydanticHandler, base=True)


class Serializer:
    """Payload codec used by a vault handle."""

    name: str = "abstract"

    def dumps(self, value: Any) -> bytes:
        raise NotImplementedError

    def loads(self, data: bytes) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class JSONSerializer(Serializer):
    """orjson codec for plain JSON-like values."""

    name = "json"

    def dumps(self, value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = {_BYTES_WRAPPER_KEY: base64.b64encode(bytes(value)).decode("ascii")}
        elif _is_marker(value):
            # a user dict shaped like a marker is escaped, not reinterpreted
            value = {_ESCAPE_KEY: value}
        try:
            return orjson.dumps(value)
        except TypeError as err:
            raise SerializationError(
                f"Value of type {type(value).__name__} is not JSON serializable: {err}"
            ) from err

    def loads(self, data: bytes) -> Any:
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise DeserializationError(f"Invalid JSON payload: {err}") from err
        if not _is_marker(parsed):
            return parsed
        if _ESCAPE_KEY in parsed:
            return parsed[_ESCAPE_KEY]
        encoded = parsed[_BYTES_WRAPPER_KEY]
        try:
            return base64.b64decode(encoded, validate=True)
        except (TypeError, ValueError) as err:
            raise DeserializationError(f"Invalid base64 bytes payload: {err}") from err


class PickleSerializer(Serializer):
    """jsonpickle codec for Python objects and data models."""

    name = "jsonpickle"

    def dumps(self, value: Any) -> bytes:
        try:
            return jsonpickle.encode(value).encode("utf-8")
        except Exception as err:
            raise SerializationError(err) from err

    def loads(self, data: bytes) -> Any:
        try:
            return jsonpickle.decode(bytes(data).decode("utf-8"))
        except Exception as err:
            raise DeserializationError(err) from err


DEFAULT_SERIALIZER = JSONSerializer()
