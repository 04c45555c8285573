"""Tests for payload serializers, including vault round-trips of models."""
import pytest
from datetime import datetime
from datamodel import BaseModel
from pydantic import BaseModel as PydanticBaseModel

from navigator_vault.exceptions import DeserializationError, SerializationError
from navigator_vault.serializers import JSONSerializer, PickleSerializer


class UserModel(BaseModel):
    """Serializable datamodel for testing."""
    username: str
    email: str
    age: int = 0


class Credential(PydanticBaseModel):
    """Pydantic model for testing."""
    service: str
    token: str
    expires: datetime


class Opaque:
    """Value no codec can encode."""


@pytest.fixture
def json_codec():
    """Create a JSONSerializer."""
    return JSONSerializer()


@pytest.fixture
def pickle_codec():
    """Create a PickleSerializer."""
    return PickleSerializer()


class TestJSONSerializer:
    """Test the orjson codec."""

    def test_dumps_returns_bytes(self, json_codec):
        """Test compact JSON output."""
        assert json_codec.dumps({"a": 1}) == b'{"a":1}'

    def test_bytes_wrapper(self, json_codec):
        """Test that top-level bytes travel as base64."""
        encoded = json_codec.dumps(b"\x00\xff")
        assert b"__vault_bytes_b64__" in encoded
        assert json_codec.loads(encoded) == b"\x00\xff"

    def test_wrapper_only_for_single_key(self, json_codec):
        """Test that a dict with the wrapper key among others is left alone."""
        value = {"__vault_bytes_b64__": "AA==", "other": 1}
        assert json_codec.loads(json_codec.dumps(value)) == value

    @pytest.mark.parametrize("value", [
        {"__vault_bytes_b64__": "AA=="},
        {"__vault_bytes_b64__": 5},
        {"__vault_escaped__": "x"},
        {"__vault_escaped__": {"__vault_bytes_b64__": "AA=="}},
    ])
    def test_dict_shaped_like_wrapper_roundtrips(self, json_codec, value):
        """Test that a user dict with a wrapper-like key loads back as that dict."""
        assert json_codec.loads(json_codec.dumps(value)) == value

    @pytest.mark.parametrize("payload", [
        b'{"__vault_bytes_b64__": 5}',
        b'{"__vault_bytes_b64__": "not base64!"}',
        b'{"__vault_bytes_b64__": null}',
    ])
    def test_malformed_bytes_wrapper(self, json_codec, payload):
        """Test that a broken bytes wrapper is a DeserializationError."""
        with pytest.raises(DeserializationError):
            json_codec.loads(payload)

    def test_loads_memoryview(self, json_codec):
        """Test decoding from a borrowed buffer."""
        assert json_codec.loads(memoryview(b'[1,2]')) == [1, 2]

    def test_unsupported_value(self, json_codec):
        """Test that non-JSON values raise SerializationError."""
        with pytest.raises(SerializationError):
            json_codec.dumps(Opaque())

    def test_invalid_payload(self, json_codec):
        """Test that invalid JSON raises DeserializationError."""
        with pytest.raises(DeserializationError):
            json_codec.loads(b"{not json")


class TestPickleSerializer:
    """Test the jsonpickle codec."""

    def test_datetime(self, pickle_codec):
        """Test a datetime value."""
        now = datetime(2024, 5, 17, 12, 30, 15)
        assert pickle_codec.loads(pickle_codec.dumps({"at": now})) == {"at": now}

    def test_datamodel(self, pickle_codec):
        """Test a datamodel BaseModel."""
        user = UserModel(username='bob', email='bob@example.com', age=25)
        decoded = pickle_codec.loads(pickle_codec.dumps(user))

        assert isinstance(decoded, UserModel)
        assert decoded.username == 'bob'
        assert decoded.email == 'bob@example.com'
        assert decoded.age == 25

    def test_pydantic_model(self, pickle_codec):
        """Test a pydantic model."""
        cred = Credential(
            service="github",
            token="ghp_123",
            expires=datetime(2030, 1, 1, 8, 0),
        )
        decoded = pickle_codec.loads(pickle_codec.dumps(cred))
        assert isinstance(decoded, Credential)
        assert decoded == cred

    def test_invalid_payload(self, pickle_codec):
        """Test that undecodable bytes raise DeserializationError."""
        with pytest.raises(DeserializationError):
            pickle_codec.loads(b"\xff\xfe")


class TestVaultWithSerializers:
    """Test vault round-trips through each codec."""

    def test_pickle_roundtrip_through_vault(self, open_vault):
        """Test saving models with PickleSerializer."""
        codec = PickleSerializer()
        user = UserModel(username='alice', email='alice@example.com')
        open_vault(serializer=codec).save({"owner": user, "ids": (1, 2)})

        loaded = open_vault(serializer=codec).load()
        assert loaded["owner"].username == 'alice'
        assert loaded["ids"] == (1, 2)

    def test_wrapper_shaped_dict_through_vault(self, open_vault):
        """Test that a dict keyed like the bytes wrapper survives save and load."""
        value = {"__vault_bytes_b64__": "AA=="}
        open_vault().save(value)
        assert open_vault().load() == value

    def test_serialization_error_writes_nothing(self, open_vault, vault_path):
        """Test that a failed encode leaves no file behind."""
        with pytest.raises(SerializationError):
            open_vault().save({"bad": Opaque()})
        assert not vault_path.exists()
