"""Tests for the obfuscated storage codec."""

import base64

import pytest

from contaflix.config.settings import FlatSettings
from contaflix.storage import (
    AuthStorage,
    CodecError,
    FileStorage,
    MemoryStorage,
    SafeStorage,
    SecureStorage,
    decode_value,
    encode_value,
)

KEY = "contaflix_secure_key_v1"


@pytest.fixture
def dev_settings(monkeypatch):
    monkeypatch.setenv("CONTAFLIX_ENV", "development")
    return FlatSettings()


@pytest.fixture
def prod_settings(monkeypatch):
    monkeypatch.setenv("CONTAFLIX_ENV", "production")
    return FlatSettings()


@pytest.fixture
def secure(local_storage, dev_settings):
    return SecureStorage(local_storage, dev_settings)


class TestCodec:
    """Tests for the XOR + base64 codec."""

    @pytest.mark.parametrize(
        "value",
        ["", "token-123", "Declaração de Débitos", "日本語 🚀", '{"id": 1}'],
    )
    def test_round_trip(self, value):
        """Test that decode reverses encode, including non-ASCII text."""
        assert decode_value(encode_value(value, KEY), KEY) == value

    def test_encoded_is_not_plaintext(self):
        """Test that the stored form hides the value from a casual look."""
        encoded = encode_value("super-secret-token", KEY)

        assert "super-secret-token" not in encoded
        base64.b64decode(encoded, validate=True)

    def test_xor_with_repeating_key(self):
        """Test the byte-wise XOR against the repeating key."""
        encoded = encode_value("ab", "\x01")

        assert base64.b64decode(encoded) == bytes([ord("a") ^ 1, ord("b") ^ 1])

    def test_decode_invalid_base64(self):
        """Test that garbage input raises CodecError."""
        with pytest.raises(CodecError):
            decode_value("%%%not-base64%%%", KEY)

    def test_decode_invalid_utf8(self):
        """Test that bytes that do not decode to UTF-8 raise CodecError."""
        garbage = base64.b64encode(bytes([0xFF ^ ord("c"), 0xFE ^ ord("o")])).decode()

        with pytest.raises(CodecError):
            decode_value(garbage, KEY)

    def test_encode_rejects_lone_surrogate(self):
        """Test that unencodable strings raise CodecError."""
        with pytest.raises(CodecError):
            encode_value("\ud800", KEY)

    def test_encode_rejects_non_string(self):
        """Test that non-string values raise CodecError."""
        with pytest.raises(CodecError):
            encode_value(123, KEY)  # type: ignore[arg-type]


class TestSecureStorage:
    """Tests for SecureStorage over SafeStorage."""

    def test_round_trip(self, secure, local_storage):
        """Test set then get returns the value and stores it prefixed."""
        assert secure.set_item("client", "Tech Solutions Ltda") is True

        assert secure.get_item("client") == "Tech Solutions Ltda"
        assert local_storage.get_item("client") is None
        stored = local_storage.get_item("sec_client")
        assert stored is not None
        assert stored != "Tech Solutions Ltda"

    def test_round_trip_non_ascii(self, secure):
        """Test the round-trip law with accented text."""
        secure.set_item("razao_social", "Açúcar & Café São João")

        assert secure.get_item("razao_social") == "Açúcar & Café São João"

    def test_round_trip_empty_string(self, secure):
        """Test that an empty value is distinguishable from a missing one."""
        secure.set_item("empty", "")

        assert secure.get_item("empty") == ""
        assert secure.get_item("missing") is None

    def test_legacy_migration(self, secure, local_storage):
        """Test that a legacy plaintext key is migrated on first read."""
        local_storage.set_item("contaflix_client_id", "client-42")

        assert secure.get_item("contaflix_client_id") == "client-42"
        assert local_storage.get_item("contaflix_client_id") is None
        assert local_storage.get_item("sec_contaflix_client_id") is not None
        assert secure.get_item("contaflix_client_id") == "client-42"

    def test_legacy_migration_idempotent(self, secure, local_storage):
        """Test that repeated reads leave one encrypted copy."""
        local_storage.set_item("legacy", "value")

        first = secure.get_item("legacy")
        snapshot = sorted(local_storage.keys())
        second = secure.get_item("legacy")

        assert first == second == "value"
        assert sorted(local_storage.keys()) == snapshot == ["sec_legacy"]

    def test_legacy_kept_when_encrypted_write_fails(self, dev_settings):
        """Test that the legacy copy survives a failed migration write."""
        backend = MemoryStorage(quota_bytes=20)
        storage = SafeStorage(lambda: backend)
        secure = SecureStorage(storage, dev_settings)
        backend.set_item("token", "abcdefghijkl")

        assert secure.get_item("token") == "abcdefghijkl"
        assert backend.get_item("token") == "abcdefghijkl"
        assert backend.get_item("sec_token") is None

    def test_corrupted_value_returns_none(self, secure, local_storage):
        """Test that undecodable stored data reads as None."""
        local_storage.set_item("sec_broken", "@@@")

        assert secure.get_item("broken") is None

    def test_plaintext_fallback_in_development(self, secure, local_storage):
        """Test the development-only fallback for unencodable values."""
        assert secure.set_item("weird", "\ud800") is True

        assert local_storage.get_item("weird") == "\ud800"
        assert local_storage.get_item("sec_weird") is None

    def test_plaintext_fallback_to_file_storage_fails_cleanly(self, tmp_path, dev_settings):
        """Test that a durable scope refuses the fallback without breaking."""
        local = SafeStorage(lambda: FileStorage(tmp_path / "local.json"))
        secure = SecureStorage(local, dev_settings)

        assert secure.set_item("weird", "\ud800") is False
        assert secure.set_item("token", "abc") is True
        assert secure.get_item("token") == "abc"

    def test_no_plaintext_fallback_in_production(self, local_storage, prod_settings):
        """Test that production refuses to store unencodable values."""
        secure = SecureStorage(local_storage, prod_settings)

        assert secure.set_item("weird", "\ud800") is False
        assert local_storage.keys() == []

    def test_remove_item_removes_both_forms(self, secure, local_storage):
        """Test that remove deletes prefixed and legacy keys."""
        secure.set_item("a", "1")
        local_storage.set_item("a", "legacy")

        secure.remove_item("a")

        assert local_storage.keys() == []

    def test_clear_only_touches_namespaced_keys(self, secure, local_storage):
        """Test that clear keeps keys outside the app namespace."""
        secure.set_item("a", "1")
        local_storage.set_item("contaflix_theme", "dark")
        local_storage.set_item("other_app", "keep")

        secure.clear()

        assert local_storage.keys() == ["other_app"]

    def test_unavailable_storage(self, unavailable_storage, dev_settings):
        """Test that unavailable storage never raises."""
        secure = SecureStorage(unavailable_storage, dev_settings)

        assert secure.set_item("a", "1") is False
        assert secure.get_item("a") is None
        secure.remove_item("a")
        secure.clear()


class TestAuthStorage:
    """Tests for the typed credential helpers."""

    def test_client_data_round_trip(self, secure):
        """Test that client data is stored as JSON and restored."""
        auth = AuthStorage(secure)
        auth.set_client_data({"nome": "João", "cnpj": "12.345.678/0001-90"})

        assert auth.get_client_data() == {"nome": "João", "cnpj": "12.345.678/0001-90"}

    def test_tokens_and_ids(self, secure):
        """Test the scalar credential helpers."""
        auth = AuthStorage(secure)
        auth.set_client_id("c-1")
        auth.set_access_token("tok")
        auth.set_biometric_id("bio")

        assert auth.get_client_id() == "c-1"
        assert auth.get_access_token() == "tok"
        assert auth.get_biometric_id() == "bio"

    def test_corrupted_client_data(self, secure):
        """Test that invalid JSON client data reads as None."""
        secure.set_item(AuthStorage.CLIENT_DATA, "{broken")

        assert AuthStorage(secure).get_client_data() is None

    def test_clear_all(self, secure, local_storage):
        """Test that clear_all wipes every credential."""
        auth = AuthStorage(secure)
        auth.set_client_id("c-1")
        auth.set_access_token("tok")

        auth.clear_all()

        assert auth.get_client_id() is None
        assert local_storage.keys() == []
