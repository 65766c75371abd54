"""Tests for token encoding/decoding and the configure lifecycle."""

import os
import threading
from datetime import datetime, timezone

import pytest
from cryptography.exceptions import InvalidTag

import obfuscator as lib
from obfuscator import (
    AlgExpiredError,
    AlreadyConfiguredError,
    MalformedTokenError,
    NameMismatchError,
    Obfuscator,
    PasswordTooShortError,
    UnknownAlgError,
    default_obfuscator,
)

from conftest import LONG_STRING, swap_alg


def fixed_clock(*args):
    instant = datetime(*args, tzinfo=timezone.utc)
    return lambda: instant


def assert_not_interchangeable(obf: Obfuscator, token: str, expected: str) -> None:
    """Decoding under the wrong key must fail or produce garbage."""
    try:
        result = obf.decode_string(token)
    except (ValueError, InvalidTag):
        return
    assert result != expected


class TestExports:
    def test_default_instance(self):
        assert isinstance(lib.default_obfuscator, Obfuscator)
        assert default_obfuscator.default_alg == "DEFAULT"
        assert default_obfuscator.is_configured is False


class TestRoundtrip:
    def test_strings_of_every_length(self, make_obfuscator):
        obf = make_obfuscator()
        for i in range(100):
            value = LONG_STRING[:i]
            assert obf.decode_string(obf.encode_string(value)) == value

    def test_buffers_of_every_length(self, make_obfuscator):
        obf = make_obfuscator()
        for i in range(100):
            value = os.urandom(i)
            assert obf.decode_buffer(obf.encode_buffer(value)) == value

    def test_hello_world_with_default_registry(self):
        obf = Obfuscator()
        token = obf.encode_string("Hello world")

        parts = token.split(":")
        assert len(parts) == 3
        assert parts[0] == "DEFAULT"
        assert obf.decode_string(token) == "Hello world"

        settings = obf.settings()
        assert obf.get_key(settings) is obf.get_key(settings)

    def test_tokens_are_salted_with_fresh_ivs(self, make_obfuscator):
        obf = make_obfuscator()
        assert obf.encode_string("same value") != obf.encode_string("same value")

    def test_decode_returns_settings(self, make_obfuscator):
        obf = make_obfuscator()
        decoded = obf.decode(obf.encode(b"raw"))
        assert decoded.data == b"raw"
        assert decoded.settings is obf.settings("DEFAULT")

    def test_bytes_like_values(self, make_obfuscator):
        obf = make_obfuscator()
        assert obf.decode_buffer(obf.encode_buffer(bytearray(b"abc"))) == b"abc"
        assert obf.decode_buffer(obf.encode_buffer(memoryview(b"def"))) == b"def"

    @pytest.mark.parametrize("cipher, bin_encoding", [
        ("aes-128-cbc", "hex"),
        ("aes-256-ctr", "base64url"),
        ("aes-256-gcm", "hex"),
        ("chacha20-poly1305", "base64"),
    ])
    def test_alternative_algorithms(self, make_obfuscator, cipher, bin_encoding):
        obf = make_obfuscator({
            "algSettings": {
                "alt": {"name": "alt", "base": "DEFAULT", "alg": cipher, "binEncoding": bin_encoding},
            }
        })
        token = obf.encode_string(LONG_STRING, "alt")
        assert token.startswith("alt:")
        assert len(token.split(":")) == 3
        assert obf.decode_string(token) == LONG_STRING

    def test_utf16_string_encoding(self, make_obfuscator):
        obf = make_obfuscator({
            "algSettings": {"wide": {"name": "wide", "base": "DEFAULT", "stringEncoding": "utf16le"}}
        })
        value = "pässwörd ✓"
        assert obf.decode_string(obf.encode_string(value, "wide")) == value

    def test_gcm_token_tampering_is_detected(self, make_obfuscator):
        obf = make_obfuscator({
            "algSettings": {"gcm": {"name": "gcm", "base": "DEFAULT", "alg": "aes-256-gcm", "binEncoding": "hex"}}
        })
        alg, iv, ciphertext = obf.encode_string("secret", "gcm").split(":")
        flipped = format(int(ciphertext[0], 16) ^ 1, "x") + ciphertext[1:]
        with pytest.raises(InvalidTag):
            obf.decode_string(f"{alg}:{iv}:{flipped}")


class TestErrors:
    def test_unknown_alg(self, make_obfuscator):
        obf = make_obfuscator()
        with pytest.raises(UnknownAlgError, match="Unknown alg: foo"):
            obf.encode_string("foo", "foo")
        with pytest.raises(UnknownAlgError, match="Unknown alg: foo"):
            obf.encode_buffer(b"foo", "foo")
        with pytest.raises(UnknownAlgError, match="Unknown alg: foo"):
            obf.decode_string("foo:xxx:xxx")
        with pytest.raises(UnknownAlgError, match="Unknown alg: foo"):
            obf.decode_buffer("foo:xxx:xxx")

    @pytest.mark.parametrize("token", ["foo", "foo:bar", "foo:1:2:3:4:5", ""])
    def test_malformed_tokens(self, make_obfuscator, token):
        obf = make_obfuscator()
        with pytest.raises(MalformedTokenError, match="Malformed encoded string"):
            obf.decode_string(token)
        with pytest.raises(MalformedTokenError):
            obf.decode_buffer(token)

    def test_corrupt_segment_encoding(self, make_obfuscator):
        obf = make_obfuscator()
        with pytest.raises(ValueError):
            obf.decode_string("DEFAULT:not base64!:AAAA")

    def test_unknown_default_alg(self, make_obfuscator):
        obf = make_obfuscator({"defaultAlg": "missing"})
        with pytest.raises(UnknownAlgError, match="Unknown alg: missing"):
            obf.encode_string("value")
        assert obf.settings() is None


class TestInheritance:
    def test_inherited_alg_is_interchangeable_with_base(self, inherited_obfuscator):
        obf = inherited_obfuscator
        token = obf.encode_string(LONG_STRING, "foo")
        assert obf.decode_string(token) == LONG_STRING
        assert obf.decode_string(swap_alg(token, "DEFAULT")) == LONG_STRING

        token = obf.encode_string(LONG_STRING, "DEFAULT")
        assert obf.decode_string(swap_alg(token, "foo")) == LONG_STRING

    def test_inherited_buffers_are_interchangeable(self, inherited_obfuscator):
        obf = inherited_obfuscator
        value = os.urandom(100)
        token = obf.encode_buffer(value, "foo")
        assert obf.decode_buffer(token) == value
        assert obf.decode_buffer(swap_alg(token, "DEFAULT")) == value

    def test_overridden_password_is_not_interchangeable(self, inherited_obfuscator):
        obf = inherited_obfuscator
        token = obf.encode_string(LONG_STRING, "bar")
        assert obf.decode_string(token) == LONG_STRING
        assert_not_interchangeable(obf, swap_alg(token, "foo"), LONG_STRING)
        assert_not_interchangeable(obf, swap_alg(token, "DEFAULT"), LONG_STRING)

    def test_inherited_key_matches_base_key(self, inherited_obfuscator):
        obf = inherited_obfuscator
        assert obf.get_key(obf.settings("foo")) == obf.get_key(obf.settings("DEFAULT"))
        assert obf.get_key(obf.settings("bar")) != obf.get_key(obf.settings("DEFAULT"))


class TestExpiry:
    def test_expired_alg_refuses_to_encode(self, make_obfuscator):
        obf = make_obfuscator({
            "algSettings": {"foo": {"name": "foo", "base": "DEFAULT", "doNotEncodeAfter": "1970-12-31"}}
        })
        with pytest.raises(AlgExpiredError, match="Alg has expired for encoding: foo"):
            obf.encode_string("foo", "foo")
        with pytest.raises(AlgExpiredError, match="Alg has expired for encoding: foo"):
            obf.encode_buffer(b"foo", "foo")

    def test_expired_alg_still_decodes(self, make_obfuscator):
        obf = make_obfuscator({
            "algSettings": {
                "old": {"name": "old", "base": "DEFAULT", "doNotEncodeAfter": "1970-12-31"},
                "current": {"name": "current", "base": "DEFAULT"},
            }
        })
        token = swap_alg(obf.encode_string("legacy value", "current"), "old")
        assert obf.decode_string(token) == "legacy value"

    def test_injected_clock(self, make_obfuscator):
        layer = {"algSettings": {"foo": {"name": "foo", "base": "DEFAULT", "doNotEncodeAfter": "2020-01-01"}}}

        before = make_obfuscator(layer, clock=fixed_clock(2019, 12, 31, 23, 59, 59))
        assert before.decode_string(before.encode_string("ok", "foo")) == "ok"

        at = make_obfuscator(layer, clock=fixed_clock(2020, 1, 1))
        with pytest.raises(AlgExpiredError):
            at.encode_string("nope", "foo")

    def test_expiry_is_checked_before_password(self, make_obfuscator):
        obf = make_obfuscator({
            "algSettings": {"foo": {"name": "foo", "base": "DEFAULT", "password": "", "doNotEncodeAfter": "1970-01-01"}}
        })
        with pytest.raises(AlgExpiredError):
            obf.encode_string("value", "foo")


class TestPasswordTooShort:
    @pytest.mark.parametrize("password", ["123", "", None])
    def test_short_password_fails_on_use_only(self, make_obfuscator, password):
        obf = make_obfuscator({
            "algSettings": {"foo": {"name": "foo", "base": "DEFAULT", "password": password}}
        })
        # Configuration succeeded; other algorithms keep working
        assert obf.decode_string(obf.encode_string("fine")) == "fine"

        with pytest.raises(PasswordTooShortError, match="Password is too short: foo"):
            obf.encode_string("foo", "foo")
        with pytest.raises(PasswordTooShortError, match="Password is too short: foo"):
            obf.decode_string("foo:AAAA:AAAA")


class TestConfigure:
    def test_constructor_overrides_consume_configuration(self, make_obfuscator):
        obf = make_obfuscator({})
        assert obf.is_configured
        with pytest.raises(AlreadyConfiguredError, match="Already configured"):
            obf.configure({})

    def test_configure_once(self, make_obfuscator):
        obf = make_obfuscator()
        assert not obf.is_configured
        obf.configure({})
        assert obf.is_configured
        with pytest.raises(AlreadyConfiguredError, match="Already configured"):
            obf.configure({})

    def test_failed_configure_keeps_registry(self, make_obfuscator):
        obf = make_obfuscator()
        registry = obf.registry

        with pytest.raises(NameMismatchError):
            obf.configure({"algSettings": {"foo": {"name": "bar"}}})
        with pytest.raises(UnknownAlgError, match="Unknown alg: bar"):
            obf.configure({"algSettings": {"foo": {"name": "foo", "base": "bar"}}})

        assert obf.registry is registry
        assert not obf.is_configured

        obf.configure({"algSettings": {"foo": {"name": "foo", "base": "DEFAULT"}}})
        assert "foo" in obf.algorithms

    def test_configure_discards_cached_keys(self, make_obfuscator):
        obf = make_obfuscator()
        token = obf.encode_string(LONG_STRING)
        old_key = obf.get_key(obf.settings())

        obf.configure({"algSettings": {"DEFAULT": {"name": "DEFAULT", "password": "a-brand-new-password"}}})

        assert obf.get_key(obf.settings()) != old_key
        assert_not_interchangeable(obf, token, LONG_STRING)

    def test_concurrent_configure_applies_once(self, make_obfuscator):
        obf = make_obfuscator()
        outcomes = []

        def worker(i):
            try:
                obf.configure({"algSettings": {f"alg{i}": {"name": f"alg{i}", "base": "DEFAULT"}}})
                outcomes.append("ok")
            except AlreadyConfiguredError:
                outcomes.append("refused")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("refused") == 4
        assert len(obf.algorithms) == 2

    def test_default_alg_override(self, make_obfuscator):
        obf = make_obfuscator({
            "defaultAlg": "prod",
            "algSettings": {"prod": {"name": "prod", "base": "DEFAULT", "password": "production-password"}},
        })
        token = obf.encode_string("value")
        assert token.startswith("prod:")
        assert obf.decode_string(token) == "value"
