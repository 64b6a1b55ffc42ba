"""Obfuscated identifier codec tests."""

import pytest

from src.services.exceptions import DecodeError
from src.services.identifiers import IdentifierCodec


@pytest.fixture
def local_codec():
    return IdentifierCodec("unit-test-salt", min_length=8)


def test_round_trip(local_codec):
    """Test decode(encode(id)) returns the id."""
    for internal_id in (0, 1, 2, 15, 999, 123456789):
        assert local_codec.decode(local_codec.encode(internal_id)) == internal_id


def test_encoded_ids_are_not_sequential(local_codec):
    """Test that neighbouring ids do not produce guessable tokens."""
    tokens = [local_codec.encode(i) for i in range(1, 6)]
    assert len(set(tokens)) == 5
    assert all(len(token) >= 8 for token in tokens)
    assert all(not token.isdigit() for token in tokens)


def test_decode_rejects_garbage(local_codec):
    """Test that strings not produced by encode fail to decode."""
    for token in ("", "not-a-hash", "!!!", "0", "zzzzzzzzzzzzzzzzzzzz"):
        with pytest.raises(DecodeError):
            local_codec.decode(token)


def test_decode_rejects_tampered_token(local_codec):
    """Test that altering one character never yields a different valid id."""
    token = local_codec.encode(42)
    for index in range(len(token)):
        for replacement in "aZ9":
            if token[index] == replacement:
                continue
            tampered = token[:index] + replacement + token[index + 1 :]
            try:
                decoded = local_codec.decode(tampered)
            except DecodeError:
                continue
            # A tampered token may only decode if it is itself a canonical encoding
            assert local_codec.encode(decoded) == tampered


def test_decode_rejects_multi_value_tokens(local_codec):
    """Test that tokens encoding several numbers are rejected."""
    multi = local_codec._hashids.encode(1, 2)
    with pytest.raises(DecodeError):
        local_codec.decode(multi)


def test_different_salt_does_not_decode_to_same_id(local_codec):
    """Test that tokens are bound to the salt."""
    other = IdentifierCodec("another-salt", min_length=8)
    token = local_codec.encode(7)
    try:
        assert other.decode(token) != 7
    except DecodeError:
        pass


def test_encode_rejects_negative_ids(local_codec):
    """Test that negative ids cannot be encoded."""
    with pytest.raises(ValueError):
        local_codec.encode(-1)
