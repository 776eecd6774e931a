"""Password hashing tests."""

from trailsync.auth.password import hash_password, verify_password


def test_hash_is_not_plaintext():
    h = hash_password("correct horse", rounds=4)
    assert h != "correct horse"
    assert h.startswith("$2b$04$")


def test_same_password_hashes_differently():
    assert hash_password("pw", rounds=4) != hash_password("pw", rounds=4)


def test_verify_roundtrip():
    h = hash_password("correct horse", rounds=4)
    assert verify_password("correct horse", h)
    assert not verify_password("battery staple", h)


def test_verify_malformed_hash_is_false():
    assert not verify_password("pw", "not-a-bcrypt-hash")


def test_only_first_72_bytes_count():
    base = "a" * 72
    h = hash_password(base + "tail-one", rounds=4)
    assert verify_password(base + "tail-two", h)
