import pytest

from bnoverseas.auth.passwords import generate_otp, generate_secure_token, hash_password, verify_password


def test_hash_password_produces_salted_bcrypt_hash() -> None:
    first = hash_password('correct-horse-battery')
    second = hash_password('correct-horse-battery')

    assert first.startswith('$2')
    assert first != second
    assert verify_password('correct-horse-battery', first)
    assert verify_password('correct-horse-battery', second)


def test_verify_password_rejects_wrong_password() -> None:
    assert not verify_password('wrong-horse', hash_password('correct-horse-battery'))


@pytest.mark.parametrize('stored_hash', [None, '', 'plain-text-password'])
def test_verify_password_returns_false_for_missing_or_malformed_hash(stored_hash) -> None:
    assert verify_password('correct-horse-battery', stored_hash) is False


def test_generate_otp_is_six_digits() -> None:
    for _ in range(50):
        otp = generate_otp()
        assert len(otp) == 6
        assert otp.isdigit()
        assert not otp.startswith('0')


def test_generate_secure_token_is_random_hex() -> None:
    token = generate_secure_token()

    assert len(token) == 64
    int(token, 16)
    assert token != generate_secure_token()
