import pytest

from walletauth.addresses import WalletAddress, is_valid_wallet_address, validate_wallet_address
from walletauth.errors import InvalidFormat
from walletauth.util import b58e


def test_valid_address(wallet):
    result = validate_wallet_address(wallet.address)
    assert isinstance(result, WalletAddress)
    assert result.address == wallet.address
    assert result.public_key == wallet.public_key
    assert str(result) == wallet.address


def test_on_curve_check_accepts_real_key(wallet):
    assert validate_wallet_address(wallet.address, require_on_curve=True).public_key == wallet.public_key


def test_all_zero_key_is_structurally_valid():
    # the system program id: 32 zero bytes
    assert is_valid_wallet_address("1" * 32)


@pytest.mark.parametrize("value", [
    "",
    "0" * 44,                          # '0' is not in the alphabet
    "O" * 44,
    "I" * 44,
    "l" * 44,
    "abc def",
    "tooshort",
    b58e(b"\x05" * 31),
    b58e(b"\x05" * 33),
    "z" * 45,
])
def test_invalid_addresses(value):
    with pytest.raises(InvalidFormat):
        validate_wallet_address(value)
    assert not is_valid_wallet_address(value)


def test_surrounding_whitespace_rejected(wallet):
    assert not is_valid_wallet_address(f" {wallet.address}")
    assert not is_valid_wallet_address(f"{wallet.address}\n")
    # short encodings must not slip a newline past the length check
    assert not is_valid_wallet_address("1" * 32 + "\n")


@pytest.mark.parametrize("value", [None, 123, b"bytes"])
def test_non_string_rejected(value):
    with pytest.raises(InvalidFormat):
        validate_wallet_address(value)
