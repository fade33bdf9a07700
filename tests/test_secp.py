import pytest

from miningsvc import secp

PRIV = "726b5bf7e48b4fdf8e0423dcf30a962e8695eaa35a45e4a4c4aa55e392a0a9c7"
HASH = "5b11ecb3a1a93beee88b59708a24c46dc31f3d6220e2f65d3e0f82dc1ebd4c4c"
OTHER = "11" * 32


def test_public_key_of_one_is_generator():
    assert (
        secp.create_public_key("00" * 31 + "01", True)
        == "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    )


def test_compressed_and_uncompressed_share_x():
    comp = secp.create_public_key(PRIV, True)
    full = secp.create_public_key(PRIV, False)
    assert len(comp) == 66 and len(full) == 130
    assert full.startswith("04")
    assert comp[2:] == full[2:66]
    parity = int(full[-2:], 16) & 1
    assert comp[:2] == ("03" if parity else "02")


def test_ecdh_is_symmetric():
    ab = secp.create_ecdh(PRIV, secp.create_public_key(OTHER, False))
    ba = secp.create_ecdh(OTHER, secp.create_public_key(PRIV, True))
    assert ab == ba
    assert len(ab) == 64


def test_ecdh_same_for_both_pubkey_forms():
    comp = secp.create_public_key(OTHER, True)
    full = secp.create_public_key(OTHER, False)
    assert secp.create_ecdh(PRIV, comp) == secp.create_ecdh(PRIV, full)


def test_sign_and_recover_round_trip():
    sig = secp.sign_recoverable(HASH, PRIV)
    assert len(sig) == 130
    assert secp.recover_public_key(HASH, sig) == secp.create_public_key(PRIV, False)


def test_signature_is_deterministic_and_low_s():
    first = secp.sign_recoverable(HASH, PRIV)
    assert first == secp.sign_recoverable(HASH, PRIV)
    s = int(first[64:128], 16)
    assert 0 < s <= secp.N // 2
    assert int(first[128:], 16) in (0, 1, 2, 3)


def test_recover_with_wrong_v_gives_other_key():
    sig = secp.sign_recoverable(HASH, PRIV)
    flipped = sig[:128] + "%02x" % (int(sig[128:], 16) ^ 1)
    assert secp.recover_public_key(HASH, flipped) != secp.create_public_key(PRIV, False)


@pytest.mark.parametrize("priv", ["00" * 32, "%064x" % secp.N, "abcd", "zz" * 32])
def test_invalid_private_keys(priv):
    with pytest.raises(secp.SecpError):
        secp.create_public_key(priv, True)


def test_recover_rejects_bad_v():
    sig = secp.sign_recoverable(HASH, PRIV)
    with pytest.raises(secp.SecpError):
        secp.recover_public_key(HASH, sig[:128] + "04")


def test_recover_rejects_bad_lengths():
    with pytest.raises(secp.SecpError):
        secp.recover_public_key(HASH[:-2], "00" * 65)
    with pytest.raises(secp.SecpError):
        secp.recover_public_key(HASH, "00" * 64)


def test_ecdh_rejects_point_off_curve():
    bogus = "04" + "01" * 64
    with pytest.raises(secp.SecpError):
        secp.create_ecdh(PRIV, bogus)


def test_ecdh_rejects_wrong_pubkey_length():
    with pytest.raises(secp.SecpError):
        secp.create_ecdh(PRIV, "02" + "11" * 20)