import pytest

from src.userhub.core.identifiers import IdType, classify, is_account_type

TOKEN = "aB3" * 21 + "x"  # 64 alphanumerics


class TestClassify:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (TOKEN, IdType.TOKEN),
            ("5a1b2c3d4e5f6a7b8c9d0e1f", IdType.OBJECT_ID),
            ("5A1B2C3D4E5F6A7B8C9D0E1F", IdType.OBJECT_ID),
            ("13800138000", IdType.PHONE),
            ("jane.doe@example.com", IdType.EMAIL),
            ("jane@mail.example.co", IdType.EMAIL),
        ],
    )
    def test_recognized_shapes(self, raw, expected):
        assert classify(raw) is expected

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "jane@localhost",
            "1380013800",
            "138001380001",
            "5a1b2c3d4e5f6a7b8c9d0e1g",
            TOKEN[:-1],
            TOKEN + "a",
            TOKEN[:-1] + "-",
            "13800138000\n",
        ],
    )
    def test_unknown_shapes(self, raw):
        assert classify(raw) is IdType.UNKNOWN

    @pytest.mark.parametrize("raw", [None, 42, b"13800138000", ["a"]])
    def test_non_strings_are_unknown(self, raw):
        assert classify(raw) is IdType.UNKNOWN

    def test_token_wins_over_other_shapes(self):
        # 64 digits would also be all-hex; the token rule comes first
        assert classify("1" * 64) is IdType.TOKEN

    def test_object_id_wins_over_phone(self):
        assert classify("1" * 24) is IdType.OBJECT_ID

    def test_deterministic(self):
        for raw in (TOKEN, "13800138000", "nope"):
            assert classify(raw) is classify(raw)


def test_is_account_type():
    assert is_account_type(IdType.PHONE)
    assert is_account_type(IdType.EMAIL)
    assert not is_account_type(IdType.OBJECT_ID)
    assert not is_account_type(IdType.TOKEN)
    assert not is_account_type(IdType.UNKNOWN)
