import pytest
from magicgate.core.errors import InvalidArgument
from magicgate.core.types import ANY, ByteMatcher, MatchResult, Signature


def test_byte_matcher_exact_and_wildcard():
    assert ByteMatcher.exact(0x52).matches(0x52)
    assert not ByteMatcher.exact(0x52).matches(0x53)
    for b in (0x00, 0x7F, 0xFF):
        assert ANY.matches(b)
    assert ANY.is_wildcard


@pytest.mark.parametrize("value", [-1, 256, 1.5, True, "A"])
def test_byte_matcher_rejects_bad_values(value):
    with pytest.raises(InvalidArgument):
        ByteMatcher(value)


def test_signature_parse():
    sig = Signature.parse("52 49 46 46 ?? ?? ?? ?? 57 41 56 45")
    assert len(sig) == 12
    assert [m.is_wildcard for m in sig][4:8] == [True] * 4
    assert sig[0] == ByteMatcher(0x52)
    assert str(sig) == "52 49 46 46 ?? ?? ?? ?? 57 41 56 45"


@pytest.mark.parametrize("text", ["", "ZZ", "123", "52 XY"])
def test_signature_parse_rejects_garbage(text):
    with pytest.raises(InvalidArgument):
        Signature.parse(text)


def test_signature_is_immutable():
    sig = Signature.of(0xFF, None)
    with pytest.raises(Exception):
        sig.matchers = ()
    assert sig == Signature.of(0xFF, ANY)


def test_match_result_truthiness():
    assert MatchResult.matched("wav")
    assert MatchResult.matched("wav").format_id == "wav"
    assert not MatchResult.no_match()
    assert str(MatchResult.no_match()) == "no match"
