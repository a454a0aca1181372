import pytest

from b64url_stream.filters.garbage_filter import GarbageFilter, split_next_clean_section


def run_filter(f, *chunks):
    out = []
    for chunk in chunks:
        out.extend(f.process(chunk))
    out.extend(f.flush())
    return out


@pytest.mark.parametrize("text, ignore, expected", [
    ("aGVsbG8", False, ("aGVsbG8", "")),
    ("aGVs bG8", False, ("aGVs", "bG8")),
    ("aGVs*?bG8", False, ("aGVs*?", "bG8")),
    ("aGVs*\nbG8", False, ("aGVs*", "bG8")),
    ("\nbG8", False, ("", "bG8")),
    ("aGVs*?bG8", True, ("aGVs", "bG8")),
    ("aGVs \n\tbG8", True, ("aGVs", "bG8")),
    ("***", True, ("", "")),
])
def test_split_next_clean_section(text, ignore, expected):
    assert split_next_clean_section(text, ignore) == expected


def test_default_policy_elides_whitespace():
    assert run_filter(GarbageFilter(), "aG Vs\r\nbG8\n") == ["aG", "Vs", "bG8"]


def test_default_policy_forwards_other_garbage():
    assert run_filter(GarbageFilter(), "aGVsbG8=world") == ["aGVsbG8=", "world"]
    assert run_filter(GarbageFilter(), "ab*? cd") == ["ab*?", "cd"]


def test_default_policy_treats_unicode_whitespace_as_whitespace():
    assert run_filter(GarbageFilter(), "ab\u00a0cd\u2003") == ["ab", "cd"]


def test_default_policy_forwards_non_ascii_garbage():
    assert run_filter(GarbageFilter(), "ab\u00e9cd") == ["ab\u00e9", "cd"]


def test_ignore_policy_drops_all_non_alphabet():
    f = GarbageFilter(ignore_garbage=True)
    assert run_filter(f, "ab*?cd", " e\u00e9f!") == ["ab", "cd", "e", "f"]


def test_ignore_policy_stops_at_padding():
    f = GarbageFilter(ignore_garbage=True)
    assert run_filter(f, "aGVsbG8=world", "more") == ["aGVsbG8"]
    assert f.dropped == len("=world") + len("more")


def test_empty_and_whitespace_only_chunks_emit_nothing():
    assert run_filter(GarbageFilter(), "", "   ", "\n") == []
    assert run_filter(GarbageFilter(ignore_garbage=True), "", "***") == []


def test_clean_runs_keep_order_across_chunks():
    f = GarbageFilter()
    assert run_filter(f, "ab\ncd", "ef gh") == ["ab", "cd", "ef", "gh"]
