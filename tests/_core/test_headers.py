from acorncache._core._headers import CacheControl, Headers, http_unquote, is_token, parse_cache_control


class TestBasicParsing:
    """Test basic parsing functionality."""

    def test_none(self):
        cc = parse_cache_control(None)
        assert cc.max_age is None
        assert cc.no_cache is False

    def test_empty_string(self):
        cc = parse_cache_control("")
        assert cc.max_age is None
        assert cc.s_maxage is None
        assert cc.must_revalidate is False

    def test_whitespace_and_commas_only(self):
        cc = parse_cache_control(" , ,\t")
        assert cc.max_age is None
        assert cc.extensions == []

    def test_multiple_directives(self):
        cc = parse_cache_control("max-age=30, must-revalidate")
        assert cc.max_age == 30
        assert cc.must_revalidate is True

    def test_directive_names_are_case_insensitive(self):
        cc = parse_cache_control("Max-Age=30, No-Cache")
        assert cc.max_age == 30
        assert cc.no_cache is True

    def test_unknown_directives_are_kept_as_extensions(self):
        cc = parse_cache_control("max-age=30, community=\"UCI\", immutable")
        assert cc.max_age == 30
        assert cc.extensions == ["community=UCI", "immutable"]


class TestTimeDirectives:
    def test_max_age_zero_is_not_absent(self):
        cc = parse_cache_control("max-age=0")
        assert cc.max_age == 0

    def test_s_maxage(self):
        cc = parse_cache_control("s-maxage=10, max-age=30")
        assert cc.s_maxage == 10
        assert cc.max_age == 30

    def test_invalid_value_is_absent(self):
        cc = parse_cache_control("max-age=soon")
        assert cc.max_age is None

    def test_non_ascii_digits_are_absent(self):
        cc = parse_cache_control("max-age=², s-maxage=١٢, max-stale=\xb2")
        assert cc.max_age is None
        assert cc.s_maxage is None
        assert cc.max_stale is None

    def test_negative_value_is_absent(self):
        cc = parse_cache_control("max-age=-100")
        assert cc.max_age is None

    def test_missing_value_is_absent(self):
        cc = parse_cache_control("max-age, public")
        assert cc.max_age is None
        assert cc.public is True

    def test_trailing_equals_sign(self):
        cc = parse_cache_control("max-age=")
        assert cc.max_age is None

    def test_quoted_value(self):
        cc = parse_cache_control('max-age="30"')
        assert cc.max_age == 30

    def test_overflow_is_capped(self):
        cc = parse_cache_control("max-age=9999999999999")
        assert cc.max_age == 2147483647

    def test_min_fresh(self):
        cc = parse_cache_control("min-fresh=5")
        assert cc.min_fresh == 5


class TestMaxStale:
    def test_without_value_is_unbounded(self):
        cc = parse_cache_control("max-stale")
        assert cc.max_stale is True

    def test_with_value(self):
        cc = parse_cache_control("max-stale=60")
        assert cc.max_stale == 60

    def test_with_zero(self):
        cc = parse_cache_control("max-stale=0")
        assert cc.max_stale == 0
        assert cc.max_stale is not False

    def test_with_invalid_value(self):
        cc = parse_cache_control("max-stale=later")
        assert cc.max_stale is None


class TestBooleanDirectives:
    def test_no_cache(self):
        assert parse_cache_control("no-cache").no_cache is True

    def test_qualified_no_cache(self):
        cc = parse_cache_control('no-cache="Set-Cookie, Authorization", max-age=30')
        assert cc.no_cache is True
        assert cc.max_age == 30

    def test_no_store_private_public(self):
        cc = parse_cache_control("no-store, private, public")
        assert cc.no_store is True
        assert cc.private is True
        assert cc.public is True

    def test_unterminated_quote_stops_parsing(self):
        cc = parse_cache_control('must-revalidate, private="Set-Cookie, max-age=30')
        assert cc.must_revalidate is True
        assert cc.max_age is None


def test_cache_control_repr():
    cc = parse_cache_control("max-age=0, no-cache, max-stale")
    assert repr(cc) == "<CacheControl max_age=0, no_cache, max_stale>"


def test_default_cache_control():
    cc = CacheControl()
    assert cc.max_stale is None
    assert cc.no_store is False


def test_is_token():
    assert is_token("a")
    assert is_token("-")
    assert not is_token(",")
    assert not is_token(" ")
    assert not is_token("\x12")


def test_http_unquote():
    assert http_unquote('"30"') == (4, "30")
    assert http_unquote('"a\\"b"') == (6, 'a"b')
    assert http_unquote('"open') == (-1, "")
    assert http_unquote("bare") == (-1, "")


class TestHeaders:
    def test_case_insensitive_access(self):
        headers = Headers({"Cache-Control": "max-age=30"})
        assert headers["cache-control"] == "max-age=30"
        assert "CACHE-CONTROL" in headers

    def test_multiple_values_are_joined(self):
        headers = Headers({"Vary": ["Accept", "Accept-Encoding"]})
        assert headers["vary"] == "Accept, Accept-Encoding"
        assert headers.get_list("Vary") == ["Accept", "Accept-Encoding"]

    def test_get_missing(self):
        assert Headers({}).get("etag") is None

    def test_replace_returns_copy(self):
        headers = Headers({"Date": "old"})
        replaced = headers.replace("date", "new")
        assert replaced["Date"] == "new"
        assert headers["Date"] == "old"

    def test_multi_items(self):
        headers = Headers({"Set-Cookie": ["a=1", "b=2"], "ETag": "x"})
        assert headers.multi_items() == [("set-cookie", "a=1"), ("set-cookie", "b=2"), ("etag", "x")]

    def test_equality(self):
        assert Headers({"ETag": "x"}) == Headers({"etag": "x"})
        assert Headers({"ETag": "x"}) != {"etag": "x"}
