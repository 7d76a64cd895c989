"""
Tests for redirect handling.
"""

import pytest

import tinyget
from tinyget.exceptions import (
    InvalidURLError,
    RedirectLocationMissingError,
    RedirectLoopError,
    TooManyRedirectsError,
)
from tinyget.http_primitives import Headers, Response
from tinyget.redirects import RedirectController, redirect_request
from tinyget.url import URL


def redirect(status: int, location=None) -> Response:
    headers = Headers([("Location", location)] if location is not None else [])
    return Response(status_code=status, headers=headers)


@pytest.fixture
def post_request():
    return (
        tinyget.post("http://example.com/form")
        .with_header("Content-Type", "application/x-www-form-urlencoded")
        .with_header("Authorization", "Bearer secret")
        .with_header("X-Trace", "1")
        .with_body(b"a=1")
    )


class TestRedirectRequest:
    """Test how a hop's request is derived."""

    @pytest.mark.parametrize("status", [301, 302, 303])
    def test_post_becomes_get(self, post_request, status):
        url = URL.parse("http://example.com/done")
        request = redirect_request(post_request, status, url)

        assert request.method == "GET"
        assert request.body is None
        assert request.url == url
        assert "Content-Type" not in request.headers
        assert request.headers.get("X-Trace") == "1"
        assert request.headers.get("Authorization") == "Bearer secret"

    @pytest.mark.parametrize("status", [307, 308])
    def test_method_and_body_kept(self, post_request, status):
        url = URL.parse("http://example.com/done")
        request = redirect_request(post_request, status, url)

        assert request.method == "POST"
        assert request.body == b"a=1"
        assert request.headers == post_request.headers

    @pytest.mark.parametrize("method", ["GET", "HEAD"])
    def test_get_and_head_unchanged_by_303(self, method):
        original = tinyget.request(method, "http://example.com/")
        request = redirect_request(original, 303, URL.parse("http://example.com/b"))
        assert request.method == method

    def test_put_becomes_get_on_302(self):
        original = tinyget.put("http://example.com/").with_body(b"x")
        request = redirect_request(original, 302, URL.parse("http://example.com/b"))
        assert request.method == "GET"
        assert request.body is None

    @pytest.mark.parametrize(
        "target",
        [
            "http://other.example/done",
            "https://example.com/done",
            "http://example.com:8080/done",
        ],
    )
    def test_cross_origin_drops_credentials(self, post_request, target):
        original = post_request.with_header("Host", "example.com")
        request = redirect_request(original, 307, URL.parse(target))

        assert "Authorization" not in request.headers
        assert "Host" not in request.headers
        assert request.headers.get("X-Trace") == "1"

    def test_original_is_untouched(self, post_request):
        redirect_request(post_request, 303, URL.parse("http://other.example/"))
        assert post_request.method == "POST"
        assert post_request.body == b"a=1"
        assert "Authorization" in post_request.headers

    def test_timeout_carries_over(self):
        original = tinyget.get("http://example.com/").with_timeout(3)
        request = redirect_request(original, 301, URL.parse("http://example.com/b"))
        assert request.timeout == 3


class TestRedirectController:
    """Test the redirect chain bookkeeping."""

    def test_not_a_redirect(self):
        request = tinyget.get("http://example.com/")
        controller = RedirectController(request)
        assert controller.next_request(request, Response(status_code=200)) is None
        assert controller.next_request(request, redirect(304, "/x")) is None
        assert controller.hops == 0

    def test_relative_location(self):
        request = tinyget.get("http://example.com/dir/page")
        controller = RedirectController(request)
        next_request = controller.next_request(request, redirect(302, "other?x=1"))

        assert next_request.url == URL.parse("http://example.com/dir/other?x=1")
        assert controller.hops == 1
        assert controller.history == [request.url]

    def test_fragment_is_inherited(self):
        request = tinyget.get("http://example.com/redirect#foo")
        controller = RedirectController(request)
        next_request = controller.next_request(request, redirect(301, "/a"))
        assert next_request.url.fragment == "foo"

    def test_missing_location(self):
        request = tinyget.get("http://example.com/")
        controller = RedirectController(request)
        with pytest.raises(RedirectLocationMissingError) as exc_info:
            controller.next_request(request, redirect(302))
        assert exc_info.value.status_code == 302

    def test_invalid_location(self):
        request = tinyget.get("http://example.com/")
        controller = RedirectController(request)
        with pytest.raises(InvalidURLError):
            controller.next_request(request, redirect(302, "ftp://example.com/file"))

    def test_loop(self):
        request = tinyget.get("http://example.com/a")
        controller = RedirectController(request)
        second = controller.next_request(request, redirect(301, "/b"))
        with pytest.raises(RedirectLoopError) as exc_info:
            controller.next_request(second, redirect(301, "/a"))
        assert exc_info.value.url == "http://example.com/a"

    def test_self_redirect(self):
        request = tinyget.get("http://example.com/a")
        controller = RedirectController(request)
        with pytest.raises(RedirectLoopError):
            controller.next_request(request, redirect(302, "http://example.com/a"))

    def test_post_then_get_same_url_is_not_a_loop(self):
        request = tinyget.post("http://example.com/form").with_body(b"x")
        controller = RedirectController(request)
        next_request = controller.next_request(request, redirect(303, "/form"))
        assert next_request.method == "GET"

    def test_fragment_does_not_defeat_loop_detection(self):
        request = tinyget.get("http://example.com/a")
        controller = RedirectController(request)
        with pytest.raises(RedirectLoopError):
            controller.next_request(request, redirect(302, "/a#other"))

    def test_limit(self):
        request = tinyget.get("http://example.com/0").with_max_redirects(3)
        controller = RedirectController(request)

        current = request
        for hop in range(1, 4):
            current = controller.next_request(current, redirect(302, f"/{hop}"))
        assert controller.hops == 3

        with pytest.raises(TooManyRedirectsError) as exc_info:
            controller.next_request(current, redirect(302, "/4"))
        assert exc_info.value.redirects == 3

    def test_zero_limit(self):
        request = tinyget.get("http://example.com/").with_max_redirects(0)
        controller = RedirectController(request)
        with pytest.raises(TooManyRedirectsError):
            controller.next_request(request, redirect(301, "/next"))
