#!/usr/bin/env python
import urllib.parse
from typing import cast
from typing import Optional
from typing import Union
from urllib.parse import ParseResult
from urllib.parse import quote
from urllib.parse import SplitResult
from urllib.parse import unquote
from urllib.parse import urljoin
from urllib.parse import urlparse
from urllib.parse import urlunparse


class URL:
    """
    Wraps URLs into objects.  All methods in the connector that accept
    URLs can be fed either with a URL object, a string or a
    urlparse.ParseResult object.

    Addresses may be a path relative to the server URL
    ("user/calendar/"), an absolute path ("/dav/user/calendar/") or a
    fully qualified URL ("https://dav.example.com/dav/user/calendar/").
    Calendar URLs given by the host are frequently written in a
    different one of these forms than the hrefs the server reports, so
    comparisons should go through ``normalized``.
    """

    def __init__(self, url: Union[str, ParseResult, SplitResult]) -> None:
        if isinstance(url, (ParseResult, SplitResult)):
            self.url_parsed: Optional[Union[ParseResult, SplitResult]] = url
            self.url_raw = None
        else:
            self.url_raw = url
            self.url_parsed = None

    def __bool__(self) -> bool:
        return bool(self.url_raw or self.url_parsed)

    def __eq__(self, other: object) -> bool:
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    @classmethod
    def objectify(cls, url: Union["URL", str, ParseResult, SplitResult]) -> "URL":
        if url is None or isinstance(url, URL):
            return url
        return URL(url)

    def __getattr__(self, attr: str):
        if "url_parsed" not in vars(self):
            raise AttributeError(attr)
        if self.url_parsed is None:
            self.url_parsed = cast(urllib.parse.ParseResult, urlparse(self.url_raw))
        return getattr(self.url_parsed, attr)

    def __str__(self) -> str:
        if self.url_raw is None:
            if self.url_parsed is None:
                raise ValueError("Unexpected value None for self.url_parsed")
            self.url_raw = self.url_parsed.geturl()
        return self.url_raw

    def __repr__(self) -> str:
        return "URL(%s)" % str(self)

    def unauth(self) -> "URL":
        """Remove user:pass@ from the netloc, if present"""
        if self.username is None:
            return self
        netloc = self.hostname
        if self.port:
            netloc = "%s:%s" % (netloc, self.port)
        return URL(
            ParseResult(
                self.scheme,
                netloc,
                self.path,
                self.params,
                self.query,
                self.fragment,
            )
        )

    def normalized(self, base: Optional[Union["URL", str]] = None) -> str:
        """
        Resolve the URL against ``base`` (if it's relative), drop
        credentials, unify quoting and remove trailing slashes from the
        path, so two spellings of the same collection compare equal.
        """
        raw = str(self)
        if base is not None:
            base_str = str(base)
            if not base_str.endswith("/"):
                base_str += "/"
            raw = urljoin(base_str, raw)
        parsed = urlparse(raw)
        netloc = parsed.hostname or ""
        if parsed.port:
            netloc = "%s:%s" % (netloc, parsed.port)
        path = quote(unquote(parsed.path.replace("//", "/"))).rstrip("/") or "/"
        return urlunparse(
            (parsed.scheme, netloc, path, parsed.params, parsed.query, "")
        )


def parent_collection(url: Union[URL, str]) -> str:
    """The collection an object URL lives in, up to and including the last slash"""
    url = str(url)
    return url[: url.rfind("/") + 1]
