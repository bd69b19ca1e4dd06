"""
Unit tests for company logo resolution.

Run: python3 -m pytest enrichment/__tests__/test_logos.py -v
"""
import asyncio

import httpx

from enrichment.logos import (
    get_company_logo,
    guess_company_domain,
    is_placeholder_logo,
)


class TestGuessCompanyDomain:
    """Tests for guess_company_domain()."""

    def test_override(self):
        assert guess_company_domain("Datadog") == "datadoghq.com"
        assert guess_company_domain("  Google ") == "google.com"

    def test_suffix_stripped_once(self):
        assert guess_company_domain("Acme Technologies, Inc.") == "acmetechnologies.com"
        assert guess_company_domain("Foo Labs") == "foo.com"

    def test_override_after_suffix(self):
        assert guess_company_domain("Stripe, Inc.") == "stripe.com"

    def test_slugify(self):
        assert guess_company_domain("Big Co-op") == "bigcoop.com"


class TestIsPlaceholderLogo:
    def test_placeholders(self):
        assert is_placeholder_logo(None) is True
        assert is_placeholder_logo("") is True
        assert is_placeholder_logo("https://ui-avatars.com/api/?name=AC") is True
        assert is_placeholder_logo("https://i.pravatar.cc/150") is True

    def test_real_logo(self):
        assert is_placeholder_logo("https://cdn.example.com/logo.png") is False


class TestGetCompanyLogo:
    """Tests for the logo priority chain."""

    def test_source_logo_used_without_network(self, make_ctx, recording_handler):
        handler = recording_handler()
        ctx = make_ctx(handler)

        result = asyncio.run(get_company_logo(ctx, "Acme", "https://cdn.acme.com/logo.png"))

        assert result.value == "https://cdn.acme.com/logo.png"
        assert result.source == "source"
        assert handler.requests == []

    def test_clearbit(self, make_ctx, recording_handler, image):
        handler = recording_handler({"logo.clearbit.com": image("image/png")})
        ctx = make_ctx(handler)

        result = asyncio.run(get_company_logo(ctx, "Stripe"))

        assert result.value == "https://logo.clearbit.com/stripe.com"
        assert result.source == "clearbit"
        assert handler.requests[0].method == "HEAD"

    def test_placeholder_source_logo_is_replaced(self, make_ctx, recording_handler, image):
        handler = recording_handler({"logo.clearbit.com": image("image/png")})
        ctx = make_ctx(handler)

        result = asyncio.run(
            get_company_logo(ctx, "Stripe", "https://ui-avatars.com/api/?name=ST")
        )

        assert result.source == "clearbit"

    def test_brandfetch_when_clearbit_fails(self, make_ctx, recording_handler):
        def brandfetch(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer bf-key"
            return httpx.Response(200, json=[{"icon": "https://cdn.brandfetch.io/acme.png"}])

        handler = recording_handler({"api.brandfetch.io": brandfetch})
        ctx = make_ctx(handler, brandfetch_api_key="bf-key")

        result = asyncio.run(get_company_logo(ctx, "Acme"))

        assert result.value == "https://cdn.brandfetch.io/acme.png"
        assert result.source == "brandfetch"

    def test_brandfetch_skipped_without_key(self, make_ctx, recording_handler):
        handler = recording_handler()
        ctx = make_ctx(handler)

        asyncio.run(get_company_logo(ctx, "Acme"))

        assert "api.brandfetch.io" not in handler.hosts()

    def test_google_favicon(self, make_ctx, recording_handler, image):
        handler = recording_handler({"www.google.com": image("image/png")})
        ctx = make_ctx(handler)

        result = asyncio.run(get_company_logo(ctx, "Acme"))

        assert result.source == "google_favicon"
        assert result.value == "https://www.google.com/s2/favicons?domain=acme.com&sz=128"

    def test_initials_avatar_when_everything_fails(self, make_ctx, recording_handler):
        handler = recording_handler()
        ctx = make_ctx(handler, brandfetch_api_key="bf-key")

        result = asyncio.run(get_company_logo(ctx, "Acme Corp"))

        assert result.source == "ui_avatars"
        assert result.value.startswith("https://ui-avatars.com/api/?name=AC&")

    def test_network_errors_fall_through(self, make_ctx):
        def broken(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        ctx = make_ctx(broken, brandfetch_api_key="bf-key")

        result = asyncio.run(get_company_logo(ctx, "Acme"))

        assert result.source == "ui_avatars"

    def test_result_cached_per_company(self, make_ctx, recording_handler, image):
        handler = recording_handler({"logo.clearbit.com": image("image/png")})
        ctx = make_ctx(handler)

        async def run():
            first = await get_company_logo(ctx, "Stripe")
            second = await get_company_logo(ctx, "stripe ")
            return first, second

        first, second = asyncio.run(run())

        assert first == second
        assert len(handler.requests) == 1
