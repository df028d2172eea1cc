"""Tests for ScrapeConfig validation and query parameter encoding."""

import json
import unittest
from urllib.parse import parse_qs

from scrapfly_client.base import urlsafe_b64decode
from scrapfly_client.enums import Format, FormatOption, ProxyPool
from scrapfly_client.errors import ScrapeConfigError
from scrapfly_client.scrape_config import ScrapeConfig


class TestScrapeConfigValidation(unittest.TestCase):
    """Verify that invalid configs are rejected before encoding."""

    def test_missing_url(self):
        """An empty url should be reported as a violation."""
        with self.assertRaises(ScrapeConfigError) as ctx:
            ScrapeConfig(url="").to_api_params()
        self.assertIn("url is required", ctx.exception.violations)

    def test_extraction_strategies_are_exclusive(self):
        """Any two extraction strategies together should be rejected."""
        config = ScrapeConfig(url="https://example.com", extraction_prompt="summary", extraction_model="product")
        with self.assertRaises(ScrapeConfigError) as ctx:
            config.to_api_params()
        self.assertIn("mutually exclusive", str(ctx.exception))

    def test_template_and_ephemeral_template_are_exclusive(self):
        config = ScrapeConfig(
            url="https://example.com",
            extraction_template="saved",
            extraction_ephemeral_template={"selectors": []},
        )
        self.assertEqual(len(config.validate()), 1)

    def test_empty_ephemeral_template_counts_as_set(self):
        """An empty inline template should still conflict with a prompt."""
        config = ScrapeConfig(url="https://example.com", extraction_ephemeral_template={}, extraction_prompt="title?")
        violations = config.validate()
        self.assertEqual(violations, ["extraction_ephemeral_template and extraction_prompt are mutually exclusive"])

    def test_body_and_data_together(self):
        """body and data cannot both be set, whatever the method."""
        config = ScrapeConfig(url="https://example.com", method="POST", body="raw", data={"a": 1})
        self.assertIn("cannot set both body and data", config.validate())

    def test_empty_header_value(self):
        config = ScrapeConfig(url="https://example.com", headers={"x-test": ""})
        violations = config.validate()
        self.assertEqual(len(violations), 1)
        self.assertIn("headers", violations[0])

    def test_empty_cookie_name(self):
        config = ScrapeConfig(url="https://example.com", cookies={"": "value"})
        self.assertIn("cookies", config.validate()[0])

    def test_invalid_enum_values(self):
        """Unknown format, proxy pool and screenshot flag should each be reported."""
        config = ScrapeConfig(
            url="https://example.com",
            format="pdf",
            proxy_pool="moon_pool",
            screenshot_flags=["sepia"],
        )
        violations = config.validate()
        self.assertEqual(len(violations), 3)
        self.assertTrue(any("format" in v for v in violations))
        self.assertTrue(any("proxy_pool" in v for v in violations))
        self.assertTrue(any("screenshot flag" in v for v in violations))

    def test_invalid_method(self):
        config = ScrapeConfig(url="https://example.com", method="DELETE")
        self.assertTrue(any("method" in v for v in config.validate()))

    def test_empty_screenshot_selector(self):
        config = ScrapeConfig(url="https://example.com", render_js=True, screenshots={"main": ""})
        self.assertIn("screenshots[main]", config.validate()[0])

    def test_invalid_scenario(self):
        """Scenario schema violations should surface as config violations."""
        config = ScrapeConfig(url="https://example.com", render_js=True, js_scenario=[{"jump": {}}])
        violations = config.validate()
        self.assertEqual(len(violations), 1)
        self.assertTrue(violations[0].startswith("js_scenario["))

    def test_unsupported_data_content_type(self):
        config = ScrapeConfig(
            url="https://example.com", method="POST", data={"a": 1}, headers={"Content-Type": "text/xml"}
        )
        with self.assertRaises(ScrapeConfigError) as ctx:
            config.to_api_params()
        self.assertIn("unsupported content-type", str(ctx.exception))

    def test_all_violations_reported(self):
        config = ScrapeConfig(url="", format="pdf")
        self.assertEqual(len(config.validate()), 2)


class TestScrapeConfigEncoding(unittest.TestCase):
    """Verify the mapping from config fields to query parameters."""

    def test_minimal_config(self):
        """Only the url should be sent for a default config."""
        self.assertEqual(ScrapeConfig(url="https://example.com").to_api_params(), {"url": "https://example.com"})

    def test_browser_options_require_render_js(self):
        """Browser options should be dropped when render_js is off."""
        config = ScrapeConfig(
            url="https://example.com",
            wait_for_selector=".price",
            rendering_wait=2000,
            auto_scroll=True,
            js="return 1",
            screenshots={"main": "fullpage"},
        )
        params = config.to_api_params()
        for name in ("render_js", "wait_for_selector", "rendering_wait", "auto_scroll", "js", "screenshots[main]"):
            self.assertNotIn(name, params)

    def test_browser_options_with_render_js(self):
        config = ScrapeConfig(
            url="https://example.com",
            render_js=True,
            wait_for_selector=".price",
            rendering_wait=2000,
            screenshots={"main": "fullpage"},
            screenshot_flags=["dark_mode", "high_quality"],
        )
        params = config.to_api_params()
        self.assertEqual(params["render_js"], "true")
        self.assertEqual(params["wait_for_selector"], ".price")
        self.assertEqual(params["rendering_wait"], "2000")
        self.assertEqual(params["screenshots[main]"], "fullpage")
        self.assertEqual(params["screenshot_flags"], "dark_mode,high_quality")

    def test_js_is_urlsafe_base64(self):
        """The js snippet should decode back to the input script."""
        source = "return document.querySelectorAll('a[href]').length >> 1 ?? 0"
        params = ScrapeConfig(url="https://example.com", render_js=True, js=source).to_api_params()
        self.assertNotIn("=", params["js"])
        self.assertNotIn("+", params["js"])
        self.assertNotIn("/", params["js"])
        self.assertEqual(urlsafe_b64decode(params["js"]), source)

    def test_js_scenario_encoding(self):
        steps = [{"click": {"selector": "#more"}}, {"wait": 500}]
        params = ScrapeConfig(url="https://example.com", render_js=True, js_scenario=steps).to_api_params()
        self.assertEqual(json.loads(urlsafe_b64decode(params["js_scenario"])), steps)

    def test_cache_options_require_cache(self):
        params = ScrapeConfig(url="https://example.com", cache_ttl=60, cache_clear=True).to_api_params()
        self.assertNotIn("cache_ttl", params)
        self.assertNotIn("cache_clear", params)

        params = ScrapeConfig(url="https://example.com", cache=True, cache_ttl=60, cache_clear=True).to_api_params()
        self.assertEqual(params["cache"], "true")
        self.assertEqual(params["cache_ttl"], "60")
        self.assertEqual(params["cache_clear"], "true")

    def test_sticky_proxy_requires_session(self):
        params = ScrapeConfig(url="https://example.com", session_sticky_proxy=True).to_api_params()
        self.assertNotIn("session_sticky_proxy", params)

        params = ScrapeConfig(url="https://example.com", session="s1", session_sticky_proxy=True).to_api_params()
        self.assertEqual(params["session"], "s1")
        self.assertEqual(params["session_sticky_proxy"], "true")

    def test_retry_disabled(self):
        self.assertEqual(ScrapeConfig(url="https://example.com", retry=False).to_api_params()["retry"], "false")

    def test_scalar_fields(self):
        config = ScrapeConfig(
            url="https://example.com",
            country="us,ca",
            proxy_pool=ProxyPool.PUBLIC_RESIDENTIAL_POOL,
            asp=True,
            timeout=30000,
            tags=["a", "b"],
            webhook="hook",
            correlation_id="c1",
            debug=True,
            ssl=True,
            dns=True,
            os="linux",
            lang=["en", "fr"],
        )
        params = config.to_api_params()
        self.assertEqual(params["country"], "us,ca")
        self.assertEqual(params["proxy_pool"], "public_residential_pool")
        self.assertEqual(params["asp"], "true")
        self.assertEqual(params["timeout"], "30000")
        self.assertEqual(params["tags"], "a,b")
        self.assertEqual(params["webhook_name"], "hook")
        self.assertEqual(params["correlation_id"], "c1")
        self.assertEqual(params["debug"], "true")
        self.assertEqual(params["ssl"], "true")
        self.assertEqual(params["dns"], "true")
        self.assertEqual(params["os"], "linux")
        self.assertEqual(params["lang"], "en,fr")

    def test_format_with_options(self):
        config = ScrapeConfig(
            url="https://example.com",
            format=Format.MARKDOWN,
            format_options=[FormatOption.NO_LINKS, "no_images"],
        )
        self.assertEqual(config.to_api_params()["format"], "markdown:no_links,no_images")

    def test_headers_are_lowercased(self):
        params = ScrapeConfig(url="https://example.com", headers={"X-Custom": "1"}).to_api_params()
        self.assertEqual(params["headers[x-custom]"], "1")

    def test_cookies_merge_with_explicit_cookie_header(self):
        """Cookies should be appended after an explicit Cookie header."""
        config = ScrapeConfig(
            url="https://example.com",
            headers={"Cookie": "a=1"},
            cookies={"b": "2", "c": "3"},
        )
        self.assertEqual(config.to_api_params()["headers[cookie]"], "a=1; b=2; c=3")

    def test_ephemeral_template_encoding(self):
        template = {"source": "html", "selectors": [{"name": "title", "query": "h1"}]}
        params = ScrapeConfig(url="https://example.com", extraction_ephemeral_template=template).to_api_params()
        prefix, encoded = params["extraction_template"].split(":", 1)
        self.assertEqual(prefix, "ephemeral")
        self.assertEqual(json.loads(urlsafe_b64decode(encoded)), template)

    def test_empty_ephemeral_template_is_sent(self):
        params = ScrapeConfig(url="https://example.com", extraction_ephemeral_template={}).to_api_params()
        self.assertEqual(params["extraction_template"], "ephemeral:e30")

    def test_extraction_model(self):
        params = ScrapeConfig(url="https://example.com", extraction_model="product").to_api_params()
        self.assertEqual(params["extraction_model"], "product")


class TestScrapeConfigBody(unittest.TestCase):
    """Verify encoding of the data field into the request body."""

    def test_data_defaults_to_form_encoding(self):
        config = ScrapeConfig(url="https://example.com", method="POST", data={"q": "shoes", "page": 2})
        config.to_api_params()
        self.assertEqual(parse_qs(config.body), {"q": ["shoes"], "page": ["2"]})
        self.assertEqual(config.content_type, "application/x-www-form-urlencoded")

    def test_data_as_json(self):
        config = ScrapeConfig(
            url="https://example.com",
            method="PUT",
            data={"q": "shoes"},
            headers={"content-type": "application/json"},
        )
        params = config.to_api_params()
        self.assertEqual(json.loads(config.body), {"q": "shoes"})
        self.assertEqual(params["headers[content-type]"], "application/json")

    def test_data_ignored_for_get(self):
        config = ScrapeConfig(url="https://example.com", data={"q": "shoes"})
        config.to_api_params()
        self.assertEqual(config.body, "")
        self.assertIsNone(config.content_type)

    def test_raw_body_defaults_to_text_plain(self):
        config = ScrapeConfig(url="https://example.com", method="post", body="hello")
        config.to_api_params()
        self.assertEqual(config.content_type, "text/plain")


if __name__ == "__main__":
    unittest.main()
