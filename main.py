from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from scrapfly_client import ClientSettings, ScrapeConfig, ScrapflyClient
from scrapfly_client.errors import ConfigError

DEFAULT_URL_LIST_PATH = "urls.txt"


def _load_urls(path: str, limit: int = 100) -> List[str]:
    urls: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            url = line.strip()
            if not url or url.startswith("#"):
                continue
            urls.append(url)
            if len(urls) >= limit:
                break
    if not urls:
        raise ValueError(f"No urls found in {path}")
    return urls


def _build_configs(urls: List[str], args: argparse.Namespace) -> List[ScrapeConfig]:
    return [
        ScrapeConfig(
            url=url,
            render_js=args.render_js,
            asp=args.asp,
            country=args.country or "",
            format=args.format,
            tags=["cli"],
        )
        for url in urls
    ]


def run_batch(
    client: ScrapflyClient,
    configs: List[ScrapeConfig],
    concurrency: int,
    output_dir: Optional[str],
) -> None:
    ok = 0
    fail = 0
    for outcome in client.concurrent_scrape(configs, concurrency_limit=concurrency):
        url = outcome.config.url if outcome.config is not None else "-"
        if outcome.ok:
            ok += 1
            result = outcome.result.result
            print(
                f"url={url} success=True status={result.status_code} "
                f"cost={outcome.result.context.cost.total} log={result.log_url}"
            )
            if output_dir:
                outcome.result.save_screenshots(output_dir)
        else:
            fail += 1
            print(f"url={url} success=False error={type(outcome.error).__name__}: {outcome.error}")

    print(f"\nDONE: success={ok} fail={fail} total={ok + fail}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Scrape a list of urls through the Scrapfly API")
    parser.add_argument("--url", action="append", default=[], help="Url to scrape (repeatable)")
    parser.add_argument("--urls", default=None, help=f"Path to a url list, one per line (e.g. {DEFAULT_URL_LIST_PATH})")
    parser.add_argument("--limit", type=int, default=100, help="Max number of urls to load from --urls")
    parser.add_argument("--key", default=None, help="API key (defaults to SCRAPFLY_API_KEY)")

    parser.add_argument("--concurrency", type=int, default=0, help="Max scrapes in flight, 0 uses the plan limit")
    parser.add_argument("--render-js", action="store_true", help="Render pages with a headless browser")
    parser.add_argument("--asp", action="store_true", help="Enable anti scraping protection bypass")
    parser.add_argument("--country", default=None, help="Proxy country code")
    parser.add_argument("--format", default=None, help="Content format: json, text, markdown, clean_html, raw")
    parser.add_argument("--screenshots-dir", default=None, help="Directory where screenshots are saved")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    urls = list(args.url)
    if args.urls:
        urls.extend(_load_urls(args.urls, limit=args.limit))
    if not urls:
        print("Nothing to do. Use --url or --urls to give urls to scrape.")
        return

    if args.key:
        client = ScrapflyClient(args.key)
    else:
        client = ScrapflyClient.from_settings(ClientSettings.from_env())

    with client:
        try:
            configs = _build_configs(urls, args)
            for config in configs:
                config.to_api_params()
        except ConfigError as exc:
            parser.error(str(exc))
        run_batch(client, configs, args.concurrency, args.screenshots_dir)


if __name__ == "__main__":
    main()
