from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Type, TypeVar, Union

E = TypeVar("E", bound=Enum)


class Format(str, Enum):
    """Output format of the scraped content."""

    JSON = "json"
    TEXT = "text"
    MARKDOWN = "markdown"
    CLEAN_HTML = "clean_html"
    RAW = "raw"


class FormatOption(str, Enum):
    NO_LINKS = "no_links"
    NO_IMAGES = "no_images"
    ONLY_CONTENT = "only_content"


class ProxyPool(str, Enum):
    """Upstream proxy infrastructure used for a scrape."""

    PUBLIC_DATACENTER_POOL = "public_datacenter_pool"
    PUBLIC_RESIDENTIAL_POOL = "public_residential_pool"


class ScreenshotFlag(str, Enum):
    """Flags applied to screenshots taken during a scrape."""

    LOAD_IMAGES = "load_images"
    DARK_MODE = "dark_mode"
    BLOCK_BANNERS = "block_banners"
    PRINT_MEDIA_FORMAT = "print_media_format"
    HIGH_QUALITY = "high_quality"


class HttpMethod(str, Enum):
    # DELETE, CONNECT and TRACE are rejected by the scrape endpoint, HEAD targets
    # the endpoint itself instead of the upstream site.
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"


class ExtractionModel(str, Enum):
    """Pre-trained models of the automatic AI extraction."""

    ARTICLE = "article"
    EVENT = "event"
    FOOD_RECIPE = "food_recipe"
    HOTEL = "hotel"
    HOTEL_LISTING = "hotel_listing"
    JOB_LISTING = "job_listing"
    JOB_POSTING = "job_posting"
    ORGANIZATION = "organization"
    PRODUCT = "product"
    PRODUCT_LISTING = "product_listing"
    REAL_ESTATE_PROPERTY = "real_estate_property"
    REAL_ESTATE_PROPERTY_LISTING = "real_estate_property_listing"
    REVIEW_LIST = "review_list"
    SEARCH_ENGINE_RESULTS = "search_engine_results"
    SOCIAL_MEDIA_POST = "social_media_post"
    SOFTWARE = "software"
    STOCK = "stock"
    VEHICLE_AD = "vehicle_ad"
    VEHICLE_AD_LISTING = "vehicle_ad_listing"


class ScreenshotFormat(str, Enum):
    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"


class ScreenshotOption(str, Enum):
    LOAD_IMAGES = "load_images"
    DARK_MODE = "dark_mode"
    BLOCK_BANNERS = "block_banners"
    PRINT_MEDIA_FORMAT = "print_media_format"


class CompressionFormat(str, Enum):
    GZIP = "gzip"
    ZSTD = "zstd"
    DEFLATE = "deflate"


def coerce_enum(enum_cls: Type[E], value: Union[E, str], field_name: str, violations: List[str]) -> Optional[E]:
    """Return ``value`` as a member of ``enum_cls``.

    Unknown values are recorded in ``violations`` and ``None`` is returned."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        violations.append(f"invalid {field_name}: {value!r} (expected one of: {allowed})")
        return None


def coerce_enum_list(
    enum_cls: Type[E], values: Iterable[Union[E, str]], field_name: str, violations: List[str]
) -> List[E]:
    members: List[E] = []
    for value in values:
        member = coerce_enum(enum_cls, value, field_name, violations)
        if member is not None:
            members.append(member)
    return members
