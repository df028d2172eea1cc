from __future__ import annotations

import gzip
import zlib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .base import BaseConfig, _enum_value, check_extraction_strategies, encode_extraction_strategies
from .enums import CompressionFormat, ExtractionModel, coerce_enum
from .errors import ExtractionConfigError


@dataclass
class ExtractionConfig(BaseConfig):
    """Configuration of one call to the extraction endpoint.

    ``body`` is the document to extract from. With a
    ``document_compression_format`` and ``is_document_compressed=False``
    the client compresses the document itself (gzip and deflate only).
    """

    body: bytes
    content_type: str
    url: str = ""
    charset: str = ""
    extraction_template: str = ""
    extraction_ephemeral_template: Optional[Dict[str, Any]] = None
    extraction_prompt: str = ""
    extraction_model: Union[ExtractionModel, str, None] = None
    is_document_compressed: bool = False
    document_compression_format: Union[CompressionFormat, str, None] = None
    webhook: str = ""

    error_class = ExtractionConfigError

    def validate(self) -> List[str]:
        violations: List[str] = []
        if not self.body:
            violations.append("body is required")
        if not self.content_type:
            violations.append("content_type is required")
        check_extraction_strategies(self, violations)
        if self.extraction_model:
            coerce_enum(ExtractionModel, self.extraction_model, "extraction_model", violations)
        if self.document_compression_format:
            compression = coerce_enum(
                CompressionFormat, self.document_compression_format, "document_compression_format", violations
            )
            if compression is CompressionFormat.ZSTD and not self.is_document_compressed:
                violations.append("zstd compression requires an already compressed document")
        return violations

    def encode(self) -> Dict[str, str]:
        params: Dict[str, str] = {"content_type": self.content_type}
        if self.url:
            params["url"] = self.url
        if self.charset:
            params["charset"] = self.charset
        encode_extraction_strategies(self, params)
        if self.webhook:
            params["webhook_name"] = self.webhook
        return params

    @property
    def content_encoding(self) -> Optional[str]:
        if not self.document_compression_format:
            return None
        return _enum_value(self.document_compression_format)

    def document(self) -> bytes:
        """Return the request body, compressed when the client has to do it."""
        body = self.body.encode("utf-8") if isinstance(self.body, str) else self.body
        encoding = self.content_encoding
        if encoding is None or self.is_document_compressed:
            return body
        if encoding == CompressionFormat.GZIP.value:
            return gzip.compress(body)
        if encoding == CompressionFormat.DEFLATE.value:
            return zlib.compress(body)
        raise ExtractionConfigError([f"cannot compress document with {encoding}"])
