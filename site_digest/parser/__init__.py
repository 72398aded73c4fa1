"""site_digest.parser: main-content and title extraction from HTML."""

from .html_parser import ContentExtractor, ExtractedPage, clean_content, extract_title, parse_html

__all__ = ["ContentExtractor", "ExtractedPage", "clean_content", "extract_title", "parse_html"]
