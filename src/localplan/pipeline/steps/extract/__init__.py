from .pdf import ExtractionError, extract_page_lines, load_page_lines, source_name

__all__ = ["ExtractionError", "extract_page_lines", "load_page_lines", "source_name"]
