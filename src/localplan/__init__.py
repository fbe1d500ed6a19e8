"""
Local Plan Chunker

Turns UK Local Plan PDFs into ordered, section-aware retrieval chunks.
"""

__version__ = "0.1.0"
