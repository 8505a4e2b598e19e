"""Result parsing: raw search hits to structured job records."""

from .parser import ParseContext, ResultParser
from .text import clean_html

__all__ = ["ParseContext", "ResultParser", "clean_html"]
