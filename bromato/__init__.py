"""
Bromato - Remote browser control for no-code callers

Interprets JSON instruction chains ("find this element, combine it with
others, then act on it or read it") against a live Playwright page.
"""

__version__ = "0.1.0"

from bromato.core.dispatcher import ChainDispatcher, execute_locator_chain
from bromato.core.errors import GrammarError, PayloadValidationError
from bromato.layers.middleware.file_upload import FileUploadStager

__all__ = [
    "ChainDispatcher",
    "FileUploadStager",
    "GrammarError",
    "PayloadValidationError",
    "execute_locator_chain",
    "__version__",
]
