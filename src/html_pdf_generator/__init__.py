"""Generate PDF documents from HTML content, web pages and bundled assets."""

from .attributes import (
    ISO_A3, ISO_A4, ISO_A5, NA_LEGAL, NA_LETTER, NA_TABLOID, NO_MARGINS,
    Margins, PageSize, PrintAttributes, Resolution, page_size_by_name,
)
from .completion import CallbackListener, CompletionResult, Failure, PdfCallbackListener, Success
from .content import AssetContent, AssetStore, DirectoryAssetStore, InlineContent, RemoteContent
from .engine import DocumentExporter, ExportHandle, PrintService, RenderingEngine
from .errors import (
    AssetReadError, ConfigurationError, EngineError, ExportError, GenerationTimeout, PdfGenerationError,
)
from .generator import PdfGenerator
from .request import DEFAULT_DPI, DEFAULT_TIMEOUT_MS, GenerationRequest, default_save_path
from .state_machine import GenerationAttempt, GenerationState

__all__ = [
    'PdfGenerator', 'GenerationRequest', 'GenerationAttempt', 'GenerationState',
    'InlineContent', 'RemoteContent', 'AssetContent', 'AssetStore', 'DirectoryAssetStore',
    'RenderingEngine', 'DocumentExporter', 'PrintService', 'ExportHandle',
    'PdfCallbackListener', 'CallbackListener', 'CompletionResult', 'Success', 'Failure',
    'PdfGenerationError', 'ConfigurationError', 'AssetReadError', 'EngineError', 'ExportError',
    'GenerationTimeout',
    'PageSize', 'Margins', 'Resolution', 'PrintAttributes', 'page_size_by_name',
    'ISO_A3', 'ISO_A4', 'ISO_A5', 'NA_LETTER', 'NA_LEGAL', 'NA_TABLOID', 'NO_MARGINS',
    'DEFAULT_DPI', 'DEFAULT_TIMEOUT_MS', 'default_save_path',
]
