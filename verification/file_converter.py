import io
import logging

from PIL import Image
import pillow_heif
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFPageCountError, PDFSyntaxError

from .utils import IMAGE_EXTENSIONS, PDF_EXTENSION, get_file_extension

pillow_heif.register_heif_opener()

logger = logging.getLogger(__name__)


class UnsupportedFileError(ValueError):
    """Raised for uploads that are neither an image nor a PDF"""


def _to_jpeg(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, "JPEG", quality=95)
    return buffer.getvalue()


def load_document_image(data: bytes, filename: str) -> bytes:
    """
    Converts an uploaded document (image / HEIC / PDF) into JPEG bytes.
    For PDFs only the first page is used; identity documents are single-page.
    """
    ext = get_file_extension(filename)

    # -------- Case 1: Normal image or HEIC --------
    if ext in IMAGE_EXTENSIONS:
        with Image.open(io.BytesIO(data)) as img:
            return _to_jpeg(img)

    # -------- Case 2: PDF --------
    if ext == PDF_EXTENSION:
        try:
            pages = convert_from_bytes(data, dpi=300, first_page=1, last_page=1)
        except (PDFPageCountError, PDFSyntaxError) as e:
            raise UnsupportedFileError(f"Could not read PDF {filename}: {e}") from e
        if not pages:
            raise UnsupportedFileError(f"PDF has no pages: {filename}")
        logger.debug("Rendered first page of %s", filename)
        return _to_jpeg(pages[0])

    raise UnsupportedFileError(f"Unsupported file type: {ext or filename}")
