"""Read WordprocessingML parts out of ``.docx`` archives."""

import zipfile
from pathlib import Path
from typing import List, Union

from wordml_parser.shared.errors import WordMLError

DOCUMENT_PART = "word/document.xml"
FONT_TABLE_PART = "word/fontTable.xml"
STYLES_PART = "word/styles.xml"


class DocxError(WordMLError):
    """Archive missing, not a zip file, or lacking the requested part."""


def read_docx_part(path: Union[str, Path], part: str = DOCUMENT_PART) -> bytes:
    """Return the raw bytes of one part of a ``.docx`` archive.

    Raises:
        DocxError: If the archive cannot be opened or has no such part
    """
    path_obj = Path(path)
    try:
        with zipfile.ZipFile(path_obj) as archive:
            return archive.read(part)
    except FileNotFoundError:
        raise DocxError(f"File not found: {path_obj}") from None
    except zipfile.BadZipFile as e:
        raise DocxError(f"Not a valid .docx archive: {path_obj}: {e}") from e
    except KeyError:
        raise DocxError(f"Archive {path_obj} has no part named {part!r}") from None
    except OSError as e:
        raise DocxError(f"Cannot read {path_obj}: {e}") from e


def list_docx_parts(path: Union[str, Path]) -> List[str]:
    """List the XML part names inside a ``.docx`` archive."""
    path_obj = Path(path)
    try:
        with zipfile.ZipFile(path_obj) as archive:
            return [name for name in archive.namelist() if name.endswith(".xml")]
    except zipfile.BadZipFile as e:
        raise DocxError(f"Not a valid .docx archive: {path_obj}: {e}") from e
    except OSError as e:
        raise DocxError(f"Cannot read {path_obj}: {e}") from e
