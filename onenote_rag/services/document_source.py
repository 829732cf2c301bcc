from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional
import logging

import pdfplumber
from bs4 import BeautifulSoup
from docx import Document

from onenote_rag.core.exceptions import ExtractionError
from onenote_rag.models.document import DocumentRecord, FileStats
from onenote_rag.utils.hashing import rolling_hash, to_base36

logger = logging.getLogger(__name__)

def document_id(path) -> str:
    """Stable document ID computed from the file path (not its content)."""
    return "file_" + to_base36(abs(rolling_hash(str(path))))

class LocalDocumentSource:
    """
    Scans a folder of exported OneNote files and turns each supported file into a
    DocumentRecord. Nothing is cached; every call re-reads the file system.
    """

    def __init__(self, root_path, supported_extensions: Iterable[str], pdf_text_extraction: bool = False):
        self.root_path = Path(root_path)
        self.supported_extensions = {ext.strip().lower() for ext in supported_extensions if ext.strip()}
        self.pdf_text_extraction = pdf_text_extraction
        self._extractors: Dict[str, Callable[[Path], str]] = {
            ".docx": self._extract_text_from_docx,
            ".pdf": self._extract_text_from_pdf,
            ".txt": self._read_utf8,
            ".md": self._read_utf8,
            ".html": self._extract_text_from_html,
            ".htm": self._extract_text_from_html,
        }

    def initialize(self) -> None:
        """Creates the document folder if it doesn't exist."""
        if not self.root_path.exists():
            self.root_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created document folder: {self.root_path}")

    def is_supported(self, path: Path) -> bool:
        return path.suffix.lower() in self.supported_extensions

    def list_files(self) -> List[Path]:
        if not self.root_path.exists():
            return []
        return sorted(p for p in self.root_path.rglob("*") if p.is_file() and self.is_supported(p))

    def list_all(self) -> List[DocumentRecord]:
        """
        Extracts every supported file under the root folder.
        Files that fail to parse or contain no text are logged and skipped.
        """
        documents = []
        for path in self.list_files():
            try:
                document = self._process_file(path)
            except ExtractionError as e:
                logger.error(str(e), exc_info=e.__cause__)
                continue
            if document:
                documents.append(document)

        logger.info(f"Processed {len(documents)} local files from {self.root_path}")
        return documents

    def stats(self) -> FileStats:
        stats = FileStats()
        for path in self.list_files():
            stat = path.stat()
            ext = path.suffix.lower()
            modified = datetime.fromtimestamp(stat.st_mtime)

            stats.file_count += 1
            stats.total_bytes += stat.st_size
            stats.type_counts[ext] = stats.type_counts.get(ext, 0) + 1
            if stats.most_recent_modification is None or modified > stats.most_recent_modification:
                stats.most_recent_modification = modified
        return stats

    def extract_text(self, path: Path) -> str:
        ext = path.suffix.lower()
        extractor = self._extractors.get(ext)
        if extractor is None:
            raise ExtractionError(str(path), f"unsupported file type: {ext}")
        try:
            return extractor(path)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(str(path), str(e)) from e

    def _process_file(self, path: Path) -> Optional[DocumentRecord]:
        stat = path.stat()
        content = self.extract_text(path).strip()
        if not content:
            logger.warning(f"File has no text content, skipping: {path}")
            return None

        return DocumentRecord(
            id=document_id(path),
            title=path.stem,
            content=content,
            last_modified=datetime.fromtimestamp(stat.st_mtime),
            source_path=str(path),
            file_type=path.suffix.lower(),
            size=stat.st_size,
        )

    def _read_utf8(self, path: Path) -> str:
        return path.read_bytes().decode("utf-8")

    def _extract_text_from_docx(self, path: Path) -> str:
        doc = Document(str(path))
        text_parts = [p.text.strip() for p in doc.paragraphs if p.text.strip()]

        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    text_parts.append(" | ".join(cells))

        return "\n\n".join(text_parts)

    def _extract_text_from_html(self, path: Path) -> str:
        soup = BeautifulSoup(self._read_utf8(path), "html.parser")
        for element in soup(["script", "style", "noscript", "head"]):
            element.extract()

        lines = (line.strip() for line in soup.get_text(separator="\n").splitlines())
        return "\n".join(line for line in lines if line)

    def _extract_text_from_pdf(self, path: Path) -> str:
        if not self.pdf_text_extraction:
            logger.warning(f"PDF text extraction is disabled, indexing a placeholder for: {path}")
            return f"PDF file: {path.name} (content extraction is not supported yet, please convert it to another format)"

        text_pages = []
        with pdfplumber.open(str(path)) as pdf:
            for i, page in enumerate(pdf.pages):
                page_text = page.extract_text()
                if page_text:
                    text_pages.append(page_text)
                else:
                    logger.warning(f"No text found on page {i + 1} of {path} (may be scanned image).")
        return "\n\n".join(text_pages)
