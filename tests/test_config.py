from onenote_rag.core.config import Settings


def test_supported_extensions_from_comma_separated_env(monkeypatch):
    monkeypatch.setenv("SUPPORTED_EXTENSIONS", ".docx, .txt,")

    assert Settings(_env_file=None).SUPPORTED_EXTENSIONS == [".docx", ".txt"]


def test_supported_extensions_default(monkeypatch):
    monkeypatch.delenv("SUPPORTED_EXTENSIONS", raising=False)

    assert Settings(_env_file=None).SUPPORTED_EXTENSIONS == [".docx", ".pdf", ".txt", ".html", ".md"]


def test_supported_extensions_as_list():
    assert Settings(_env_file=None, SUPPORTED_EXTENSIONS=[".md"]).SUPPORTED_EXTENSIONS == [".md"]


def test_scalar_settings_from_env(monkeypatch):
    monkeypatch.setenv("VECTOR_STORE", "postgres")
    monkeypatch.setenv("CHUNK_SIZE", "500")
    monkeypatch.setenv("PDF_TEXT_EXTRACTION", "true")

    settings = Settings(_env_file=None)

    assert settings.VECTOR_STORE == "postgres"
    assert settings.CHUNK_SIZE == 500
    assert settings.PDF_TEXT_EXTRACTION is True
