"""
Testes para leitura de workbooks, validação de uploads, preview e
colaboradores de armazenamento (fonte de ficheiros + cache).
"""
import json
from datetime import datetime

import pytest

from workbook_ingestion.document_store import (
    DirectoryDocumentSource,
    InMemoryDocumentCache,
    InMemoryDocumentSource,
    JsonDocumentCache,
)
from workbook_ingestion.schemas import DocumentType, TabularDocument
from workbook_ingestion.sheet_selector import select_sheet
from workbook_ingestion.uploads import UploadValidationError, preview_document, validate_upload
from workbook_ingestion.workbook_reader import WorkbookReadError, read_workbook


class TestReadWorkbook:
    """Binário -> RawWorkbook via pandas/openpyxl."""

    def test_xlsx_sheets_in_order(self, build_xlsx, bom_rows):
        content = build_xlsx({"Notes": [["Notes"]], "BOM": bom_rows})
        workbook = read_workbook(content, "bom.xlsx")
        assert list(workbook) == ["Notes", "BOM"]
        assert workbook["BOM"][1] == ("Derived Material", "Child Part", "Quantity Per Kit", "UOM")
        assert workbook["BOM"][2] == ("FG-100", "CMP-A", 2, "PCS")

    def test_blank_rows_dropped_and_trailing_blanks_trimmed(self, build_xlsx):
        content = build_xlsx({"S": [["A", "B", None], [None, None, None], ["x", 1.0, None]]})
        grid = read_workbook(content, "s.xlsx")["S"]
        assert grid == (("A", "B"), ("x", 1))

    def test_dates_preserved(self, build_xlsx, week_plan_rows):
        grid = read_workbook(build_xlsx({"Week Plan": week_plan_rows}), "wp.xlsx")["Week Plan"]
        assert grid[1][1] == datetime(2024, 2, 5)

    def test_csv(self):
        content = b"Child Part,MPQ\nCMP-A,25\n"
        workbook = read_workbook(content, "material_master.csv")
        assert list(workbook) == ["material_master"]
        assert workbook["material_master"][1] == ("CMP-A", "25")

    def test_garbage_raises(self):
        with pytest.raises(WorkbookReadError):
            read_workbook(b"definitely not a workbook", "x.xlsx")

    def test_empty_raises(self):
        with pytest.raises(WorkbookReadError):
            read_workbook(b"", "x.xlsx")

    def test_selected_sheet_from_file(self, upload_files):
        filename, content = upload_files[DocumentType.SUPPLIER_DETAILS]
        doc = select_sheet(read_workbook(content, filename), DocumentType.SUPPLIER_DETAILS)
        assert doc.sheet_name == "Supplier Details"


class TestUploadValidation:

    def test_accepts_spreadsheets(self):
        for name in ("a.xlsx", "B.XLSM", "c.csv"):
            validate_upload(name, 100)

    @pytest.mark.parametrize("filename, size", [
        ("report.pdf", 100),
        ("legacy.xls", 100),
        ("", 100),
        (None, 100),
        ("a.xlsx", 0),
        ("a.xlsx", 10 * 1024 * 1024 + 1),
    ])
    def test_rejects(self, filename, size):
        with pytest.raises(UploadValidationError):
            validate_upload(filename, size)

    def test_custom_limit(self):
        with pytest.raises(UploadValidationError, match="1MB"):
            validate_upload("a.xlsx", 2 * 1024 * 1024, max_bytes=1024 * 1024)


class TestPreview:

    def test_preview(self, bom_doc):
        preview = preview_document(bom_doc, DocumentType.BOM, limit=2)
        assert preview["sheet_name"] == "BOM"
        assert preview["header"]["header_row_index"] == 1
        assert preview["row_count"] == 4
        assert preview["rows"] == [["FG-100", "CMP-A", "2", "PCS"], ["FG-100", "CMP-B", "1", "KG"]]
        assert preview["truncated"] is True


class TestDocumentSources:

    def test_in_memory_latest(self):
        source = InMemoryDocumentSource()
        assert source.latest(DocumentType.BOM) is None
        source.save(DocumentType.BOM, "old.xlsx", b"1")
        record = source.save(DocumentType.BOM, "/tmp/new.xlsx", b"22")
        latest_record, content = source.latest(DocumentType.BOM)
        assert latest_record == record
        assert record.filename == "new.xlsx"
        assert content == b"22"
        assert [r.filename for r in source.list(DocumentType.BOM)] == ["new.xlsx", "old.xlsx"]

    def test_directory_source(self, tmp_path):
        source = DirectoryDocumentSource(tmp_path)
        source.save(DocumentType.WEEK_PLAN, "w1.xlsx", b"first")
        source.save(DocumentType.WEEK_PLAN, "w2.xlsx", b"second")

        record, content = source.latest(DocumentType.WEEK_PLAN)
        assert record.filename == "w2.xlsx"
        assert content == b"second"
        assert record.size_bytes == len(b"second")
        assert len(source.list(DocumentType.WEEK_PLAN)) == 2
        assert (tmp_path / "week_plan").is_dir()
        assert source.latest(DocumentType.BOM) is None


class TestDocumentCaches:

    def test_in_memory(self, bom_doc):
        cache = InMemoryDocumentCache()
        assert cache.get(DocumentType.BOM) is None
        cache.put(DocumentType.BOM, bom_doc)
        assert cache.get(DocumentType.BOM) is bom_doc

    def test_json_round_trip(self, tmp_path, week_plan_doc):
        JsonDocumentCache(tmp_path).put(DocumentType.WEEK_PLAN, week_plan_doc)

        restored = JsonDocumentCache(tmp_path).get(DocumentType.WEEK_PLAN)
        assert restored.sheet_name == "Week Plan"
        assert restored.grid[0] == ("Week", "Start Date", "End Date")
        assert restored.grid[1][1] == "2024-02-05T00:00:00"

    def test_corrupt_cache_removed(self, tmp_path):
        path = tmp_path / "bom.json"
        path.write_text("{not json")
        assert JsonDocumentCache(tmp_path).get(DocumentType.BOM) is None
        assert not path.exists()

    def test_cache_without_grid_removed(self, tmp_path):
        path = tmp_path / "bom.json"
        path.write_text(json.dumps({"sheet_name": "BOM"}))
        assert JsonDocumentCache(tmp_path).get(DocumentType.BOM) is None
        assert not path.exists()

    def test_document_from_dict(self):
        doc = TabularDocument.from_dict({"sheet_name": "S", "grid": [["a", 1], ["b", 2]]})
        assert doc.grid == (("a", 1), ("b", 2))
