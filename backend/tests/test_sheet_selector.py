"""
Testes para a escolha da folha (SheetSelector) e normalização de células.
"""
import math

import pytest

from workbook_ingestion.normalization import cell_text, is_period_label, normalize_header_value, to_number
from workbook_ingestion.schemas import DocumentType
from workbook_ingestion.sheet_selector import score_sheet, select_sheet


class TestNormalization:
    """Normalização partilhada entre scorer e resolver."""

    def test_header_normalization(self):
        assert normalize_header_value("  Child_Part  ") == "child part"
        assert normalize_header_value("Vendor\n  Lead-Time") == "vendor lead-time"
        assert normalize_header_value(None) == ""

    def test_cell_text_integral_float(self):
        assert cell_text(12.0) == "12"
        assert cell_text(12.5) == "12.5"
        assert cell_text(float("nan")) == ""

    def test_period_label_is_strict(self):
        assert is_period_label("05.2024")
        assert not is_period_label("5.2024")
        assert not is_period_label("05.24")
        assert not is_period_label("W05.2024")

    def test_to_number_defaults_to_zero(self):
        assert to_number(" 42 ") == 42
        assert to_number("abc") == 0
        assert to_number("") == 0
        assert to_number(None) == 0
        assert to_number(float("inf")) == 0
        assert to_number("1_000") == 0
        assert to_number(True) == 0
        assert math.isclose(to_number("2.5"), 2.5)


class TestSheetScoring:
    """Pontuação ponderada por tipo de documento."""

    def test_bom_weights(self, bom_rows):
        # name "bom" +5, child +3, derived +2, quantity/per kit +1, uom +1
        assert score_sheet(DocumentType.BOM, "BOM", tuple(map(tuple, bom_rows))) == 12

    def test_unrelated_sheet_scores_zero(self):
        grid = (("Notes",), ("Exported from ERP",))
        assert score_sheet(DocumentType.BOM, "Notes", grid) == 0

    def test_period_pattern_rewards_production_plan(self, idp_rows):
        grid = tuple(map(tuple, idp_rows))
        # idp +4, derived +2, period pattern +4
        assert score_sheet(DocumentType.PRODUCTION_PLAN, "IDP", grid) == 10

    def test_only_first_rows_are_scanned(self):
        grid = tuple([("filler",)] * 15 + [("Child Part", "Derived Material")])
        assert score_sheet(DocumentType.BOM, "Sheet1", grid) == 0
        assert score_sheet(DocumentType.BOM, "Sheet1", grid, scan_rows=16) == 5

    def test_material_master_child_part_rule(self, material_master_rows):
        grid = tuple(map(tuple, material_master_rows))
        # material +3, master +2, child part +4, mpq/moq/reorder +6, instock +1, pending po +1
        assert score_sheet(DocumentType.MATERIAL_MASTER, "Material Master", grid) == 17


class TestSelectSheet:
    """Escolha da folha vencedora."""

    def test_picks_highest_score(self, bom_rows):
        workbook = {
            "Summary": (("Report", "Totals"),),
            "Data": tuple(map(tuple, bom_rows)),
        }
        doc = select_sheet(workbook, DocumentType.BOM)
        assert doc.sheet_name == "Data"
        assert doc.row_count == len(bom_rows)

    def test_tie_keeps_first_sheet(self):
        workbook = {
            "First": (("a", "b"),),
            "Second": (("c", "d"),),
        }
        assert select_sheet(workbook, DocumentType.SUPPLIER_DETAILS).sheet_name == "First"

    def test_empty_workbook_signals_no_usable_sheet(self):
        doc = select_sheet({}, DocumentType.BOM)
        assert doc.is_empty
        assert doc.sheet_name == "Sheet1"

    @pytest.mark.parametrize("doc_type, expected", [
        (DocumentType.BOM, "BOM"),
        (DocumentType.MATERIAL_MASTER, "MM"),
        (DocumentType.SUPPLIER_DETAILS, "Vendors"),
        (DocumentType.PRODUCTION_PLAN, "Plan"),
    ])
    def test_mixed_workbook(self, doc_type, expected, bom_rows, material_master_rows, supplier_rows, idp_rows):
        workbook = {
            "BOM": tuple(map(tuple, bom_rows)),
            "MM": tuple(map(tuple, material_master_rows)),
            "Vendors": tuple(map(tuple, supplier_rows)),
            "Plan": tuple(map(tuple, idp_rows)),
        }
        assert select_sheet(workbook, doc_type).sheet_name == expected
