from __future__ import annotations
from datetime import datetime

import pytest

from client_import.models.normalized_row import Severity
from client_import.normalize.fields import IGNORE_IMPORT_COLUMN, REVIEW_PENDING_TAG, MappingError
from client_import.normalize.row import apply_birthday_rule, normalize_client_row

MAPPING = {
    "Nome": "name",
    "Conta": "account_number",
    "Perfil": "investor_profile",
    "Status": "status",
    "Email": "email",
    "Custódia": "current_custody",
    "Total": "metrics.total_brl",
    "% CDI": "metrics.cdi_year_pct",
    "Fee Fixo": "has_fixed_fee",
    "Reunião": "next_meeting_at",
    "Aniversário": "birthday",
    "Assessor": IGNORE_IMPORT_COLUMN,
}


def _row(**overrides):
    row = {
        "Nome": "Ana Souza",
        "Conta": "12.345-6",
        "Perfil": "Qualificado",
        "Status": "Ativo",
        "Email": " ana@example.com ",
        "Custódia": "1.234.567,89",
        "Total": "2.000,00",
        "% CDI": "1,674",
        "Fee Fixo": "Sim",
        "Reunião": "01/03/2024 14:30",
        "Aniversário": "03/11/1985",
        "Assessor": "Carlos",
    }
    row.update(overrides)
    return row


def test_normalize_full_row():
    result = normalize_client_row(_row(), 2, MAPPING)
    assert result.errors == []
    assert result.row_index == 2
    assert result.row_id == "import-row-2"
    assert result.account_number == "123456"
    p = result.payload
    assert p["name"] == "Ana Souza"
    assert p["account_number"] == "123456"
    assert p["investor_profile"] == "Qualificado"
    assert p["status"] == "ativo"
    assert p["email"] == "ana@example.com"
    assert p["current_custody"] == pytest.approx(1234567.89)
    assert p["metrics"]["total_brl"] == pytest.approx(2000.0)
    assert p["metrics"]["cdi_year_pct"] == pytest.approx(167.4)
    assert p["has_fixed_fee"] is True
    assert p["next_meeting_at"] == "2024-03-01T14:30:00.000Z"
    assert p["birth_date"] == "1985-11-03"
    assert "birth_day" not in p and "birth_month" not in p
    assert "Assessor" not in p and "custom_fields" not in p


def test_birthday_placeholder_year_keeps_day_and_month_only():
    p = normalize_client_row(_row(**{"Aniversário": "10/05/2023"}), 2, MAPPING).payload
    assert p["birth_day"] == 10
    assert p["birth_month"] == 5
    assert "birth_date" not in p


@pytest.mark.parametrize(
    "when, placeholder",
    [
        (datetime(2000, 1, 1), True),
        (datetime(1999, 12, 31), False),
        (datetime(2035, 6, 7), True),
    ],
)
def test_apply_birthday_rule_threshold_inclusive_at_2000(when, placeholder):
    payload: dict = {}
    apply_birthday_rule(payload, when)
    if placeholder:
        assert payload == {"birth_day": when.day, "birth_month": when.month}
    else:
        assert payload == {"birth_date": when.strftime("%Y-%m-%d")}


def test_field_errors_do_not_stop_other_fields():
    row = _row(**{"% CDI": "abc", "Custódia": "muito", "Fee Fixo": "talvez", "Status": "pausado"})
    result = normalize_client_row(row, 7, MAPPING)
    codes = sorted(e.code for e in result.errors)
    assert codes == ["cdi_invalid", "custody_invalid", "fixed_fee_invalid", "status_invalid"]
    assert all(e.row_index == 7 for e in result.errors)
    assert all(e.severity is Severity.WARNING for e in result.errors)
    assert not result.has_blocking_error
    p = result.payload
    assert p["name"] == "Ana Souza"
    assert p["metrics"]["total_brl"] == pytest.approx(2000.0)
    assert "cdi_year_pct" not in p["metrics"]
    assert "current_custody" not in p
    assert "has_fixed_fee" not in p
    assert "status" not in p


def test_field_error_message_names_the_problem():
    result = normalize_client_row(_row(**{"% CDI": "abc"}), 3, MAPPING)
    (error,) = result.errors
    assert error.field == "metrics.cdi_year_pct"
    assert error.message.startswith("Invalid % CDI. Field ignored.")
    assert "abc" in error.message


def test_not_applicable_fixed_fee_is_silently_skipped():
    result = normalize_client_row(_row(**{"Fee Fixo": "NA"}), 2, MAPPING)
    assert result.errors == []
    assert "has_fixed_fee" not in result.payload


def test_fixed_fee_nao_is_false():
    result = normalize_client_row(_row(**{"Fee Fixo": "Não"}), 2, MAPPING)
    assert result.payload["has_fixed_fee"] is False


def test_missing_account_marks_review_pending():
    result = normalize_client_row(_row(**{"Conta": "s/ conta"}), 2, MAPPING)
    assert result.account_number == ""
    assert result.payload["account_number"] == ""
    assert result.payload["custom_fields"] == {"review_pending": True}
    assert result.payload["tags"] == [REVIEW_PENDING_TAG]
    assert result.errors == []


def test_unmapped_account_column_marks_review_pending():
    mapping = {"Nome": "name"}
    result = normalize_client_row({"Nome": "Ana"}, 2, mapping)
    assert result.payload == {
        "name": "Ana",
        "account_number": "",
        "custom_fields": {"review_pending": True},
        "tags": [REVIEW_PENDING_TAG],
    }


def test_blank_name_is_blocking_error():
    result = normalize_client_row(_row(Nome="   "), 4, MAPPING)
    name_errors = [e for e in result.errors if e.code == "name_missing"]
    assert len(name_errors) == 1
    assert name_errors[0].severity is Severity.ERROR
    assert result.has_blocking_error
    assert "name" not in result.payload


def test_unmapped_name_is_blocking_error():
    result = normalize_client_row({"Conta": "1"}, 2, {"Conta": "account_number"})
    assert [e.code for e in result.errors] == ["name_missing"]


def test_mapped_header_missing_from_row_is_skipped():
    result = normalize_client_row({"Nome": "Ana"}, 2, MAPPING)
    assert result.errors == []
    assert result.payload["name"] == "Ana"


def test_blank_optional_cells_are_not_errors():
    row = _row(**{"Custódia": "", "% CDI": None, "Reunião": "  ", "Aniversário": "", "Perfil": ""})
    result = normalize_client_row(row, 2, MAPPING)
    assert result.errors == []
    assert "current_custody" not in result.payload


def test_xlsx_typed_cells():
    row = _row(**{"Conta": 98765.0, "Custódia": 2500.5, "% CDI": 0.8083, "Fee Fixo": 1,
                  "Aniversário": datetime(1990, 7, 4), "Reunião": 45000})
    p = normalize_client_row(row, 2, MAPPING).payload
    assert p["account_number"] == "98765"
    assert p["current_custody"] == pytest.approx(2500.5)
    assert p["metrics"]["cdi_year_pct"] == pytest.approx(80.83)
    assert p["has_fixed_fee"] is True
    assert p["birth_date"] == "1990-07-04"
    assert p["next_meeting_at"] == "2023-03-15T00:00:00.000Z"


def test_raw_row_is_kept():
    row = _row()
    result = normalize_client_row(row, 2, MAPPING)
    assert result.raw == row
    assert result.raw is not row


def test_row_must_be_a_mapping():
    with pytest.raises(TypeError):
        normalize_client_row(["Ana"], 2, MAPPING)  # type: ignore[arg-type]


def test_unknown_field_key_raises_mapping_error():
    with pytest.raises(MappingError):
        normalize_client_row({"Nome": "Ana"}, 2, {"Nome": "nickname"})


def test_normalization_is_deterministic():
    row = _row(**{"% CDI": "x"})
    assert normalize_client_row(row, 5, MAPPING) == normalize_client_row(row, 5, MAPPING)
