from __future__ import annotations
from datetime import datetime

import pytest

from client_import.models.import_file import FileType, LocalImportFile
from client_import.tabular.reader import DecodeError, decode_source, decode_xlsx


def test_decode_xlsx_keeps_sheet_order(xlsx_factory):
    path = xlsx_factory(
        "multi.xlsx",
        {"Resumo": [["Total"], [3]], "Clientes": [["Nome"], ["Ana"]], "Outros": [["X"]]},
    )
    wb = decode_xlsx(path.read_bytes())
    assert wb.file_type is FileType.XLSX
    assert [m.name for m in wb.matrices] == ["Resumo", "Clientes", "Outros"]


def test_decode_xlsx_cell_types(xlsx_factory):
    path = xlsx_factory(
        "types.xlsx",
        {"Clientes": [["Nome", "Conta", "Reuniao", "Ativo"], ["Ana", 12345, datetime(2024, 3, 1, 14, 30), True]]},
    )
    cells = decode_xlsx(path.read_bytes()).matrices[0].cells
    name, account, meeting, active = cells[1]
    assert name == "Ana"
    assert account == 12345 and isinstance(account, int)
    assert meeting == datetime(2024, 3, 1, 14, 30)
    assert active is True


def test_decode_xlsx_preserves_na_strings_and_blanks(xlsx_factory):
    path = xlsx_factory("na.xlsx", {"Clientes": [["Nome", "Fee"], ["Ana", "NA"], ["Bruno", None]]})
    cells = decode_xlsx(path.read_bytes()).matrices[0].cells
    assert cells[1] == ["Ana", "NA"]
    assert cells[2] == ["Bruno", ""]


def test_decode_xlsx_corrupt_bytes_raise_decode_error():
    with pytest.raises(DecodeError) as e:
        decode_xlsx(b"not a zip container", file_name="broken.xlsx")
    assert e.value.file_name == "broken.xlsx"
    assert e.value.message.startswith("invalid workbook")


def test_decode_source_reads_xlsx_bytes(xlsx_factory):
    path = xlsx_factory("c.xlsx", {"Clientes": [["Nome"], ["Ana"]]})
    wb = decode_source(LocalImportFile(path), FileType.XLSX)
    assert wb.matrices[0].cells == [["Nome"], ["Ana"]]
