# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from client_import.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("CLIENT_IMPORT_CONFIG", raising=False)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    # each test gets a handler bound to its own (captured) stdout
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
output_directory: ./output
column_mapping:
  Nome: name
  Conta: account_number
  Perfil: investor_profile
  Status: status
  Custódia: current_custody
  "% CDI": metrics.cdi_year_pct
  Fee Fixo: has_fixed_fee
  Aniversário: birthday
  Assessor: __ignore__
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


CLIENT_HEADER = ["Nome", "Conta", "Perfil", "Status", "Custódia", "% CDI", "Fee Fixo", "Aniversário", "Assessor"]


@pytest.fixture()
def client_rows() -> list[list[object]]:
    return [
        CLIENT_HEADER,
        ["Ana Souza", "12.345-6", "Investidor Qualificado", "Ativo", "1.234.567,89", "1,674", "Sim", "10/05/2023", "Carlos"],
        ["Bruno Lima", "98765", "regular", "prospect", "2500.5", "0.8083", "não", "03/11/1985", "Carlos"],
        ["", "", "", "", "", "", "", "", ""],
        ["Carla Dias", "", "Profissional", "inativo", "abc", "", "talvez", "", "Marta"],
    ]


def make_xlsx(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a real workbook with pandas/openpyxl; first row of each sheet is the header."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


def make_csv(path: Path, rows: list[list[object]], delimiter: str = ";") -> Path:
    lines = [delimiter.join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def xlsx_factory(temp_workdir: Path):
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_xlsx(temp_workdir / "data" / name, sheets)
    return _make


@pytest.fixture()
def csv_factory(temp_workdir: Path):
    def _make(name: str, rows: list[list[object]], delimiter: str = ";") -> Path:
        return make_csv(temp_workdir / "data" / name, rows, delimiter)
    return _make
