from __future__ import annotations
import pytest

from client_import.normalize.fields import (
    CLIENT_IMPORT_FIELDS,
    FIELDS_BY_KEY,
    IGNORE_IMPORT_COLUMN,
    MappingError,
    apply_mapping_model,
    create_default_mapping,
    field_options,
    validate_mapping,
)
from client_import.normalize.row import _HANDLERS


def test_every_field_has_a_handler_and_unique_issue_code():
    assert set(FIELDS_BY_KEY) == set(_HANDLERS)
    codes = [f.issue_code for f in CLIENT_IMPORT_FIELDS]
    assert len(codes) == len(set(codes))


def test_field_options_start_with_ignore():
    options = field_options()
    assert options[0] == (IGNORE_IMPORT_COLUMN, "Ignorar coluna")
    assert len(options) == len(CLIENT_IMPORT_FIELDS) + 1
    assert ("metrics.cdi_year_pct", "% CDI no ano") in options


def test_create_default_mapping_ignores_everything():
    assert create_default_mapping(["Nome", "Conta"]) == {"Nome": IGNORE_IMPORT_COLUMN, "Conta": IGNORE_IMPORT_COLUMN}


def test_apply_mapping_model_projects_saved_mapping():
    saved = {"Nome": "name", "Conta": "account_number", "Antiga": "notes", "Perfil": ""}
    mapping = apply_mapping_model(["Nome", "Perfil", "Nova"], saved)
    assert mapping == {"Nome": "name", "Perfil": IGNORE_IMPORT_COLUMN, "Nova": IGNORE_IMPORT_COLUMN}


def test_validate_mapping():
    validate_mapping({"Nome": "name", "X": IGNORE_IMPORT_COLUMN, "Total": "metrics.total_brl"})
    with pytest.raises(MappingError) as e:
        validate_mapping({"Nome": "nome", "Conta": "conta"})
    assert "['conta', 'nome']" in str(e.value)
