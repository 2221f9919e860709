"""Destination sheets of the production spreadsheet and their column order."""
from __future__ import annotations

import random
import string
import time
from datetime import date, datetime
from typing import Any, Dict, List, Mapping

from datetime_utils import format_br_date

SHEET_NAMES: Dict[str, str] = {
    "carga": "Carga",
    "descarga": "Descarga",
    "apontamento_pedreira": "Apontamento_Pedreira",
    "apontamento_pipa": "Apontamento_Pipa",
    "mov_cal": "Mov_Cal",
}

SHEET_LABELS: Dict[str, str] = {
    "carga": "Carga",
    "descarga": "Lançamento",
    "apontamento_pedreira": "Pedreira",
    "apontamento_pipa": "Pipas",
    "mov_cal": "Cal",
}

# Column order must match the header row of each tab in the spreadsheet.
SHEET_COLUMNS: Dict[str, List[str]] = {
    "carga": [
        "ID", "Data", "Local", "Estaca", "Escavadeira", "Empresa_Esc", "Operador",
        "Caminhao", "Empresa_Cam", "Motorista", "Volume", "Material", "N_Viagens",
        "Encarregado", "Apontador", "Hora", "Observacao", "Lancamento_Local",
        "Lancamento_Auto", "Sincronizado", "Timestamp",
    ],
    "descarga": [
        "ID", "Data", "Local", "Estaca", "Caminhao", "Empresa", "Motorista",
        "Volume", "Material", "N_Viagens", "Apontador", "Hora", "Observacao",
        "Origem_Carga", "Sincronizado",
    ],
    "apontamento_pedreira": [
        "ID", "Data", "Caminhao", "Empresa", "Motorista", "Placa", "Hora_Carregamento",
        "N_Pedido", "Peso_Bruto", "Peso_Tara", "Peso_Liquido", "Material",
        "Apontador", "Hora_Registro", "Observacao", "Sincronizado", "Timestamp",
    ],
    "apontamento_pipa": [
        "ID", "Data", "Prefixo", "Empresa", "Motorista", "Capacidade", "Hora_Chegada",
        "Hora_Saida", "N_Viagens", "Sincronizado",
    ],
    "mov_cal": [
        "ID", "Data", "Tipo", "Quantidade", "Nota_Fiscal", "Valor", "Fornecedor",
        "Apontador", "Hora", "Observacao", "Sincronizado", "Timestamp",
    ],
}

SHEET_KEYS = tuple(SHEET_NAMES.keys())

_ID_ALPHABET = string.digits + string.ascii_lowercase


def is_valid_sheet_key(key: str) -> bool:
    return key in SHEET_NAMES


def sheet_name_for(key: str) -> str:
    try:
        return SHEET_NAMES[key]
    except KeyError:
        raise ValueError(f"Unsupported sheet: {key}") from None


def sheet_label(key: str) -> str:
    return SHEET_LABELS.get(key, key)


def generate_id() -> str:
    """Return ``<epoch millis>-<9 base36 chars>``, unique enough for row ids."""
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return format_br_date(value)
    return str(value)


def format_row(key: str, data: Mapping[str, Any]) -> List[str]:
    """Flatten ``data`` into the column order of ``key``.

    Columns are looked up by exact name first, then lower-cased. Missing
    columns become empty cells; extra keys are ignored.
    """

    columns = SHEET_COLUMNS.get(key)
    if columns is None:
        raise ValueError(f"Unsupported sheet: {key}")
    row: List[str] = []
    for column in columns:
        value = data.get(column)
        if value is None:
            value = data.get(column.lower())
        row.append(_cell(value))
    return row


__all__ = [
    "SHEET_COLUMNS",
    "SHEET_KEYS",
    "SHEET_LABELS",
    "SHEET_NAMES",
    "format_row",
    "generate_id",
    "is_valid_sheet_key",
    "sheet_label",
    "sheet_name_for",
]
