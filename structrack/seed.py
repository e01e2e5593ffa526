"""Demo reference data: structure types and the Bridge/Culvert checklists."""

from __future__ import annotations

import logging

from structrack.inventory.models import LocalizedText, StructureType
from structrack.progress.models import MatrixColumn, MatrixType
from structrack.service import StructureManager

logger = logging.getLogger(__name__)

# code, tr, en, ro, icon
STRUCTURE_TYPES = [
    ("POD", "Köprü & Viyadük", "Bridge & Viaduct", "Pod & Viaduct", "bridge"),
    ("DG", "Menfez (Box)", "Box Culvert", "Podeț", "rectangle"),
    ("OVERPASS", "Üst Geçit", "Overpass", "Pasaj Superior", "architecture"),
    ("UNDERPASS", "Alt Geçit", "Underpass", "Pasaj Inferior", "tunnel"),
    ("WALL", "İstinat Duvarı", "Retaining Wall", "Zid de Sprijin", "wall"),
    ("EARTHWORK", "Toprak İşleri", "Earthworks", "Terasamente", "terrain"),
]

# (name tr/en/ro), (group tr/en/ro), col_type
MATRIX_COLUMNS = {
    MatrixType.BRIDGE: [
        (("KAZIK APLİK.", "PILE SETTING OUT", "TRASARE PILOTI"), ("KAZIK / PILOTI", "PILES", "PILOȚI"), "TRASARE"),
        (("KAZI KOTU", "EXC. LEVEL", "COTA SAPATURA"), ("TEMEL KAZISI", "FOUNDATION EXC.", "SĂPĂTURĂ FUNDAȚIE"), "VERIFICARE"),
        (("GROBETON", "LEAN CONCRETE", "BETON EGALIZARE"), ("GROBETON", "LEAN CONCRETE", "BETON EGALIZARE"), "VERIFICARE"),
        (("KAZIK KIRIM", "PILE BREAKING", "SPARGERE CAP"), ("KAZIK İŞLERİ", "PILE WORKS", "LUCRĂRI PILOȚI"), "VERIFICARE"),
        (("DONATI", "REBAR", "ARMATURA"), ("DONATI / REBAR", "REBAR WORKS", "ARMATURĂ"), "VERIFICARE"),
        (("KAZIK PV", "PILE VERIF.", "VERIFICARE PILOTI"), ("KAZIK KONTROL", "PILE CHECK", "VERIFICARE PILOȚI"), "VERIFICARE"),
        (("TEMEL APLİK.", "FOUND. SETTING", "TRASARE FUNDATIE"), ("TEMEL BETONU", "FOUNDATION CONC.", "BETON FUNDAȚIE"), "TRASARE"),
        (("TEMEL KOTU", "FOUND. LEVEL", "VERIF. FUNDATIE"), ("TEMEL BETONU", "FOUNDATION CONC.", "BETON FUNDAȚIE"), "VERIFICARE"),
        (("ELEV. APLİK.", "ELEV. SETTING", "TRASARE ELEVATIE"), ("ELEVASYON", "ELEVATION", "ELEVAȚIE"), "TRASARE"),
        (("ELEV. KOTU", "ELEV. LEVEL", "VERIF. ELEVATIE"), ("ELEVASYON", "ELEVATION", "ELEVAȚIE"), "VERIFICARE"),
        (("BAŞLIK APLİK.", "CAP SETTING", "TRASARE RIGLA"), ("BAŞLIK KİRİŞİ", "CAP BEAM", "RIGLA POD"), "TRASARE"),
        (("BAŞLIK KOTU", "CAP LEVEL", "VERIF. RIGLA"), ("BAŞLIK KİRİŞİ", "CAP BEAM", "RIGLA POD"), "VERIFICARE"),
    ],
    MatrixType.CULVERT: [
        (("EKSEN APLİK.", "CENTER SETTING", "TRASARE CENTRU"), ("APLİKASYON", "SETTING OUT", "TRASARE"), "TRASARE"),
        (("KAZI KOTU", "FOUND. LEVEL", "COTA FUNDARE"), ("KAZI / ZEMİN", "EXCAVATION", "TEREN FUNDARE"), "VERIFICARE"),
        (("EKSTRA KAZI", "EXTRA EXC.", "EXTRA EXCAV."), ("KAZI / ZEMİN", "EXCAVATION", "TEREN FUNDARE"), "VERIFICARE"),
        (("BLOKAJ KOTU", "STONE BLOCK", "COTA BLOCAJ"), ("BLOKAJ", "STONE FILL", "BLOCAJ PIATRĂ"), "VERIFICARE"),
        (("KALIP KONTROL", "FORMWORK", "DIM. COFRAJE"), ("KALIP", "FORMWORK", "COFRAJE"), "VERIFICARE"),
        (("TEMEL BETON", "FOUND. CONC.", "BETONARE"), ("BETON", "CONCRETE", "FUNDAȚIE"), "VERIFICARE"),
        (("GROBETON/EĞİM", "SLOPE CONC.", "BETON PANTA"), ("GROBETON", "LEAN CONCRETE", "BETON PANTĂ"), "VERIFICARE"),
        (("İZOLASYON", "HYDRO INSUL.", "HIDROIZOLATIE"), ("YALITIM", "INSULATION", "PROTECTIE"), "VERIFICARE"),
        (("DRENAJ", "DRAINAGE", "DREN"), ("DRENAJ", "DRAINAGE", "CALITATE DREN"), "VERIFICARE"),
        (("TAŞ DOLGU", "STONE MAT.", "SALTEA PIATRA"), ("PERE", "RIPRAP", "SALTEA"), "VERIFICARE"),
        (("DÜŞÜ HAVUZU", "DROP CHAMBER", "CAMERE CADERE"), ("SANAT YAPISI", "STRUCTURE", "CAMERE"), "VERIFICARE"),
    ],
}


def _text(values: tuple[str, str, str]) -> LocalizedText:
    tr, en, ro = values
    return LocalizedText(tr=tr, en=en, ro=ro)


async def seed_reference_data(manager: StructureManager) -> tuple[int, int]:
    """Insert missing demo types and columns.

    Types are matched by code; a matrix type that already has columns is
    left alone.

    Returns:
        Tuple of (types_added, columns_added)
    """
    existing_codes = {t.code.upper() for t in await manager.list_structure_types()}
    types_added = 0
    for code, tr, en, ro, icon in STRUCTURE_TYPES:
        if code in existing_codes:
            continue
        await manager.add_structure_type(
            StructureType(code=code, name=LocalizedText(tr=tr, en=en, ro=ro), icon=icon)
        )
        types_added += 1

    existing_columns = await manager.list_columns()
    columns_added = 0
    for matrix_type, columns in MATRIX_COLUMNS.items():
        if existing_columns[matrix_type]:
            logger.info(f"{matrix_type.value} columns already configured; skipping")
            continue
        for order_index, (name, group, col_type) in enumerate(columns, start=1):
            await manager.add_column(
                MatrixColumn(
                    matrix_type=matrix_type,
                    name=_text(name),
                    group=_text(group),
                    col_type=col_type,
                    order_index=order_index,
                )
            )
            columns_added += 1

    return types_added, columns_added
