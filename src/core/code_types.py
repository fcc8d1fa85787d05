"""Billing code type catalogue.

This module lists the CMS-defined code types an MRF file may carry
as wide columns, in the canonical order used for staging and output.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CodeType:
    """One billing code system.

    Attributes:
        name: Code type tag written to price records, e.g. ``CPT``.
        column: Source and staging column name, e.g. ``cpt_code``.
        partition: Serving partition suffix, e.g. ``cpt``.
    """

    name: str
    column: str
    partition: str


ALL_CODE_TYPES: tuple[CodeType, ...] = (
    CodeType(name="CPT", column="cpt_code", partition="cpt"),
    CodeType(name="HCPCS", column="hcpcs_code", partition="hcpcs"),
    CodeType(name="MS-DRG", column="ms_drg_code", partition="ms_drg"),
    CodeType(name="NDC", column="ndc_code", partition="ndc"),
    CodeType(name="RC", column="rc_code", partition="rc"),
    CodeType(name="ICD", column="icd_code", partition="icd"),
    CodeType(name="DRG", column="drg_code", partition="drg"),
    CodeType(name="CDM", column="cdm_code", partition="cdm"),
    CodeType(name="LOCAL", column="local_code", partition="local"),
    CodeType(name="APC", column="apc_code", partition="apc"),
    CodeType(name="EAPG", column="eapg_code", partition="eapg"),
    CodeType(name="HIPPS", column="hipps_code", partition="hipps"),
    CodeType(name="CDT", column="cdt_code", partition="cdt"),
    CodeType(name="R-DRG", column="r_drg_code", partition="r_drg"),
    CodeType(name="S-DRG", column="s_drg_code", partition="s_drg"),
    CodeType(name="APS-DRG", column="aps_drg_code", partition="aps_drg"),
    CodeType(name="AP-DRG", column="ap_drg_code", partition="ap_drg"),
    CodeType(name="APR-DRG", column="apr_drg_code", partition="apr_drg"),
    CodeType(name="TRIS-DRG", column="tris_drg_code", partition="tris_drg"),
)


def code_type_names() -> tuple[str, ...]:
    """Return all code type names in canonical order."""
    return tuple(code_type.name for code_type in ALL_CODE_TYPES)


def code_type_columns() -> tuple[str, ...]:
    """Return all code column names in canonical order."""
    return tuple(code_type.column for code_type in ALL_CODE_TYPES)


def code_type_by_name(name: str) -> CodeType | None:
    """Look up a code type by its tag, or ``None`` when unknown."""
    for code_type in ALL_CODE_TYPES:
        if code_type.name == name:
            return code_type
    return None


def select_code_types(names: tuple[str, ...]) -> tuple[CodeType, ...]:
    """Resolve validated names into code types, keeping canonical order.

    Args:
        names: Code type names; empty means every code type.

    Returns:
        Selected code types in catalogue order.
    """
    if not names:
        return ALL_CODE_TYPES
    wanted = set(names)
    return tuple(code_type for code_type in ALL_CODE_TYPES if code_type.name in wanted)
