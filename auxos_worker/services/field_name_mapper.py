"""Mapping from extraction-config (authoring) field names to lead model field names."""

from typing import Dict, List

# Authoring name -> canonical lead/submission field name. Names not listed
# here are already canonical.
FIELD_NAME_MAP: Dict[str, str] = {
    "businessName": "legalBusinessName",
    "address": "primaryAddress",
    "city": "primaryCity",
    "state": "primaryState",
    "zip": "primaryZip",
    "employeeCount": "employeeCountTotal",
    "revenue": "annualRevenue",
    "overview": "businessDescription",
    "yearsInOperation": "yearsInOperation",
    "taxId": "taxId",
    "industryCode": "industryCode",
    "industryLabel": "industryLabel",
    "totalClaimsCount": "totalClaimsCount",
    "totalClaimsLoss": "totalClaimsLoss",
    "currentCoverages": "currentCoverages",
    "ownershipStructure": "ownershipStructure",
    "keyAssets": "keyAssets",
    "additionalLocations": "additionalLocations",
}


def to_canonical(authoring_name: str) -> str:
    """Canonical field name for an authoring name (identity when unmapped)."""
    return FIELD_NAME_MAP.get(authoring_name, authoring_name)


def authoring_names_for(canonical_name: str) -> List[str]:
    """Every authoring name that maps onto ``canonical_name``.

    The map is not a bijection; an unmapped canonical name maps back to itself.
    """
    names = [name for name, target in FIELD_NAME_MAP.items() if target == canonical_name]
    if not names and canonical_name not in FIELD_NAME_MAP:
        names.append(canonical_name)
    return names
