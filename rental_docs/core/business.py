"""
Business constants for Rental Mario Hans documents.

Tax rate, deposit split, company identity, bank details and the lessor's
signature block are deployment constants: every document produced by one
build uses the same values. They are bundled into a frozen BusinessConfig
that is handed to the totals calculator and the layout assemblers, so a rate
change is a one-line edit here and is picked up everywhere.
"""

from dataclasses import dataclass, field
from decimal import Decimal


# ═══════════════════════════════════════════════════════════════════════════════
# COMPANY INFO
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CompanyProfile:
    legal_name: str = "Hans Salinas SpA"
    display_name: str = "HANS SALINAS SpA"
    tax_id: str = "77.892.569-9"
    bank_name: str = "Banco de Chile"
    account_type: str = "Cuenta Corriente"
    account_number: str = "8140915407"
    payments_email: str = "pagos@mariohans.cl"
    notices_email: str = "rental.mariohans@gmail.com"
    legal_address: str = (
        "Jose Victorino Lastarria 394, departamento N° 83, comuna de Santiago, "
        "ciudad de Santiago"
    )
    pickup_address: str = "Purísima 25, Recoleta"
    logo_url: str = "https://media.mariohans.cl/logos/Recurso%2016%403x.png"
    bank_logo_url: str = "https://media.mariohans.cl/logos/Recurso%2010%403x.png"


@dataclass(frozen=True)
class Signatory:
    """Person who signs on behalf of the lessor."""
    name: str = "Mario Alberto Hans Salinas"
    tax_id: str = "16.135.586-0"
    signature_url: str = "https://media.mariohans.cl/firmas/firma_mario_hans.png"


@dataclass(frozen=True)
class Branding:
    product_name: str = "Rental Mario Hans"
    website: str = "www.mariohans.cl"
    platform_url: str = "https://rental.mariohans.cl/"


@dataclass(frozen=True)
class BusinessConfig:
    tax_rate: Decimal = Decimal("0.19")
    deposit_rate: Decimal = Decimal("0.25")
    company: CompanyProfile = field(default_factory=CompanyProfile)
    signatory: Signatory = field(default_factory=Signatory)
    branding: Branding = field(default_factory=Branding)

    @property
    def tax_percent(self) -> int:
        return int(self.tax_rate * 100)

    @property
    def deposit_percent(self) -> int:
        return int(self.deposit_rate * 100)

    @property
    def balance_percent(self) -> int:
        return 100 - self.deposit_percent


DEFAULT_CONFIG = BusinessConfig()
